"""
Database engine and session setup.
"""

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import declarative_base, sessionmaker

from finsight.config import settings


Base = declarative_base()


def build_engine(database_url: str, timeout_seconds: float) -> Engine:
    """
    Create an engine whose connections never wait on the database forever.

    SQLite gets a busy timeout, PostgreSQL a statement timeout, and every
    backend a bounded pool checkout.
    """
    url = make_url(database_url)
    connect_args = {}

    if url.get_backend_name() == "sqlite":
        connect_args = {"check_same_thread": False, "timeout": timeout_seconds}
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        return create_engine(database_url, connect_args=connect_args)

    if url.get_backend_name() == "postgresql":
        connect_args = {"options": f"-c statement_timeout={int(timeout_seconds * 1000)}"}

    return create_engine(
        database_url,
        connect_args=connect_args,
        pool_timeout=timeout_seconds,
        pool_pre_ping=True,
    )


engine = build_engine(settings.database_url, settings.database_timeout_seconds)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """Create all tables that don't exist yet."""
    # Import models so they register on Base.metadata
    import finsight.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
