"""
FastAPI dependencies.
"""

from typing import Generator, Optional
from fastapi import Header
from sqlalchemy.orm import Session
from finsight.config import settings
from finsight.database import SessionLocal


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for getting database sessions.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_owner_id(x_user_id: Optional[str] = Header(None)) -> str:
    """
    Identity of the account owner making the request.

    Session issuance happens upstream; the gateway forwards the user id in the
    X-User-Id header.
    """
    return x_user_id or settings.default_owner_id
