"""Shared test fixtures."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ["SCHEDULER_ENABLED"] = "false"

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from datetime import datetime
from decimal import Decimal
import uuid

from finsight.database import Base
from finsight.dependencies import get_db
from finsight.main import app
from finsight.models.recurring import RecurringTransaction, Frequency, TransactionType
from finsight.models.transaction import Transaction


@pytest.fixture(scope="function")
def engine():
    """In-memory SQLite shared by every connection in the test."""
    # Use StaticPool to ensure all connections use the same in-memory database
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    Base.metadata.create_all(bind=engine)

    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    """Create a fresh database session for each test."""
    session = session_factory()

    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def template_factory(db_session):
    """Persist recurring transactions with sensible defaults."""
    def make_template(**overrides):
        start = overrides.pop("start_date", datetime(2024, 1, 1))
        data = dict(
            id=str(uuid.uuid4()),
            owner_id="local",
            name="Netflix",
            type=TransactionType.expense,
            amount=Decimal("15.99"),
            category="Entertainment",
            description=None,
            frequency=Frequency.monthly,
            start_date=start,
            next_occurrence=start,
            end_date=None,
            is_active=True,
            tags=["subscription"],
        )
        data.update(overrides)
        template = RecurringTransaction(**data)
        db_session.add(template)
        db_session.commit()
        db_session.refresh(template)
        return template

    return make_template


@pytest.fixture
def sample_recurring(template_factory):
    """Monthly expense due on 2024-01-01."""
    return template_factory()


@pytest.fixture
def sample_transaction(db_session):
    """Create a sample one-off transaction."""
    txn = Transaction(
        id=str(uuid.uuid4()),
        owner_id="local",
        type=TransactionType.expense,
        amount=Decimal("50.00"),
        category="Groceries",
        description="Whole Foods",
        date=datetime(2024, 1, 15, 12, 30),
        tags=["food"],
        is_recurring=False,
    )
    db_session.add(txn)
    db_session.commit()
    db_session.refresh(txn)
    return txn
