"""
Recurring transaction database model.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Numeric, Text, Enum, JSON, CheckConstraint, Index
from sqlalchemy.orm import relationship
import enum
from finsight.database import Base


class TransactionType(str, enum.Enum):
    """Direction of money flow."""
    income = "income"
    expense = "expense"


class Frequency(str, enum.Enum):
    """Recurring frequency enumeration."""
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"
    yearly = "yearly"


class RecurringTransaction(Base):
    """Template that generates a transaction every time its next occurrence comes due."""

    __tablename__ = "recurring_transactions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String(64), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    type = Column(Enum(TransactionType), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    category = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    frequency = Column(Enum(Frequency), nullable=False)
    start_date = Column(DateTime, nullable=False)
    next_occurrence = Column(DateTime, nullable=False)  # Only the scheduler advances this
    end_date = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    last_processed = Column(DateTime, nullable=True)
    tags = Column(JSON, default=list, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    transactions = relationship("Transaction", back_populates="recurring_transaction")

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_recurring_amount_non_negative"),
        Index("idx_recurring_owner_next", "owner_id", "next_occurrence"),
        Index("idx_recurring_owner_active", "owner_id", "is_active"),
    )
