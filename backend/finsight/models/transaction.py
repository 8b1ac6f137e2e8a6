"""
Transaction database model.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Numeric, Text, Enum, JSON, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship
from finsight.database import Base
from finsight.models.recurring import Frequency, TransactionType


class Transaction(Base):
    """Transaction model."""

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String(64), nullable=False, index=True)
    type = Column(Enum(TransactionType), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    category = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    date = Column(DateTime, default=datetime.utcnow, nullable=False)
    tags = Column(JSON, default=list, nullable=False)
    is_recurring = Column(Boolean, default=False, nullable=False)
    recurring_frequency = Column(Enum(Frequency), nullable=True)
    recurring_transaction_id = Column(
        String(36),
        ForeignKey("recurring_transactions.id", ondelete="SET NULL"),
        nullable=True,
    )
    # "<template id>:<intended occurrence>" for scheduler-generated rows
    occurrence_key = Column(String(100), unique=True, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    recurring_transaction = relationship("RecurringTransaction", back_populates="transactions")

    # Indexes for common queries
    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_transaction_amount_non_negative"),
        Index("idx_transaction_owner_date", "owner_id", "date"),
        Index("idx_transaction_owner_category", "owner_id", "category"),
        Index("idx_transaction_owner_type", "owner_id", "type"),
    )
