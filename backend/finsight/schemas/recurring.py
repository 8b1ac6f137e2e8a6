"""Pydantic schemas for recurring transactions."""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from finsight.models.recurring import Frequency, TransactionType
from finsight.utils.dates import as_naive_utc


class RecurringTransactionBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: TransactionType
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    category: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    frequency: Frequency
    tags: List[str] = []


class RecurringTransactionCreate(RecurringTransactionBase):
    start_date: datetime
    end_date: Optional[datetime] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_timezone(cls, value):
        return as_naive_utc(value)

    @model_validator(mode="after")
    def check_end_after_start(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class RecurringTransactionUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    frequency: Optional[Frequency] = None
    is_active: Optional[bool] = None
    end_date: Optional[datetime] = None
    tags: Optional[List[str]] = None

    @field_validator("end_date")
    @classmethod
    def normalize_timezone(cls, value):
        return as_naive_utc(value)


class RecurringTransactionResponse(RecurringTransactionBase):
    id: str
    owner_id: str
    amount: Decimal
    start_date: datetime
    next_occurrence: datetime
    end_date: Optional[datetime] = None
    is_active: bool
    last_processed: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProcessRecurringResponse(BaseModel):
    """Outcome counts of one scheduler pass."""
    due: int
    succeeded: int
    failed: int
    expired: int
    skipped: int
    started_at: datetime
    finished_at: Optional[datetime] = None
