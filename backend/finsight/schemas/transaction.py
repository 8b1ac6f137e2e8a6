"""
Transaction schemas.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from finsight.models.recurring import Frequency, TransactionType
from finsight.utils.dates import as_naive_utc


class TransactionBase(BaseModel):
    type: TransactionType
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    category: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    tags: List[str] = []


class TransactionCreate(TransactionBase):
    date: Optional[datetime] = None

    @field_validator("date")
    @classmethod
    def normalize_timezone(cls, value):
        return as_naive_utc(value)


class TransactionResponse(BaseModel):
    id: str
    owner_id: str
    type: TransactionType
    amount: Decimal
    category: str
    description: Optional[str]
    date: datetime
    tags: List[str]
    is_recurring: bool
    recurring_frequency: Optional[Frequency]
    recurring_transaction_id: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TransactionListResponse(BaseModel):
    items: list[TransactionResponse]
    total: int
    page: int
    pages: int


class BulkDeleteRequest(BaseModel):
    ids: List[str] = Field(..., min_length=1)


class BulkDeleteResponse(BaseModel):
    deleted_count: int
