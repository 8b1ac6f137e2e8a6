"""
Category Pydantic schemas for API validation.
"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional

from finsight.models.recurring import TransactionType


class CategoryBase(BaseModel):
    """Base category schema."""
    name: str = Field(..., min_length=1, max_length=100)
    type: TransactionType
    icon: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")


class CategoryCreate(CategoryBase):
    """Schema for creating a category."""
    pass


class CategoryUpdate(BaseModel):
    """Schema for updating a category. The type is fixed once created."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    icon: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")


class CategoryResponse(CategoryBase):
    """Schema for category response."""
    id: str
    owner_id: str
    is_default: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
