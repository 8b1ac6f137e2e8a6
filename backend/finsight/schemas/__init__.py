"""
Pydantic schemas package.
"""

from finsight.schemas.recurring import (
    RecurringTransactionBase,
    RecurringTransactionCreate,
    RecurringTransactionUpdate,
    RecurringTransactionResponse,
    ProcessRecurringResponse,
)
from finsight.schemas.transaction import (
    TransactionBase,
    TransactionCreate,
    TransactionResponse,
    TransactionListResponse,
    BulkDeleteRequest,
    BulkDeleteResponse,
)
from finsight.schemas.category import (
    CategoryBase,
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
)

__all__ = [
    "RecurringTransactionBase",
    "RecurringTransactionCreate",
    "RecurringTransactionUpdate",
    "RecurringTransactionResponse",
    "ProcessRecurringResponse",
    "TransactionBase",
    "TransactionCreate",
    "TransactionResponse",
    "TransactionListResponse",
    "BulkDeleteRequest",
    "BulkDeleteResponse",
    "CategoryBase",
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryResponse",
]
