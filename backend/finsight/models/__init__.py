"""
Database models package.
"""

from finsight.models.recurring import RecurringTransaction, Frequency, TransactionType
from finsight.models.transaction import Transaction
from finsight.models.category import Category

__all__ = [
    "RecurringTransaction",
    "Frequency",
    "TransactionType",
    "Transaction",
    "Category",
]
