"""Default categories every owner starts with."""

import logging
from typing import List

from sqlalchemy.orm import Session

from finsight.models.category import Category
from finsight.models.recurring import TransactionType

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    # Income
    {"name": "Salary", "type": TransactionType.income, "icon": "banknote", "color": "#10b981"},
    {"name": "Freelance", "type": TransactionType.income, "icon": "briefcase", "color": "#3b82f6"},
    {"name": "Business", "type": TransactionType.income, "icon": "building", "color": "#8b5cf6"},
    {"name": "Investment Returns", "type": TransactionType.income, "icon": "trending-up", "color": "#06b6d4"},
    {"name": "Rental Income", "type": TransactionType.income, "icon": "home", "color": "#84cc16"},
    {"name": "Side Hustle", "type": TransactionType.income, "icon": "rocket", "color": "#14b8a6"},
    {"name": "Gift/Bonus", "type": TransactionType.income, "icon": "gift", "color": "#ec4899"},
    {"name": "Refunds", "type": TransactionType.income, "icon": "undo", "color": "#f59e0b"},
    # Expense
    {"name": "Food & Dining", "type": TransactionType.expense, "icon": "utensils", "color": "#ef4444"},
    {"name": "Transport", "type": TransactionType.expense, "icon": "car", "color": "#f59e0b"},
    {"name": "Shopping", "type": TransactionType.expense, "icon": "shopping-bag", "color": "#ec4899"},
    {"name": "Bills & Utilities", "type": TransactionType.expense, "icon": "zap", "color": "#6366f1"},
    {"name": "Entertainment", "type": TransactionType.expense, "icon": "tv", "color": "#8b5cf6"},
    {"name": "Healthcare", "type": TransactionType.expense, "icon": "heart-pulse", "color": "#14b8a6"},
    {"name": "Education", "type": TransactionType.expense, "icon": "book", "color": "#0ea5e9"},
    {"name": "Rent/EMI", "type": TransactionType.expense, "icon": "key", "color": "#f97316"},
    {"name": "Other", "type": TransactionType.expense, "icon": "more-horizontal", "color": "#64748b"},
]


def seed_default_categories(db: Session, owner_id: str) -> List[Category]:
    """
    Give an owner the default categories the first time they have none.

    Returns the categories created; empty if the owner already had some.
    """
    existing_count = db.query(Category).filter(Category.owner_id == owner_id).count()
    if existing_count > 0:
        return []

    categories = [
        Category(owner_id=owner_id, is_default=True, **data)
        for data in DEFAULT_CATEGORIES
    ]
    db.add_all(categories)
    db.commit()
    logger.info(f"Seeded {len(categories)} default categories for owner {owner_id}")
    return categories
