"""
Category API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from finsight.dependencies import get_db, get_owner_id
from finsight.models.category import Category
from finsight.models.recurring import RecurringTransaction, TransactionType
from finsight.models.transaction import Transaction
from finsight.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
)
from finsight.services.category_service import seed_default_categories

router = APIRouter(prefix="/categories", tags=["categories"])


def _get_or_404(db: Session, owner_id: str, category_id: str) -> Category:
    category = db.query(Category).filter(
        Category.id == category_id,
        Category.owner_id == owner_id
    ).first()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


def _name_taken(db: Session, owner_id: str, name: str, type: TransactionType, exclude_id: Optional[str] = None) -> bool:
    query = db.query(Category).filter(
        Category.owner_id == owner_id,
        Category.name == name,
        Category.type == type
    )
    if exclude_id:
        query = query.filter(Category.id != exclude_id)
    return query.first() is not None


@router.get("", response_model=List[CategoryResponse])
def list_categories(
    type: Optional[TransactionType] = Query(None),
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db)
):
    """List the caller's categories by name. New owners get the defaults first."""
    seed_default_categories(db, owner_id)

    query = db.query(Category).filter(Category.owner_id == owner_id)
    if type:
        query = query.filter(Category.type == type)

    return [CategoryResponse.model_validate(c) for c in query.order_by(Category.name).all()]


@router.post("", response_model=CategoryResponse, status_code=201)
def create_category(
    category: CategoryCreate,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db)
):
    """Create a new category."""
    name = category.name.strip()
    if _name_taken(db, owner_id, name, category.type):
        raise HTTPException(status_code=400, detail="Category already exists")

    db_category = Category(
        owner_id=owner_id,
        name=name,
        type=category.type,
        icon=category.icon,
        color=category.color,
        is_default=False  # User-created categories are never defaults
    )
    db.add(db_category)
    db.commit()
    db.refresh(db_category)
    return CategoryResponse.model_validate(db_category)


@router.get("/{category_id}", response_model=CategoryResponse)
def get_category(
    category_id: str,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db)
):
    """Get a specific category."""
    return CategoryResponse.model_validate(_get_or_404(db, owner_id, category_id))


@router.put("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: str,
    category_update: CategoryUpdate,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db)
):
    """Update a category's name, icon or color."""
    category = _get_or_404(db, owner_id, category_id)

    if category_update.name is not None:
        name = category_update.name.strip()
        if _name_taken(db, owner_id, name, category.type, exclude_id=category.id):
            raise HTTPException(status_code=400, detail="Category already exists")
        category.name = name
    if category_update.icon is not None:
        category.icon = category_update.icon
    if category_update.color is not None:
        category.color = category_update.color

    db.commit()
    db.refresh(category)
    return CategoryResponse.model_validate(category)


@router.delete("/{category_id}", status_code=204)
def delete_category(
    category_id: str,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db)
):
    """Delete a category that no transaction or recurring template uses."""
    category = _get_or_404(db, owner_id, category_id)

    transaction_count = db.query(Transaction).filter(
        Transaction.owner_id == owner_id,
        Transaction.category == category.name
    ).count()
    if transaction_count > 0:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot delete category. It has {transaction_count} transaction(s)."
        )

    template_count = db.query(RecurringTransaction).filter(
        RecurringTransaction.owner_id == owner_id,
        RecurringTransaction.category == category.name
    ).count()
    if template_count > 0:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot delete category. It has {template_count} recurring transaction(s)."
        )

    db.delete(category)
    db.commit()
    return None
