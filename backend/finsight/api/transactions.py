"""
Transaction API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime
import uuid

from finsight.dependencies import get_db, get_owner_id
from finsight.models.recurring import TransactionType
from finsight.models.transaction import Transaction
from finsight.schemas.transaction import (
    TransactionCreate,
    TransactionResponse,
    TransactionListResponse,
    BulkDeleteRequest,
    BulkDeleteResponse,
)
from finsight.services.recurring_service import clean_tags
from finsight.utils.dates import as_naive_utc, utcnow

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("", response_model=TransactionListResponse)
def list_transactions(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    type: Optional[TransactionType] = None,
    category: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    search: Optional[str] = None,
    is_recurring: Optional[bool] = None,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db)
):
    """List transactions with filtering and pagination"""
    query = db.query(Transaction).filter(Transaction.owner_id == owner_id)

    if type:
        query = query.filter(Transaction.type == type)
    if category:
        query = query.filter(Transaction.category == category)
    if start_date:
        query = query.filter(Transaction.date >= as_naive_utc(start_date))
    if end_date:
        query = query.filter(Transaction.date <= as_naive_utc(end_date))
    if is_recurring is not None:
        query = query.filter(Transaction.is_recurring == is_recurring)
    if search:
        query = query.filter(Transaction.description.ilike(f"%{search}%"))

    total = query.count()

    query = query.order_by(Transaction.date.desc(), Transaction.created_at.desc())
    query = query.offset((page - 1) * per_page).limit(per_page)

    transactions = query.all()
    pages = (total + per_page - 1) // per_page

    return TransactionListResponse(
        items=[TransactionResponse.model_validate(t) for t in transactions],
        total=total,
        page=page,
        pages=pages
    )


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: str,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db)
):
    """Get a single transaction"""
    transaction = db.query(Transaction).filter(
        Transaction.id == transaction_id,
        Transaction.owner_id == owner_id
    ).first()
    if not transaction:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return TransactionResponse.model_validate(transaction)


@router.post("", response_model=TransactionResponse, status_code=201)
def create_transaction(
    data: TransactionCreate,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db)
):
    """Record a one-off transaction"""
    transaction = Transaction(
        id=str(uuid.uuid4()),
        owner_id=owner_id,
        type=data.type,
        amount=data.amount,
        category=data.category.strip(),
        description=data.description,
        date=data.date or utcnow(),
        tags=clean_tags(data.tags),
        is_recurring=False,
    )
    db.add(transaction)
    db.commit()
    db.refresh(transaction)
    return TransactionResponse.model_validate(transaction)


@router.delete("/{transaction_id}")
def delete_transaction(
    transaction_id: str,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db)
):
    """Delete a transaction"""
    transaction = db.query(Transaction).filter(
        Transaction.id == transaction_id,
        Transaction.owner_id == owner_id
    ).first()
    if not transaction:
        raise HTTPException(status_code=404, detail="Transaction not found")

    db.delete(transaction)
    db.commit()
    return {"deleted": True}


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
def bulk_delete_transactions(
    data: BulkDeleteRequest,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db)
):
    """Delete several transactions at once. IDs the caller does not own are ignored."""
    deleted_count = db.query(Transaction).filter(
        Transaction.id.in_(data.ids),
        Transaction.owner_id == owner_id
    ).delete(synchronize_session=False)
    db.commit()
    return BulkDeleteResponse(deleted_count=deleted_count)
