"""API endpoints for recurring transaction management."""

from dataclasses import asdict
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from finsight.dependencies import get_db, get_owner_id
from finsight.errors import InvalidDateRange, PassLevelError
from finsight.schemas.recurring import (
    RecurringTransactionResponse,
    RecurringTransactionCreate,
    RecurringTransactionUpdate,
    ProcessRecurringResponse,
)
from finsight.services import recurring_service
from finsight.services.recurring_scheduler import RecurringStore, run_pass

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recurring", tags=["recurring"])


def _get_or_404(db: Session, owner_id: str, recurring_id: str):
    template = recurring_service.get_recurring_transaction(db, owner_id, recurring_id)
    if not template:
        raise HTTPException(status_code=404, detail="Recurring transaction not found")
    return template


@router.get("", response_model=List[RecurringTransactionResponse])
def list_recurring_transactions(
    is_active: Optional[bool] = Query(None),
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db)
):
    """Get the caller's recurring transactions, soonest first."""
    templates = recurring_service.get_recurring_transactions(db, owner_id, is_active)
    return [RecurringTransactionResponse.model_validate(t) for t in templates]


@router.get("/upcoming", response_model=List[RecurringTransactionResponse])
def list_upcoming(
    days: int = Query(30, ge=1, le=366),
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db)
):
    """Active recurring transactions due within the next N days."""
    templates = recurring_service.get_upcoming(db, owner_id, days)
    return [RecurringTransactionResponse.model_validate(t) for t in templates]


@router.post("/process", response_model=ProcessRecurringResponse)
def process_recurring(db: Session = Depends(get_db)):
    """
    Run a scheduler pass now, over all owners, and report its counts.
    Same pass the background timer runs.
    """
    try:
        result = run_pass(RecurringStore(db))
    except PassLevelError as e:
        logger.error(f"Manual recurring pass failed: {e}")
        raise HTTPException(status_code=503, detail=str(e))

    return ProcessRecurringResponse(**asdict(result))


@router.get("/{recurring_id}", response_model=RecurringTransactionResponse)
def get_recurring_transaction(
    recurring_id: str,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db)
):
    """Get a single recurring transaction."""
    template = _get_or_404(db, owner_id, recurring_id)
    return RecurringTransactionResponse.model_validate(template)


@router.post("", response_model=RecurringTransactionResponse, status_code=201)
def create_recurring_transaction(
    data: RecurringTransactionCreate,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db)
):
    """Create a recurring transaction. Its first occurrence is the start date."""
    template = recurring_service.create_recurring_transaction(db, owner_id, data)
    return RecurringTransactionResponse.model_validate(template)


@router.put("/{recurring_id}", response_model=RecurringTransactionResponse)
def update_recurring_transaction(
    recurring_id: str,
    update: RecurringTransactionUpdate,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db)
):
    """Update a recurring transaction."""
    template = _get_or_404(db, owner_id, recurring_id)
    try:
        template = recurring_service.update_recurring_transaction(db, template, update)
    except InvalidDateRange as e:
        db.rollback()
        raise HTTPException(status_code=422, detail=str(e))
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    return RecurringTransactionResponse.model_validate(template)


@router.patch("/{recurring_id}/toggle", response_model=RecurringTransactionResponse)
def toggle_recurring_transaction(
    recurring_id: str,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db)
):
    """Pause or resume a recurring transaction."""
    template = _get_or_404(db, owner_id, recurring_id)
    try:
        template = recurring_service.toggle_recurring_transaction(db, template)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    return RecurringTransactionResponse.model_validate(template)


@router.delete("/{recurring_id}")
def delete_recurring_transaction(
    recurring_id: str,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db)
):
    """Delete a recurring transaction (generated transactions are kept)."""
    template = _get_or_404(db, owner_id, recurring_id)
    recurring_service.delete_recurring_transaction(db, template)
    return {"deleted": True}
