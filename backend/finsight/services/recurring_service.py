"""Service for recurring transaction templates: date arithmetic and management."""

from typing import List, Optional, Union
from datetime import datetime, timedelta
from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session
import uuid

from finsight.errors import InvalidDateRange, InvalidFrequency
from finsight.models.recurring import RecurringTransaction, Frequency
from finsight.models.transaction import Transaction
from finsight.schemas.recurring import RecurringTransactionCreate, RecurringTransactionUpdate
from finsight.utils.dates import start_of_day, utcnow


_STEPS = {
    Frequency.daily: relativedelta(days=1),
    Frequency.weekly: relativedelta(weeks=1),
    Frequency.monthly: relativedelta(months=1),
    Frequency.yearly: relativedelta(years=1),
}


def calculate_next_occurrence(
    current: datetime,
    frequency: Union[Frequency, str],
    anchor_day: Optional[int] = None
) -> datetime:
    """
    Calculate the occurrence that follows `current` for the given frequency.

    Monthly and yearly steps clamp to the last day of a shorter target month
    (Jan 31 -> Feb 29 -> Mar 29). Passing `anchor_day`, normally the template's
    start day, keeps the schedule on that day whenever the month has it
    (Jan 31 -> Feb 29 -> Mar 31). Feb 29 moves to Feb 28 in non-leap years.

    Raises InvalidFrequency for anything other than daily, weekly, monthly or yearly.
    """
    try:
        frequency = Frequency(frequency)
    except ValueError:
        raise InvalidFrequency(frequency) from None

    step = _STEPS[frequency]
    if anchor_day is not None and frequency in (Frequency.monthly, Frequency.yearly):
        if not 1 <= anchor_day <= 31:
            raise ValueError(f"anchor_day must be between 1 and 31, got {anchor_day}")
        step = step + relativedelta(day=anchor_day)

    return current + step


def clean_tags(tags: Optional[List[str]]) -> List[str]:
    """Strip whitespace, drop blanks and repeats, keep first-seen order."""
    result = []
    for tag in tags or []:
        tag = tag.strip()
        if tag and tag not in result:
            result.append(tag)
    return result


def get_recurring_transactions(
    db: Session,
    owner_id: str,
    is_active: Optional[bool] = None
) -> List[RecurringTransaction]:
    """Get an owner's templates ordered by next occurrence."""
    query = db.query(RecurringTransaction).filter(RecurringTransaction.owner_id == owner_id)

    if is_active is not None:
        query = query.filter(RecurringTransaction.is_active == is_active)

    return query.order_by(RecurringTransaction.next_occurrence, RecurringTransaction.name).all()


def get_upcoming(
    db: Session,
    owner_id: str,
    days: int = 30,
    now: Optional[datetime] = None
) -> List[RecurringTransaction]:
    """Active templates coming due within the next `days` days (overdue ones included)."""
    horizon = (now or utcnow()) + timedelta(days=days)
    return db.query(RecurringTransaction).filter(
        RecurringTransaction.owner_id == owner_id,
        RecurringTransaction.is_active == True,
        RecurringTransaction.next_occurrence <= horizon
    ).order_by(RecurringTransaction.next_occurrence).all()


def get_recurring_transaction(
    db: Session,
    owner_id: str,
    recurring_id: str
) -> Optional[RecurringTransaction]:
    return db.query(RecurringTransaction).filter(
        RecurringTransaction.id == recurring_id,
        RecurringTransaction.owner_id == owner_id
    ).first()


def create_recurring_transaction(
    db: Session,
    owner_id: str,
    data: RecurringTransactionCreate
) -> RecurringTransaction:
    """Create a template; its first occurrence is the start date."""
    template = RecurringTransaction(
        id=str(uuid.uuid4()),
        owner_id=owner_id,
        name=data.name.strip(),
        type=data.type,
        amount=data.amount,
        category=data.category.strip(),
        description=data.description,
        frequency=data.frequency,
        start_date=data.start_date,
        next_occurrence=data.start_date,
        end_date=data.end_date,
        is_active=True,
        tags=clean_tags(data.tags),
    )
    db.add(template)
    db.commit()
    db.refresh(template)
    return template


def reactivate(template: RecurringTransaction, now: Optional[datetime] = None) -> None:
    """
    Turn a template back on.

    A template whose end date has passed stays retired. A stale cursor is moved
    up to the start of today so the template fires once on the next pass
    instead of replaying every missed occurrence.
    """
    now = now or utcnow()
    if template.end_date is not None and now > template.end_date:
        raise ValueError("Cannot reactivate a recurring transaction whose end date has passed")

    today = start_of_day(now)
    if template.next_occurrence < today:
        template.next_occurrence = today
    template.is_active = True


def update_recurring_transaction(
    db: Session,
    template: RecurringTransaction,
    update: RecurringTransactionUpdate,
    now: Optional[datetime] = None
) -> RecurringTransaction:
    """
    Apply a user edit. Changing the frequency leaves the next occurrence where it is.

    Raises InvalidDateRange when the new end date falls before the start date.
    """
    update_data = update.model_dump(exclude_unset=True)
    is_active = update_data.pop("is_active", None)

    end_date = update_data.get("end_date")
    if end_date is not None and end_date < template.start_date:
        raise InvalidDateRange("end_date must not be before start_date")

    if update_data.get("name") is not None:
        update_data["name"] = update_data["name"].strip()
    if update_data.get("tags") is not None:
        update_data["tags"] = clean_tags(update_data["tags"])

    for field, value in update_data.items():
        if value is None and field not in ("description", "end_date"):
            continue
        setattr(template, field, value)

    if is_active is True and not template.is_active:
        reactivate(template, now)
    elif is_active is False:
        template.is_active = False

    db.commit()
    db.refresh(template)
    return template


def toggle_recurring_transaction(
    db: Session,
    template: RecurringTransaction,
    now: Optional[datetime] = None
) -> RecurringTransaction:
    if template.is_active:
        template.is_active = False
    else:
        reactivate(template, now)

    db.commit()
    db.refresh(template)
    return template


def delete_recurring_transaction(db: Session, template: RecurringTransaction) -> None:
    """Delete a template (unlinks generated transactions but doesn't delete them)."""
    db.query(Transaction).filter(
        Transaction.recurring_transaction_id == template.id
    ).update(
        {Transaction.recurring_transaction_id: None},
        synchronize_session=False
    )

    db.delete(template)
    db.commit()


def get_generated_count(db: Session, recurring_id: str) -> int:
    """Count transactions the scheduler generated from a template."""
    return db.query(Transaction).filter(
        Transaction.recurring_transaction_id == recurring_id
    ).count()
