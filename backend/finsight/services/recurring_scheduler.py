"""
Recurring transaction scheduler.

A pass scans every active template whose next occurrence is due, retires the
ones past their end date and turns the rest into transactions, advancing each
template's cursor by one step of its frequency.

Each template is its own unit of work: the new transaction and the advanced
cursor are committed together or not at all. The cursor only moves through a
compare-and-set on its previous value, and generated transactions carry a
unique occurrence key, so overlapping passes can neither skip nor duplicate an
occurrence. Within one process a lock keeps passes from overlapping at all.
"""

import enum
import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from finsight.config import settings
from finsight.errors import InvalidFrequency, PassInProgressError, PassLevelError, PersistenceError
from finsight.models.recurring import RecurringTransaction, Frequency, TransactionType
from finsight.models.transaction import Transaction
from finsight.services.recurring_service import calculate_next_occurrence
from finsight.utils.dates import as_naive_utc, utcnow

logger = logging.getLogger(__name__)

PROVENANCE_TAG = "recurring"

_pass_lock = threading.Lock()


class Lifecycle(str, enum.Enum):
    """Gate decision for a due template."""
    active = "active"
    expired = "expired"


class OccurrenceClaimed(Exception):
    """Another pass advanced the template or wrote its occurrence first."""


@dataclass(frozen=True)
class DueTemplate:
    """Snapshot of a template taken at scan time."""
    id: str
    owner_id: str
    name: str
    type: TransactionType
    amount: Decimal
    category: str
    description: Optional[str]
    frequency: Frequency
    start_date: datetime
    next_occurrence: datetime
    end_date: Optional[datetime] = None
    tags: Tuple[str, ...] = ()

    @classmethod
    def from_model(cls, template: RecurringTransaction) -> "DueTemplate":
        return cls(
            id=template.id,
            owner_id=template.owner_id,
            name=template.name,
            type=template.type,
            amount=template.amount,
            category=template.category,
            description=template.description,
            frequency=template.frequency,
            start_date=template.start_date,
            next_occurrence=template.next_occurrence,
            end_date=template.end_date,
            tags=tuple(template.tags or ()),
        )


@dataclass
class PassResult:
    """Outcome counts for one pass."""
    started_at: datetime
    due: int = 0
    succeeded: int = 0
    failed: int = 0
    expired: int = 0
    skipped: int = 0
    finished_at: Optional[datetime] = None


@dataclass
class PassContext:
    """State threaded through scanner, gate and materializer during one pass."""
    now: datetime
    store: "RecurringStore"
    result: PassResult = field(default=None)

    def __post_init__(self):
        if self.result is None:
            self.result = PassResult(started_at=self.now)


class RecurringStore:
    """
    Storage collaborator used by the scheduler, backed by a SQLAlchemy session.

    Writes are flushed but not committed; the scheduler decides when a unit of
    work is complete.
    """

    def __init__(self, db: Session):
        self.db = db

    def find_due(self, now: datetime) -> List[DueTemplate]:
        templates = self.db.query(RecurringTransaction).filter(
            RecurringTransaction.is_active == True,
            RecurringTransaction.next_occurrence <= now
        ).order_by(
            RecurringTransaction.next_occurrence,
            RecurringTransaction.created_at,
            RecurringTransaction.id
        ).all()
        return [DueTemplate.from_model(t) for t in templates]

    def find_active(self) -> List[RecurringTransaction]:
        return self.db.query(RecurringTransaction).filter(
            RecurringTransaction.is_active == True
        ).order_by(RecurringTransaction.next_occurrence).all()

    def find_by_occurrence_key(self, occurrence_key: str) -> Optional[Transaction]:
        return self.db.query(Transaction).filter(
            Transaction.occurrence_key == occurrence_key
        ).first()

    def insert(self, record: Transaction) -> None:
        self.db.add(record)
        self.db.flush()

    def advance(
        self,
        template_id: str,
        expected_next: datetime,
        new_next: datetime,
        processed_at: datetime
    ) -> bool:
        """Move the cursor only if it still holds `expected_next`. Returns False otherwise."""
        result = self.db.execute(
            update(RecurringTransaction)
            .where(
                RecurringTransaction.id == template_id,
                RecurringTransaction.next_occurrence == expected_next,
                RecurringTransaction.is_active == True
            )
            .values(next_occurrence=new_next, last_processed=processed_at, updated_at=processed_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def deactivate(self, template_id: str, processed_at: datetime) -> bool:
        result = self.db.execute(
            update(RecurringTransaction)
            .where(RecurringTransaction.id == template_id, RecurringTransaction.is_active == True)
            .values(is_active=False, updated_at=processed_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()


def build_occurrence_key(template_id: str, occurrence: datetime) -> str:
    return f"{template_id}:{occurrence.isoformat()}"


def check_expiry(template: DueTemplate, now: datetime) -> Lifecycle:
    """A template expires once `now` is past its end date."""
    if template.end_date is not None and now > template.end_date:
        return Lifecycle.expired
    return Lifecycle.active


def retire(ctx: PassContext, template: DueTemplate) -> bool:
    """Persist the deactivation of an expired template. False if it was already inactive."""
    try:
        retired = ctx.store.deactivate(template.id, ctx.now)
        ctx.store.commit()
    except SQLAlchemyError as e:
        ctx.store.rollback()
        raise PersistenceError(f"Failed to deactivate {template.id}: {e}", template.id) from e
    return retired


def build_transaction(template: DueTemplate, now: datetime, occurrence_key: str) -> Transaction:
    """Transaction for one occurrence, stamped with the processing time."""
    tags = list(template.tags)
    if PROVENANCE_TAG not in tags:
        tags.append(PROVENANCE_TAG)

    return Transaction(
        id=str(uuid.uuid4()),
        owner_id=template.owner_id,
        type=template.type,
        amount=template.amount,
        category=template.category,
        description=template.description or f"Recurring: {template.name}",
        date=now,
        tags=tags,
        is_recurring=True,
        recurring_frequency=template.frequency,
        recurring_transaction_id=template.id,
        occurrence_key=occurrence_key,
    )


def materialize(ctx: PassContext, template: DueTemplate) -> Transaction:
    """
    Write the transaction for a due template and advance its cursor.

    If a transaction with this occurrence key already exists, an earlier run
    wrote it without moving the cursor; the cursor is advanced and the existing
    transaction returned.

    Raises InvalidFrequency before anything is written, OccurrenceClaimed when
    another pass got there first, and PersistenceError when storage fails.
    Nothing is persisted in any of those cases.
    """
    next_occurrence = calculate_next_occurrence(
        template.next_occurrence,
        template.frequency,
        anchor_day=template.start_date.day
    )
    occurrence_key = build_occurrence_key(template.id, template.next_occurrence)

    try:
        record = ctx.store.find_by_occurrence_key(occurrence_key)
        if record is not None:
            logger.warning(
                f"Occurrence {occurrence_key} already materialized as {record.id}; advancing cursor only"
            )
        else:
            record = build_transaction(template, ctx.now, occurrence_key)
            ctx.store.insert(record)

        if not ctx.store.advance(template.id, template.next_occurrence, next_occurrence, ctx.now):
            ctx.store.rollback()
            raise OccurrenceClaimed(template.id)

        ctx.store.commit()
    except IntegrityError as e:
        ctx.store.rollback()
        if ctx.store.find_by_occurrence_key(occurrence_key) is not None:
            raise OccurrenceClaimed(template.id) from e
        raise PersistenceError(f"Failed to materialize {template.id}: {e}", template.id) from e
    except SQLAlchemyError as e:
        ctx.store.rollback()
        raise PersistenceError(f"Failed to materialize {template.id}: {e}", template.id) from e

    return record


def process_template(ctx: PassContext, template: DueTemplate) -> None:
    """Gate then materialize one due template, recording the outcome on the context."""
    result = ctx.result

    try:
        if check_expiry(template, ctx.now) == Lifecycle.expired:
            if retire(ctx, template):
                result.expired += 1
                logger.info(f"Deactivated expired recurring transaction {template.id} ({template.name})")
            else:
                result.skipped += 1
                logger.debug(f"Expired recurring transaction {template.id} ({template.name}) was already inactive")
            return

        record = materialize(ctx, template)
        result.succeeded += 1
        logger.info(
            f"Processed recurring transaction {template.id} ({template.name}): "
            f"{template.amount} {template.category} -> transaction {record.id}"
        )
    except OccurrenceClaimed:
        result.skipped += 1
        logger.info(f"Skipped recurring transaction {template.id} ({template.name}): already processed elsewhere")
    except (InvalidFrequency, PersistenceError) as e:
        result.failed += 1
        logger.error(f"Error processing recurring transaction {template.id} ({template.name}): {e}")
    except SQLAlchemyError as e:
        result.failed += 1
        logger.exception(f"Storage error processing recurring transaction {template.id} ({template.name}): {e}")


def _run_locked(store: "RecurringStore", now: datetime) -> PassResult:
    ctx = PassContext(now=now, store=store)

    try:
        due = store.find_due(now)
    except SQLAlchemyError as e:
        store.rollback()
        raise PassLevelError(f"Failed to scan for due recurring transactions: {e}") from e

    ctx.result.due = len(due)
    logger.info(f"Recurring pass at {now.isoformat()}: {len(due)} due")

    for template in due:
        process_template(ctx, template)

    result = ctx.result
    result.finished_at = utcnow()
    logger.info(
        f"Recurring pass finished: due={result.due} succeeded={result.succeeded} "
        f"failed={result.failed} expired={result.expired} skipped={result.skipped}"
    )
    return result


def run_pass(
    store: RecurringStore,
    now: Optional[datetime] = None,
    lock_timeout: Optional[float] = None
) -> PassResult:
    """
    Run one full scheduler pass. The timer jobs and the manual trigger both call this.

    Raises PassLevelError when the scan fails, and PassInProgressError when
    another pass holds the lock for longer than `lock_timeout` seconds.
    """
    now = as_naive_utc(now) if now is not None else utcnow()
    if lock_timeout is None:
        lock_timeout = settings.scheduler_lock_timeout_seconds

    if not _pass_lock.acquire(timeout=lock_timeout):
        raise PassInProgressError(f"Another recurring pass is still running after {lock_timeout}s")
    try:
        return _run_locked(store, now)
    finally:
        _pass_lock.release()


def log_active_templates(db: Session) -> List[RecurringTransaction]:
    """Log a summary of every active template, soonest first."""
    active = RecurringStore(db).find_active()

    if not active:
        logger.info("No active recurring transactions")
        return active

    logger.info(f"Active recurring transactions: {len(active)}")
    for index, template in enumerate(active, start=1):
        end = template.end_date.date().isoformat() if template.end_date else "none"
        last = template.last_processed.isoformat() if template.last_processed else "pending first execution"
        logger.info(
            f"{index}. {template.name} [{template.owner_id}] {template.type.value} {template.amount} "
            f"{template.category} {template.frequency.value} start={template.start_date.date().isoformat()} "
            f"next={template.next_occurrence.date().isoformat()} end={end} last_processed={last}"
        )
    return active
