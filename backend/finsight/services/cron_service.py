"""
APScheduler-based timer for the recurring transaction scheduler.

Jobs:
- daily pass at the configured hour/minute (UTC)
- hourly catch-up pass
- a high-frequency pass outside production
- in development, one pass right after startup

Every job runs the same `run_pass` as the manual trigger endpoint.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from finsight.config import Settings, settings as default_settings
from finsight.database import SessionLocal
from finsight.errors import PassLevelError
from finsight.services.recurring_scheduler import PassResult, RecurringStore, log_active_templates, run_pass

logger = logging.getLogger(__name__)

DAILY_JOB_ID = "recurring_daily"
CATCHUP_JOB_ID = "recurring_catchup"
DEV_JOB_ID = "recurring_dev"
STARTUP_JOB_ID = "recurring_startup"


class CronService:
    """Background scheduler for recurring jobs."""

    def __init__(
        self,
        config: Optional[Settings] = None,
        session_factory: Callable[[], Session] = SessionLocal
    ) -> None:
        self._config = config or default_settings
        self._session_factory = session_factory
        self._scheduler: Optional[BackgroundScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    def build_scheduler(self) -> BackgroundScheduler:
        """Create a scheduler with all jobs registered but not started."""
        config = self._config
        scheduler = BackgroundScheduler(timezone="UTC")
        job_defaults = dict(replace_existing=True, coalesce=True, max_instances=1, misfire_grace_time=3600)

        scheduler.add_job(
            self.run_scheduled_pass,
            id=DAILY_JOB_ID,
            trigger=CronTrigger(hour=config.scheduler_daily_hour, minute=config.scheduler_daily_minute, timezone="UTC"),
            **job_defaults,
        )
        scheduler.add_job(
            self.run_scheduled_pass,
            id=CATCHUP_JOB_ID,
            trigger=IntervalTrigger(hours=config.scheduler_catchup_interval_hours),
            **job_defaults,
        )

        if not config.is_production:
            scheduler.add_job(
                self.run_scheduled_pass,
                id=DEV_JOB_ID,
                trigger=IntervalTrigger(minutes=config.scheduler_dev_interval_minutes),
                **job_defaults,
            )

        if config.is_development:
            scheduler.add_job(
                self.run_startup_pass,
                id=STARTUP_JOB_ID,
                next_run_time=datetime.now(timezone.utc),
                **job_defaults,
            )

        return scheduler

    def start(self) -> None:
        if self._scheduler is not None:
            logger.info("CronService already started; ignoring duplicate start.")
            return

        scheduler = self.build_scheduler()
        scheduler.start()
        self._scheduler = scheduler
        logger.info(f"CronService started with jobs: {', '.join(job.id for job in scheduler.get_jobs())}")

    def stop(self, wait: bool = True) -> None:
        """Stop the timer; with `wait` an in-flight pass finishes first."""
        if self._scheduler is None:
            return
        try:
            self._scheduler.shutdown(wait=wait)
            logger.info("CronService stopped.")
        finally:
            self._scheduler = None

    def run_scheduled_pass(self) -> Optional[PassResult]:
        """Job body: one pass on a fresh session. Pass-level failures wait for the next tick."""
        with self._session_factory() as db:
            try:
                return run_pass(RecurringStore(db))
            except PassLevelError:
                logger.exception("Scheduled recurring pass failed")
                return None

    def run_startup_pass(self) -> Optional[PassResult]:
        with self._session_factory() as db:
            try:
                log_active_templates(db)
            except SQLAlchemyError:
                logger.exception("Could not load active recurring transactions for the startup summary")
        return self.run_scheduled_pass()
