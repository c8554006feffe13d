"""
Scheduler for the appointment auto-completion sweep.

Jobs:
1. Every 4 hours, complete overdue appointments unless the pending cache
   says there are none
2. Every 2 hours, refresh the pending cache
3. Daily at 00:01, complete overdue appointments unconditionally
"""

import asyncio
import logging
from contextlib import AbstractContextManager
from datetime import timedelta
from typing import Callable, Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler  # type: ignore
from apscheduler.triggers.cron import CronTrigger  # type: ignore
from apscheduler.triggers.interval import IntervalTrigger  # type: ignore
from sqlalchemy.orm import Session

from core.config import PENDING_CACHE_TTL_SECONDS
from core.constants import (
    AUTO_COMPLETE_INTERVAL_HOURS,
    DEFAULT_TIMEZONE,
    PENDING_CACHE_REFRESH_INTERVAL_HOURS,
)
from core.database import get_db_context
from services.auto_complete_service import auto_complete_appointments, count_pending
from services.pending_cache import PendingAppointmentsCache

logger = logging.getLogger(__name__)

# Global singleton instance
_auto_complete_scheduler: Optional['AutoCompleteScheduler'] = None


class AutoCompleteScheduler:
    """
    Runs the auto-completion sweep in the background.

    Database sessions are created fresh for each run to avoid stale
    session issues; blocking work runs in a worker thread.
    """

    def __init__(
        self,
        cache: PendingAppointmentsCache,
        session_factory: Callable[[], AbstractContextManager[Session]] = get_db_context,
    ):
        self.cache = cache
        self.session_factory = session_factory
        self.scheduler = AsyncIOScheduler(timezone=DEFAULT_TIMEZONE)
        self._is_started = False

    async def start_scheduler(self) -> None:
        """Register the jobs and start the scheduler (application startup)."""
        if self._is_started:
            logger.warning("Auto-complete scheduler is already started")
            return

        self.scheduler.add_job(  # type: ignore
            self._run_sweep,
            IntervalTrigger(hours=AUTO_COMPLETE_INTERVAL_HOURS),
            id="auto_complete_sweep",
            name="Auto-complete overdue appointments",
            replace_existing=True,
            max_instances=1,
        )
        self.scheduler.add_job(  # type: ignore
            self._run_cache_refresh,
            IntervalTrigger(hours=PENDING_CACHE_REFRESH_INTERVAL_HOURS),
            id="pending_cache_refresh",
            name="Refresh pending appointments cache",
            replace_existing=True,
            max_instances=1,
        )
        self.scheduler.add_job(  # type: ignore
            self._run_daily_sweep,
            CronTrigger(hour=0, minute=1),
            id="auto_complete_daily",
            name="Daily auto-complete sweep",
            replace_existing=True,
            misfire_grace_time=3600,  # Allow 1 hour grace time if server was down
        )

        self.scheduler.start()
        self._is_started = True
        logger.info(
            f"Auto-complete scheduler started (sweep every {AUTO_COMPLETE_INTERVAL_HOURS}h, "
            f"cache refresh every {PENDING_CACHE_REFRESH_INTERVAL_HOURS}h, daily at 00:01)"
        )

    async def stop_scheduler(self) -> None:
        """Stop the scheduler (application shutdown)."""
        if self._is_started:
            self.scheduler.shutdown(wait=True)
            self._is_started = False
            logger.info("Auto-complete scheduler stopped")

    async def _run_sweep(self) -> None:
        await asyncio.to_thread(self.execute_sweep, False)

    async def _run_daily_sweep(self) -> None:
        await asyncio.to_thread(self.execute_sweep, True)

    async def _run_cache_refresh(self) -> None:
        await asyncio.to_thread(self.refresh_cache)

    def execute_sweep(self, force: bool = False) -> int:
        """
        Complete overdue appointments (synchronous, runs in a worker thread).

        Skipped when not forced and the fresh cache reports zero pending.

        Returns:
            Number of appointments completed (0 when skipped or on failure)
        """
        if not force and self.cache.get() == 0:
            logger.info("Skipping auto-complete sweep: no pending appointments")
            return 0

        try:
            with self.session_factory() as db:
                completed = auto_complete_appointments(db)
                self.cache.update(count_pending(db))
            logger.info(f"Auto-complete sweep finished: {completed} completed, {self.cache.value} still pending")
            return completed
        except Exception as e:
            logger.exception(f"Error during auto-complete sweep: {e}")
            # Don't re-raise - allow scheduler to continue
            self.cache.invalidate()
            return 0

    def refresh_cache(self) -> None:
        """Recount pending appointments into the cache (synchronous)."""
        try:
            with self.session_factory() as db:
                self.cache.update(count_pending(db))
            logger.info(f"Pending appointments cache refreshed: {self.cache.value}")
        except Exception as e:
            logger.exception(f"Error refreshing pending appointments cache: {e}")
            self.cache.invalidate()


def get_auto_complete_scheduler() -> AutoCompleteScheduler:
    """
    Get the global auto-complete scheduler instance.

    Returns:
        AutoCompleteScheduler: The global scheduler instance
    """
    global _auto_complete_scheduler
    if _auto_complete_scheduler is None:
        cache = PendingAppointmentsCache(ttl=timedelta(seconds=PENDING_CACHE_TTL_SECONDS))
        _auto_complete_scheduler = AutoCompleteScheduler(cache)
    return _auto_complete_scheduler


async def start_auto_complete_scheduler() -> None:
    """Start the global auto-complete scheduler."""
    scheduler = get_auto_complete_scheduler()
    await scheduler.start_scheduler()


async def stop_auto_complete_scheduler() -> None:
    """Stop the global auto-complete scheduler."""
    global _auto_complete_scheduler
    if _auto_complete_scheduler:
        await _auto_complete_scheduler.stop_scheduler()
