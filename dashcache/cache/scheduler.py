"""Periodic cache jobs on APScheduler.

Two jobs run on an AsyncIOScheduler owned by CacheScheduler:
- a status poll that recomputes the status view on a fixed interval
- the daily scheduled refresh at the configured local time and timezone

Lifecycle: start with the daemon, reschedule the daily job whenever the
config is saved, stop on shutdown (every job removed).
"""

from __future__ import annotations

import logging
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from ..config import CacheConfig
from ..config import parse_scheduled_time
from .manager import CacheManager

logger = logging.getLogger(__name__)

POLL_JOB_ID = "cache-status-poll"
REFRESH_JOB_ID = "cache-scheduled-refresh"


class CacheScheduler:
    """Runs the status poll and the daily scheduled refresh."""

    def __init__(self, manager: CacheManager, poll_seconds: int = 60) -> None:
        """Initialize cache scheduler.

        Args:
            manager: Cache manager the jobs act on
            poll_seconds: Interval of the status poll
        """
        self.manager = manager
        self.poll_seconds = poll_seconds
        self.scheduler = AsyncIOScheduler(timezone="UTC")
        self._running = False
        self._listening = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the scheduler and register both jobs.

        Idempotent - safe to call multiple times.
        """
        if self._running:
            logger.warning("Cache scheduler already running")
            return

        logger.info("Starting cache scheduler")
        self.scheduler.start()
        self._running = True

        self.manager.update_status()
        self.scheduler.add_job(
            func=self._poll_status,
            trigger=IntervalTrigger(seconds=self.poll_seconds, timezone="UTC"),
            id=POLL_JOB_ID,
            name="Cache status poll",
            replace_existing=True,
        )
        self.schedule_daily_refresh(self.manager.get_config())

        if not self._listening:
            self.manager.add_config_listener(self.schedule_daily_refresh)
            self._listening = True

        logger.info(f"Cache scheduler started (status poll every {self.poll_seconds}s)")

    async def stop(self) -> None:
        """Remove every job and shut the scheduler down."""
        if not self._running:
            logger.warning("Cache scheduler not running")
            return

        logger.info("Stopping cache scheduler")
        self.scheduler.remove_all_jobs()
        self.scheduler.shutdown(wait=False)
        self._running = False
        logger.info("Cache scheduler stopped")

    def schedule_daily_refresh(self, config: CacheConfig) -> None:
        """Add, replace or remove the daily refresh job to match a config.

        Invalid time or timezone values leave the job unscheduled.
        """
        if not self._running:
            return

        scheduled = config.scheduled_refresh
        if not scheduled.enabled:
            self._remove_refresh_job()
            logger.info("Scheduled refresh disabled")
            return

        try:
            hours, minutes = parse_scheduled_time(scheduled.time)
            trigger = CronTrigger(hour=hours, minute=minutes, timezone=scheduled.timezone)
        except Exception as e:
            logger.error(f"Failed to schedule daily refresh ({scheduled.time} {scheduled.timezone}): {e}")
            self._remove_refresh_job()
            return

        self.scheduler.add_job(
            func=self._scheduled_refresh,
            trigger=trigger,
            id=REFRESH_JOB_ID,
            name="Scheduled cache refresh",
            replace_existing=True,
        )
        logger.info(f"Scheduled daily cache refresh at {scheduled.time} {scheduled.timezone}")

    def next_refresh_time(self) -> datetime | None:
        """Next fire time of the daily refresh job, if scheduled."""
        job = self.scheduler.get_job(REFRESH_JOB_ID)
        return job.next_run_time if job else None

    def _remove_refresh_job(self) -> None:
        if self.scheduler.get_job(REFRESH_JOB_ID) is not None:
            self.scheduler.remove_job(REFRESH_JOB_ID)

    async def _poll_status(self) -> None:
        self.manager.update_status()

    async def _scheduled_refresh(self) -> None:
        logger.info("Running scheduled cache refresh")
        result = await self.manager.refresh_all()
        if result.success:
            logger.info("Scheduled cache refresh completed")
        else:
            logger.error(f"Scheduled cache refresh failed: {result.error}")
