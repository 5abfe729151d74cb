"""
Background scheduler.

Runs the booking sweep on an APScheduler interval timer inside the API's
event loop. One sweep at a time; missed ticks are coalesced into one run.

Dependencies: apscheduler, tutoring.application.services.sweep_service
System role: Periodic driver for time-based session transitions
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from tutoring.application.services.sweep_service import BookingSweeper
from tutoring.configs import SchedulerSettings
from tutoring.observability.correlation import correlation_scope

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "booking_sweep"


class BackgroundScheduler:
    """Owns the AsyncIOScheduler and the single sweep job."""

    def __init__(self, sweeper: BookingSweeper, settings: SchedulerSettings) -> None:
        self.sweeper = sweeper
        self.settings = settings
        self.scheduler = AsyncIOScheduler(timezone="UTC")

    @property
    def running(self) -> bool:
        return self.scheduler.running

    async def run_once(self) -> None:
        """Job body: one sweep pass. Errors are logged so the timer keeps running."""
        with correlation_scope(prefix="sweep"):
            try:
                await self.sweeper.run_sweep()
            except Exception:
                logger.exception("Booking sweep crashed")

    def start(self) -> None:
        """
        Register the sweep job and start the timer.

        Must be called from within a running event loop.
        """
        self.scheduler.add_job(
            self.run_once,
            trigger=IntervalTrigger(seconds=self.settings.tick_seconds),
            id=SWEEP_JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info(
            "Background scheduler started",
            extra={"tick_seconds": self.settings.tick_seconds},
        )

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Background scheduler stopped")
