"""
APScheduler-based daily trigger for the digest workflow.

The cron job and the manual trigger call the same DigestOrchestrator.run.
"""

import asyncio
import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from config.settings import ConfigurationError, get_settings, Settings
from workflow.models import DigestRunReport
from workflow.orchestrator import DigestOrchestrator

logger = logging.getLogger(__name__)

JOB_ID = "daily-news-summary"


class DigestScheduler:
    """Runs the digest once a day at the configured hour."""

    def __init__(self, orchestrator: DigestOrchestrator, settings: Optional[Settings] = None):
        self.orchestrator = orchestrator
        self.settings = settings or get_settings()
        self._scheduler: Optional[AsyncIOScheduler] = None

    def build_trigger(self) -> CronTrigger:
        return CronTrigger(
            hour=self.settings.digest_cron_hour,
            minute=self.settings.digest_cron_minute,
            timezone=self.settings.digest_timezone,
        )

    async def trigger_now(self, run_id: Optional[str] = None) -> DigestRunReport:
        """Explicit event path."""
        logger.info("Digest triggered manually")
        return await self.orchestrator.run(run_id=run_id)

    async def _scheduled_run(self) -> None:
        logger.info("Digest triggered by schedule")
        try:
            report = await self.orchestrator.run()
        except ConfigurationError as e:
            logger.error(f"Scheduled digest aborted: {e}")
            return
        logger.info(f"Scheduled digest finished: {report.to_dict()}")

    def start(self) -> AsyncIOScheduler:
        """Register the cron job. Must be called with a running event loop."""
        if self._scheduler is None:
            self._scheduler = AsyncIOScheduler(timezone=self.settings.digest_timezone)
            self._scheduler.add_job(
                self._scheduled_run,
                self.build_trigger(),
                id=JOB_ID,
                max_instances=1,
                coalesce=True,
                replace_existing=True,
            )
            self._scheduler.start()
            job = self._scheduler.get_job(JOB_ID)
            logger.info(f"Digest scheduled; next run at {job.next_run_time}")
        return self._scheduler

    def shutdown(self) -> None:
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None

    async def serve_forever(self) -> None:
        self.start()
        try:
            await asyncio.Event().wait()
        finally:
            self.shutdown()
