"""
Background Job Scheduler

Runs the catalog sync (popular + trending, then cleanup) on a cron
schedule using APScheduler. Defaults to daily at 03:00 UTC.
"""

from datetime import datetime, timezone
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from ..config import get_settings
from ..core.logging import get_logger
from .job_manager import SyncJob, get_job_manager

logger = get_logger(__name__)

CATALOG_SYNC_JOB_ID = "catalog-sync-job"

# Global scheduler instance
_scheduler: Optional[AsyncIOScheduler] = None


def get_scheduler() -> AsyncIOScheduler:
    """Get or create the scheduler instance."""
    global _scheduler
    if _scheduler is None:
        _scheduler = AsyncIOScheduler()
    return _scheduler


class SchedulerService:
    """
    Manages background job scheduling.

    Jobs:
    1. Catalog Sync (sync_cron_expression, default "0 3 * * *" UTC)
       - Popular movies and TV, trending with moderation preserved
       - Trims catalogs to their limits
    """

    def __init__(self, scheduler: Optional[AsyncIOScheduler] = None):
        self.scheduler = scheduler or get_scheduler()
        self.settings = get_settings()
        self._sync_job_id = CATALOG_SYNC_JOB_ID

    async def _run_catalog_sync(self):
        """Execute the catalog sync job."""
        from ..jobs.catalog_sync import run_catalog_sync_job

        logger.info("scheduler_job_started", job="catalog_sync")
        try:
            await run_catalog_sync_job()
            logger.info("scheduler_job_completed", job="catalog_sync")
        except Exception as e:
            logger.error("scheduler_job_failed", job="catalog_sync", error=str(e))

    def setup_jobs(self) -> bool:
        """
        Configure the cron job.

        Returns False (and logs) when cron sync is disabled or the cron
        expression / timezone is invalid.
        """
        if not self.settings.sync_cron_enabled:
            logger.info("scheduler_cron_disabled")
            return False

        try:
            trigger = CronTrigger.from_crontab(
                self.settings.sync_cron_expression,
                timezone=self.settings.sync_cron_timezone,
            )
        except (ValueError, LookupError) as e:
            logger.error(
                "scheduler_invalid_cron",
                expression=self.settings.sync_cron_expression,
                timezone=self.settings.sync_cron_timezone,
                error=str(e),
            )
            return False

        self.scheduler.add_job(
            self._run_catalog_sync,
            trigger=trigger,
            id=self._sync_job_id,
            name="Catalog Sync",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

        logger.info(
            "scheduler_jobs_configured",
            catalog_sync_schedule=self.settings.sync_cron_expression,
            timezone=self.settings.sync_cron_timezone,
        )
        return True

    def start(self):
        """Start the scheduler."""
        if not self.scheduler.running:
            self.setup_jobs()
            self.scheduler.start()
            logger.info("scheduler_started")

    def stop(self):
        """Stop the scheduler gracefully."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("scheduler_stopped")

    def get_job_status(self) -> dict:
        """Get status of all scheduled jobs."""
        jobs = []
        for job in self.scheduler.get_jobs():
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
                "pending": job.pending,
            })

        return {
            "running": self.scheduler.running,
            "cron_enabled": self.settings.sync_cron_enabled,
            "cron_expression": self.settings.sync_cron_expression,
            "timezone": self.settings.sync_cron_timezone,
            "jobs": jobs,
            "current_time": datetime.now(timezone.utc).isoformat(),
        }

    def trigger_sync_now(self) -> SyncJob:
        """Queue the catalog sync through the job manager."""
        from ..jobs.catalog_sync import run_catalog_sync_job

        logger.info("manual_trigger", job="catalog_sync")
        return get_job_manager().submit("popular", run_catalog_sync_job, {"source": "scheduler"})


# Singleton instance
_scheduler_service: Optional[SchedulerService] = None


def get_scheduler_service() -> SchedulerService:
    """Get singleton SchedulerService instance."""
    global _scheduler_service
    if _scheduler_service is None:
        _scheduler_service = SchedulerService()
    return _scheduler_service
