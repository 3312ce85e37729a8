"""
Catalog Sync Job

Entry points shared by the cron job, the admin endpoint and the CLI:

- popular: popular movies + TV + trending, then trim catalogs to limits
- movies / tv / all: full refresh from the daily id exports
- today: full refresh from the newest exports available today
"""

from datetime import date
from typing import Any, Dict, Optional

from ..config import get_settings
from ..core.database import get_session_factory
from ..core.exceptions import InvalidRequestError
from ..core.logging import get_logger
from ..models.sync import SyncTarget
from ..repositories import (
    ContentTranslationRepository,
    MovieRepository,
    TrendingRepository,
    TVSeriesRepository,
)
from ..services.catalog_cleanup import CatalogCleanupService
from ..services.daily_sync import DailySyncService
from ..services.data_sync import DataSyncService
from ..services.export_downloader import ExportDownloader
from ..services.sync_settings import SyncSettingsService
from ..services.tmdb_client import TMDBClient

logger = get_logger(__name__)

EXPORT_TARGET_KINDS = {
    SyncTarget.MOVIES: "movie",
    SyncTarget.TV: "tv",
}


class CatalogSyncJob:

    def __init__(
        self,
        data_sync: DataSyncService,
        daily_sync: DailySyncService,
        cleanup: CatalogCleanupService,
        settings_service: SyncSettingsService,
        language: Optional[str] = None,
    ):
        self.data_sync = data_sync
        self.daily_sync = daily_sync
        self.cleanup = cleanup
        self.settings_service = settings_service
        self.language = language or get_settings().sync_base_language

    async def run_popular_sync(self, language: Optional[str] = None) -> Dict[str, Any]:
        """
        Popular + trending sync followed by cleanup.

        Limits are re-read after the sync so a settings change made while
        it ran is honored. A cleanup failure is logged and reported but
        does not affect the sync results.
        """
        language = language or self.language
        logger.info("catalog_sync_job_started", language=language)

        sync_result = await self.data_sync.sync_all(language)
        summary: Dict[str, Any] = {"sync": sync_result.to_dict(), "errors": sync_result.errors}

        try:
            limits = await self.settings_service.get_catalog_limits()
            summary["cleanup"] = await self.cleanup.trim_catalog(limits)
        except Exception as e:
            logger.error("catalog_cleanup_failed", error=str(e))
            summary["cleanup"] = None
            summary["errors"].append(f"cleanup: {e}")

        logger.info("catalog_sync_job_completed", errors=len(summary["errors"]))
        return summary

    async def run_target(
        self,
        target: SyncTarget,
        sync_date: Optional[date] = None,
        batch_size: Optional[int] = None,
        start_from_batch: int = 0,
    ) -> Dict[str, Any]:
        """Dispatch one admin/CLI sync target and return a JSON-ready summary."""
        target = SyncTarget(target)
        logger.info(
            "sync_target_started",
            target=target.value,
            date=sync_date.isoformat() if sync_date else None,
            batch_size=batch_size,
            start_from_batch=start_from_batch,
        )

        if target in EXPORT_TARGET_KINDS:
            summary = await self.daily_sync.sync_from_export(
                EXPORT_TARGET_KINDS[target], sync_date, batch_size, start_from_batch
            )
            return {EXPORT_TARGET_KINDS[target]: summary.to_dict()}
        if target == SyncTarget.ALL:
            return await self.daily_sync.sync_all(sync_date, batch_size)
        if target == SyncTarget.TODAY:
            return await self.daily_sync.sync_latest()
        if target == SyncTarget.POPULAR:
            return await self.run_popular_sync()

        raise InvalidRequestError(f"Unknown sync target: {target}")


# Singleton instance
_catalog_sync_job: Optional[CatalogSyncJob] = None


def build_catalog_sync_job(session_factory=None) -> CatalogSyncJob:
    """Wire clients, repositories and services around one session factory."""
    session_factory = session_factory or get_session_factory()
    settings_service = SyncSettingsService(session_factory)
    movies = MovieRepository(session_factory)
    tv = TVSeriesRepository(session_factory)
    client = TMDBClient()

    return CatalogSyncJob(
        data_sync=DataSyncService(
            client, movies, tv, TrendingRepository(session_factory), settings_service
        ),
        daily_sync=DailySyncService(
            client,
            ExportDownloader(),
            movies,
            tv,
            ContentTranslationRepository(session_factory),
        ),
        cleanup=CatalogCleanupService(session_factory),
        settings_service=settings_service,
    )


def get_catalog_sync_job() -> CatalogSyncJob:
    """Get singleton CatalogSyncJob instance."""
    global _catalog_sync_job
    if _catalog_sync_job is None:
        _catalog_sync_job = build_catalog_sync_job()
    return _catalog_sync_job


async def close_catalog_sync_job():
    """Close the HTTP clients held by the singleton, if it was built."""
    global _catalog_sync_job
    if _catalog_sync_job is not None:
        await _catalog_sync_job.data_sync.client.aclose()
        await _catalog_sync_job.daily_sync.downloader.aclose()
        _catalog_sync_job = None


async def run_catalog_sync_job() -> Dict[str, Any]:
    """Scheduled entry point: popular + trending sync and cleanup."""
    return await get_catalog_sync_job().run_popular_sync()
