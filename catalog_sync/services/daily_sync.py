"""
Daily Sync Service

Full catalog refresh from TMDB daily id exports.

Ids are processed in fixed-size batches. Items within a batch run
concurrently, each delayed by index * item_stagger to spread requests;
batches are separated by a fixed pause. A run can be resumed from any
batch index. Item failures are counted and never fail the batch.
"""

import asyncio
import math
from dataclasses import asdict, dataclass
from datetime import date, datetime, timezone
from typing import Awaitable, Callable, Dict, List, Optional

import httpx

from ..config import get_settings
from ..constants import TRANSLATION_LANGUAGES
from ..core.logging import get_logger
from ..repositories.catalog import CatalogRepository, MovieRepository, TVSeriesRepository
from ..repositories.translations import ContentTranslationRepository
from .export_downloader import ExportDownloader
from .tmdb_client import TMDBClient

logger = get_logger(__name__)

PROGRESS_BATCH_STEP = 10


@dataclass
class DailySyncSummary:
    kind: str
    requested_date: str
    batch_size: int
    start_from_batch: int
    export_date: Optional[str] = None
    total_ids: int = 0
    skipped_adult: int = 0
    batches_total: int = 0
    batches_processed: int = 0
    processed: int = 0
    synced: int = 0
    failed: int = 0
    translations_enabled: bool = False
    error: Optional[str] = None

    def to_dict(self) -> Dict:
        return asdict(self)


class DailySyncService:

    def __init__(
        self,
        client: TMDBClient,
        downloader: ExportDownloader,
        movie_repository: MovieRepository,
        tv_repository: TVSeriesRepository,
        translation_repository: ContentTranslationRepository,
        translations_enabled: Optional[bool] = None,
        translation_languages: Optional[List[str]] = None,
        item_stagger: float = 0.05,
        batch_pause: float = 1.0,
        translation_delay: float = 0.12,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        settings = get_settings()
        self.client = client
        self.downloader = downloader
        self.repositories: Dict[str, CatalogRepository] = {
            "movie": movie_repository,
            "tv": tv_repository,
        }
        self.translation_repository = translation_repository
        if translations_enabled is None:
            translations_enabled = settings.daily_sync_translations_enabled
        self.translations_enabled = translations_enabled
        self.translation_languages = translation_languages or list(TRANSLATION_LANGUAGES)
        self.default_batch_size = settings.daily_sync_batch_size
        self.item_stagger = item_stagger
        self.batch_pause = batch_pause
        self.translation_delay = translation_delay
        self.sleep = sleep

    async def sync_from_export(
        self,
        kind: str,
        sync_date: Optional[date] = None,
        batch_size: Optional[int] = None,
        start_from_batch: int = 0,
    ) -> DailySyncSummary:
        """
        Sync every id in the newest export at or before `sync_date`.

        Args:
            kind: "movie" or "tv"
            batch_size: Ids per batch (concurrent requests per batch)
            start_from_batch: 0-based batch index to resume from; earlier
                batches are not touched
        """
        sync_date = sync_date or date.today()
        if batch_size is None:
            batch_size = self.default_batch_size
        summary = DailySyncSummary(
            kind=kind,
            requested_date=sync_date.isoformat(),
            batch_size=batch_size,
            start_from_batch=start_from_batch,
            translations_enabled=self.translations_enabled,
        )

        export_date = await self.downloader.find_available_export_date(kind, sync_date)
        if export_date is None:
            logger.error("daily_sync_no_export", kind=kind, requested_date=summary.requested_date)
            return summary
        summary.export_date = export_date.isoformat()

        ids = await self._collect_ids(kind, export_date, summary)
        summary.total_ids = len(ids)
        if not ids:
            logger.warning("daily_sync_empty_export", kind=kind, export_date=summary.export_date)
            return summary

        summary.batches_total = math.ceil(len(ids) / batch_size)
        logger.info(
            "daily_sync_started",
            kind=kind,
            export_date=summary.export_date,
            ids=len(ids),
            batches=summary.batches_total,
            translations=self.translation_languages if self.translations_enabled else [],
        )
        if start_from_batch > 0:
            logger.info("daily_sync_resuming", kind=kind, batch=start_from_batch + 1)

        for batch_index in range(start_from_batch, summary.batches_total):
            batch = ids[batch_index * batch_size:(batch_index + 1) * batch_size]
            batch_number = batch_index + 1

            if batch_number % PROGRESS_BATCH_STEP == 1 or batch_number == summary.batches_total:
                logger.info(
                    "daily_sync_progress",
                    kind=kind,
                    batch=batch_number,
                    batches=summary.batches_total,
                    synced=summary.synced,
                )

            outcomes = await asyncio.gather(*(
                self._sync_item(kind, tmdb_id, index)
                for index, tmdb_id in enumerate(batch)
            ))

            summary.processed += len(batch)
            summary.synced += sum(outcomes)
            summary.failed += len(batch) - sum(outcomes)
            summary.batches_processed += 1

            if batch_number < summary.batches_total:
                await self.sleep(self.batch_pause)

        logger.info(
            "daily_sync_completed",
            kind=kind,
            synced=summary.synced,
            processed=summary.processed,
            failed=summary.failed,
        )
        return summary

    async def _collect_ids(self, kind: str, export_date: date, summary: DailySyncSummary) -> List[int]:
        url = self.downloader.export_url(kind, export_date)
        ids = []
        async for item in self.downloader.download_and_decode(url):
            if kind == "movie" and item.adult:
                summary.skipped_adult += 1
                continue
            ids.append(item.id)
        return ids

    async def _sync_item(self, kind: str, tmdb_id: int, index: int) -> bool:
        """Fetch, upsert (overwriting), then translate one id. Never raises."""
        try:
            await self.sleep(index * self.item_stagger)
            details = await self.client.get_details(kind, tmdb_id)
            await self.repositories[kind].upsert_by_tmdb_id(
                tmdb_id, details.to_catalog_fields(kind), overwrite=True
            )
        except httpx.HTTPStatusError as e:
            logger.debug(
                "daily_sync_item_skipped",
                kind=kind,
                tmdb_id=tmdb_id,
                status=e.response.status_code,
            )
            return False
        except Exception as e:
            logger.warning("daily_sync_item_failed", kind=kind, tmdb_id=tmdb_id, error=str(e))
            return False

        if self.translations_enabled:
            await self._sync_translations(kind, tmdb_id)
        return True

    async def _sync_translations(self, kind: str, tmdb_id: int):
        for language in self.translation_languages:
            try:
                await self.sleep(self.translation_delay)
                translated = await self.client.get_details(kind, tmdb_id, language)
                await self.translation_repository.upsert(
                    tmdb_id,
                    kind,
                    language,
                    translated.display_title or None,
                    translated.overview or None,
                )
            except Exception as e:
                logger.debug(
                    "translation_sync_skipped",
                    kind=kind,
                    tmdb_id=tmdb_id,
                    language=language,
                    error=str(e),
                )

    async def sync_all(
        self,
        sync_date: Optional[date] = None,
        batch_size: Optional[int] = None,
    ) -> Dict[str, Dict]:
        """
        Movies and TV concurrently. A failure in one kind is logged and
        reported in its entry while the other kind still completes.
        """
        sync_date = sync_date or date.today()
        started = datetime.now(timezone.utc)
        logger.info("daily_sync_all_started", date=sync_date.isoformat())

        kinds = ("movie", "tv")
        outcomes = await asyncio.gather(
            *(self.sync_from_export(kind, sync_date, batch_size) for kind in kinds),
            return_exceptions=True,
        )

        results: Dict[str, Dict] = {}
        for kind, outcome in zip(kinds, outcomes):
            if isinstance(outcome, Exception):
                logger.error("daily_sync_kind_failed", kind=kind, error=str(outcome))
                results[kind] = {"kind": kind, "error": str(outcome)}
            else:
                results[kind] = outcome.to_dict()

        duration = (datetime.now(timezone.utc) - started).total_seconds()
        logger.info("daily_sync_all_completed", duration_seconds=round(duration))
        return results

    async def sync_latest(self) -> Dict[str, Dict]:
        """Sync from the newest exports available as of today."""
        return await self.sync_all(date.today())

    async def get_sync_stats(self) -> Dict:
        movies, tv = await asyncio.gather(
            self.repositories["movie"].count(),
            self.repositories["tv"].count(),
        )
        return {
            "totalMovies": movies,
            "totalTVSeries": tv,
            "checkedAt": datetime.now(timezone.utc).isoformat(),
        }
