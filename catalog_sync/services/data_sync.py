"""
Data Sync Service

Refreshes the popular movie / popular TV catalogs and the trending list
from TMDB, honoring the per-kind limits in Sync Settings.
"""

import asyncio
import math
import time
from dataclasses import asdict, dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Set, Tuple

from ..constants import TMDB_DEFAULT_LANGUAGE, TMDB_MAX_PAGES
from ..core.logging import get_logger
from ..models.entities import utc_now
from ..models.tmdb import TMDBItem
from ..repositories.catalog import CatalogRepository, MovieRepository, TVSeriesRepository
from ..repositories.trending import TrendingRepository
from .sync_settings import SyncSettingsService
from .tmdb_client import TMDBClient

logger = get_logger(__name__)

# Trending page budget when the trending limit is unlimited
DEFAULT_TRENDING_PAGES = 5


def trending_media_type(item: TMDBItem) -> str:
    return "movie" if item.media_type == "movie" else "tv"


@dataclass
class ProgressTracker:
    """
    Throttles progress logs for one sync run: page 1, then every
    `page_step` pages or every `interval_seconds`, whichever comes first.
    """
    page_step: int = 100
    interval_seconds: float = 600.0
    clock: Callable[[], float] = time.monotonic
    last_logged_page: int = 0
    last_logged_at: Optional[float] = None

    def should_log(self, page: int) -> bool:
        now = self.clock()
        page_due = page == 1 or page - self.last_logged_page >= self.page_step
        time_due = self.last_logged_at is None or now - self.last_logged_at >= self.interval_seconds

        if page_due or time_due:
            self.last_logged_page = page
            self.last_logged_at = now
            return True
        return False


@dataclass
class PopularSyncResult:
    kind: str
    limit: int
    skipped: bool = False
    page_cap: int = 0
    pages_synced: int = 0
    items_processed: int = 0
    created: int = 0
    failed: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class TrendingSyncResult:
    limit: int
    skipped: bool = False
    page_cap: int = 0
    items_synced: int = 0
    hidden_restored: int = 0
    failed: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class DataSyncResult:
    movies: PopularSyncResult
    tv: PopularSyncResult
    trending: TrendingSyncResult
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "movies": self.movies.to_dict(),
            "tv": self.tv.to_dict(),
            "trending": self.trending.to_dict(),
        }


class DataSyncService:
    """
    Popular and trending refresh.

    Popular sync writes with the skip-if-exists policy: rows already in the
    catalog are left untouched. Full refreshes go through DailySyncService.
    """

    def __init__(
        self,
        client: TMDBClient,
        movie_repository: MovieRepository,
        tv_repository: TVSeriesRepository,
        trending_repository: TrendingRepository,
        settings_service: SyncSettingsService,
        page_delay: float = 0.5,
        trending_page_delay: float = 0.4,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.repositories: Dict[str, CatalogRepository] = {
            "movie": movie_repository,
            "tv": tv_repository,
        }
        self.trending_repository = trending_repository
        self.settings_service = settings_service
        self.page_delay = page_delay
        self.trending_page_delay = trending_page_delay
        self.sleep = sleep

    async def sync_popular(
        self,
        kind: str,
        language: str = TMDB_DEFAULT_LANGUAGE,
    ) -> PopularSyncResult:
        """
        Page through /{kind}/popular and upsert each item.

        The page cap is fixed from the first response:
        min(total_pages, TMDB_MAX_PAGES, ceil(limit / page_size) if limit > 0).
        Items beyond the limit are never written.
        """
        limits = await self.settings_service.get_catalog_limits()
        limit = limits.for_kind(kind)
        result = PopularSyncResult(kind=kind, limit=limit)

        if limit == 0:
            logger.info("popular_sync_skipped", kind=kind, reason="limit_is_zero")
            result.skipped = True
            return result

        repository = self.repositories[kind]
        progress = ProgressTracker()
        logger.info("popular_sync_started", kind=kind, language=language, limit=limit)

        page = 1
        page_cap = TMDB_MAX_PAGES
        try:
            while page <= page_cap:
                response = await self.client.get_popular(kind, page, language)

                if not response.items:
                    logger.info("popular_sync_empty_page", kind=kind, page=page)
                    break

                if page == 1:
                    base_cap = min(response.total_pages or 1, TMDB_MAX_PAGES)
                    if limit > 0:
                        page_cap = min(math.ceil(limit / len(response.items)), base_cap)
                    else:
                        page_cap = base_cap
                    result.page_cap = page_cap
                    logger.info(
                        "popular_sync_page_cap",
                        kind=kind,
                        total_results=response.total_results,
                        total_pages=response.total_pages,
                        page_cap=page_cap,
                    )

                if progress.should_log(page):
                    logger.info(
                        "popular_sync_progress",
                        kind=kind,
                        page=page,
                        page_cap=page_cap,
                        items=len(response.items),
                    )

                items = response.items
                if limit > 0:
                    items = items[:max(limit - result.items_processed, 0)]

                for item in items:
                    await self._upsert_item(repository, kind, item, result)

                result.pages_synced = page
                if limit > 0 and result.items_processed >= limit:
                    break

                page += 1
                if page <= page_cap:
                    await self.sleep(self.page_delay)
        except Exception as e:
            logger.error("popular_sync_failed", kind=kind, page=page, error=str(e))
            result.error = str(e)
            return result

        logger.info(
            "popular_sync_completed",
            kind=kind,
            pages=result.pages_synced,
            page_cap=result.page_cap,
            processed=result.items_processed,
            created=result.created,
            failed=result.failed,
        )
        return result

    async def _upsert_item(
        self,
        repository: CatalogRepository,
        kind: str,
        item: TMDBItem,
        result: PopularSyncResult,
    ):
        result.items_processed += 1
        try:
            _, created = await repository.upsert_by_tmdb_id(
                item.id, item.to_catalog_fields(kind), overwrite=False
            )
            result.created += int(created)
        except Exception as e:
            result.failed += 1
            logger.warning("catalog_upsert_failed", kind=kind, tmdb_id=item.id, error=str(e))

    async def sync_trending(self, language: str = TMDB_DEFAULT_LANGUAGE) -> TrendingSyncResult:
        """
        Replace the trending table with a fresh pull.

        Moderation state is snapshotted before the table is cleared and
        re-applied to rows with the same (tmdb_id, media_type). The API pull
        happens first, so a failed pull leaves the current table in place.
        """
        limits = await self.settings_service.get_catalog_limits()
        limit = limits.trending
        result = TrendingSyncResult(limit=limit)

        if limit == 0:
            logger.info("trending_sync_skipped", reason="limit_is_zero")
            result.skipped = True
            return result

        logger.info("trending_sync_started", language=language, limit=limit)

        try:
            items = await self._pull_trending(language, limit, result)
        except Exception as e:
            logger.error("trending_sync_failed", stage="pull", error=str(e))
            result.error = str(e)
            return result

        hidden_states = await self.trending_repository.hidden_states()
        cleared = await self.trending_repository.clear_all()
        logger.info("trending_cleared", rows=cleared, hidden_snapshot=sum(
            1 for state in hidden_states.values() if state.is_hidden
        ))

        for item in items:
            media_type = trending_media_type(item)
            state = hidden_states.get((item.id, media_type))
            is_hidden = bool(state and state.is_hidden)

            fields = item.to_trending_fields()
            fields.update({
                "is_hidden": is_hidden,
                "hidden_reason": state.hidden_reason if is_hidden else None,
                "hidden_at": (state.hidden_at or utc_now()) if is_hidden else None,
            })

            try:
                await self.trending_repository.upsert_by_tmdb_id_and_type(item.id, media_type, fields)
                result.items_synced += 1
                result.hidden_restored += int(is_hidden)
            except Exception as e:
                result.failed += 1
                logger.warning("trending_upsert_failed", tmdb_id=item.id, media_type=media_type, error=str(e))

        logger.info(
            "trending_sync_completed",
            items=result.items_synced,
            hidden_restored=result.hidden_restored,
            page_cap=result.page_cap,
        )
        return result

    async def _pull_trending(
        self,
        language: str,
        limit: int,
        result: TrendingSyncResult,
    ) -> List[TMDBItem]:
        collected: List[TMDBItem] = []
        seen: Set[Tuple[int, str]] = set()
        max_pages = DEFAULT_TRENDING_PAGES
        page = 1

        while page <= max_pages:
            items = await self.client.get_trending("all", "week", language, page)
            if not items:
                logger.info("trending_sync_empty_page", page=page)
                break

            if page == 1:
                if limit > 0:
                    max_pages = min(max(1, math.ceil(limit / len(items))), TMDB_MAX_PAGES)
                result.page_cap = max_pages

            for item in items:
                if limit > 0 and len(collected) >= limit:
                    break
                # Pages can overlap while TMDB reorders the weekly list
                key = (item.id, trending_media_type(item))
                if key in seen:
                    continue
                seen.add(key)
                collected.append(item)

            if limit > 0 and len(collected) >= limit:
                break

            page += 1
            if page <= max_pages:
                await self.sleep(self.trending_page_delay)

        return collected

    async def sync_all(self, language: str = TMDB_DEFAULT_LANGUAGE) -> DataSyncResult:
        """Popular movies, popular TV, then trending. Each kind fails independently."""
        logger.info("data_sync_started", language=language)

        movies = await self.sync_popular("movie", language)
        tv = await self.sync_popular("tv", language)
        trending = await self.sync_trending(language)

        result = DataSyncResult(movies=movies, tv=tv, trending=trending)
        result.errors = [r.error for r in (movies, tv, trending) if r.error]
        logger.info("data_sync_completed", errors=len(result.errors))
        return result
