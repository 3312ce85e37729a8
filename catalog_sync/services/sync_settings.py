"""
Sync Settings Service

Per-kind catalog size limits, stored in a single sync_settings row (id=1).

Limit semantics:
- positive N: sync at most N items, cleanup keeps the N most recent rows
- 0: skip syncing that kind entirely
- negative (stored) -> UNLIMITED (-1)
- NULL / missing row -> the configured default
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..config import get_settings
from ..core.logging import get_logger
from ..models.entities import SyncSettings
from ..models.sync import SyncSettingsUpdate

logger = get_logger(__name__)

UNLIMITED = -1
SETTINGS_ROW_ID = 1


@dataclass(frozen=True)
class CatalogLimits:
    movie: int
    tv: int
    trending: int

    def for_kind(self, kind: str) -> int:
        return {"movie": self.movie, "tv": self.tv, "trending": self.trending}[kind]


def normalize_limit(value: Optional[int], fallback: int) -> int:
    if value is None:
        return fallback if fallback >= 0 else UNLIMITED
    if value < 0:
        return UNLIMITED
    return value


class SyncSettingsService:

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    @staticmethod
    def default_limits() -> CatalogLimits:
        settings = get_settings()
        return CatalogLimits(
            movie=normalize_limit(settings.movie_catalog_limit, UNLIMITED),
            tv=normalize_limit(settings.tv_catalog_limit, UNLIMITED),
            trending=normalize_limit(settings.trending_catalog_limit, UNLIMITED),
        )

    async def get_settings(self) -> SyncSettings:
        """The settings row, created from configured defaults if missing."""
        async with self.session_factory() as session:
            row = await session.get(SyncSettings, SETTINGS_ROW_ID)
            if row is not None:
                return row

            defaults = self.default_limits()
            row = SyncSettings(
                id=SETTINGS_ROW_ID,
                movie_catalog_limit=defaults.movie,
                tv_catalog_limit=defaults.tv,
                trending_catalog_limit=defaults.trending,
            )
            session.add(row)
            await session.commit()
            logger.info(
                "sync_settings_initialized",
                movies=defaults.movie,
                tv=defaults.tv,
                trending=defaults.trending,
            )
            return row

    async def update_settings(self, update: SyncSettingsUpdate) -> SyncSettings:
        """Apply only the fields present in `update`."""
        await self.get_settings()
        changes = update.model_dump(exclude_none=True)

        async with self.session_factory() as session:
            row = await session.get(SyncSettings, SETTINGS_ROW_ID)
            for key, value in changes.items():
                setattr(row, key, value)
            await session.commit()

        logger.info("sync_settings_updated", **changes)
        return row

    async def get_catalog_limits(self) -> CatalogLimits:
        row = await self.get_settings()
        defaults = self.default_limits()
        return CatalogLimits(
            movie=normalize_limit(row.movie_catalog_limit, defaults.movie),
            tv=normalize_limit(row.tv_catalog_limit, defaults.tv),
            trending=normalize_limit(row.trending_catalog_limit, defaults.trending),
        )
