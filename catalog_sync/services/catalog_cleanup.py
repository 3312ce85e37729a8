"""
Catalog Cleanup Service

Trims the movie and TV tables down to their configured limits, keeping the
most recently updated rows.
"""

from typing import Dict

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.logging import get_logger
from ..models.entities import CATALOG_MODELS
from .sync_settings import CatalogLimits

logger = get_logger(__name__)


class CatalogCleanupService:

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def trim_to_limit(self, kind: str, limit: int) -> int:
        """
        Delete every row of `kind` outside the `limit` most recent.

        Recency is last_updated descending, ties broken by id descending.
        A limit of 0 or below (skip / unlimited) deletes nothing.

        Returns:
            Number of deleted rows
        """
        if limit <= 0:
            return 0

        model = CATALOG_MODELS[kind]
        overflow = (
            select(model.id)
            .order_by(model.last_updated.desc(), model.id.desc())
            .offset(limit)
            .scalar_subquery()
        )

        async with self.session_factory() as session:
            result = await session.execute(
                delete(model)
                .where(model.id.in_(overflow))
                .execution_options(synchronize_session=False)
            )
            await session.commit()

        deleted = result.rowcount or 0
        if deleted:
            logger.info("catalog_trimmed", kind=kind, limit=limit, deleted=deleted)
        return deleted

    async def trim_catalog(self, limits: CatalogLimits) -> Dict[str, int]:
        movies = await self.trim_to_limit("movie", limits.movie)
        tv = await self.trim_to_limit("tv", limits.tv)
        logger.info("catalog_cleanup_completed", movies_deleted=movies, tv_deleted=tv)
        return {"movie": movies, "tv": tv}
