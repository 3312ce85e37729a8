"""
Trending Repository

Trending rows are fully rewritten on every trending sync. Admin moderation
(is_hidden / hidden_reason / hidden_at) is snapshotted before the rewrite
so it can be re-applied.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.exceptions import NotFoundError
from ..models.entities import Trending, utc_now

TrendingKey = Tuple[int, str]


@dataclass(frozen=True)
class HiddenState:
    is_hidden: bool
    hidden_reason: Optional[str]
    hidden_at: Optional[datetime]


class TrendingRepository:

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def find_all(
        self,
        page: int = 1,
        limit: int = 24,
        include_hidden: bool = False,
    ) -> Tuple[List[Trending], int]:
        stmt = select(Trending)
        if not include_hidden:
            stmt = stmt.where(Trending.is_hidden.is_(False))

        async with self.session_factory() as session:
            total = await session.scalar(
                select(func.count()).select_from(stmt.subquery())
            )
            rows = await session.scalars(
                stmt.order_by(Trending.popularity.desc(), Trending.id)
                .offset((page - 1) * limit)
                .limit(limit)
            )
            return list(rows), total or 0

    async def find_by_tmdb_id_and_type(self, tmdb_id: int, media_type: str) -> Optional[Trending]:
        async with self.session_factory() as session:
            return await session.scalar(
                select(Trending).where(
                    Trending.tmdb_id == tmdb_id, Trending.media_type == media_type
                )
            )

    async def hidden_states(self) -> Dict[TrendingKey, HiddenState]:
        """Moderation state of every current row, keyed by (tmdb_id, media_type)."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(
                    Trending.tmdb_id,
                    Trending.media_type,
                    Trending.is_hidden,
                    Trending.hidden_reason,
                    Trending.hidden_at,
                )
            )
            return {
                (row.tmdb_id, row.media_type): HiddenState(
                    is_hidden=bool(row.is_hidden),
                    hidden_reason=row.hidden_reason,
                    hidden_at=row.hidden_at,
                )
                for row in result
            }

    async def upsert_by_tmdb_id_and_type(
        self,
        tmdb_id: int,
        media_type: str,
        fields: Dict[str, Any],
    ) -> Trending:
        async with self.session_factory() as session:
            existing = await session.scalar(
                select(Trending).where(
                    Trending.tmdb_id == tmdb_id, Trending.media_type == media_type
                )
            )
            if existing is None:
                existing = Trending(tmdb_id=tmdb_id, media_type=media_type, **fields)
                session.add(existing)
            else:
                for key, value in fields.items():
                    setattr(existing, key, value)
            await session.commit()
            return existing

    async def clear_all(self) -> int:
        async with self.session_factory() as session:
            result = await session.execute(delete(Trending))
            await session.commit()
            return result.rowcount

    async def set_hidden_status(
        self,
        tmdb_id: int,
        media_type: str,
        is_hidden: bool,
        reason: Optional[str] = None,
    ) -> None:
        async with self.session_factory() as session:
            result = await session.execute(
                update(Trending)
                .where(Trending.tmdb_id == tmdb_id, Trending.media_type == media_type)
                .values(
                    is_hidden=is_hidden,
                    hidden_reason=reason if is_hidden else None,
                    hidden_at=utc_now() if is_hidden else None,
                )
            )
            await session.commit()

        if not result.rowcount:
            raise NotFoundError("Trending item", f"{media_type}/{tmdb_id}")
