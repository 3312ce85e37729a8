"""
Catalog Repositories

Upsert-by-TMDB-id, paginated listing and search for movies and TV series.
"""

import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, Generic, List, Optional, Tuple, Type, TypeVar

from sqlalchemy import case, extract, func, or_, select
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql.expression import cast

from ..core.logging import get_logger
from ..models.entities import Movie, TVSeries, utc_now

logger = get_logger(__name__)

T = TypeVar("T")

# Trigram similarity needed for a fuzzy match on PostgreSQL
SIMILARITY_THRESHOLD = 0.3
TOP_RATED_MIN_VOTES = 100
NOW_PLAYING_WINDOW_DAYS = 90


@dataclass
class PaginatedResult(Generic[T]):
    data: List[T] = field(default_factory=list)
    page: int = 1
    limit: int = 24
    total: int = 0

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def to_dict(self, serialize) -> Dict[str, Any]:
        return {
            "data": [serialize(item) for item in self.data],
            "pagination": {
                "page": self.page,
                "limit": self.limit,
                "total": self.total,
                "totalPages": self.total_pages,
            },
        }


class CatalogRepository:
    """Shared persistence logic for Movie and TVSeries rows."""

    model: Type = None

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def find_by_tmdb_id(self, tmdb_id: int):
        async with self.session_factory() as session:
            return await session.scalar(
                select(self.model).where(self.model.tmdb_id == tmdb_id)
            )

    async def count(self) -> int:
        async with self.session_factory() as session:
            return await session.scalar(select(func.count()).select_from(self.model))

    async def upsert_by_tmdb_id(
        self,
        tmdb_id: int,
        fields: Dict[str, Any],
        overwrite: bool = False,
    ) -> Tuple[Any, bool]:
        """
        Insert a row for `tmdb_id` or reconcile with the existing one.

        With overwrite=False an existing row is returned untouched
        (skip-if-exists, used by popular sync). With overwrite=True every
        given field is rewritten and last_updated is bumped.

        Returns:
            (entity, created)
        """
        async with self.session_factory() as session:
            existing = await session.scalar(
                select(self.model).where(self.model.tmdb_id == tmdb_id)
            )

            if existing is not None:
                if overwrite:
                    for key, value in fields.items():
                        setattr(existing, key, value)
                    existing.last_updated = utc_now()
                    await session.commit()
                return existing, False

            entity = self.model(tmdb_id=tmdb_id, **fields)
            session.add(entity)
            try:
                await session.commit()
                return entity, True
            except IntegrityError:
                # Another sync run inserted the same id between select and insert
                await session.rollback()

        logger.debug("upsert_conflict_retry", table=self.model.__tablename__, tmdb_id=tmdb_id)
        return await self.upsert_by_tmdb_id(tmdb_id, fields, overwrite=overwrite)

    def _genre_clause(self, dialect: str, genre_id: int):
        if dialect == "postgresql":
            return cast(self.model.genre_ids, JSONB).contains([genre_id])
        values = func.json_each(self.model.genre_ids).table_valued("value")
        return select(values.c.value).where(values.c.value == genre_id).exists()

    def _apply_sort(self, stmt, sort_by: Optional[str]):
        m = self.model
        today = date.today()

        if sort_by == "top_rated":
            return (
                stmt.where(m.vote_count > TOP_RATED_MIN_VOTES)
                .order_by(m.vote_average.desc(), m.vote_count.desc())
            )
        if sort_by == "now_playing":
            return (
                stmt.where(m.release_date <= today)
                .where(m.release_date >= today - timedelta(days=NOW_PLAYING_WINDOW_DAYS))
                .order_by(m.popularity.desc(), m.release_date.desc())
            )
        if sort_by == "upcoming":
            return (
                stmt.where(m.release_date > today)
                .order_by(m.release_date.asc(), m.popularity.desc())
            )
        if sort_by == "updated":
            return stmt.order_by(m.last_updated.desc(), m.id.desc())
        if sort_by == "latest":
            return stmt.order_by(m.release_date.desc().nulls_last(), m.id.desc())

        return stmt.order_by(m.popularity.desc(), m.id.desc())

    async def find_all(
        self,
        page: int = 1,
        limit: int = 24,
        genre: Optional[str] = None,
        year: Optional[int] = None,
        sort_by: Optional[str] = None,
        include_blocked: bool = False,
    ) -> PaginatedResult:
        """
        Paginated listing.

        Args:
            genre: Comma-separated genre ids; rows must carry all of them
            year: Release year
            sort_by: popularity (default), top_rated, now_playing, upcoming,
                updated, latest
        """
        m = self.model
        stmt = select(m)

        async with self.session_factory() as session:
            dialect = session.bind.dialect.name

            if not include_blocked:
                stmt = stmt.where(m.is_blocked.is_(False))

            if genre:
                genre_ids = [int(g) for g in genre.split(",") if g.strip().isdigit()]
                for genre_id in genre_ids:
                    stmt = stmt.where(self._genre_clause(dialect, genre_id))

            if year:
                stmt = stmt.where(extract("year", m.release_date) == year)

            stmt = self._apply_sort(stmt, sort_by)

            total = await session.scalar(
                select(func.count()).select_from(stmt.order_by(None).subquery())
            )
            rows = await session.scalars(stmt.offset((page - 1) * limit).limit(limit))

            return PaginatedResult(data=list(rows), page=page, limit=limit, total=total or 0)

    async def search(self, query: str, page: int = 1, limit: int = 24) -> PaginatedResult:
        """
        Title search.

        PostgreSQL: full-text match scores 100, otherwise trigram similarity
        scaled to 50, plus popularity and rating boosts (requires pg_trgm).
        Other dialects: case-insensitive substring match by popularity.
        """
        m = self.model
        query = (query or "").strip()
        if not query:
            return PaginatedResult(page=page, limit=limit)

        async with self.session_factory() as session:
            if session.bind.dialect.name == "postgresql":
                original = func.coalesce(m.original_title, "")
                document = func.to_tsvector(
                    "simple", func.coalesce(m.title, "") + " " + original
                )
                fts_match = document.op("@@")(func.plainto_tsquery("simple", query))
                similarity = func.greatest(
                    func.similarity(m.title, query), func.similarity(original, query)
                )
                rank = (
                    case((fts_match, 100), else_=similarity * 50)
                    + m.popularity / 100
                    + m.vote_average * 2
                )
                condition = or_(
                    fts_match,
                    func.similarity(m.title, query) > SIMILARITY_THRESHOLD,
                    func.similarity(original, query) > SIMILARITY_THRESHOLD,
                )
                order = [rank.desc()]
            else:
                pattern = f"%{query}%"
                condition = or_(m.title.ilike(pattern), m.original_title.ilike(pattern))
                order = [m.popularity.desc(), m.id.desc()]

            stmt = select(m).where(condition).where(m.is_blocked.is_(False))
            total = await session.scalar(
                select(func.count()).select_from(stmt.subquery())
            )
            rows = await session.scalars(
                stmt.order_by(*order).offset((page - 1) * limit).limit(limit)
            )

            return PaginatedResult(data=list(rows), page=page, limit=limit, total=total or 0)


class MovieRepository(CatalogRepository):
    model = Movie


class TVSeriesRepository(CatalogRepository):
    model = TVSeries
