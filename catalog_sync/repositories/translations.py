"""
Content Translation Repository

Per-language title/overview keyed by (tmdb_id, content_type, language).
Language tags are normalized before storage and lookups match every
candidate form of a tag, so rows written as "vi" are found by "vi-VN".
"""

from typing import Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..constants import get_language_candidates, normalize_language_tag
from ..models.entities import ContentTranslation


class ContentTranslationRepository:

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def upsert(
        self,
        tmdb_id: int,
        content_type: str,
        language: str,
        title: Optional[str],
        overview: Optional[str],
    ) -> ContentTranslation:
        """
        Insert or update one translation.

        An existing row found under any candidate tag is rewritten to the
        canonical tag. None values keep what is already stored.
        """
        normalized = normalize_language_tag(language)
        candidates = get_language_candidates(language)

        async with self.session_factory() as session:
            existing = await session.scalar(
                select(ContentTranslation).where(
                    ContentTranslation.tmdb_id == tmdb_id,
                    ContentTranslation.content_type == content_type,
                    ContentTranslation.language.in_(candidates),
                )
            )

            if existing is not None:
                existing.language = normalized
                if title is not None:
                    existing.title = title
                if overview is not None:
                    existing.overview = overview
            else:
                existing = ContentTranslation(
                    tmdb_id=tmdb_id,
                    content_type=content_type,
                    language=normalized,
                    title=title,
                    overview=overview,
                )
                session.add(existing)

            await session.commit()
            return existing

    async def bulk_upsert(self, translations: List[dict]) -> int:
        """
        Upsert many translations; later entries win for duplicate keys.

        Each dict carries tmdb_id, content_type, language, title, overview.
        Returns the number of distinct keys written.
        """
        deduped: Dict[Tuple[int, str, str], dict] = {}
        for translation in translations:
            key = (
                translation["tmdb_id"],
                translation["content_type"],
                normalize_language_tag(translation["language"]),
            )
            deduped[key] = translation

        for (tmdb_id, content_type, language), translation in deduped.items():
            await self.upsert(
                tmdb_id,
                content_type,
                language,
                translation.get("title"),
                translation.get("overview"),
            )

        return len(deduped)

    async def find_by_tmdb_id(
        self,
        tmdb_id: int,
        content_type: str,
        language: str,
    ) -> Optional[ContentTranslation]:
        async with self.session_factory() as session:
            return await session.scalar(
                select(ContentTranslation).where(
                    ContentTranslation.tmdb_id == tmdb_id,
                    ContentTranslation.content_type == content_type,
                    ContentTranslation.language.in_(get_language_candidates(language)),
                )
            )

    async def find_by_tmdb_ids(
        self,
        tmdb_ids: List[int],
        content_type: str,
        language: str,
    ) -> List[ContentTranslation]:
        if not tmdb_ids:
            return []

        async with self.session_factory() as session:
            rows = await session.scalars(
                select(ContentTranslation).where(
                    ContentTranslation.tmdb_id.in_(tmdb_ids),
                    ContentTranslation.content_type == content_type,
                    ContentTranslation.language.in_(get_language_candidates(language)),
                )
            )
            return list(rows)
