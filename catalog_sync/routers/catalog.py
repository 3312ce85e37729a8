"""
Catalog API Router

Public read-only listing and search over the synced catalog.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from ..constants import TMDB_DEFAULT_LANGUAGE, normalize_language_tag
from ..core.logging import get_logger
from ..repositories import (
    CatalogRepository,
    ContentTranslationRepository,
    MovieRepository,
    TrendingRepository,
    TVSeriesRepository,
)
from ..repositories.catalog import PaginatedResult
from .dependencies import (
    get_movie_repository,
    get_translation_repository,
    get_trending_repository,
    get_tv_repository,
)

logger = get_logger(__name__)

router = APIRouter(tags=["catalog"])

SORT_PATTERN = "^(popularity|top_rated|now_playing|upcoming|updated|latest)$"


def serialize_row(row) -> Dict[str, Any]:
    return {column.key: getattr(row, column.key) for column in row.__table__.columns}


async def _localized(
    result: PaginatedResult,
    kind: str,
    language: Optional[str],
    translations: ContentTranslationRepository,
) -> Dict[str, Any]:
    """Serialize a page, overlaying translated title/overview when available."""
    payload = result.to_dict(serialize_row)
    if not language or normalize_language_tag(language) == TMDB_DEFAULT_LANGUAGE:
        return payload

    rows = await translations.find_by_tmdb_ids(
        [item["tmdb_id"] for item in payload["data"]], kind, language
    )
    by_id = {row.tmdb_id: row for row in rows}
    for item in payload["data"]:
        translated = by_id.get(item["tmdb_id"])
        if translated is None:
            continue
        item["title"] = translated.title or item["title"]
        item["overview"] = translated.overview or item["overview"]
    return payload


async def _list_catalog(
    repository: CatalogRepository,
    translations: ContentTranslationRepository,
    kind: str,
    page: int,
    limit: int,
    genre: Optional[str],
    year: Optional[int],
    sort_by: Optional[str],
    language: Optional[str],
) -> Dict[str, Any]:
    result = await repository.find_all(page, limit, genre, year, sort_by)
    return await _localized(result, kind, language, translations)


@router.get("/movies")
async def list_movies(
    page: int = Query(1, ge=1),
    limit: int = Query(24, ge=1, le=100),
    genre: Optional[str] = Query(None, description="Comma-separated genre ids"),
    year: Optional[int] = Query(None, ge=1870, le=2100),
    sort_by: Optional[str] = Query(None, pattern=SORT_PATTERN),
    language: Optional[str] = Query(None, description="e.g. vi-VN"),
    repository: MovieRepository = Depends(get_movie_repository),
    translations: ContentTranslationRepository = Depends(get_translation_repository),
):
    return await _list_catalog(
        repository, translations, "movie", page, limit, genre, year, sort_by, language
    )


@router.get("/tv")
async def list_tv_series(
    page: int = Query(1, ge=1),
    limit: int = Query(24, ge=1, le=100),
    genre: Optional[str] = Query(None, description="Comma-separated genre ids"),
    year: Optional[int] = Query(None, ge=1870, le=2100),
    sort_by: Optional[str] = Query(None, pattern=SORT_PATTERN),
    language: Optional[str] = Query(None, description="e.g. vi-VN"),
    repository: TVSeriesRepository = Depends(get_tv_repository),
    translations: ContentTranslationRepository = Depends(get_translation_repository),
):
    return await _list_catalog(
        repository, translations, "tv", page, limit, genre, year, sort_by, language
    )


@router.get("/trending")
async def list_trending(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    repository: TrendingRepository = Depends(get_trending_repository),
):
    """Visible trending entries by popularity. Hidden entries are excluded."""
    rows, total = await repository.find_all(page, limit)
    return PaginatedResult(data=rows, page=page, limit=limit, total=total).to_dict(serialize_row)


@router.get("/search")
async def search_catalog(
    q: str = Query(..., min_length=2, description="Search query"),
    type: str = Query("movie", pattern="^(movie|tv)$", description="'movie' or 'tv'"),
    page: int = Query(1, ge=1),
    limit: int = Query(24, ge=1, le=50),
    movies: MovieRepository = Depends(get_movie_repository),
    tv: TVSeriesRepository = Depends(get_tv_repository),
):
    """Title search over movies or TV series."""
    logger.info("search_request", query=q, type=type)

    repository = movies if type == "movie" else tv
    result = await repository.search(q, page, limit)
    return result.to_dict(serialize_row)
