"""Persistence for catalog rows, trending, and translations."""

from .catalog import CatalogRepository, MovieRepository, PaginatedResult, TVSeriesRepository
from .trending import HiddenState, TrendingRepository
from .translations import ContentTranslationRepository

__all__ = [
    "CatalogRepository",
    "MovieRepository",
    "PaginatedResult",
    "TVSeriesRepository",
    "HiddenState",
    "TrendingRepository",
    "ContentTranslationRepository",
]
