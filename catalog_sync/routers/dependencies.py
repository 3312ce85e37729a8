"""FastAPI dependency providers for repositories and services."""

from ..core.database import get_session_factory
from ..jobs.catalog_sync import get_catalog_sync_job
from ..repositories import (
    ContentTranslationRepository,
    MovieRepository,
    TrendingRepository,
    TVSeriesRepository,
)
from ..services.sync_settings import SyncSettingsService
from ..services.tmdb_client import TMDBClient


def get_movie_repository() -> MovieRepository:
    return MovieRepository(get_session_factory())


def get_tv_repository() -> TVSeriesRepository:
    return TVSeriesRepository(get_session_factory())


def get_trending_repository() -> TrendingRepository:
    return TrendingRepository(get_session_factory())


def get_translation_repository() -> ContentTranslationRepository:
    return ContentTranslationRepository(get_session_factory())


def get_sync_settings_service() -> SyncSettingsService:
    return SyncSettingsService(get_session_factory())


def get_tmdb_client() -> TMDBClient:
    return get_catalog_sync_job().data_sync.client
