"""ORM entities and Pydantic models for the catalog sync backend."""

from .entities import (
    Base,
    ContentTranslation,
    Movie,
    SyncSettings,
    Trending,
    TVSeries,
)
from .tmdb import ExportItem, PopularPage, TMDBItem
from .sync import (
    AdminSyncRequest,
    JobStatus,
    SyncJobView,
    SyncSettingsUpdate,
    SyncSettingsView,
    SyncTarget,
    TrendingVisibilityUpdate,
)

__all__ = [
    "Base",
    "ContentTranslation",
    "Movie",
    "SyncSettings",
    "Trending",
    "TVSeries",
    "ExportItem",
    "PopularPage",
    "TMDBItem",
    "AdminSyncRequest",
    "JobStatus",
    "SyncJobView",
    "SyncSettingsUpdate",
    "SyncSettingsView",
    "SyncTarget",
    "TrendingVisibilityUpdate",
]
