"""
Sync Request/Response Models

Admin-facing payloads for sync triggers, job status, sync settings
and trending moderation.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SyncTarget(str, Enum):
    """What an admin-triggered sync should refresh."""
    MOVIES = "movies"
    TV = "tv"
    ALL = "all"
    TODAY = "today"
    POPULAR = "popular"


class JobStatus(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class AdminSyncRequest(BaseModel):
    """Body of POST /admin/sync."""
    target: SyncTarget = SyncTarget.ALL
    sync_date: Optional[date] = Field(None, alias="date")
    batch_size: Optional[int] = Field(None, alias="batchSize", ge=1)
    start_from_batch: int = Field(0, alias="startFromBatch", ge=0)

    model_config = ConfigDict(populate_by_name=True)


class SyncJobView(BaseModel):
    """Status snapshot of a background sync job."""
    id: str
    target: str
    status: JobStatus
    params: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(..., alias="createdAt")
    started_at: Optional[datetime] = Field(None, alias="startedAt")
    finished_at: Optional[datetime] = Field(None, alias="finishedAt")
    result: Optional[Any] = None
    error: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class SyncJobList(BaseModel):
    jobs: List[SyncJobView]


class SyncSettingsUpdate(BaseModel):
    """Body of PUT /admin/sync/settings. -1 means unlimited, 0 disables sync."""
    movie_catalog_limit: Optional[int] = Field(None, alias="movieCatalogLimit", ge=-1)
    tv_catalog_limit: Optional[int] = Field(None, alias="tvCatalogLimit", ge=-1)
    trending_catalog_limit: Optional[int] = Field(None, alias="trendingCatalogLimit", ge=-1)

    model_config = ConfigDict(populate_by_name=True)


class SyncSettingsView(BaseModel):
    movie_catalog_limit: int = Field(..., alias="movieCatalogLimit")
    tv_catalog_limit: int = Field(..., alias="tvCatalogLimit")
    trending_catalog_limit: int = Field(..., alias="trendingCatalogLimit")

    model_config = ConfigDict(populate_by_name=True)


class TrendingVisibilityUpdate(BaseModel):
    """Body of PATCH /admin/trending/{media_type}/{tmdb_id}."""
    is_hidden: bool = Field(..., alias="isHidden")
    reason: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)
