"""
Admin Sync API Router

Endpoints for triggering catalog syncs, polling their status, editing
catalog limits and moderating trending entries. All require X-API-Key.
"""

from fastapi import APIRouter, Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import get_settings
from ..core.exceptions import InvalidRequestError, NotFoundError
from ..core.logging import get_logger
from ..core.security import verify_admin_access
from ..jobs.catalog_sync import CatalogSyncJob, get_catalog_sync_job
from ..models.sync import (
    AdminSyncRequest,
    SyncJobList,
    SyncJobView,
    SyncSettingsUpdate,
    SyncSettingsView,
    TrendingVisibilityUpdate,
)
from ..repositories import TrendingRepository
from ..services.job_manager import JobManager, get_job_manager
from ..services.sync_settings import SyncSettingsService
from .dependencies import get_sync_settings_service, get_trending_repository

logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(prefix="/admin", tags=["admin"])
limiter = Limiter(key_func=get_remote_address)

TRENDING_MEDIA_TYPES = ("movie", "tv")


@router.post("/sync", status_code=202, response_model=SyncJobView)
@limiter.limit(f"{settings.rate_limit_per_minute}/minute")
async def trigger_sync(
    request: Request,
    body: AdminSyncRequest,
    admin: dict = Depends(verify_admin_access),
    sync_job: CatalogSyncJob = Depends(get_catalog_sync_job),
    job_manager: JobManager = Depends(get_job_manager),
):
    """
    Queue a sync run and return its job record.

    Targets:
        - movies / tv / all: full refresh from daily id exports
        - today: full refresh from the newest exports
        - popular: popular + trending sync, then cleanup
    """
    params = {
        "date": body.sync_date.isoformat() if body.sync_date else None,
        "batchSize": body.batch_size,
        "startFromBatch": body.start_from_batch,
    }
    logger.info("admin_sync_requested", admin=admin["uid"], target=body.target.value, **params)

    job = job_manager.submit(
        body.target.value,
        lambda: sync_job.run_target(
            body.target, body.sync_date, body.batch_size, body.start_from_batch
        ),
        params,
    )
    return job.to_view()


@router.get("/sync/jobs", response_model=SyncJobList)
async def list_sync_jobs(
    admin: dict = Depends(verify_admin_access),
    job_manager: JobManager = Depends(get_job_manager),
):
    """Recent sync jobs, newest first."""
    return SyncJobList(jobs=[job.to_view() for job in job_manager.list()])


@router.get("/sync/jobs/{job_id}", response_model=SyncJobView)
async def get_sync_job(
    job_id: str,
    admin: dict = Depends(verify_admin_access),
    job_manager: JobManager = Depends(get_job_manager),
):
    job = job_manager.get(job_id)
    if job is None:
        raise NotFoundError("Sync job", job_id)
    return job.to_view()


async def _limits_view(service: SyncSettingsService) -> SyncSettingsView:
    limits = await service.get_catalog_limits()
    return SyncSettingsView(
        movie_catalog_limit=limits.movie,
        tv_catalog_limit=limits.tv,
        trending_catalog_limit=limits.trending,
    )


@router.get("/sync/settings", response_model=SyncSettingsView)
async def get_sync_settings(
    admin: dict = Depends(verify_admin_access),
    service: SyncSettingsService = Depends(get_sync_settings_service),
):
    """Effective catalog limits (-1 = unlimited, 0 = sync disabled)."""
    return await _limits_view(service)


@router.put("/sync/settings", response_model=SyncSettingsView)
async def update_sync_settings(
    update: SyncSettingsUpdate,
    admin: dict = Depends(verify_admin_access),
    service: SyncSettingsService = Depends(get_sync_settings_service),
):
    await service.update_settings(update)
    return await _limits_view(service)


@router.patch("/trending/{media_type}/{tmdb_id}")
async def set_trending_visibility(
    media_type: str,
    tmdb_id: int,
    update: TrendingVisibilityUpdate,
    admin: dict = Depends(verify_admin_access),
    repository: TrendingRepository = Depends(get_trending_repository),
):
    """Hide or unhide a trending entry. Survives later trending syncs."""
    if media_type not in TRENDING_MEDIA_TYPES:
        raise InvalidRequestError(f"media_type must be one of {', '.join(TRENDING_MEDIA_TYPES)}")

    await repository.set_hidden_status(tmdb_id, media_type, update.is_hidden, update.reason)
    logger.info(
        "trending_visibility_changed",
        admin=admin["uid"],
        tmdb_id=tmdb_id,
        media_type=media_type,
        is_hidden=update.is_hidden,
    )
    return {
        "success": True,
        "tmdbId": tmdb_id,
        "mediaType": media_type,
        "isHidden": update.is_hidden,
    }
