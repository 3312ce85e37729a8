"""
Scheduler API Router

Endpoints for monitoring and manually triggering the scheduled catalog sync.
"""

from fastapi import APIRouter, Depends

from ..core.logging import get_logger
from ..core.security import verify_admin_access
from ..models.sync import SyncJobView
from ..services.scheduler import get_scheduler_service

logger = get_logger(__name__)

router = APIRouter(prefix="/scheduler", tags=["scheduler"])


@router.get("/status")
async def get_scheduler_status(admin: dict = Depends(verify_admin_access)):
    """
    Get current scheduler status and job information.

    Returns:
        - Whether scheduler is running
        - Cron configuration
        - List of jobs with next run times
    """
    service = get_scheduler_service()
    return service.get_job_status()


@router.post("/trigger", status_code=202, response_model=SyncJobView)
async def trigger_catalog_sync(admin: dict = Depends(verify_admin_access)):
    """
    Queue the scheduled catalog sync now.

    Poll GET /admin/sync/jobs/{id} for the outcome.
    """
    logger.info("manual_catalog_sync_trigger", admin=admin["uid"])

    service = get_scheduler_service()
    return service.trigger_sync_now().to_view()


@router.post("/start")
async def start_scheduler(admin: dict = Depends(verify_admin_access)):
    """Start the background scheduler."""
    service = get_scheduler_service()
    service.start()
    return {"success": True, "message": "Scheduler started"}


@router.post("/stop")
async def stop_scheduler(admin: dict = Depends(verify_admin_access)):
    """Stop the background scheduler."""
    service = get_scheduler_service()
    service.stop()
    return {"success": True, "message": "Scheduler stopped"}
