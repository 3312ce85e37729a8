"""API Routers."""

from .admin_sync import router as admin_sync_router
from .catalog import router as catalog_router
from .scheduler import router as scheduler_router

__all__ = [
    "admin_sync_router",
    "catalog_router",
    "scheduler_router",
]
