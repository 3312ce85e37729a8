"""Background jobs."""

from .catalog_sync import (
    CatalogSyncJob,
    build_catalog_sync_job,
    close_catalog_sync_job,
    get_catalog_sync_job,
    run_catalog_sync_job,
)

__all__ = [
    "CatalogSyncJob",
    "build_catalog_sync_job",
    "close_catalog_sync_job",
    "get_catalog_sync_job",
    "run_catalog_sync_job",
]
