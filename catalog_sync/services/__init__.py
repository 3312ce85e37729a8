"""Services for syncing, trimming and scheduling the catalog."""

from .retry import RetryPolicy
from .tmdb_client import TMDBClient
from .export_downloader import ExportDownloader
from .sync_settings import CatalogLimits, SyncSettingsService, UNLIMITED
from .data_sync import DataSyncService, ProgressTracker
from .daily_sync import DailySyncService
from .catalog_cleanup import CatalogCleanupService
from .job_manager import JobManager, SyncJob, get_job_manager
from .scheduler import SchedulerService, get_scheduler_service

__all__ = [
    "RetryPolicy",
    "TMDBClient",
    "ExportDownloader",
    "CatalogLimits",
    "SyncSettingsService",
    "UNLIMITED",
    "DataSyncService",
    "ProgressTracker",
    "DailySyncService",
    "CatalogCleanupService",
    "JobManager",
    "SyncJob",
    "get_job_manager",
    "SchedulerService",
    "get_scheduler_service",
]
