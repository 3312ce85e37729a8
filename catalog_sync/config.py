"""
Application Configuration

Load settings from environment variables with validation.
"""

from functools import lru_cache
from typing import Optional
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Environment
    environment: str = "development"
    debug: bool = True

    # Database
    database_url: str = "sqlite+aiosqlite:///./catalog.db"
    database_echo: bool = False

    # TMDB API
    tmdb_api_key: Optional[str] = None
    tmdb_read_access_token: Optional[str] = None  # Preferred over api key when set
    tmdb_base_url: str = "https://api.themoviedb.org/3"
    tmdb_timeout_seconds: float = 10.0
    tmdb_debug_logs: bool = False

    # TMDB daily id exports
    tmdb_export_base_url: str = "http://files.tmdb.org/p/exports"
    export_lookback_days: int = 7
    export_download_timeout_seconds: float = 300.0

    # Catalog limits (fallbacks when the sync_settings row has no value)
    movie_catalog_limit: int = 500_000
    tv_catalog_limit: int = 200_000
    trending_catalog_limit: int = 100

    # Scheduled sync
    sync_cron_enabled: bool = True
    sync_cron_expression: str = "0 3 * * *"
    sync_cron_timezone: str = "UTC"
    sync_base_language: str = "en-US"
    disable_scheduler: bool = False

    # Daily export sync
    daily_sync_translations_enabled: bool = True
    daily_sync_batch_size: int = 100

    # Admin
    admin_api_key: Optional[str] = None
    rate_limit_per_minute: int = 30

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
