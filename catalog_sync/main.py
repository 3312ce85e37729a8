"""
Catalog Sync Backend

FastAPI application entry point.
"""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from . import __version__
from .config import get_settings
from .core.database import close_db, init_db
from .core.exceptions import register_exception_handlers
from .core.logging import get_logger, setup_logging
from .jobs.catalog_sync import close_catalog_sync_job
from .routers import admin_sync_router, catalog_router, scheduler_router
from .routers.admin_sync import limiter
from .routers.dependencies import get_tmdb_client
from .services.job_manager import get_job_manager
from .services.scheduler import get_scheduler_service
from .services.tmdb_client import TMDBClient

# Initialize
settings = get_settings()
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(
        "app_startup",
        environment=settings.environment,
        debug=settings.debug
    )

    await init_db()

    # Serverless / multi-replica deployments run the sync from one place only
    if settings.disable_scheduler:
        logger.info("scheduler_disabled")
    else:
        get_scheduler_service().start()
        logger.info("scheduler_auto_started")

    yield

    # Cleanup on shutdown
    if not settings.disable_scheduler:
        get_scheduler_service().stop()
    await get_job_manager().shutdown()
    await close_catalog_sync_job()
    await close_db()

    logger.info("app_shutdown")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Catalog Sync Backend",
        description="Keeps a local movie / TV catalog in sync with TMDB",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register exception handlers
    register_exception_handlers(app)

    # Include routers
    app.include_router(admin_sync_router)
    app.include_router(scheduler_router)
    app.include_router(catalog_router)

    @app.get("/")
    async def root():
        """Root endpoint with API info."""
        return {
            "service": "Catalog Sync Backend",
            "version": __version__,
            "status": "running",
            "docs": "/docs" if settings.debug else "disabled",
            "scheduler": "disabled" if settings.disable_scheduler else "enabled",
        }

    @app.get("/health")
    async def health():
        """Health check for load balancers."""
        return {"status": "healthy"}

    @app.get("/health/tmdb")
    async def tmdb_health(client: TMDBClient = Depends(get_tmdb_client)):
        """Upstream TMDB reachability and latency."""
        return await client.health_check()

    return app


app = create_app()
