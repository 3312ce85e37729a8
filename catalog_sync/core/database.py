"""
Database Engine

Async SQLAlchemy engine and session factory. Repositories receive the
session factory and open one short-lived session per operation, so
concurrent sync tasks never share a session.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ..config import get_settings
from .logging import get_logger

logger = get_logger(__name__)

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def create_engine_for_url(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine with pool settings suited to the dialect."""
    if url.startswith("sqlite"):
        # SQLite serializes writers; give concurrent batch items time to wait
        return create_async_engine(url, echo=echo, connect_args={"timeout": 30})

    return create_async_engine(
        url,
        echo=echo,
        pool_size=10,
        max_overflow=20,
        pool_timeout=30,
        pool_recycle=3600,
        pool_pre_ping=True,
    )


def get_engine() -> AsyncEngine:
    """Get or create the engine from settings."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_engine_for_url(settings.database_url, settings.database_echo)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the session factory bound to the engine."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_factory


async def init_db(engine: Optional[AsyncEngine] = None):
    """Create all tables that do not exist yet."""
    from ..models.entities import Base

    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_initialized", dialect=engine.dialect.name)


async def close_db():
    """Dispose the engine and reset the cached factory."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("database_closed")
    _engine = None
    _session_factory = None
