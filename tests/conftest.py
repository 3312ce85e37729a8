"""
Pytest Fixtures

Shared database, repository and TMDB fakes for testing.
"""

import os

# Settings are cached on first read; fix the test environment before imports
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")
os.environ.setdefault("DISABLE_SCHEDULER", "true")
os.environ.setdefault("TMDB_API_KEY", "test-tmdb-key")
os.environ.setdefault("ENVIRONMENT", "test")

from typing import Any, Dict, List
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker

from catalog_sync.core.database import create_engine_for_url, init_db
from catalog_sync.models.tmdb import PopularPage, TMDBItem
from catalog_sync.repositories import (
    ContentTranslationRepository,
    MovieRepository,
    TrendingRepository,
    TVSeriesRepository,
)
from catalog_sync.services.sync_settings import SyncSettingsService


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Session factory over a fresh SQLite file per test."""
    engine = create_engine_for_url(f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}")
    await init_db(engine)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def movie_repository(session_factory):
    return MovieRepository(session_factory)


@pytest.fixture
def tv_repository(session_factory):
    return TVSeriesRepository(session_factory)


@pytest.fixture
def trending_repository(session_factory):
    return TrendingRepository(session_factory)


@pytest.fixture
def translation_repository(session_factory):
    return ContentTranslationRepository(session_factory)


@pytest.fixture
def settings_service(session_factory):
    return SyncSettingsService(session_factory)


@pytest.fixture
def no_sleep():
    """Replaces asyncio.sleep in services so tests never wait."""
    return AsyncMock()


def make_item(tmdb_id: int, **overrides) -> TMDBItem:
    data: Dict[str, Any] = {
        "id": tmdb_id,
        "title": f"Title {tmdb_id}",
        "overview": f"Overview {tmdb_id}",
        "release_date": "2023-06-01",
        "vote_average": 7.0,
        "vote_count": 500,
        "popularity": float(tmdb_id),
        "genre_ids": [28],
        "original_language": "en",
    }
    data.update(overrides)
    return TMDBItem.model_validate(data)


class FakeTMDBClient:
    """
    In-memory stand-in for TMDBClient.

    popular: {kind: [page1_items, page2_items, ...]}
    trending: [page1_items, page2_items, ...]
    """

    def __init__(self, popular=None, trending=None, total_pages=None):
        self.popular = popular or {}
        self.trending = trending or []
        self.total_pages = total_pages
        self.calls: List[tuple] = []

    async def get_popular(self, kind, page=1, language="en-US"):
        self.calls.append(("popular", kind, page))
        pages = self.popular.get(kind, [])
        items = pages[page - 1] if page <= len(pages) else []
        return PopularPage(
            page=page,
            items=items,
            total_pages=self.total_pages or len(pages),
            total_results=sum(len(p) for p in pages),
        )

    async def get_trending(self, media_type="all", window="week", language="en-US", page=1):
        self.calls.append(("trending", media_type, page))
        return self.trending[page - 1] if page <= len(self.trending) else []

    async def aclose(self):
        pass


@pytest.fixture
def item_factory():
    return make_item


@pytest.fixture
def fake_client_factory():
    return FakeTMDBClient
