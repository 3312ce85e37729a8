"""
Tests for Catalog Cleanup

Trimming keeps the most recently updated rows (ties broken by id).
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from catalog_sync.models.entities import Movie, TVSeries
from catalog_sync.services.catalog_cleanup import CatalogCleanupService
from catalog_sync.services.sync_settings import UNLIMITED, CatalogLimits

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


async def seed(session_factory, model, rows):
    """rows: [(tmdb_id, hours_after_base)], inserted in order."""
    async with session_factory() as session:
        for tmdb_id, hours in rows:
            session.add(model(
                tmdb_id=tmdb_id,
                title=f"Title {tmdb_id}",
                last_updated=BASE_TIME + timedelta(hours=hours),
            ))
        await session.commit()


async def remaining_tmdb_ids(session_factory, model):
    async with session_factory() as session:
        return set(await session.scalars(select(model.tmdb_id)))


@pytest.fixture
def cleanup(session_factory):
    return CatalogCleanupService(session_factory)


@pytest.mark.asyncio
async def test_trim_keeps_most_recent_rows(session_factory, cleanup):
    await seed(session_factory, Movie, [(1, 5), (2, 1), (3, 4), (4, 2), (5, 3)])

    deleted = await cleanup.trim_to_limit("movie", 3)

    assert deleted == 2
    assert await remaining_tmdb_ids(session_factory, Movie) == {1, 3, 5}


@pytest.mark.asyncio
async def test_trim_breaks_timestamp_ties_by_id(session_factory, cleanup):
    await seed(session_factory, Movie, [(10, 1), (11, 1), (12, 1), (13, 0)])

    deleted = await cleanup.trim_to_limit("movie", 2)

    assert deleted == 2
    # Same timestamp: the later-inserted (higher id) rows win
    assert await remaining_tmdb_ids(session_factory, Movie) == {11, 12}


@pytest.mark.asyncio
async def test_trim_under_limit_deletes_nothing(session_factory, cleanup):
    await seed(session_factory, TVSeries, [(1, 0), (2, 1)])

    assert await cleanup.trim_to_limit("tv", 5) == 0
    assert await remaining_tmdb_ids(session_factory, TVSeries) == {1, 2}


@pytest.mark.asyncio
@pytest.mark.parametrize("limit", [0, UNLIMITED])
async def test_trim_skipped_for_zero_or_unlimited(session_factory, cleanup, limit):
    await seed(session_factory, Movie, [(1, 0), (2, 1), (3, 2)])

    assert await cleanup.trim_to_limit("movie", limit) == 0
    assert await remaining_tmdb_ids(session_factory, Movie) == {1, 2, 3}


@pytest.mark.asyncio
async def test_trim_catalog_applies_each_kind_limit(session_factory, cleanup):
    await seed(session_factory, Movie, [(1, 0), (2, 1), (3, 2)])
    await seed(session_factory, TVSeries, [(7, 0), (8, 1)])

    result = await cleanup.trim_catalog(CatalogLimits(movie=1, tv=UNLIMITED, trending=10))

    assert result == {"movie": 2, "tv": 0}
    assert await remaining_tmdb_ids(session_factory, Movie) == {3}
    assert await remaining_tmdb_ids(session_factory, TVSeries) == {7, 8}
