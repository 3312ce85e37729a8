"""
Tests for Data Sync (popular + trending)

Runs against SQLite repositories with an in-memory TMDB client.
"""

import pytest
from unittest.mock import AsyncMock

from catalog_sync.models.sync import SyncSettingsUpdate
from catalog_sync.services.data_sync import DataSyncService, ProgressTracker


@pytest.fixture
def make_service(movie_repository, tv_repository, trending_repository, settings_service, no_sleep):
    def _make(client):
        return DataSyncService(
            client,
            movie_repository,
            tv_repository,
            trending_repository,
            settings_service,
            sleep=no_sleep,
        )
    return _make


def pages_of(item_factory, pages, per_page, start=1, **overrides):
    """`pages` pages of `per_page` items with consecutive ids."""
    return [
        [item_factory(start + p * per_page + i, **overrides) for i in range(per_page)]
        for p in range(pages)
    ]


def test_progress_tracker_logs_by_page_step_or_interval():
    now = [0.0]
    tracker = ProgressTracker(page_step=100, interval_seconds=600, clock=lambda: now[0])

    assert tracker.should_log(1) is True
    assert tracker.should_log(2) is False
    assert tracker.should_log(101) is True

    now[0] = 601.0
    assert tracker.should_log(102) is True
    assert tracker.should_log(103) is False


def test_progress_tracker_state_is_per_instance():
    first = ProgressTracker(clock=lambda: 0.0)
    second = ProgressTracker(clock=lambda: 0.0)

    assert first.should_log(1) is True
    assert second.should_log(1) is True


@pytest.mark.asyncio
async def test_zero_limit_makes_no_api_calls(
    make_service, settings_service, fake_client_factory, item_factory
):
    await settings_service.update_settings(SyncSettingsUpdate(movieCatalogLimit=0))
    client = fake_client_factory(popular={"movie": pages_of(item_factory, 2, 5)})

    result = await make_service(client).sync_popular("movie")

    assert result.skipped is True
    assert client.calls == []


@pytest.mark.asyncio
async def test_popular_sync_never_exceeds_limit(
    make_service, settings_service, movie_repository, fake_client_factory, item_factory
):
    await settings_service.update_settings(SyncSettingsUpdate(movieCatalogLimit=5))
    client = fake_client_factory(popular={"movie": pages_of(item_factory, 10, 4)}, total_pages=10)

    result = await make_service(client).sync_popular("movie")

    assert result.page_cap == 2
    assert result.items_processed == 5
    assert await movie_repository.count() == 5
    assert client.calls == [("popular", "movie", 1), ("popular", "movie", 2)]


@pytest.mark.asyncio
async def test_popular_sync_skips_existing_rows(
    make_service, movie_repository, fake_client_factory, item_factory
):
    await movie_repository.upsert_by_tmdb_id(1, item_factory(1, title="Curated").to_catalog_fields("movie"))
    client = fake_client_factory(popular={"movie": pages_of(item_factory, 1, 3)})

    result = await make_service(client).sync_popular("movie")

    assert result.created == 2
    assert (await movie_repository.find_by_tmdb_id(1)).title == "Curated"


@pytest.mark.asyncio
async def test_popular_sync_stops_on_empty_page(
    make_service, settings_service, tv_repository, fake_client_factory, item_factory
):
    await settings_service.update_settings(SyncSettingsUpdate(tvCatalogLimit=-1))
    client = fake_client_factory(
        popular={"tv": pages_of(item_factory, 2, 3, name="Show", title=None)}, total_pages=50
    )

    result = await make_service(client).sync_popular("tv")

    assert result.page_cap == 50
    assert result.pages_synced == 2
    assert await tv_repository.count() == 6
    assert len(client.calls) == 3


@pytest.mark.asyncio
async def test_popular_sync_failure_is_reported_not_raised(make_service, fake_client_factory):
    client = fake_client_factory()
    client.get_popular = AsyncMock(side_effect=RuntimeError("upstream down"))

    result = await make_service(client).sync_popular("movie")

    assert result.error == "upstream down"


@pytest.mark.asyncio
async def test_trending_sync_preserves_hidden_state(
    make_service, trending_repository, fake_client_factory, item_factory
):
    await trending_repository.upsert_by_tmdb_id_and_type(
        1, "movie", item_factory(1).to_trending_fields()
    )
    await trending_repository.upsert_by_tmdb_id_and_type(
        9, "tv", item_factory(9).to_trending_fields()
    )
    await trending_repository.set_hidden_status(1, "movie", True, "offensive poster")

    client = fake_client_factory(trending=[[
        item_factory(1, media_type="movie", title="Refreshed"),
        item_factory(2, media_type="tv", name="New Show", title=None),
    ]])

    result = await make_service(client).sync_trending()

    assert result.items_synced == 2
    assert result.hidden_restored == 1

    hidden = await trending_repository.find_by_tmdb_id_and_type(1, "movie")
    assert hidden.is_hidden is True
    assert hidden.hidden_reason == "offensive poster"
    assert hidden.hidden_at is not None
    assert hidden.title == "Refreshed"

    fresh = await trending_repository.find_by_tmdb_id_and_type(2, "tv")
    assert fresh.is_hidden is False
    assert await trending_repository.find_by_tmdb_id_and_type(9, "tv") is None


@pytest.mark.asyncio
async def test_trending_pull_failure_leaves_table_intact(
    make_service, trending_repository, fake_client_factory, item_factory
):
    await trending_repository.upsert_by_tmdb_id_and_type(
        1, "movie", item_factory(1).to_trending_fields()
    )
    client = fake_client_factory()
    client.get_trending = AsyncMock(side_effect=RuntimeError("timeout"))

    result = await make_service(client).sync_trending()

    assert result.error == "timeout"
    assert await trending_repository.find_by_tmdb_id_and_type(1, "movie") is not None


@pytest.mark.asyncio
async def test_trending_sync_honors_limit(
    make_service, settings_service, trending_repository, fake_client_factory, item_factory
):
    await settings_service.update_settings(SyncSettingsUpdate(trendingCatalogLimit=3))
    client = fake_client_factory(trending=pages_of(item_factory, 5, 2, media_type="movie"))

    result = await make_service(client).sync_trending()

    assert result.page_cap == 2
    assert result.items_synced == 3
    _, total = await trending_repository.find_all(include_hidden=True)
    assert total == 3


@pytest.mark.asyncio
async def test_trending_sync_drops_repeats_across_pages(
    make_service, settings_service, trending_repository, fake_client_factory, item_factory
):
    await settings_service.update_settings(SyncSettingsUpdate(trendingCatalogLimit=5))
    def movie(tmdb_id):
        return item_factory(tmdb_id, media_type="movie")

    client = fake_client_factory(trending=[
        [movie(1), movie(2)],
        [movie(2), item_factory(2, media_type="tv", name="Two", title=None)],
        [movie(1), movie(3)],
    ])

    result = await make_service(client).sync_trending()

    assert result.page_cap == 3
    assert result.items_synced == 4
    rows, total = await trending_repository.find_all(include_hidden=True)
    assert total == 4
    assert sorted((row.tmdb_id, row.media_type) for row in rows) == [
        (1, "movie"), (2, "movie"), (2, "tv"), (3, "movie")
    ]


@pytest.mark.asyncio
async def test_sync_all_continues_after_one_kind_fails(
    make_service, tv_repository, fake_client_factory, item_factory
):
    client = fake_client_factory(
        popular={"tv": pages_of(item_factory, 1, 2, name="Show", title=None)},
        trending=[[item_factory(100, media_type="movie")]],
    )
    real_get_popular = client.get_popular

    async def get_popular(kind, page=1, language="en-US"):
        if kind == "movie":
            raise RuntimeError("movie endpoint broken")
        return await real_get_popular(kind, page, language)

    client.get_popular = get_popular

    result = await make_service(client).sync_all()

    assert result.errors == ["movie endpoint broken"]
    assert await tv_repository.count() == 2
    assert result.trending.items_synced == 1
