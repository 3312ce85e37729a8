"""
Tests for Catalog, Trending and Translation Repositories
"""

import pytest

from catalog_sync.core.exceptions import NotFoundError


@pytest.mark.asyncio
async def test_upsert_skip_if_exists_leaves_row_untouched(movie_repository, item_factory):
    original = item_factory(1, title="Original")
    _, created = await movie_repository.upsert_by_tmdb_id(1, original.to_catalog_fields("movie"))
    assert created is True
    first_updated = (await movie_repository.find_by_tmdb_id(1)).last_updated

    changed = item_factory(1, title="Changed")
    _, created = await movie_repository.upsert_by_tmdb_id(1, changed.to_catalog_fields("movie"))

    assert created is False
    stored = await movie_repository.find_by_tmdb_id(1)
    assert stored.title == "Original"
    assert stored.last_updated == first_updated
    assert await movie_repository.count() == 1


@pytest.mark.asyncio
async def test_upsert_overwrite_updates_fields(movie_repository, item_factory):
    await movie_repository.upsert_by_tmdb_id(1, item_factory(1, title="Old").to_catalog_fields("movie"))

    _, created = await movie_repository.upsert_by_tmdb_id(
        1, item_factory(1, title="New", vote_average=9.1).to_catalog_fields("movie"), overwrite=True
    )

    assert created is False
    stored = await movie_repository.find_by_tmdb_id(1)
    assert stored.title == "New"
    assert stored.vote_average == pytest.approx(9.1)
    assert await movie_repository.count() == 1


@pytest.mark.asyncio
async def test_find_all_paginates_by_popularity(movie_repository, item_factory):
    for tmdb_id in range(1, 6):
        await movie_repository.upsert_by_tmdb_id(tmdb_id, item_factory(tmdb_id).to_catalog_fields("movie"))

    result = await movie_repository.find_all(page=2, limit=2)

    assert result.total == 5
    assert result.total_pages == 3
    assert [m.tmdb_id for m in result.data] == [3, 2]


@pytest.mark.asyncio
async def test_find_all_filters_by_year_and_hides_blocked(movie_repository, item_factory):
    await movie_repository.upsert_by_tmdb_id(1, item_factory(1, release_date="2020-01-01").to_catalog_fields("movie"))
    await movie_repository.upsert_by_tmdb_id(2, item_factory(2, release_date="2023-01-01").to_catalog_fields("movie"))
    await movie_repository.upsert_by_tmdb_id(3, item_factory(3, release_date="2023-05-01").to_catalog_fields("movie"))
    await movie_repository.upsert_by_tmdb_id(3, {"is_blocked": True}, overwrite=True)

    result = await movie_repository.find_all(year=2023)
    assert [m.tmdb_id for m in result.data] == [2]

    result = await movie_repository.find_all(year=2023, include_blocked=True)
    assert {m.tmdb_id for m in result.data} == {2, 3}


@pytest.mark.asyncio
async def test_search_matches_title_case_insensitively(tv_repository, item_factory):
    await tv_repository.upsert_by_tmdb_id(1, item_factory(1, name="Breaking Bad", title=None).to_catalog_fields("tv"))
    await tv_repository.upsert_by_tmdb_id(2, item_factory(2, name="Better Call Saul", title=None).to_catalog_fields("tv"))

    result = await tv_repository.search("breaking")

    assert [s.title for s in result.data] == ["Breaking Bad"]
    assert (await tv_repository.search("   ")).total == 0


@pytest.mark.asyncio
async def test_trending_hidden_state_and_clear(trending_repository, item_factory):
    for tmdb_id, media_type in [(1, "movie"), (1, "tv"), (2, "movie")]:
        await trending_repository.upsert_by_tmdb_id_and_type(
            tmdb_id, media_type, item_factory(tmdb_id).to_trending_fields()
        )

    await trending_repository.set_hidden_status(1, "tv", True, "spoilers")

    states = await trending_repository.hidden_states()
    assert states[(1, "tv")].is_hidden is True
    assert states[(1, "tv")].hidden_reason == "spoilers"
    assert states[(1, "movie")].is_hidden is False

    visible, total = await trending_repository.find_all()
    assert total == 2
    assert (1, "tv") not in {(row.tmdb_id, row.media_type) for row in visible}

    assert await trending_repository.clear_all() == 3
    assert await trending_repository.hidden_states() == {}


@pytest.mark.asyncio
async def test_set_hidden_status_unknown_item(trending_repository):
    with pytest.raises(NotFoundError):
        await trending_repository.set_hidden_status(404, "movie", True)


@pytest.mark.asyncio
async def test_translation_upsert_normalizes_language(translation_repository):
    await translation_repository.upsert(550, "movie", "vi", "Tiêu đề", "Mô tả")
    row = await translation_repository.find_by_tmdb_id(550, "movie", "vi-VN")
    assert row.language == "vi-VN"
    assert row.title == "Tiêu đề"

    # None keeps the stored value; lookup by a legacy tag finds the same row
    await translation_repository.upsert(550, "movie", "vi_vn", "Tiêu đề mới", None)
    row = await translation_repository.find_by_tmdb_id(550, "movie", "vi")
    assert row.title == "Tiêu đề mới"
    assert row.overview == "Mô tả"


@pytest.mark.asyncio
async def test_translation_bulk_upsert_dedupes(translation_repository):
    written = await translation_repository.bulk_upsert([
        {"tmdb_id": 1, "content_type": "tv", "language": "vi", "title": "A"},
        {"tmdb_id": 1, "content_type": "tv", "language": "vi-VN", "title": "B"},
        {"tmdb_id": 2, "content_type": "tv", "language": "en", "title": "C"},
    ])

    assert written == 2
    rows = await translation_repository.find_by_tmdb_ids([1, 2], "tv", "vi-VN")
    assert [(r.tmdb_id, r.title) for r in rows] == [(1, "B")]
