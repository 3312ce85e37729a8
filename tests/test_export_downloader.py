"""
Tests for Export Downloader

Export discovery by HEAD probing and streamed gzip NDJSON decoding.
"""

import gzip
import json
from datetime import date

import httpx
import pytest

from catalog_sync.services.export_downloader import ExportDownloader


def make_downloader(handler) -> ExportDownloader:
    return ExportDownloader(
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )


def test_export_url_uses_kind_prefix_and_us_date_format():
    downloader = make_downloader(lambda request: httpx.Response(200))

    assert downloader.export_url("movie", date(2024, 3, 7)) == (
        "http://files.tmdb.org/p/exports/movie_ids_03_07_2024.json.gz"
    )
    assert downloader.export_url("tv", date(2024, 12, 25)) == (
        "http://files.tmdb.org/p/exports/tv_series_ids_12_25_2024.json.gz"
    )


@pytest.mark.asyncio
async def test_find_available_export_date_walks_back():
    probed = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "HEAD"
        probed.append(request.url.path)
        if request.url.path.endswith("movie_ids_05_08_2024.json.gz"):
            return httpx.Response(200)
        return httpx.Response(404)

    downloader = make_downloader(handler)
    found = await downloader.find_available_export_date("movie", date(2024, 5, 10))

    assert found == date(2024, 5, 8)
    assert len(probed) == 3


@pytest.mark.asyncio
async def test_find_available_export_date_gives_up_after_window():
    probed = []

    def handler(request: httpx.Request) -> httpx.Response:
        probed.append(request.url.path)
        return httpx.Response(404)

    downloader = make_downloader(handler)
    found = await downloader.find_available_export_date("tv", date(2024, 5, 10))

    assert found is None
    assert len(probed) == 7


@pytest.mark.asyncio
async def test_find_available_export_date_with_zero_window_sends_nothing():
    probed = []

    def handler(request: httpx.Request) -> httpx.Response:
        probed.append(request.url.path)
        return httpx.Response(200)

    downloader = make_downloader(handler)
    found = await downloader.find_available_export_date("movie", date(2024, 5, 10), 0)

    assert found is None
    assert probed == []


class ChunkedStream(httpx.AsyncByteStream):
    """Serves a body in small fixed-size chunks, like a slow download."""

    def __init__(self, body: bytes, chunk_size: int):
        self.body = body
        self.chunk_size = chunk_size

    async def __aiter__(self):
        for start in range(0, len(self.body), self.chunk_size):
            yield self.body[start:start + self.chunk_size]


@pytest.mark.asyncio
async def test_download_and_decode_skips_malformed_lines():
    lines = [
        json.dumps({"id": 1, "adult": False, "original_title": "A", "popularity": 1.5}),
        "{not json",
        json.dumps({"id": 2, "adult": True}),
        "",
        json.dumps({"original_title": "missing id"}),
    ]
    lines.extend(json.dumps({"id": tmdb_id, "popularity": tmdb_id / 10}) for tmdb_id in range(3, 2003))
    lines.append("{bad")
    body = gzip.compress("\n".join(lines).encode("utf-8"))

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, stream=ChunkedStream(body, 37))

    downloader = make_downloader(handler)
    items = [item async for item in downloader.download_and_decode("http://exports/movie.json.gz")]

    assert len(items) == 2002
    assert [(item.id, item.adult) for item in items[:3]] == [(1, False), (2, True), (3, False)]
    assert [item.id for item in items] == list(range(1, 2003))
    assert items[-1].popularity == pytest.approx(200.2)


@pytest.mark.asyncio
async def test_download_of_missing_file_yields_nothing():
    downloader = make_downloader(lambda request: httpx.Response(404))

    items = [item async for item in downloader.download_and_decode("http://exports/gone.json.gz")]

    assert items == []


@pytest.mark.asyncio
async def test_download_server_error_propagates():
    downloader = make_downloader(lambda request: httpx.Response(500))

    with pytest.raises(httpx.HTTPStatusError):
        async for _ in downloader.download_and_decode("http://exports/broken.json.gz"):
            pass
