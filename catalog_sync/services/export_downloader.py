"""
TMDB Daily Export Downloader

TMDB publishes a gzipped, newline-delimited JSON file of every known id per
content kind each day:

    http://files.tmdb.org/p/exports/movie_ids_MM_DD_YYYY.json.gz

Files appear some hours after midnight UTC and old ones expire, so the
newest available date is found by probing backwards with HEAD requests.
"""

import json
import zlib
from datetime import date, timedelta
from typing import AsyncIterator, Optional

import httpx
from pydantic import ValidationError

from ..config import get_settings
from ..constants import EXPORT_KIND
from ..core.logging import get_logger
from ..models.tmdb import ExportItem

logger = get_logger(__name__)

# 16 + MAX_WBITS makes zlib expect a gzip header
GZIP_WBITS = 16 + zlib.MAX_WBITS
MISSING_EXPORT_STATUSES = (403, 404)


class ExportDownloader:

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None):
        settings = get_settings()
        self.base_url = settings.tmdb_export_base_url.rstrip("/")
        self.lookback_days = settings.export_lookback_days
        self._client = http_client or httpx.AsyncClient(
            timeout=settings.export_download_timeout_seconds,
            follow_redirects=True,
        )

    async def aclose(self):
        await self._client.aclose()

    def export_url(self, kind: str, export_date: date) -> str:
        """
        Args:
            kind: "movie" or "tv" (mapped to the export file prefix)
        """
        prefix = EXPORT_KIND.get(kind, kind)
        return (
            f"{self.base_url}/{prefix}_ids_"
            f"{export_date.month:02d}_{export_date.day:02d}_{export_date.year}.json.gz"
        )

    async def find_available_export_date(
        self,
        kind: str,
        start_date: date,
        max_days_back: Optional[int] = None,
    ) -> Optional[date]:
        """
        Newest date, from start_date going back, whose export exists.

        Returns None when none of the `max_days_back` dates has a file.
        """
        if max_days_back is None:
            max_days_back = self.lookback_days

        for offset in range(max_days_back):
            candidate = start_date - timedelta(days=offset)
            url = self.export_url(kind, candidate)

            try:
                response = await self._client.head(url, timeout=30.0)
            except httpx.HTTPError as e:
                logger.debug("export_probe_failed", kind=kind, date=candidate.isoformat(), error=str(e))
                continue

            if response.status_code == 200:
                logger.info("export_found", kind=kind, date=candidate.isoformat())
                return candidate

            logger.debug("export_not_available", kind=kind, date=candidate.isoformat(),
                         status=response.status_code)

        logger.warning(
            "export_not_found_in_window",
            kind=kind,
            start_date=start_date.isoformat(),
            days_checked=max_days_back,
        )
        return None

    async def download_and_decode(self, url: str) -> AsyncIterator[ExportItem]:
        """
        Stream, gunzip and parse an export file line by line.

        Malformed lines are skipped. A 404/403 yields nothing; other HTTP
        errors propagate.
        """
        logger.info("export_download_started", url=url)
        count = 0
        skipped = 0

        async with self._client.stream("GET", url) as response:
            if response.status_code in MISSING_EXPORT_STATUSES:
                logger.warning("export_file_missing", url=url, status=response.status_code)
                return
            response.raise_for_status()

            decompressor = zlib.decompressobj(GZIP_WBITS)
            pending = b""

            async for chunk in response.aiter_raw():
                pending += decompressor.decompress(chunk)
                *lines, pending = pending.split(b"\n")
                for line in lines:
                    item = self._parse_line(line)
                    if item is None:
                        skipped += bool(line.strip())
                        continue
                    count += 1
                    yield item

            pending += decompressor.flush()
            for line in pending.split(b"\n"):
                item = self._parse_line(line)
                if item is None:
                    skipped += bool(line.strip())
                    continue
                count += 1
                yield item

        logger.info("export_download_completed", url=url, items=count, skipped_lines=skipped)

    @staticmethod
    def _parse_line(line: bytes) -> Optional[ExportItem]:
        line = line.strip()
        if not line:
            return None
        try:
            return ExportItem.model_validate(json.loads(line))
        except (ValueError, ValidationError):
            return None
