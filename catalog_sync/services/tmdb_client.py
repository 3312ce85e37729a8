"""
TMDB API Client

Async httpx client for the TMDB v3 API: popular lists, details and trending.
Every call goes through the shared RetryPolicy; 4xx responses other than
429 fail immediately so the caller can skip the item and move on.
"""

import time
from typing import Any, Dict, List, Optional

import httpx

from ..config import get_settings
from ..constants import TMDB_DEFAULT_LANGUAGE
from ..core.logging import get_logger
from ..models.tmdb import PopularPage, TMDBItem
from .retry import RetryPolicy

logger = get_logger(__name__)


class TMDBClient:
    """
    TMDB v3 client.

    Authenticates with the read access token (bearer) when configured,
    otherwise with the api_key query parameter.
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        settings = get_settings()
        self.base_url = settings.tmdb_base_url
        self.timeout = settings.tmdb_timeout_seconds
        self.debug_logs = settings.tmdb_debug_logs
        self.retry_policy = retry_policy or RetryPolicy()

        if http_client is None:
            headers = {"Accept": "application/json"}
            params = {}
            if settings.tmdb_read_access_token:
                headers["Authorization"] = f"Bearer {settings.tmdb_read_access_token}"
            elif settings.tmdb_api_key:
                params["api_key"] = settings.tmdb_api_key
            else:
                logger.warning("tmdb_credentials_not_set")

            http_client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                params=params,
                timeout=self.timeout,
            )
        self._client = http_client

    async def aclose(self):
        await self._client.aclose()

    async def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        async def send() -> Dict[str, Any]:
            if self.debug_logs:
                logger.debug("tmdb_request", path=path, params=params)
            response = await self._client.get(path, params=params)
            if response.is_error:
                self._log_error_response(path, response)
            response.raise_for_status()
            return response.json()

        return await self.retry_policy.run(send, description=f"GET {path}")

    def _log_error_response(self, path: str, response: httpx.Response):
        status = response.status_code
        if status == 401:
            logger.error("tmdb_auth_failed", path=path)
        elif status == 404:
            logger.warning("tmdb_not_found", path=path)
        elif status == 429 or status >= 500:
            logger.warning("tmdb_transient_error", path=path, status=status)
        else:
            logger.warning("tmdb_client_error", path=path, status=status, body=response.text[:200])

    async def get_popular(
        self,
        kind: str,
        page: int = 1,
        language: str = TMDB_DEFAULT_LANGUAGE,
    ) -> PopularPage:
        """
        One page of /movie/popular or /tv/popular.

        Args:
            kind: "movie" or "tv"
        """
        data = await self._get(f"/{kind}/popular", {"page": page, "language": language})
        return PopularPage(
            page=data.get("page") or page,
            items=[TMDBItem.model_validate(item) for item in data.get("results") or []],
            total_pages=data.get("total_pages") or 1,
            total_results=data.get("total_results") or 0,
        )

    async def get_details(
        self,
        kind: str,
        external_id: int,
        language: str = TMDB_DEFAULT_LANGUAGE,
    ) -> TMDBItem:
        """Details for one movie or TV series."""
        data = await self._get(f"/{kind}/{external_id}", {"language": language})
        return TMDBItem.model_validate(data)

    async def get_trending(
        self,
        media_type: str = "all",
        window: str = "week",
        language: str = TMDB_DEFAULT_LANGUAGE,
        page: int = 1,
    ) -> List[TMDBItem]:
        """
        One page of /trending/{media_type}/{window}.

        People are dropped from "all" results.
        """
        data = await self._get(
            f"/trending/{media_type}/{window}", {"language": language, "page": page}
        )
        items = []
        for raw in data.get("results") or []:
            if raw.get("media_type", media_type) == "person":
                continue
            item = TMDBItem.model_validate(raw)
            if item.media_type is None and media_type != "all":
                item.media_type = media_type
            items.append(item)
        return items

    async def health_check(self) -> Dict[str, Any]:
        """Probe the popular endpoint once, without retries."""
        start = time.monotonic()
        try:
            response = await self._client.get(
                "/movie/popular", params={"page": 1}, timeout=5.0
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            return {
                "status": "unhealthy",
                "responseTime": round((time.monotonic() - start) * 1000),
                "error": str(e),
            }

        elapsed_ms = round((time.monotonic() - start) * 1000)
        return {
            "status": "healthy" if elapsed_ms < 2000 else "degraded",
            "responseTime": elapsed_ms,
        }
