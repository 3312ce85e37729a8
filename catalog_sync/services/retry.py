"""
Retry Policy

One reusable policy for upstream HTTP calls, parameterized by error class:

- 429 (rate limited): exponential backoff, base * 2^attempt, capped
- 5xx (server error): linear backoff, base * (attempt + 1), capped
- network failure (no response): a single retry after a fixed delay
- other 4xx and anything else: not retried

When retries run out the original exception is re-raised.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar

import httpx

from ..core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class ErrorClass(str, Enum):
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    NETWORK = "network"
    PERMANENT = "permanent"


def classify_error(exc: BaseException) -> ErrorClass:
    """Map an httpx exception onto the retry taxonomy."""
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status == 429:
            return ErrorClass.RATE_LIMITED
        if 500 <= status < 600:
            return ErrorClass.SERVER_ERROR
        return ErrorClass.PERMANENT

    if isinstance(exc, httpx.TransportError):
        return ErrorClass.NETWORK

    return ErrorClass.PERMANENT


@dataclass
class RetryPolicy:
    """Delays are in seconds."""
    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    network_retries: int = 1
    network_delay: float = 2.0
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    def next_delay(self, error_class: ErrorClass, attempt: int) -> Optional[float]:
        """
        Delay before retry number `attempt` (0-based), or None to give up.
        """
        if error_class == ErrorClass.RATE_LIMITED and attempt < self.max_retries:
            return min(self.base_delay * (2 ** attempt), self.max_delay)

        if error_class == ErrorClass.SERVER_ERROR and attempt < self.max_retries:
            return min(self.base_delay * (attempt + 1), self.max_delay)

        if error_class == ErrorClass.NETWORK and attempt < self.network_retries:
            return self.network_delay

        return None

    async def run(self, operation: Callable[[], Awaitable[T]], description: str = "request") -> T:
        """Call `operation` until it succeeds or the policy gives up."""
        attempt = 0
        while True:
            try:
                return await operation()
            except (httpx.HTTPStatusError, httpx.TransportError) as exc:
                error_class = classify_error(exc)
                delay = self.next_delay(error_class, attempt)

                if delay is None:
                    if error_class != ErrorClass.PERMANENT:
                        logger.error(
                            "retries_exhausted",
                            request=description,
                            error_class=error_class.value,
                            attempts=attempt + 1,
                        )
                    raise

                logger.warning(
                    "request_retry_scheduled",
                    request=description,
                    error_class=error_class.value,
                    delay_seconds=delay,
                    attempt=attempt + 1,
                )
                await self.sleep(delay)
                attempt += 1
