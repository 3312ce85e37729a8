"""
Tests for Retry Policy

Backoff per error class and re-raising once retries run out.
"""

import httpx
import pytest
from unittest.mock import AsyncMock

from catalog_sync.services.retry import ErrorClass, RetryPolicy, classify_error


def status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.themoviedb.org/3/movie/1")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


def test_classify_error():
    assert classify_error(status_error(429)) == ErrorClass.RATE_LIMITED
    assert classify_error(status_error(503)) == ErrorClass.SERVER_ERROR
    assert classify_error(status_error(404)) == ErrorClass.PERMANENT
    assert classify_error(httpx.ConnectError("refused")) == ErrorClass.NETWORK
    assert classify_error(ValueError("boom")) == ErrorClass.PERMANENT


def test_rate_limited_backoff_is_exponential_and_capped():
    policy = RetryPolicy(max_retries=5, base_delay=1.0, max_delay=10.0)
    delays = [policy.next_delay(ErrorClass.RATE_LIMITED, attempt) for attempt in range(6)]
    assert delays == [1.0, 2.0, 4.0, 8.0, 10.0, None]


def test_server_error_backoff_is_linear():
    policy = RetryPolicy()
    delays = [policy.next_delay(ErrorClass.SERVER_ERROR, attempt) for attempt in range(4)]
    assert delays == [1.0, 2.0, 3.0, None]


def test_network_error_retried_once():
    policy = RetryPolicy()
    assert policy.next_delay(ErrorClass.NETWORK, 0) == 2.0
    assert policy.next_delay(ErrorClass.NETWORK, 1) is None


def test_permanent_error_not_retried():
    assert RetryPolicy().next_delay(ErrorClass.PERMANENT, 0) is None


@pytest.mark.asyncio
async def test_run_retries_rate_limit_then_succeeds():
    sleep = AsyncMock()
    policy = RetryPolicy(sleep=sleep)
    operation = AsyncMock(side_effect=[status_error(429), status_error(429), {"ok": True}])

    result = await policy.run(operation)

    assert result == {"ok": True}
    assert operation.await_count == 3
    assert [call.args[0] for call in sleep.await_args_list] == [1.0, 2.0]


@pytest.mark.asyncio
async def test_run_does_not_retry_client_errors():
    sleep = AsyncMock()
    policy = RetryPolicy(sleep=sleep)
    operation = AsyncMock(side_effect=status_error(404))

    with pytest.raises(httpx.HTTPStatusError):
        await policy.run(operation)

    assert operation.await_count == 1
    sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_run_reraises_original_error_when_exhausted():
    policy = RetryPolicy(max_retries=2, sleep=AsyncMock())
    final = status_error(502)
    operation = AsyncMock(side_effect=[status_error(500), status_error(503), final])

    with pytest.raises(httpx.HTTPStatusError) as exc_info:
        await policy.run(operation)

    assert exc_info.value is final
    assert operation.await_count == 3


@pytest.mark.asyncio
async def test_run_retries_network_failure_once():
    policy = RetryPolicy(sleep=AsyncMock())
    operation = AsyncMock(side_effect=[httpx.ConnectError("reset"), "done"])

    assert await policy.run(operation) == "done"

    operation = AsyncMock(side_effect=httpx.ConnectError("down"))
    with pytest.raises(httpx.ConnectError):
        await policy.run(operation)
    assert operation.await_count == 2
