"""Tests for the resilient fetcher."""

import asyncio

import httpx
import pytest

from citygate.services.errors import (
    FetchFailedError,
    ProxyUnavailableError,
    RequestTimeoutError,
)
from citygate.services.proxy import ProxyCandidate

pytestmark = pytest.mark.anyio

URL = "https://api.example.com/data"
PROBE_URL = "https://httpbin.org/ip"


async def test_second_fetch_within_ttl_is_served_from_cache(fetcher, upstream) -> None:
    upstream.json(URL, {"value": 1})

    first = await fetcher.fetch(URL, {"q": "Paris"})
    second = await fetcher.fetch(URL, {"q": "Paris"})

    assert first == second == {"value": 1}
    assert upstream.count(URL) == 1


async def test_fetch_after_ttl_expiry_hits_network_again(
    make_fetcher, upstream, clock
) -> None:
    upstream.json(URL, {"value": 1})
    async with make_fetcher(ttl=60) as fetcher:
        await fetcher.fetch(URL)
        clock.advance(61)
        await fetcher.fetch(URL)

    assert upstream.count(URL) == 2


async def test_different_params_are_cached_separately(fetcher, upstream) -> None:
    upstream.json(URL, {"value": 1})

    await fetcher.fetch(URL, {"q": "Paris"})
    await fetcher.fetch(URL, {"q": "Lyon"})

    assert upstream.count(URL) == 2


async def test_concurrent_fetches_share_one_request(fetcher, upstream) -> None:
    async def slow(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(0.05)
        return httpx.Response(200, json={"value": 2})

    upstream.handle(URL, slow)

    results = await asyncio.gather(*(fetcher.fetch(URL) for _ in range(5)))

    assert results == [{"value": 2}] * 5
    assert upstream.count(URL) == 1


async def test_cancelled_caller_still_populates_cache(fetcher, upstream) -> None:
    async def slow(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(0.05)
        return httpx.Response(200, json={"value": 3})

    upstream.handle(URL, slow)

    caller = asyncio.create_task(fetcher.fetch(URL))
    await asyncio.sleep(0.01)
    caller.cancel()
    with pytest.raises(asyncio.CancelledError):
        await caller

    await asyncio.sleep(0.1)

    assert await fetcher.cache.get(URL) == {"value": 3}
    assert await fetcher.fetch(URL) == {"value": 3}
    assert upstream.count(URL) == 1


async def test_json_null_body_is_cached(fetcher, upstream) -> None:
    upstream.handle(
        URL,
        lambda request: httpx.Response(
            200, content=b"null", headers={"Content-Type": "application/json"}
        ),
    )

    assert await fetcher.fetch(URL) is None
    assert await fetcher.fetch(URL) is None
    assert upstream.count(URL) == 1


async def test_non_2xx_fails_and_is_not_cached(fetcher, upstream) -> None:
    upstream.fail(URL, status_code=503)

    with pytest.raises(FetchFailedError) as exc_info:
        await fetcher.fetch(URL)
    assert exc_info.value.url == URL
    assert exc_info.value.environment == "production"
    assert "HTTP 503" in str(exc_info.value)

    with pytest.raises(FetchFailedError):
        await fetcher.fetch(URL)
    assert upstream.count(URL) == 2


async def test_transport_timeout_is_classified(fetcher, upstream) -> None:
    upstream.timeout(URL)

    with pytest.raises(RequestTimeoutError):
        await fetcher.fetch(URL)


async def test_deadline_bounds_the_whole_call(make_fetcher, upstream) -> None:
    async def hang(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200, json={})

    upstream.handle(URL, hang)
    async with make_fetcher(timeout=0.05) as fetcher:
        with pytest.raises(RequestTimeoutError) as exc_info:
            await fetcher.fetch(URL)

    assert exc_info.value.timeout == 0.05


async def test_invalid_json_body_fails(fetcher, upstream) -> None:
    upstream.handle(URL, lambda request: httpx.Response(200, text="<html>oops</html>"))

    with pytest.raises(FetchFailedError, match="invalid JSON"):
        await fetcher.fetch(URL)


async def test_network_error_fails(fetcher, upstream) -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    upstream.handle(URL, refuse)

    with pytest.raises(FetchFailedError, match="connection refused"):
        await fetcher.fetch(URL)


async def test_each_request_carries_a_user_agent(fetcher, upstream) -> None:
    upstream.json(URL, {})

    await fetcher.fetch(URL, {"page": 1})
    await fetcher.fetch(URL, {"page": 2})

    agents = [request.headers["User-Agent"] for request in upstream.calls]
    assert len(agents) == 2
    assert all(agent.startswith("Mozilla/5.0") for agent in agents)


async def test_production_mode_egresses_directly(fetcher, upstream) -> None:
    upstream.json(URL, {})

    await fetcher.fetch(URL)

    assert upstream.transports_for == [None]


async def test_development_mode_without_proxy_fails_fetch(make_fetcher, upstream) -> None:
    upstream.json(URL, {"value": 1})

    async with make_fetcher(production=False) as fetcher:
        with pytest.raises(ProxyUnavailableError):
            await fetcher.fetch(URL)

    assert upstream.count(URL) == 0


async def test_development_mode_routes_through_valid_proxy(
    make_fetcher, upstream
) -> None:
    proxy = ProxyCandidate(host="10.1.1.1", port=8080)
    upstream.json(PROBE_URL, {"origin": "10.1.1.1"})
    upstream.json(URL, {"value": 1})

    async with make_fetcher(production=False, proxies=[proxy]) as fetcher:
        assert await fetcher.fetch(URL) == {"value": 1}
        # Cache hit: no further proxy check or request
        assert await fetcher.fetch(URL) == {"value": 1}

    assert upstream.count(PROBE_URL) == 1
    assert upstream.count(URL) == 1
    assert upstream.transports_for == [proxy, proxy]


async def test_health_status_reports_cache(fetcher, upstream) -> None:
    upstream.json(URL, {})
    await fetcher.fetch(URL)

    status = fetcher.get_health_status()

    assert status["environment"] == "production"
    assert status["cache"]["size"] == 1
    assert status["in_flight"] == 0
