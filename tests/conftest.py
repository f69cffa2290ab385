"""
Shared fixtures.

Upstream providers are simulated with ``httpx.MockTransport``: routes are
keyed by scheme, host and path (query strings ignored) and every request is
recorded so tests can assert call counts.
"""

from collections.abc import AsyncGenerator, Callable
from typing import Any

import httpx
import pytest

from citygate.services.cache import CacheManager
from citygate.services.client import ResilientFetcher
from citygate.services.container import GatewayServices, build_services
from citygate.services.identity import UserAgentRotator
from citygate.services.proxy import ProxyCandidate, ProxySelector
from citygate.settings import Settings

Handler = Callable[[httpx.Request], Any]


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeUpstream:
    """Route table standing in for every third-party API."""

    def __init__(self) -> None:
        self.routes: dict[str, Handler] = {}
        self.calls: list[httpx.Request] = []
        self.transports_for: list[ProxyCandidate | None] = []

    @staticmethod
    def _key(url: httpx.URL | str) -> str:
        url = httpx.URL(str(url))
        return f"{url.scheme}://{url.host}{url.raw_path.split(b'?')[0].decode()}"

    def json(self, url: str, payload: Any, status_code: int = 200) -> None:
        self.routes[self._key(url)] = lambda request: httpx.Response(
            status_code, json=payload
        )

    def fail(self, url: str, status_code: int = 500) -> None:
        self.routes[self._key(url)] = lambda request: httpx.Response(
            status_code, json={"error": "upstream failure"}
        )

    def timeout(self, url: str) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        self.routes[self._key(url)] = handler

    def handle(self, url: str, handler: Handler) -> None:
        self.routes[self._key(url)] = handler

    def count(self, url: str) -> int:
        key = self._key(url)
        return sum(1 for request in self.calls if self._key(request.url) == key)

    async def dispatch(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        handler = self.routes.get(self._key(request.url))
        if handler is None:
            return httpx.Response(404, json={"error": "not found"})
        response = handler(request)
        if hasattr(response, "__await__"):
            response = await response
        return response

    def transport_factory(self, proxy: ProxyCandidate | None) -> httpx.MockTransport:
        self.transports_for.append(proxy)
        return httpx.MockTransport(self.dispatch)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        APP_ENV="production",
        REQUEST_TIMEOUT=2,
        OPENWEATHER_API_KEY="owm-key",
        WEATHERAPI_KEY="wapi-key",
        NEWSAPI_KEY="news-key",
        GNEWS_KEY="gnews-key",
        EVENTS_API_KEY="events-key",
        TRAFFIC_API_KEY="tomtom-key",
        GEOCODING_API_KEY="geo-key",
        GEONAMES_USERNAME="demo",
    )


@pytest.fixture
def dev_settings(settings: Settings) -> Settings:
    return settings.model_copy(update={"app_env": "development"})


@pytest.fixture
def make_fetcher(
    upstream: FakeUpstream, clock: FakeClock
) -> Callable[..., ResilientFetcher]:
    def factory(
        production: bool = True,
        proxies: list[ProxyCandidate] | None = None,
        timeout: float = 2.0,
        ttl: float = 3600.0,
    ) -> ResilientFetcher:
        selector = ProxySelector(
            proxies or [],
            production=production,
            transport_factory=upstream.transport_factory,
        )
        return ResilientFetcher(
            cache=CacheManager(default_ttl=ttl, clock=clock),
            user_agents=UserAgentRotator(),
            proxies=selector,
            production=production,
            timeout=timeout,
            proxy_max_retries=3,
            transport_factory=upstream.transport_factory,
        )

    return factory


@pytest.fixture
async def fetcher(
    make_fetcher: Callable[..., ResilientFetcher],
) -> AsyncGenerator[ResilientFetcher, None]:
    async with make_fetcher() as fetcher:
        yield fetcher


@pytest.fixture
async def services(
    settings: Settings, upstream: FakeUpstream
) -> AsyncGenerator[GatewayServices, None]:
    services = build_services(settings, transport_factory=upstream.transport_factory)
    yield services
    await services.close()
