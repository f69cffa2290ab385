"""
ResilientFetcher - the single egress primitive used by every category chain.

Combines:
- CacheManager for response caching keyed by normalized URL
- RequestDeduplicator for concurrent requests to the same URL
- UserAgentRotator / ProxySelector for request identity
"""

import asyncio
from typing import Any

import httpx
from loguru import logger

from citygate.services.cache import MISSING, CacheManager
from citygate.services.deduplicator import RequestDeduplicator
from citygate.services.errors import (
    FetchFailedError,
    ProxyUnavailableError,
    RequestTimeoutError,
)
from citygate.services.identity import UserAgentRotator
from citygate.services.proxy import (
    ProxyCandidate,
    ProxySelector,
    TransportFactory,
    make_http_client,
)


class ResilientFetcher:
    """
    Cached, identity-rotating HTTP GET with a fixed deadline.

    Usage:
        fetcher = ResilientFetcher(cache, user_agents, proxies, production=True)
        payload = await fetcher.fetch(
            "https://api.openweathermap.org/data/2.5/forecast",
            params={"q": "Paris", "appid": key},
        )

    Failures are never retried here; the calling chain moves on to its
    next provider instead.
    """

    def __init__(
        self,
        cache: CacheManager,
        user_agents: UserAgentRotator,
        proxies: ProxySelector,
        production: bool,
        timeout: float = 10.0,
        proxy_max_retries: int = 5,
        transport_factory: TransportFactory | None = None,
        debug: bool = False,
    ):
        self._cache = cache
        self._user_agents = user_agents
        self._proxies = proxies
        self._production = production
        self._timeout = timeout
        self._proxy_max_retries = proxy_max_retries
        self._transport_factory = transport_factory
        self._deduplicator = RequestDeduplicator(debug=debug)

        # Pooled clients, one per egress route (None = direct)
        self._http_clients: dict[str | None, httpx.AsyncClient] = {}

    @property
    def environment(self) -> str:
        return "production" if self._production else "development"

    @property
    def cache(self) -> CacheManager:
        return self._cache

    async def fetch(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """
        Return the decoded JSON payload for ``url``.

        Raises:
            ProxyUnavailableError: Non-production mode and no proxy could be selected
            RequestTimeoutError: The call exceeded its deadline
            FetchFailedError: Transport error, non-2xx status or non-JSON body
        """
        cache_key = self._cache.generate_key(url, params)

        cached = await self._cache.get(cache_key)
        if cached is not MISSING:
            logger.info(f"Serving cached data for: {url}")
            return cached

        async def do_request() -> Any:
            data = await self._execute_request(url, params)
            await self._cache.set(cache_key, data)
            return data

        return await self._deduplicator.dedupe(cache_key, do_request)

    async def _execute_request(self, url: str, params: dict[str, Any] | None) -> Any:
        headers = {"User-Agent": self._user_agents.next()}

        proxy: ProxyCandidate | None = None
        if not self._production:
            try:
                proxy = await self._proxies.select(self._proxy_max_retries)
            except ProxyUnavailableError as e:
                logger.error(
                    f"Failed to fetch data with proxy rotation ({url}). Proxy details: {e}"
                )
                raise

        client = self._get_http_client(proxy)
        try:
            response = await asyncio.wait_for(
                client.get(url, params=params, headers=headers),
                timeout=self._timeout,
            )
            response.raise_for_status()
            return response.json()

        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.error(f"Request failed ({url}). Error: timeout")
            raise RequestTimeoutError(url, self.environment, self._timeout) from e

        except httpx.HTTPStatusError as e:
            logger.error(f"Request failed ({url}). Error: HTTP {e.response.status_code}")
            raise FetchFailedError(
                url, self.environment, f"HTTP {e.response.status_code}"
            ) from e

        except httpx.HTTPError as e:
            logger.error(f"Request failed ({url}). Error: {e!r}")
            raise FetchFailedError(url, self.environment, str(e) or repr(e)) from e

        except ValueError as e:
            logger.error(f"Request failed ({url}). Error: invalid JSON body")
            raise FetchFailedError(url, self.environment, "invalid JSON body") from e

    def _get_http_client(self, proxy: ProxyCandidate | None) -> httpx.AsyncClient:
        route = proxy.url if proxy else None
        client = self._http_clients.get(route)
        if client is None:
            client = make_http_client(proxy, self._timeout, self._transport_factory)
            self._http_clients[route] = client
        return client

    async def close(self) -> None:
        """Close pooled HTTP clients and cancel in-flight requests."""
        await self._deduplicator.cancel_all()
        clients = list(self._http_clients.values())
        self._http_clients.clear()
        for client in clients:
            await client.aclose()
        logger.debug("ResilientFetcher closed")

    async def __aenter__(self) -> "ResilientFetcher":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def get_health_status(self) -> dict[str, Any]:
        return {
            "environment": self.environment,
            "cache": self._cache.get_stats().to_dict(),
            "in_flight": self._deduplicator.pending(),
            "proxy_candidates": len(self._proxies.candidates),
        }
