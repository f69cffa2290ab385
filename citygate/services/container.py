"""
Explicit construction of the service graph.

Everything shared between requests (cache, proxy list, HTTP clients) is built
once here before the first request and handed to the aggregator.
"""

from dataclasses import dataclass

from loguru import logger

from citygate.datasource import (
    CityInfoSource,
    EventsSource,
    NewsSource,
    TrafficSource,
    WeatherSource,
)
from citygate.services.aggregator import CityAggregator
from citygate.services.cache import CacheManager
from citygate.services.client import ResilientFetcher
from citygate.services.identity import UserAgentRotator
from citygate.services.proxy import (
    ProxyCandidate,
    ProxySelector,
    TransportFactory,
    load_proxy_candidates,
)
from citygate.settings import Settings


@dataclass
class GatewayServices:
    settings: Settings
    cache: CacheManager
    proxies: ProxySelector
    fetcher: ResilientFetcher
    aggregator: CityAggregator

    async def close(self) -> None:
        await self.fetcher.close()


def build_services(
    settings: Settings,
    proxy_candidates: list[ProxyCandidate] | None = None,
    transport_factory: TransportFactory | None = None,
) -> GatewayServices:
    """
    Wire up the gateway for ``settings``.

    The proxy list is read from ``settings.proxy_list_path`` outside
    production unless ``proxy_candidates`` is given.
    """
    if settings.is_production:
        candidates: list[ProxyCandidate] = []
        logger.info("Production mode: proxy rotation disabled, egress is direct")
    elif proxy_candidates is not None:
        candidates = list(proxy_candidates)
    else:
        candidates = load_proxy_candidates(settings.proxy_list_path)

    cache = CacheManager(
        max_size=settings.cache_max_size,
        default_ttl=settings.cache_ttl_seconds,
    )
    proxies = ProxySelector(
        candidates,
        production=settings.is_production,
        probe_url=settings.proxy_probe_url,
        probe_timeout=settings.proxy_probe_timeout,
        transport_factory=transport_factory,
    )
    fetcher = ResilientFetcher(
        cache=cache,
        user_agents=UserAgentRotator(),
        proxies=proxies,
        production=settings.is_production,
        timeout=settings.request_timeout,
        proxy_max_retries=settings.proxy_max_retries,
        transport_factory=transport_factory,
    )
    aggregator = CityAggregator(
        [
            CityInfoSource(fetcher, settings),
            WeatherSource(fetcher, settings),
            NewsSource(fetcher, settings),
            EventsSource(fetcher, settings),
            TrafficSource(fetcher, settings),
        ]
    )
    return GatewayServices(
        settings=settings,
        cache=cache,
        proxies=proxies,
        fetcher=fetcher,
        aggregator=aggregator,
    )
