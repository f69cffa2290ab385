"""
Service layer infrastructure - resilient egress for the category chains.

Provides:
- CacheManager: TTL response cache keyed by normalized URL
- RequestDeduplicator: Shares concurrent requests for the same URL
- UserAgentRotator / ProxySelector: Outbound request identity
- ResilientFetcher: The single egress primitive combining the above

The aggregator and service container live in their own modules
(``citygate.services.aggregator``, ``citygate.services.container``) since
they depend on the category sources.
"""

from citygate.services.errors import (
    ServiceError,
    AggregationError,
    FetchFailedError,
    NormalizationError,
    ProxyRotationDisabledError,
    ProxyUnavailableError,
    RequestTimeoutError,
)
from citygate.services.cache import MISSING, CacheEntry, CacheManager, CacheStats
from citygate.services.deduplicator import RequestDeduplicator
from citygate.services.identity import UserAgentRotator
from citygate.services.proxy import (
    ProxyCandidate,
    ProxySelector,
    load_proxy_candidates,
)
from citygate.services.client import ResilientFetcher

__all__ = [
    # Errors
    "ServiceError",
    "AggregationError",
    "FetchFailedError",
    "NormalizationError",
    "ProxyRotationDisabledError",
    "ProxyUnavailableError",
    "RequestTimeoutError",
    # Cache
    "CacheManager",
    "CacheEntry",
    "CacheStats",
    "MISSING",
    # Deduplicator
    "RequestDeduplicator",
    # Identity
    "UserAgentRotator",
    "ProxyCandidate",
    "ProxySelector",
    "load_proxy_candidates",
    # Fetcher
    "ResilientFetcher",
]
