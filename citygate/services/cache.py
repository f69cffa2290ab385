"""
CacheManager - Async-safe response cache with a fixed TTL.

Features:
- In-memory store keyed by normalized request URL
- TTL applied at insertion; expired entries are treated as absent
- Oldest-first eviction once the size bound is reached
- Lock-guarded async operations
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar
from urllib.parse import urlencode

from loguru import logger

T = TypeVar("T")

# Returned by CacheManager.get for absent or expired keys; None is a valid payload
MISSING: Any = object()


@dataclass
class CacheEntry(Generic[T]):
    """A single cache entry with metadata."""

    data: T
    timestamp: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        """Check if entry is past its TTL."""
        return now >= self.timestamp + self.ttl


class CacheManager:
    """
    Async-safe cache manager with a fixed time-to-live.

    Usage:
        cache = CacheManager(max_size=1024, default_ttl=3600)

        key = cache.generate_key(url, params)
        data = await cache.get(key)
        if data is MISSING:
            data = await fetch_data()
            await cache.set(key, data)
    """

    def __init__(
        self,
        max_size: int = 1024,
        default_ttl: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
        debug: bool = False,
    ):
        self._memory: dict[str, CacheEntry[Any]] = {}
        self._max_size = max_size
        self._default_ttl = default_ttl
        self._clock = clock
        self._debug = debug
        self._lock = asyncio.Lock()
        self._stats = CacheStats()

    @staticmethod
    def generate_key(url: str, params: dict[str, Any] | None = None) -> str:
        """Build the normalized URL used as cache key (params sorted by name)."""
        if not params:
            return url
        query = urlencode(sorted((k, str(v)) for k, v in params.items()))
        separator = "&" if "?" in url else "?"
        return f"{url}{separator}{query}"

    async def get(self, key: str) -> Any:
        """Return the cached value, or MISSING when absent or expired."""
        async with self._lock:
            entry = self._memory.get(key)
            if entry is None:
                self._stats.misses += 1
                self._log(f"MISS: {key[:80]}")
                return MISSING

            if entry.is_expired(self._clock()):
                del self._memory[key]
                self._stats.misses += 1
                self._log(f"EXPIRED: {key[:80]}")
                return MISSING

            self._stats.hits += 1
            self._log(f"HIT: {key[:80]}")
            return entry.data

    async def set(self, key: str, data: Any, ttl: float | None = None) -> None:
        """Store a value; the TTL is fixed at insertion time."""
        entry = CacheEntry(
            data=data,
            timestamp=self._clock(),
            ttl=ttl if ttl is not None else self._default_ttl,
        )

        async with self._lock:
            if len(self._memory) >= self._max_size and key not in self._memory:
                self._evict_oldest()

            self._memory[key] = entry
            self._log(f"SET: {key[:80]} (TTL: {entry.ttl}s)")

    def _evict_oldest(self) -> None:
        if not self._memory:
            return

        now = self._clock()
        expired = [k for k, v in self._memory.items() if v.is_expired(now)]
        if expired:
            for key in expired:
                del self._memory[key]
            self._stats.evictions += len(expired)
            return

        oldest_key = min(
            self._memory.keys(),
            key=lambda k: self._memory[k].timestamp,
        )
        del self._memory[oldest_key]
        self._stats.evictions += 1
        self._log(f"EVICT: {oldest_key[:80]}")

    def __len__(self) -> int:
        return len(self._memory)

    def get_stats(self) -> "CacheStats":
        """Get cache statistics."""
        self._stats.size = len(self._memory)
        self._stats.max_size = self._max_size
        return self._stats

    def _log(self, message: str) -> None:
        if self._debug:
            logger.debug(f"[CacheManager] {message}")


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    size: int = 0
    max_size: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "size": self.size,
            "max_size": self.max_size,
            "hit_rate": f"{self.hit_rate:.2%}",
        }
