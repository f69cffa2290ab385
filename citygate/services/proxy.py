"""
Proxy candidates, validation and selection.

Proxies are only used outside production. The candidate list is loaded once
at startup and never mutated; a proxy is validated on demand by probing a
known-good endpoint through it.
"""

import asyncio
import json
import random
from pathlib import Path
from typing import Callable
from urllib.parse import quote

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError

from citygate.services.errors import (
    ProxyRotationDisabledError,
    ProxyUnavailableError,
)


class ProxyCandidate(BaseModel):
    """A proxy endpoint with optional credentials."""

    host: str
    port: int
    username: str | None = None
    password: str | None = None

    model_config = {"frozen": True}

    @property
    def url(self) -> str:
        if self.username:
            auth = quote(self.username, safe="")
            if self.password:
                auth += ":" + quote(self.password, safe="")
            return f"http://{auth}@{self.host}:{self.port}"
        return f"http://{self.host}:{self.port}"

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


# Builds the transport used for a given proxy (None = direct). Injected in tests.
TransportFactory = Callable[[ProxyCandidate | None], httpx.AsyncBaseTransport]


def make_http_client(
    proxy: ProxyCandidate | None,
    timeout: float,
    transport_factory: TransportFactory | None = None,
) -> httpx.AsyncClient:
    """Create an AsyncClient that egresses directly or through ``proxy``."""
    if transport_factory is not None:
        return httpx.AsyncClient(
            transport=transport_factory(proxy),
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
        )
    return httpx.AsyncClient(
        proxy=proxy.url if proxy else None,
        timeout=httpx.Timeout(timeout),
        follow_redirects=True,
    )


def load_proxy_candidates(path: str | Path) -> list[ProxyCandidate]:
    """
    Load the proxy list from a JSON file.

    A missing or malformed file is not fatal: selection will simply fail
    with "no proxies available".
    """
    path = Path(path)
    if not path.exists():
        logger.warning(f"Proxy list not found: {path}")
        return []

    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
        candidates = [ProxyCandidate.model_validate(item) for item in raw]
    except (OSError, json.JSONDecodeError, TypeError, ValidationError) as e:
        logger.error(f"Error loading proxy list from {path}: {e}")
        return []

    logger.info(f"Loaded {len(candidates)} proxies from {path}")
    return candidates


class ProxySelector:
    """
    Picks a working proxy at random with a bounded number of probes.

    Usage:
        selector = ProxySelector(candidates, production=False)
        proxy = await selector.select(max_retries=5)
    """

    def __init__(
        self,
        candidates: list[ProxyCandidate],
        production: bool,
        probe_url: str = "https://httpbin.org/ip",
        probe_timeout: float = 5.0,
        transport_factory: TransportFactory | None = None,
        rng: random.Random | None = None,
    ):
        self._candidates = tuple(candidates)
        self._production = production
        self._probe_url = probe_url
        self._probe_timeout = probe_timeout
        self._transport_factory = transport_factory
        self._rng = rng or random.Random()
        self.probe_count = 0

    @property
    def candidates(self) -> tuple[ProxyCandidate, ...]:
        return self._candidates

    async def validate(self, proxy: ProxyCandidate) -> bool:
        """Probe the known-good endpoint through ``proxy``."""
        self.probe_count += 1
        try:
            async with make_http_client(
                proxy, self._probe_timeout, self._transport_factory
            ) as client:
                response = await asyncio.wait_for(
                    client.get(self._probe_url), timeout=self._probe_timeout
                )
                response.raise_for_status()
            return True
        except (httpx.HTTPError, asyncio.TimeoutError):
            logger.warning(f"Proxy validation failed: {proxy}")
            return False

    async def select(self, max_retries: int = 5) -> ProxyCandidate:
        """
        Return the first candidate whose probe succeeds.

        Raises:
            ProxyRotationDisabledError: In production mode (no probes issued)
            ProxyUnavailableError: Empty list or every probe failed
        """
        if self._production:
            raise ProxyRotationDisabledError()
        if not self._candidates:
            raise ProxyUnavailableError("No proxies available")

        for attempt in range(1, max_retries + 1):
            proxy = self._rng.choice(self._candidates)
            if await self.validate(proxy):
                return proxy
            logger.warning(f"Retrying to fetch a valid proxy. Attempt: {attempt}")

        raise ProxyUnavailableError(
            f"No valid proxies available after {max_retries} retries"
        )
