"""
Base category source and fallback-chain primitives.

A category walks an ordered list of providers. Each provider attempt yields
an explicit ``Attempt`` (value or error) and ``first_success`` stops at the
first good one, so later providers are never contacted.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Mapping, Protocol, Sequence, TypeVar

from loguru import logger
from pydantic import BaseModel

from citygate.services.client import ResilientFetcher
from citygate.services.errors import NormalizationError, ServiceError
from citygate.settings import Settings

T = TypeVar("T")

NO_SOURCE = "none"

# Shape errors a normalizer may hit on an unexpected payload
MALFORMED_PAYLOAD_ERRORS = (KeyError, IndexError, TypeError, AttributeError, ValueError)


class CategoryResult(BaseModel):
    """Outcome of one category chain: a payload or sentinel plus its source."""

    data: Any
    source: str

    model_config = {"frozen": True}

    @classmethod
    def unavailable(cls, sentinel: str) -> "CategoryResult":
        return cls(data=sentinel, source=NO_SOURCE)


@dataclass(frozen=True)
class Attempt(Generic[T]):
    """Result of trying a single provider."""

    source: str
    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, source: str, value: T) -> "Attempt[T]":
        return cls(source=source, value=value)

    @classmethod
    def failure(cls, source: str, error: Exception) -> "Attempt[T]":
        return cls(source=source, error=error)


class Provider(Protocol[T]):
    """Anything a chain can attempt."""

    name: str

    async def attempt(self, fetcher: ResilientFetcher) -> Attempt[T]: ...


def normalize(normalizer: Callable[[Any], T], payload: Any) -> T:
    """Apply ``normalizer``, folding shape errors into NormalizationError."""
    try:
        return normalizer(payload)
    except NormalizationError:
        raise
    except MALFORMED_PAYLOAD_ERRORS as e:
        raise NormalizationError(f"Unexpected payload shape: {e!r}") from e


@dataclass(frozen=True)
class ProviderEndpoint(Generic[T]):
    """One entry of a fallback chain: where to fetch and how to read it."""

    name: str
    url: str
    normalizer: Callable[[Any], T]
    params: Mapping[str, Any] = field(default_factory=dict)

    async def attempt(self, fetcher: ResilientFetcher) -> Attempt[T]:
        try:
            payload = await fetcher.fetch(self.url, dict(self.params) or None)
            return Attempt.success(self.url, normalize(self.normalizer, payload))
        except ServiceError as e:
            return Attempt.failure(self.url, e)


async def first_success(
    providers: Sequence[Provider[T]],
    fetcher: ResilientFetcher,
    category: str,
) -> Attempt[T] | None:
    """Try ``providers`` strictly in order; return the first successful attempt."""
    for provider in providers:
        attempt = await provider.attempt(fetcher)
        if attempt.ok:
            return attempt
        logger.warning(
            f"{category} fallback triggered for {provider.name} "
            f"({attempt.source}): {attempt.error}"
        )
    return None


class BaseCategorySource(ABC):
    """
    Abstract base class for the category chains.

    Subclasses declare their providers in order and a sentinel used when all
    of them fail. ``fetch`` never raises for provider failures.
    """

    result_model: type[CategoryResult] = CategoryResult

    def __init__(self, fetcher: ResilientFetcher, settings: Settings):
        self.fetcher = fetcher
        self.settings = settings

    @property
    @abstractmethod
    def category(self) -> str:
        """Field name of this category in the composite response."""
        ...

    @property
    @abstractmethod
    def unavailable(self) -> str:
        """Sentinel reported when the chain is exhausted."""
        ...

    @abstractmethod
    def providers(self, city_name: str) -> list[Provider[Any]]:
        """Ordered fallback chain for ``city_name``."""
        ...

    def to_data(self, value: Any) -> Any:
        """Shape the winning provider's value for the response."""
        return value

    async def fetch(self, city_name: str) -> CategoryResult:
        attempt = await first_success(
            self.providers(city_name), self.fetcher, self.category
        )
        if attempt is None:
            logger.warning(f"All {self.category} providers failed for {city_name}")
            return self.result_model.unavailable(self.unavailable)
        return self.result_model(
            data=self.to_data(attempt.value), source=attempt.source
        )
