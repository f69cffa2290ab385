"""
City aggregation: fan out to every category chain and merge what comes back.
"""

import asyncio

from loguru import logger
from pydantic import BaseModel

from citygate.datasource.base import BaseCategorySource, CategoryResult
from citygate.datasource.city_info import CityInfoResult
from citygate.services.errors import AggregationError

DATA_UNAVAILABLE = "Data unavailable"

CATEGORIES = ("city_info", "weather", "news", "events", "traffic")


class CompositeResponse(BaseModel):
    """Merged response for one city query."""

    city: str
    city_info: CityInfoResult
    weather: CategoryResult
    news: CategoryResult
    events: CategoryResult
    traffic: CategoryResult

    model_config = {"frozen": True}


class CityAggregator:
    """
    Runs all category chains concurrently and waits for every one to settle.

    Usage:
        aggregator = CityAggregator([CityInfoSource(fetcher, settings), ...])
        response = await aggregator.handle("Paris")
    """

    def __init__(self, sources: list[BaseCategorySource]):
        categories = [source.category for source in sources]
        if sorted(categories) != sorted(CATEGORIES):
            raise ValueError(f"Expected sources for {CATEGORIES}, got {categories}")
        self._sources = list(sources)

    async def handle(self, city_name: str) -> CompositeResponse:
        """
        Build the composite response for ``city_name``.

        Raises:
            AggregationError: Only if the merge step itself fails
        """
        logger.info(f"Aggregating city data for: {city_name}")
        outcomes = await asyncio.gather(
            *(source.fetch(city_name) for source in self._sources),
            return_exceptions=True,
        )

        try:
            return self._combine(city_name, outcomes)
        except Exception as e:
            logger.exception(f"Failed to assemble response for {city_name}")
            raise AggregationError(str(e) or type(e).__name__) from e

    def _combine(
        self, city_name: str, outcomes: list[CategoryResult | BaseException]
    ) -> CompositeResponse:
        fields: dict[str, CategoryResult] = {}
        for source, outcome in zip(self._sources, outcomes):
            if isinstance(outcome, CategoryResult):
                fields[source.category] = outcome
                continue

            logger.opt(exception=outcome).error(
                f"{source.category} chain raised unexpectedly for {city_name}"
            )
            placeholder = source.result_model.unavailable(DATA_UNAVAILABLE)
            fields[source.category] = placeholder

        return CompositeResponse(city=city_name, **fields)
