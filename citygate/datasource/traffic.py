"""
Traffic flow around the city centre.

Needs coordinates first: the city is geocoded through OpenWeather, then the
TomTom flow segment nearest to that point is read. If geocoding fails the
flow endpoint is never called.
"""

from typing import Any

from citygate.datasource.base import (
    Attempt,
    BaseCategorySource,
    Provider,
    ProviderEndpoint,
)
from citygate.datasource.city_info import GeocodingResult, geocoding_endpoint
from citygate.services.client import ResilientFetcher

TOMTOM_FLOW_URL = (
    "https://api.tomtom.com/traffic/services/4/flowSegmentData/absolute/10/json"
)

TRAFFIC_UNAVAILABLE = "Traffic data unavailable"


def normalize_flow(payload: dict[str, Any]) -> str:
    """Current speed summary; a missing speed is reported, not failed."""
    speed = (payload.get("flowSegmentData") or {}).get("currentSpeed")
    if speed is None:
        return TRAFFIC_UNAVAILABLE
    return f"Current speed: {speed} km/h"


class GeocodedFlowProvider:
    """Two-step provider: geocode, then fetch flow data at the coordinates."""

    name = "tomtom-flow"

    def __init__(self, city_name: str, geocoding_key: str, traffic_key: str):
        self._geocode = geocoding_endpoint(
            city_name, geocoding_key, name="openweather-geocoding"
        )
        self._traffic_key = traffic_key

    def flow_endpoint(self, location: GeocodingResult) -> ProviderEndpoint[str]:
        point = f"{location.coordinates.lat},{location.coordinates.lon}"
        return ProviderEndpoint(
            name=self.name,
            url=TOMTOM_FLOW_URL,
            params={"key": self._traffic_key, "point": point},
            normalizer=normalize_flow,
        )

    async def attempt(self, fetcher: ResilientFetcher) -> Attempt[str]:
        located = await self._geocode.attempt(fetcher)
        if not located.ok:
            return Attempt.failure(located.source, located.error)
        return await self.flow_endpoint(located.value).attempt(fetcher)


class TrafficSource(BaseCategorySource):
    @property
    def category(self) -> str:
        return "traffic"

    @property
    def unavailable(self) -> str:
        return TRAFFIC_UNAVAILABLE

    def providers(self, city_name: str) -> list[Provider[Any]]:
        return [
            GeocodedFlowProvider(
                city_name,
                geocoding_key=self.settings.geocoding_api_key,
                traffic_key=self.settings.traffic_api_key,
            ),
        ]
