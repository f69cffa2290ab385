"""
City facts: GeoNames gazetteer, then Wikipedia summary, then OpenWeather geocoding.

Which fields are present depends on the provider that answered, so the
payload is a tagged union on ``kind``.
"""

from typing import Annotated, Any, Literal, Union
from urllib.parse import quote

from pydantic import BaseModel, Field

from citygate.datasource.base import (
    BaseCategorySource,
    CategoryResult,
    Provider,
    ProviderEndpoint,
)
from citygate.services.errors import NormalizationError

GEONAMES_URL = "http://api.geonames.org/searchJSON"
WIKIPEDIA_SUMMARY_URL = "https://en.wikipedia.org/api/rest_v1/page/summary/{city}"
OPENWEATHER_GEOCODING_URL = "https://api.openweathermap.org/geo/1.0/direct"


class Coordinates(BaseModel):
    lat: float
    lon: float


class GazetteerResult(BaseModel):
    """Structured gazetteer entry (GeoNames)."""

    kind: Literal["gazetteer"] = "gazetteer"
    name: str
    population: int | str
    country: str | None = None
    coordinates: Coordinates


class EncyclopediaResult(BaseModel):
    """Encyclopedia summary (Wikipedia); no population or country."""

    kind: Literal["encyclopedia"] = "encyclopedia"
    name: str
    description: str
    image: str


class GeocodingResult(BaseModel):
    """Geocoder hit (OpenWeather): name, coordinates and country only."""

    kind: Literal["geocoding"] = "geocoding"
    name: str
    coordinates: Coordinates
    country: str | None = None


CityInfo = Annotated[
    Union[GazetteerResult, EncyclopediaResult, GeocodingResult],
    Field(discriminator="kind"),
]


class CityInfoResult(CategoryResult):
    """City facts from whichever provider answered, or the sentinel string."""

    data: Union[CityInfo, str]


def normalize_geonames(payload: dict[str, Any]) -> GazetteerResult:
    geonames = payload["geonames"]
    if not geonames:
        raise NormalizationError("GeoNames returned no results")
    city = geonames[0]
    return GazetteerResult(
        name=city["name"],
        population=city.get("population") or "Data unavailable",
        country=city.get("countryName"),
        coordinates=Coordinates(lat=city["lat"], lon=city["lng"]),
    )


def normalize_wikipedia(payload: dict[str, Any]) -> EncyclopediaResult:
    thumbnail = payload.get("thumbnail") or {}
    return EncyclopediaResult(
        name=payload["title"],
        description=payload.get("extract") or "Description unavailable",
        image=thumbnail.get("source") or "No image available",
    )


def normalize_geocoding(payload: list[dict[str, Any]]) -> GeocodingResult:
    if not payload:
        raise NormalizationError("Geocoding returned no results")
    location = payload[0]
    return GeocodingResult(
        name=location["name"],
        coordinates=Coordinates(lat=location["lat"], lon=location["lon"]),
        country=location.get("country"),
    )


def geocoding_endpoint(city_name: str, api_key: str, name: str) -> ProviderEndpoint:
    """OpenWeather direct geocoding, shared with the traffic chain."""
    return ProviderEndpoint(
        name=name,
        url=OPENWEATHER_GEOCODING_URL,
        params={"q": city_name, "limit": 1, "appid": api_key},
        normalizer=normalize_geocoding,
    )


class CityInfoSource(BaseCategorySource):
    """Basic facts about a city, first responding provider wins."""

    result_model = CityInfoResult

    @property
    def category(self) -> str:
        return "city_info"

    @property
    def unavailable(self) -> str:
        return "City information unavailable"

    def providers(self, city_name: str) -> list[Provider[Any]]:
        return [
            ProviderEndpoint(
                name="geonames",
                url=GEONAMES_URL,
                params={
                    "q": city_name,
                    "maxRows": 1,
                    "username": self.settings.geonames_username,
                },
                normalizer=normalize_geonames,
            ),
            ProviderEndpoint(
                name="wikipedia",
                url=WIKIPEDIA_SUMMARY_URL.format(city=quote(city_name, safe="")),
                normalizer=normalize_wikipedia,
            ),
            geocoding_endpoint(
                city_name, self.settings.geocoding_api_key, name="openweather-geocoding"
            ),
        ]
