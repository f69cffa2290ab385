"""
Weather forecast: OpenWeatherMap, falling back to WeatherAPI.

The first provider's payload is passed through untouched.
"""

from typing import Any

from citygate.datasource.base import BaseCategorySource, Provider, ProviderEndpoint
from citygate.services.errors import NormalizationError

OPENWEATHER_FORECAST_URL = "https://api.openweathermap.org/data/2.5/forecast"
WEATHERAPI_FORECAST_URL = "https://api.weatherapi.com/v1/forecast.json"


def passthrough(payload: Any) -> Any:
    if not payload:
        raise NormalizationError("Empty weather payload")
    return payload


class WeatherSource(BaseCategorySource):
    @property
    def category(self) -> str:
        return "weather"

    @property
    def unavailable(self) -> str:
        return "Weather data unavailable"

    def providers(self, city_name: str) -> list[Provider[Any]]:
        return [
            ProviderEndpoint(
                name="openweathermap",
                url=OPENWEATHER_FORECAST_URL,
                params={
                    "q": city_name,
                    "units": "metric",
                    "appid": self.settings.openweather_api_key,
                },
                normalizer=passthrough,
            ),
            ProviderEndpoint(
                name="weatherapi",
                url=WEATHERAPI_FORECAST_URL,
                params={
                    "key": self.settings.weatherapi_key,
                    "q": city_name,
                    "days": 7,
                },
                normalizer=passthrough,
            ),
        ]
