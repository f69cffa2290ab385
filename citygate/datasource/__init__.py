from citygate.datasource.base import (
    NO_SOURCE,
    Attempt,
    BaseCategorySource,
    CategoryResult,
    ProviderEndpoint,
    first_success,
)
from citygate.datasource.city_info import (
    CityInfoResult,
    CityInfoSource,
    EncyclopediaResult,
    GazetteerResult,
    GeocodingResult,
)
from citygate.datasource.events import EventsSource
from citygate.datasource.news import NewsSource
from citygate.datasource.traffic import TrafficSource
from citygate.datasource.weather import WeatherSource

__all__ = [
    "NO_SOURCE",
    "Attempt",
    "BaseCategorySource",
    "CategoryResult",
    "ProviderEndpoint",
    "first_success",
    "CityInfoResult",
    "CityInfoSource",
    "EncyclopediaResult",
    "GazetteerResult",
    "GeocodingResult",
    "EventsSource",
    "NewsSource",
    "TrafficSource",
    "WeatherSource",
]
