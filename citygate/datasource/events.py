"""
Upcoming events from Eventful, formatted as "<title> at <venue>".
"""

from typing import Any

from citygate.datasource.base import BaseCategorySource, Provider, ProviderEndpoint

EVENTFUL_SEARCH_URL = "https://api.eventful.com/json/events/search"

MAX_EVENTS = 10


def normalize_events(payload: dict[str, Any]) -> list[str]:
    # No events block means nothing scheduled, not a failure
    events = (payload.get("events") or {}).get("event") or []
    if isinstance(events, dict):
        events = [events]
    return [
        f"{event.get('title')} at {event.get('venue_name')}"
        for event in events[:MAX_EVENTS]
    ]


class EventsSource(BaseCategorySource):
    @property
    def category(self) -> str:
        return "events"

    @property
    def unavailable(self) -> str:
        return "Events data unavailable"

    def providers(self, city_name: str) -> list[Provider[Any]]:
        return [
            ProviderEndpoint(
                name="eventful",
                url=EVENTFUL_SEARCH_URL,
                params={"location": city_name, "app_key": self.settings.events_api_key},
                normalizer=normalize_events,
            ),
        ]
