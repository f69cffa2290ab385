"""
Headlines mentioning the city: NewsAPI, falling back to GNews.
"""

from typing import Any

from citygate.datasource.base import BaseCategorySource, Provider, ProviderEndpoint

NEWSAPI_URL = "https://newsapi.org/v2/everything"
GNEWS_URL = "https://gnews.io/api/v4/search"

MAX_ARTICLES = 10


def normalize_articles(payload: dict[str, Any]) -> list[str]:
    """First ``MAX_ARTICLES`` titles; a missing ``articles`` key is malformed."""
    return [article["title"] for article in payload["articles"][:MAX_ARTICLES]]


class NewsSource(BaseCategorySource):
    @property
    def category(self) -> str:
        return "news"

    @property
    def unavailable(self) -> str:
        return "News data unavailable"

    def providers(self, city_name: str) -> list[Provider[Any]]:
        return [
            ProviderEndpoint(
                name="newsapi",
                url=NEWSAPI_URL,
                params={"q": city_name, "apiKey": self.settings.newsapi_key},
                normalizer=normalize_articles,
            ),
            ProviderEndpoint(
                name="gnews",
                url=GNEWS_URL,
                params={"q": city_name, "lang": "en", "token": self.settings.gnews_key},
                normalizer=normalize_articles,
            ),
        ]
