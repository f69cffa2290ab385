"""Tests for the HTTP surface."""

from collections.abc import AsyncGenerator

import httpx
import pytest
from limits import RateLimitItemPerMinute

from citygate.api import create_app
from citygate.datasource.news import NEWSAPI_URL
from citygate.ratelimit import PlanRateLimiter
from citygate.services.errors import AggregationError

pytestmark = pytest.mark.anyio


@pytest.fixture
async def client(settings, services) -> AsyncGenerator[httpx.AsyncClient, None]:
    app = create_app(
        settings,
        services=services,
        rate_limiter=PlanRateLimiter(
            {"free": RateLimitItemPerMinute(2), "pro": RateLimitItemPerMinute(100)}
        ),
    )
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def test_missing_plan_is_rejected(client) -> None:
    response = await client.get("/api/city/Paris")

    assert response.status_code == 400
    assert "Invalid or missing subscription plan" in response.json()["error"]


async def test_city_endpoint_returns_composite(client, upstream) -> None:
    upstream.json(NEWSAPI_URL, {"articles": [{"title": "Paris news"}]})

    response = await client.get("/api/city/Paris", headers={"x-api-plan": "pro"})

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"city", "city_info", "weather", "news", "events", "traffic"}
    assert body["city"] == "Paris"
    assert body["news"] == {"data": ["Paris news"], "source": NEWSAPI_URL}
    assert body["weather"] == {"data": "Weather data unavailable", "source": "none"}


async def test_quota_exceeded(client) -> None:
    headers = {"x-api-plan": "free"}
    for _ in range(2):
        assert (await client.get("/api/city/Paris", headers=headers)).status_code == 200

    response = await client.get("/api/city/Paris", headers=headers)

    assert response.status_code == 429
    assert "Rate limit exceeded for 'free' plan" in response.json()["error"]
    assert "retry-after" in response.headers


async def test_aggregation_failure_is_server_error(client, services, monkeypatch) -> None:
    async def broken(city_name):
        raise AggregationError("merge failed")

    monkeypatch.setattr(services.aggregator, "handle", broken)

    response = await client.get("/api/city/Paris", headers={"x-api-plan": "pro"})

    assert response.status_code == 500
    assert response.json() == {
        "error": "Error fetching city data",
        "message": "merge failed",
    }


async def test_health_is_not_rate_limited(client) -> None:
    response = await client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["environment"] == "production"
    assert "cache" in body


@pytest.mark.parametrize("path", ["/health", "/api/city/Paris"])
async def test_security_headers_on_every_response(client, path) -> None:
    # /api/city without a plan is rejected; headers must still be present
    response = await client.get(path)

    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "SAMEORIGIN"
    assert "max-age=" in response.headers["strict-transport-security"]
    assert response.headers["referrer-policy"] == "no-referrer"
