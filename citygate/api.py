"""FastAPI surface for the city aggregation gateway."""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from citygate.exceptions import register_exception_handlers
from citygate.middleware import SecurityHeadersMiddleware
from citygate.ratelimit import PlanRateLimiter, enforce_plan_limit
from citygate.services.container import GatewayServices, build_services
from citygate.services.errors import AggregationError
from citygate.settings import Settings


class CityGateServer:
    """HTTP server exposing the composite city endpoint."""

    def __init__(
        self,
        settings: Settings,
        services: GatewayServices | None = None,
        rate_limiter: PlanRateLimiter | None = None,
    ):
        self.settings = settings
        self.services = services
        self._owns_services = services is None

        self.app = FastAPI(title="CityGate", lifespan=self.lifespan)
        self.app.state.rate_limiter = rate_limiter or PlanRateLimiter()
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET"],
            allow_headers=["*"],
        )
        self.app.add_middleware(SecurityHeadersMiddleware)
        register_exception_handlers(self.app)

        # Register routes
        self.app.get(
            "/api/city/{city_name}",
            dependencies=[Depends(enforce_plan_limit)],
        )(self.get_city)
        self.app.get("/health")(self.health_check)

    @asynccontextmanager
    async def lifespan(self, app: FastAPI):
        if self.services is None:
            logger.info(f"Starting CityGate in {self.settings.app_env} mode")
            self.services = build_services(self.settings)
        try:
            yield
        finally:
            if self._owns_services and self.services is not None:
                await self.services.close()
                self.services = None
                logger.info("CityGate stopped")

    async def get_city(self, city_name: str):
        """Aggregate all categories for ``city_name``.

        Individual provider failures only show up as per-category
        placeholders; a 500 is returned only when the merge itself breaks.
        """
        try:
            response = await self.services.aggregator.handle(city_name)
        except AggregationError as e:
            return JSONResponse(
                status_code=500,
                content={"error": "Error fetching city data", "message": str(e)},
            )
        return response.model_dump(mode="json")

    async def health_check(self):
        """Health check endpoint."""
        status = {"status": "ok", "environment": self.settings.app_env}
        if self.services is not None:
            status.update(self.services.fetcher.get_health_status())
        return status


def create_app(
    settings: Settings,
    services: GatewayServices | None = None,
    rate_limiter: PlanRateLimiter | None = None,
) -> FastAPI:
    """Create the FastAPI app.

    Args:
        settings: Process settings
        services: Prebuilt services; when omitted they are built on startup

    Returns:
        FastAPI app
    """
    server = CityGateServer(settings, services=services, rate_limiter=rate_limiter)
    return server.app
