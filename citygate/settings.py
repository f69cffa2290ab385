import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


class Settings(BaseModel):
    # Runtime
    app_env: str = Field(default="development", alias="APP_ENV")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Egress
    request_timeout: float = Field(default=10.0, alias="REQUEST_TIMEOUT")
    cache_ttl_seconds: int = Field(default=3600, alias="CACHE_TTL_SECONDS")
    cache_max_size: int = Field(default=1024, alias="CACHE_MAX_SIZE")

    # Proxy rotation (non-production only)
    proxy_list_path: str = Field(default="proxyList.json", alias="PROXY_LIST_PATH")
    proxy_probe_url: str = Field(
        default="https://httpbin.org/ip", alias="PROXY_PROBE_URL"
    )
    proxy_probe_timeout: float = Field(default=5.0, alias="PROXY_PROBE_TIMEOUT")
    proxy_max_retries: int = Field(default=5, alias="PROXY_MAX_RETRIES")

    # Provider credentials
    openweather_api_key: str = Field(default="", alias="OPENWEATHER_API_KEY")
    weatherapi_key: str = Field(default="", alias="WEATHERAPI_KEY")
    newsapi_key: str = Field(default="", alias="NEWSAPI_KEY")
    gnews_key: str = Field(default="", alias="GNEWS_KEY")
    events_api_key: str = Field(default="", alias="EVENTS_API_KEY")
    traffic_api_key: str = Field(default="", alias="TRAFFIC_API_KEY")
    geocoding_api_key: str = Field(default="", alias="GEOCODING_API_KEY")
    geonames_username: str = Field(default="", alias="GEONAMES_USERNAME")

    model_config = {"frozen": True, "populate_by_name": True}

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment (after .env loading)."""
        return cls.model_validate(dict(os.environ))


global_settings = Settings.from_env()
