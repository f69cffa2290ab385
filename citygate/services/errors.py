"""
Service layer exceptions.
"""


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, service_id: str | None = None):
        self.service_id = service_id
        super().__init__(message)


class ProxyUnavailableError(ServiceError):
    """No usable proxy could be selected."""

    def __init__(self, message: str = "No proxies available"):
        super().__init__(message, service_id="proxy")


class ProxyRotationDisabledError(ProxyUnavailableError):
    """Proxy selection was requested while running in production mode."""

    def __init__(self):
        super().__init__("Proxy rotation is disabled in production")


class FetchFailedError(ServiceError):
    """Upstream request failed (network error, bad status or bad body)."""

    def __init__(self, url: str, environment: str, reason: str):
        self.url = url
        self.environment = environment
        self.reason = reason
        super().__init__(
            f"Failed to fetch data from {url} ({environment} mode): {reason}",
            service_id=url,
        )


class RequestTimeoutError(FetchFailedError):
    """Request exceeded its deadline."""

    def __init__(self, url: str, environment: str, timeout: float):
        self.timeout = timeout
        super().__init__(url, environment, f"timed out after {timeout}s")


class NormalizationError(ServiceError):
    """Provider payload did not have the expected shape."""

    pass


class AggregationError(ServiceError):
    """Composite response could not be assembled."""

    pass
