"""
HTTP-facing exceptions and their handlers
"""

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse


class GatewayHTTPError(HTTPException):
    """Base for errors rendered as ``{"error": detail}``"""


class InvalidPlanError(GatewayHTTPError):
    """Missing or unknown subscription plan header"""

    def __init__(self, valid_plans: list[str]):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                "Invalid or missing subscription plan. "
                f"Please specify a valid plan: {', '.join(valid_plans)}."
            ),
        )


class RateLimitExceededError(GatewayHTTPError):
    """Plan quota exhausted for the current window"""

    def __init__(self, plan: str, retry_after: float):
        self.plan = plan
        self.retry_after = retry_after
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=(
                f"Rate limit exceeded for '{plan}' plan. "
                "Upgrade to a higher plan for more access."
            ),
            headers={"Retry-After": str(max(1, int(retry_after)))},
        )


async def gateway_error_handler(request: Request, exc: GatewayHTTPError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=exc.headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GatewayHTTPError, gateway_error_handler)
