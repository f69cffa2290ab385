"""
Tiered rate limiting keyed by subscription plan.

Each plan has its own window and request quota, enforced by a ``limits``
fixed-window strategy over in-memory storage. Counters are kept per
(plan, client) pair.
"""

import time

from fastapi import Header, Request
from limits import RateLimitItem, RateLimitItemPerMinute
from limits.storage import MemoryStorage, Storage
from limits.strategies import FixedWindowRateLimiter
from loguru import logger

from citygate.exceptions import InvalidPlanError, RateLimitExceededError

PLAN_LIMITS: dict[str, RateLimitItem] = {
    "free": RateLimitItemPerMinute(50, 30),
    "basic": RateLimitItemPerMinute(200, 20),
    "pro": RateLimitItemPerMinute(1000, 20),
    "ultra": RateLimitItemPerMinute(5000, 10),
    "ultra_premium": RateLimitItemPerMinute(999999, 5),
}


class PlanRateLimiter:
    """
    Per-plan quota check in front of the city endpoint.

    Usage:
        limiter = PlanRateLimiter()
        limiter.check("free", "203.0.113.7")  # raises when over quota
    """

    def __init__(
        self,
        limits: dict[str, RateLimitItem] | None = None,
        storage: Storage | None = None,
    ):
        self._limits = dict(limits or PLAN_LIMITS)
        self._storage = storage or MemoryStorage()
        self._strategy = FixedWindowRateLimiter(self._storage)

    @property
    def plans(self) -> list[str]:
        return list(self._limits)

    def check(self, plan: str | None, client_id: str) -> int:
        """
        Count one request; return the remaining quota.

        Raises:
            InvalidPlanError: ``plan`` is missing or unknown
            RateLimitExceededError: quota for the current window is used up
        """
        if not plan or plan not in self._limits:
            raise InvalidPlanError(self.plans)

        limit = self._limits[plan]
        if not self._strategy.hit(limit, plan, client_id):
            reset_time, _ = self._strategy.get_window_stats(limit, plan, client_id)
            logger.warning(f"Rate limit exceeded for plan '{plan}' ({client_id})")
            raise RateLimitExceededError(plan, reset_time - time.time())

        return self._strategy.get_window_stats(limit, plan, client_id).remaining

    def reset(self) -> None:
        """Clear all counters."""
        self._storage.reset()


async def enforce_plan_limit(
    request: Request,
    x_api_plan: str | None = Header(default=None),
) -> str:
    """FastAPI dependency guarding the /api routes."""
    limiter: PlanRateLimiter = request.app.state.rate_limiter
    client_id = request.client.host if request.client else "unknown"
    limiter.check(x_api_plan, client_id)
    return x_api_plan
