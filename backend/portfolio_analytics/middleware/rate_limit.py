# backend/portfolio_analytics/middleware/rate_limit.py
"""
Rate limiting for the analytics API (slowapi).

Analytics requests recompute a full multi-year history and may hit the
upstream feeds, so they get a tighter limit than the health check.

Key by: Client IP address (X-Forwarded-For only from trusted proxies)
Storage: In-memory, per worker process

Usage:
    from portfolio_analytics.middleware.rate_limit import limiter, RATE_LIMIT_ANALYTICS

    @router.get("/accounts/{account_code}/analytics")
    @limiter.limit(RATE_LIMIT_ANALYTICS)
    def get_analytics(request: Request, ...):
        ...

RATE_LIMIT_ENABLED=false switches every limit off (tests, local runs).
"""

import logging

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from portfolio_analytics.config import settings
from portfolio_analytics.services.constants import (
    RATE_LIMIT_ANALYTICS,
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_HEALTH,
)

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER_SECONDS = 60


def _is_trusted_proxy(request: Request) -> bool:
    """True if forwarded headers from the immediate client may be trusted."""
    if settings.trust_proxy_headers:
        return True
    return get_remote_address(request) in settings.trusted_proxy_ips


def _get_client_ip(request: Request) -> str:
    """
    Client IP used as the rate-limit key.

    X-Forwarded-For / X-Real-IP are honoured only from trusted proxies, so a
    client cannot dodge its limit by forging the header.
    """
    if _is_trusted_proxy(request):
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

    return get_remote_address(request)


limiter = Limiter(
    key_func=_get_client_ip,
    default_limits=[RATE_LIMIT_DEFAULT],
    enabled=settings.rate_limit_enabled,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 in the standard ErrorDetail format with a Retry-After header."""
    limit_info = str(exc.detail) if exc.detail else "Rate limit exceeded"
    logger.warning(f"Rate limit exceeded for {_get_client_ip(request)}: {limit_info}")

    return JSONResponse(
        status_code=429,
        content={
            "error": "RateLimitError",
            "message": f"Too many requests. {limit_info}",
            "details": {"retry_after": DEFAULT_RETRY_AFTER_SECONDS},
        },
        headers={"Retry-After": str(DEFAULT_RETRY_AFTER_SECONDS)},
    )


__all__ = [
    "limiter",
    "rate_limit_exceeded_handler",
    "SlowAPIMiddleware",
    "RATE_LIMIT_DEFAULT",
    "RATE_LIMIT_ANALYTICS",
    "RATE_LIMIT_HEALTH",
]
