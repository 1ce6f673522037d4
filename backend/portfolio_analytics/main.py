# backend/portfolio_analytics/main.py
"""
FastAPI application entry point.

This file:
- Configures application-wide logging
- Creates the FastAPI application
- Registers global exception handlers
- Registers all routers
- Defines global endpoints (health checks)

Run:
    uvicorn portfolio_analytics.main:app --app-dir backend
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from portfolio_analytics import __version__
from portfolio_analytics.config import settings
from portfolio_analytics.middleware import (
    RATE_LIMIT_HEALTH,
    CorrelationIdMiddleware,
    SlowAPIMiddleware,
    limiter,
    rate_limit_exceeded_handler,
)
from portfolio_analytics.routers import analytics_router
from portfolio_analytics.schemas.errors import ErrorDetail, ValidationErrorDetail
from portfolio_analytics.services.exceptions import (
    CircuitBreakerOpen,
    FeedDataError,
    FeedUnavailableError,
    NotFoundError,
    RateLimitError,
    ServiceError,
    ValidationError,
)
from portfolio_analytics.utils import setup_logging

logger = logging.getLogger(__name__)

# =============================================================================
# LOGGING SETUP (must be before app creation)
# =============================================================================

setup_logging()

# =============================================================================
# APPLICATION SETUP
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Growth, drawdown, trailing-return and P&L analytics of investment accounts",
    version=__version__,
)


# =============================================================================
# CORS MIDDLEWARE
# =============================================================================
# Origins are configured via CORS_ORIGINS environment variable

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)


# =============================================================================
# MIDDLEWARE (order matters: last added = first executed)
# =============================================================================

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

# Outermost, so every log line of the request carries the correlation ID
app.add_middleware(CorrelationIdMiddleware)


# =============================================================================
# GLOBAL EXCEPTION HANDLERS
# =============================================================================
# These handlers convert service-layer exceptions to consistent HTTP
# responses. Starlette picks the handler of the most specific class.
# =============================================================================

app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle validation errors (400)."""
    logger.warning(f"Validation error: {exc}")
    return JSONResponse(
        status_code=400,
        content=ErrorDetail(
            error="ValidationError",
            message=str(exc),
            details={"field": exc.field} if exc.field else None,
        ).model_dump(),
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    """Handle unknown accounts and benchmarks (404)."""
    logger.warning(f"{exc.resource_type or 'Resource'} not found: {exc.resource_id}")
    return JSONResponse(
        status_code=404,
        content=ErrorDetail(
            error=type(exc).__name__,
            message=str(exc),
            details={
                "resource_type": exc.resource_type,
                "resource_id": exc.resource_id,
            },
        ).model_dump(),
    )


@app.exception_handler(RateLimitError)
async def rate_limit_handler(request: Request, exc: RateLimitError) -> JSONResponse:
    """Handle upstream feed rate limits (429)."""
    logger.warning(f"Rate limit exceeded: {exc}")
    headers = {"Retry-After": str(exc.retry_after)} if exc.retry_after else None
    return JSONResponse(
        status_code=429,
        content=ErrorDetail(
            error="RateLimitError",
            message=str(exc),
            details={"feed": exc.feed, "retry_after": exc.retry_after},
        ).model_dump(),
        headers=headers,
    )


@app.exception_handler(FeedUnavailableError)
async def feed_unavailable_handler(request: Request, exc: FeedUnavailableError) -> JSONResponse:
    """Handle unreachable feeds (503)."""
    logger.error(f"Feed unavailable: {exc}")
    return JSONResponse(
        status_code=503,
        content=ErrorDetail(
            error="FeedUnavailableError",
            message=str(exc),
            details={"feed": exc.feed},
        ).model_dump(),
    )


@app.exception_handler(FeedDataError)
async def feed_data_error_handler(request: Request, exc: FeedDataError) -> JSONResponse:
    """Handle malformed feed payloads (502)."""
    logger.error(f"Feed data error: {exc}")
    return JSONResponse(
        status_code=502,
        content=ErrorDetail(
            error="FeedDataError",
            message=str(exc),
            details={"feed": exc.feed},
        ).model_dump(),
    )


@app.exception_handler(CircuitBreakerOpen)
async def circuit_breaker_handler(request: Request, exc: CircuitBreakerOpen) -> JSONResponse:
    """Handle circuit breaker open (503 with Retry-After)."""
    logger.warning(f"Circuit breaker open: {exc.breaker_name}")
    retry_after = int(exc.time_remaining) + 1  # Round up
    return JSONResponse(
        status_code=503,
        content=ErrorDetail(
            error="CircuitBreakerOpen",
            message=f"Service temporarily unavailable. The {exc.breaker_name} circuit breaker is open.",
            details={
                "breaker_name": exc.breaker_name,
                "retry_after": retry_after,
            },
        ).model_dump(),
        headers={"Retry-After": str(retry_after)},
    )


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Handle generic service errors (500)."""
    logger.error(f"Service error: {exc}")
    return JSONResponse(
        status_code=500,
        content=ErrorDetail(
            error="ServiceError",
            message=str(exc),
            details=None,
        ).model_dump(),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Handle all HTTPExceptions (routing 404/405 included) with consistent error format.

    Converts FastAPI's default {"detail": "..."} format to the ErrorDetail
    format.
    """
    error_types = {
        400: "BadRequestError",
        404: "NotFoundError",
        405: "MethodNotAllowedError",
        422: "ValidationError",
        429: "RateLimitError",
        500: "InternalServerError",
        503: "ServiceUnavailableError",
    }
    error_type = error_types.get(exc.status_code, "HTTPError")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorDetail(
            error=error_type,
            message=str(exc.detail) if exc.detail else "An error occurred",
            details=None,
        ).model_dump(),
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Convert the default 422 validation error to the ValidationErrorDetail format."""
    errors = []
    for error in exc.errors():
        errors.append({
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        })

    return JSONResponse(
        status_code=422,
        content=ValidationErrorDetail(
            error="ValidationError",
            message="Request validation failed",
            details=errors,
        ).model_dump(),
    )


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

app.include_router(analytics_router)  # /accounts/{code}/analytics, /analytics/compute


# =============================================================================
# GLOBAL ENDPOINTS
# =============================================================================

def _feed_check(name: str) -> dict:
    """Circuit breaker state of one feed client."""
    from portfolio_analytics import dependencies

    getter = dependencies.get_history_feed if name == "history" else dependencies.get_benchmark_feed
    try:
        feed = getter()
    except FeedUnavailableError as e:
        return {"status": "unconfigured", "error": str(e)}

    if feed is None:
        return {"status": "unconfigured"}

    breaker = feed.breaker
    stats = breaker.stats
    return {
        "status": "unhealthy" if breaker.is_open else "healthy",
        "circuit_breaker_state": breaker.state.value,
        "total_calls": stats.total_calls,
        "failed_calls": stats.failed_calls,
        "rejected_calls": stats.rejected_calls,
    }


@app.get("/", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def root(request: Request):
    """API root - returns basic application info."""
    return {
        "message": f"Welcome to {settings.app_name}!",
        "docs": "/docs",
        "redoc": "/redoc",
    }


@app.get("/health", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def health_check(request: Request):
    """
    Health check endpoint.

    The service itself has no critical dependency, so it always answers 200;
    an open feed circuit breaker reports the status as "degraded".
    """
    checks = {
        "history_feed": _feed_check("history"),
        "benchmark_feed": _feed_check("benchmark"),
    }
    degraded = any(check["status"] == "unhealthy" for check in checks.values())

    return {
        "status": "degraded" if degraded else "healthy",
        "version": __version__,
        "environment": settings.environment,
        "checks": checks,
    }
