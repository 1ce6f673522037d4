# backend/portfolio_analytics/services/__init__.py
"""
Service layer for business logic.

Services:
- Have NO knowledge of HTTP responses (no HTTPException, no status codes)
- Raise domain-specific exceptions
- Receive their collaborators through the constructor
- Are easily testable via dependency injection

Architecture:
    services/
    ├── __init__.py                  # This file - main exports
    ├── exceptions.py                # Domain exceptions
    ├── constants.py                 # Calendar conventions, windows, limits
    ├── protocols.py                 # Feed interfaces (Protocol classes)
    ├── circuit_breaker.py           # Circuit breaker for the feeds
    ├── analytics/                   # Analytics engine
    └── feeds/                       # History and benchmark feed clients

Usage:
    from portfolio_analytics.services import AnalyticsService, compute_analytics
    from portfolio_analytics.services import AccountNotFoundError
"""

from portfolio_analytics.services.analytics import (
    AnalyticsCache,
    AnalyticsResult,
    AnalyticsService,
    compute_analytics,
)
from portfolio_analytics.services.circuit_breaker import CircuitBreaker, CircuitBreakerOpen
from portfolio_analytics.services.exceptions import (
    AccountNotFoundError,
    BenchmarkNotFoundError,
    FeedDataError,
    FeedError,
    FeedUnavailableError,
    NotFoundError,
    RateLimitError,
    ServiceError,
    ValidationError,
)
from portfolio_analytics.services.feeds import BenchmarkFeedClient, HistoryFeedClient

__all__ = [
    # Analytics
    "AnalyticsService",
    "AnalyticsCache",
    "AnalyticsResult",
    "compute_analytics",

    # Feeds
    "HistoryFeedClient",
    "BenchmarkFeedClient",
    "CircuitBreaker",

    # Exceptions
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "AccountNotFoundError",
    "BenchmarkNotFoundError",
    "FeedError",
    "FeedUnavailableError",
    "FeedDataError",
    "RateLimitError",
    "CircuitBreakerOpen",
]
