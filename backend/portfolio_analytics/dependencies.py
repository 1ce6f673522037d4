# backend/portfolio_analytics/dependencies.py
"""
Dependency injection module for FastAPI services.

This module provides singleton service instances that are shared across
all requests, so the analytics cache and the feed circuit breakers keep
their state between requests.

Services are lazily initialized on first use to avoid import-time side effects.

Usage in routers:
    from portfolio_analytics.dependencies import get_analytics_service

    @router.get("/accounts/{account_code}/analytics")
    def get_account_analytics(
        service: AnalyticsService = Depends(get_analytics_service),
    ):
        ...

Tests replace the service with app.dependency_overrides.
"""

import logging
from functools import lru_cache

from portfolio_analytics.config import settings
from portfolio_analytics.services.analytics.service import AnalyticsService
from portfolio_analytics.services.exceptions import FeedUnavailableError
from portfolio_analytics.services.feeds import BenchmarkFeedClient, HistoryFeedClient

logger = logging.getLogger(__name__)


# =============================================================================
# SINGLETON SERVICE INSTANCES
# =============================================================================
# Order matters: define dependencies before dependents
# 1. get_history_feed (no deps)
# 2. get_benchmark_feed (no deps, optional)
# 3. get_analytics_service (depends on both feeds)


@lru_cache(maxsize=1)
def get_history_feed() -> HistoryFeedClient:
    """
    Get the singleton history feed client.

    Raises:
        FeedUnavailableError: HISTORY_FEED_URL is not configured
    """
    if not settings.is_history_feed_configured:
        raise FeedUnavailableError("history", "HISTORY_FEED_URL is not configured")

    logger.debug("Initializing singleton HistoryFeedClient")
    return HistoryFeedClient(
        base_url=settings.history_feed_url,
        timeout=settings.feed_timeout_seconds,
    )


@lru_cache(maxsize=1)
def get_benchmark_feed() -> BenchmarkFeedClient | None:
    """
    Get the singleton benchmark feed client.

    Returns None when BENCHMARK_FEED_URL is not set; analytics are then
    served without a benchmark.
    """
    if not settings.benchmark_feed_url:
        logger.warning("BENCHMARK_FEED_URL not configured, benchmarks disabled")
        return None

    logger.debug("Initializing singleton BenchmarkFeedClient")
    return BenchmarkFeedClient(
        base_url=settings.benchmark_feed_url,
        timeout=settings.feed_timeout_seconds,
    )


@lru_cache(maxsize=1)
def get_analytics_service() -> AnalyticsService:
    """
    Get the singleton AnalyticsService instance.

    Shares a single cache across all requests, ensuring cache invalidation
    works correctly and avoiding redundant computations.
    """
    logger.debug("Initializing singleton AnalyticsService")
    return AnalyticsService(
        history_feed=get_history_feed(),
        benchmark_feed=get_benchmark_feed(),
    )


# =============================================================================
# CACHE MANAGEMENT
# =============================================================================

def clear_service_caches() -> None:
    """
    Clear all service singletons.

    Useful for testing or after a configuration change.
    """
    get_history_feed.cache_clear()
    get_benchmark_feed.cache_clear()
    get_analytics_service.cache_clear()
    logger.info("Cleared all service singleton caches")
