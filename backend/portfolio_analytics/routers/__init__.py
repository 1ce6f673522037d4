# backend/portfolio_analytics/routers/__init__.py
"""
API routers for the Portfolio Analytics service.

- analytics: Account analytics, ad-hoc computation, cache invalidation
"""

from portfolio_analytics.routers.analytics import router as analytics_router

__all__ = [
    "analytics_router",
]
