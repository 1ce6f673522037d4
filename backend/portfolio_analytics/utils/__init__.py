# backend/portfolio_analytics/utils/__init__.py
"""
Cross-cutting utilities for the Portfolio Analytics service.

- logging: logging setup with correlation ID support
- context: request-scoped correlation ID
- date_utils: business-day and calendar-month arithmetic

Usage:
    from portfolio_analytics.utils import setup_logging, get_correlation_id
    from portfolio_analytics.utils.date_utils import months_ago
"""

from portfolio_analytics.utils.context import (
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
)
from portfolio_analytics.utils.logging import setup_logging

__all__ = [
    "setup_logging",
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
]
