# backend/portfolio_analytics/services/feeds/__init__.py
"""
HTTP clients of the upstream data feeds.

    feeds/
    ├── base.py        # FeedClient: httpx + retries + circuit breaker
    ├── history.py     # HistoryFeedClient (account valuation history)
    └── benchmark.py   # BenchmarkFeedClient (index levels)
"""

from portfolio_analytics.services.feeds.base import FeedClient, unwrap_rows
from portfolio_analytics.services.feeds.benchmark import BenchmarkFeedClient
from portfolio_analytics.services.feeds.history import HistoryFeedClient

__all__ = [
    "FeedClient",
    "HistoryFeedClient",
    "BenchmarkFeedClient",
    "unwrap_rows",
]
