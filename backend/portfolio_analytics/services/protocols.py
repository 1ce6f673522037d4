# backend/portfolio_analytics/services/protocols.py
"""
Protocol interfaces for service dependency injection.

Using typing.Protocol enables structural subtyping:
- The httpx-backed feed clients satisfy these without inheritance
- Test doubles only need the listed methods
"""

from __future__ import annotations

from datetime import date
from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from portfolio_analytics.services.analytics.types import BenchmarkRecord, ValuationRecord


class HistoryFeedProtocol(Protocol):
    """Interface required by AnalyticsService for valuation history."""

    def get_history(self, account_code: str) -> list[ValuationRecord]:
        ...


class BenchmarkFeedProtocol(Protocol):
    """Interface required by AnalyticsService for benchmark index levels."""

    def get_series(
        self,
        symbol: str,
        start_date: date,
        end_date: date,
    ) -> list[BenchmarkRecord]:
        ...
