# backend/tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Environment setup (must run before app modules are imported)
- Valuation history and benchmark factories
- Fake feeds for the service and API layers
"""

import os

# Set required environment variables BEFORE importing app modules
os.environ["ENVIRONMENT"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import date, timedelta
from decimal import Decimal

import pytest

from portfolio_analytics.services.analytics.types import BenchmarkRecord, ValuationRecord
from portfolio_analytics.services.exceptions import AccountNotFoundError, BenchmarkNotFoundError


# =============================================================================
# RECORD FACTORIES
# =============================================================================

def make_record(
        report_date: date | str,
        nav: str | int,
        value: str | int | None = None,
        cash: str | int = "0",
) -> ValuationRecord:
    """Build a ValuationRecord from short literals; value defaults to nav * 10,000."""
    if isinstance(report_date, str):
        report_date = date.fromisoformat(report_date)
    nav_decimal = Decimal(str(nav))
    return ValuationRecord(
        report_date=report_date,
        nav=nav_decimal,
        portfolio_value=Decimal(str(value)) if value is not None else nav_decimal * 10000,
        cash_in_out=Decimal(str(cash)),
    )


def make_benchmark(report_date: date | str, value: str | int) -> BenchmarkRecord:
    if isinstance(report_date, str):
        report_date = date.fromisoformat(report_date)
    return BenchmarkRecord(date=report_date, value=Decimal(str(value)))


@pytest.fixture
def growth_history() -> list[ValuationRecord]:
    """NAV 100 -> 110 -> 121 over one year (10% per half year)."""
    return [
        make_record("2023-01-01", 100),
        make_record("2023-07-01", 110),
        make_record("2024-01-01", 121),
    ]


@pytest.fixture
def daily_history() -> list[ValuationRecord]:
    """
    Weekday NAVs for January 2024 with a dip and recovery.

    Jan 1..12 rise to 110, Jan 15..19 fall to 99, then recover to 112.
    """
    navs = [
        100, 101, 102, 103, 104,     # Jan 1-5
        105, 106, 107, 108, 110,     # Jan 8-12
        107, 104, 101, 100, 99,      # Jan 15-19
        102, 105, 108, 110, 111,     # Jan 22-26
        111, 112, 112,               # Jan 29-31
    ]
    records = []
    current = date(2024, 1, 1)
    for nav in navs:
        while current.weekday() >= 5:
            current += timedelta(days=1)
        records.append(make_record(current, nav))
        current += timedelta(days=1)
    return records


# =============================================================================
# FAKE FEEDS
# =============================================================================

class FakeHistoryFeed:
    """In-memory history feed; counts calls so cache hits can be asserted."""

    def __init__(self, histories: dict[str, list[ValuationRecord]] | None = None):
        self.histories = histories or {}
        self.calls = 0
        self.error: Exception | None = None

    def get_history(self, account_code: str) -> list[ValuationRecord]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        if account_code not in self.histories:
            raise AccountNotFoundError(account_code)
        return list(self.histories[account_code])


class FakeBenchmarkFeed:
    """In-memory benchmark feed returning every stored level inside the window."""

    def __init__(self, series: dict[str, list[BenchmarkRecord]] | None = None):
        self.series = series or {}
        self.calls: list[tuple[str, date, date]] = []
        self.error: Exception | None = None

    def get_series(self, symbol: str, start_date: date, end_date: date) -> list[BenchmarkRecord]:
        self.calls.append((symbol, start_date, end_date))
        if self.error is not None:
            raise self.error
        if symbol not in self.series:
            raise BenchmarkNotFoundError(symbol)
        return [b for b in self.series[symbol] if start_date <= b.date <= end_date]


@pytest.fixture
def history_feed(growth_history) -> FakeHistoryFeed:
    return FakeHistoryFeed({"AC001": growth_history})


@pytest.fixture
def benchmark_feed() -> FakeBenchmarkFeed:
    return FakeBenchmarkFeed({
        "BSE500": [
            make_benchmark("2022-12-30", 1000),
            make_benchmark("2023-07-03", 1050),
            make_benchmark("2024-01-01", 1200),
        ],
    })
