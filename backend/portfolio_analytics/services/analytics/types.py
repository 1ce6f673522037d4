# backend/portfolio_analytics/services/analytics/types.py
"""
Data types for the analytics engine.

All monetary and NAV values use Decimal for financial precision. A value of
None on any derived field means "unavailable" (not enough data, or a
degenerate base); it is never silently replaced with zero.

Architecture:
    - ValuationRecord: one observation from the history feed (input)
    - BenchmarkRecord: one index level from the benchmark feed (input)
    - EnrichedRecord: ValuationRecord plus normalized/drawdown fields (output)
    - DrawdownSummary: current and maximum drawdown of a series
    - TrailingReturns: label -> return percent
    - QuarterlyPnl / MonthlyPnl / PeriodPnl: calendar-period profit and loss
    - PortfolioSummary: invested capital vs current value
    - AnalyticsResult: everything computed for one account
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from portfolio_analytics.services.constants import ZERO


class PeriodAnchor(str, Enum):
    """
    Where a new calendar period's P&L starts.

    Attributes:
        FIRST_OBSERVATION: The period starts at its own first record; cash
            booked on that record is already in its value and is not counted.
        PREVIOUS_CLOSE: The period starts at the last record of the previous
            period; cash booked on the first record is counted.
    """
    FIRST_OBSERVATION = "first_observation"
    PREVIOUS_CLOSE = "previous_close"


# =============================================================================
# INPUT TYPES
# =============================================================================

@dataclass(frozen=True)
class ValuationRecord:
    """
    A single valuation observation of an account.

    Attributes:
        report_date: Observation date
        nav: Net asset value per unit (the growth index)
        portfolio_value: Total account value in currency
        cash_in_out: External capital movement booked on this date
            (positive = deposit, negative = withdrawal)
    """
    report_date: date
    nav: Decimal
    portfolio_value: Decimal
    cash_in_out: Decimal = ZERO

    @property
    def has_positive_nav(self) -> bool:
        return self.nav > ZERO


@dataclass(frozen=True)
class BenchmarkRecord:
    """One benchmark index level."""
    date: date
    value: Decimal


# =============================================================================
# SERIES OUTPUT
# =============================================================================

@dataclass(frozen=True)
class EnrichedRecord:
    """
    A valuation record with its derived series values.

    Attributes:
        normalized_nav: NAV rebased so the first record is 100
        drawdown_percent: Decline from the running peak of normalized_nav (>= 0)
        benchmark_value: Benchmark level in effect on report_date (backward fill)
        normalized_benchmark: benchmark_value rebased to 100 at inception
        benchmark_drawdown_percent: Decline from the running peak of the
            normalized benchmark (>= 0)
    """
    report_date: date
    nav: Decimal
    portfolio_value: Decimal
    cash_in_out: Decimal
    normalized_nav: Decimal | None = None
    drawdown_percent: Decimal | None = None
    benchmark_value: Decimal | None = None
    normalized_benchmark: Decimal | None = None
    benchmark_drawdown_percent: Decimal | None = None

    @classmethod
    def from_record(cls, record: ValuationRecord) -> "EnrichedRecord":
        return cls(
            report_date=record.report_date,
            nav=record.nav,
            portfolio_value=record.portfolio_value,
            cash_in_out=record.cash_in_out,
        )


@dataclass(frozen=True)
class DrawdownSummary:
    """
    Scalar drawdown figures of one series, as positive percentages.

    Attributes:
        current_drawdown: Drawdown of the latest observation
        max_drawdown: Largest drawdown over the whole series
    """
    current_drawdown: Decimal | None = None
    max_drawdown: Decimal | None = None


# Ordered label -> percent mapping ("1W", "10D", "1M", "3M", "6M", "1Y",
# "Since Inception"); None marks an unavailable window.
TrailingReturns = dict[str, Decimal | None]


# =============================================================================
# PERIOD P&L
# =============================================================================

@dataclass
class QuarterlyPnl:
    """
    Quarterly P&L of one calendar year.

    Attributes:
        percent: q1..q4 and "total" NAV return in percent (None = no data)
        cash: q1..q4 and "total" currency P&L net of capital movement
        year_cash: Net capital moved in or out during the year
    """
    percent: dict[str, Decimal | None]
    cash: dict[str, Decimal | None]
    year_cash: Decimal = ZERO


@dataclass
class MonthPnl:
    """P&L of one calendar month."""
    percent: Decimal
    cash: Decimal
    capital_in_out: Decimal


@dataclass
class MonthlyPnl:
    """
    Monthly P&L of one calendar year.

    Attributes:
        months: English month name -> MonthPnl, in calendar order
        total_percent: NAV return of the year
        total_cash: Currency P&L of the year net of capital movement
        total_capital_in_out: Net capital moved during the year
    """
    months: dict[str, MonthPnl] = field(default_factory=dict)
    total_percent: Decimal = ZERO
    total_cash: Decimal = ZERO
    total_capital_in_out: Decimal = ZERO


@dataclass
class PeriodPnl:
    """Quarterly and monthly P&L keyed by calendar year."""
    quarterly: dict[int, QuarterlyPnl] = field(default_factory=dict)
    monthly: dict[int, MonthlyPnl] = field(default_factory=dict)


# =============================================================================
# SUMMARY & COMBINED RESULT
# =============================================================================

@dataclass(frozen=True)
class PortfolioSummary:
    """
    Headline figures of an account.

    Attributes:
        total_invested: Sum of all capital moved in (net of withdrawals)
        current_value: Latest portfolio value
        total_returns: current_value - total_invested
        returns_percent: total_returns as a percent of total_invested
            (None when nothing was invested)
    """
    total_invested: Decimal = ZERO
    current_value: Decimal = ZERO
    total_returns: Decimal = ZERO
    returns_percent: Decimal | None = None


@dataclass
class AnalyticsResult:
    """
    Combined result of one analytics run.

    This is the main type returned by compute_analytics and AnalyticsService.
    """
    account_code: str | None = None
    inception_date: date | None = None
    latest_date: date | None = None

    records: list[EnrichedRecord] = field(default_factory=list)

    drawdown: DrawdownSummary = field(default_factory=DrawdownSummary)
    benchmark_drawdown: DrawdownSummary = field(default_factory=DrawdownSummary)

    trailing_returns: TrailingReturns = field(default_factory=dict)
    # None when the benchmark is absent
    benchmark_trailing_returns: TrailingReturns | None = None

    pnl: PeriodPnl = field(default_factory=PeriodPnl)
    summary: PortfolioSummary = field(default_factory=PortfolioSummary)

    has_benchmark: bool = False
    benchmark_symbol: str | None = None

    # Data quality
    warnings: list[str] = field(default_factory=list)
