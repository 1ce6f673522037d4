# backend/portfolio_analytics/schemas/analytics.py
"""
Pydantic schemas for the Analytics API.

Design decisions:
- Numbers are serialized as STRINGS to preserve Decimal precision
- Growth, drawdown and return figures carry 4 decimal places ("12.3457")
- P&L percent/cash figures carry 2 decimal places ("12.35"), except the
  yearly totals of the monthly table, which are JSON numbers
- Null is returned when a metric cannot be calculated; never 0
- P&L tables use the camelCase keys the portal front end reads
  (yearCash, capitalInOut, totalPercent, ...)
"""

from datetime import date
from decimal import Decimal
from typing import Annotated

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, field_validator

from portfolio_analytics.services.analytics.types import (
    BenchmarkRecord,
    PeriodAnchor,
    ValuationRecord,
)
from portfolio_analytics.services.constants import ZERO
from portfolio_analytics.utils.date_utils import parse_iso_date

# Upper bound on rows accepted in one compute request (~80 years of daily data)
MAX_REQUEST_RECORDS = 30_000


def _parse_date(value: object) -> object:
    if isinstance(value, str):
        return parse_iso_date(value)
    return value


# Accepts timestamps ("2024-03-31T00:00:00.000Z") as well as plain dates
FeedDate = Annotated[date, BeforeValidator(_parse_date)]


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class HistoryRecordIn(BaseModel):
    """One valuation observation in a compute request."""

    report_date: FeedDate = Field(..., description="Observation date (ISO date or timestamp)")
    nav: Decimal = Field(..., description="NAV per unit")
    portfolio_value: Decimal = Field(..., description="Total account value")
    cash_in_out: Decimal | None = Field(
        None,
        description="Capital moved in (+) or out (-) on this date; null means none"
    )

    def to_record(self) -> ValuationRecord:
        return ValuationRecord(
            report_date=self.report_date,
            nav=self.nav,
            portfolio_value=self.portfolio_value,
            cash_in_out=self.cash_in_out if self.cash_in_out is not None else ZERO,
        )


class BenchmarkPointIn(BaseModel):
    """One benchmark level in a compute request ("value", or "nav" as the index service sends)."""

    date: FeedDate
    value: Decimal = Field(..., validation_alias=AliasChoices("value", "nav"))

    def to_record(self) -> BenchmarkRecord:
        return BenchmarkRecord(date=self.date, value=self.value)


class AnalyticsRequest(BaseModel):
    """
    Body of POST /analytics/compute.

    The history is analyzed as given; nothing is fetched or cached.
    """

    history: list[HistoryRecordIn] = Field(..., max_length=MAX_REQUEST_RECORDS)
    benchmark: list[BenchmarkPointIn] | None = Field(None, max_length=MAX_REQUEST_RECORDS)
    benchmark_symbol: str | None = Field(None, max_length=32)
    inception_date: date | None = Field(
        None,
        description="Start of the Since Inception window (default: first record)"
    )
    pnl_anchor: PeriodAnchor = Field(
        PeriodAnchor.FIRST_OBSERVATION,
        description="Where calendar periods start for P&L"
    )

    @field_validator("benchmark_symbol")
    @classmethod
    def normalize_symbol(cls, v: str | None) -> str | None:
        """Trim and uppercase the symbol; blank means none."""
        if v is None:
            return None
        v = v.strip().upper()
        return v or None


# =============================================================================
# SERIES SCHEMAS
# =============================================================================

class EnrichedRecordResponse(BaseModel):
    """A history record with normalized and drawdown values."""

    report_date: date
    nav: str
    portfolio_value: str
    cash_in_out: str
    normalized_nav: str | None = Field(None, description="NAV rebased to 100 at inception")
    drawdown_percent: str | None = Field(None, description="Decline from running peak, percent")
    benchmark_value: str | None = None
    normalized_benchmark: str | None = None
    benchmark_drawdown_percent: str | None = None


class DrawdownSummaryResponse(BaseModel):
    """Current and maximum drawdown, as positive percentages."""

    current_drawdown: str | None = None
    max_drawdown: str | None = None


# =============================================================================
# P&L SCHEMAS
# =============================================================================

class QuarterlyPnlResponse(BaseModel):
    """Quarterly P&L of one year; quarters without data are null."""

    model_config = ConfigDict(populate_by_name=True)

    percent: dict[str, str | None] = Field(..., description="q1..q4 and total, percent")
    cash: dict[str, str | None] = Field(..., description="q1..q4 and total, currency")
    year_cash: str = Field(..., alias="yearCash", description="Net capital moved in the year")


class MonthPnlResponse(BaseModel):
    """P&L of one month."""

    model_config = ConfigDict(populate_by_name=True)

    percent: str
    cash: str
    capital_in_out: str = Field(..., alias="capitalInOut")


class MonthlyPnlResponse(BaseModel):
    """Monthly P&L of one year, keyed by English month name."""

    model_config = ConfigDict(populate_by_name=True)

    months: dict[str, MonthPnlResponse]
    total_percent: float = Field(..., alias="totalPercent")
    total_cash: float = Field(..., alias="totalCash")
    total_capital_in_out: float = Field(..., alias="totalCapitalInOut")


# =============================================================================
# RESULT SCHEMAS
# =============================================================================

class PortfolioSummaryResponse(BaseModel):
    """Invested capital against current value."""

    total_invested: str
    current_value: str
    total_returns: str
    returns_percent: str | None = Field(
        None,
        description="total_returns / total_invested in percent; null if nothing invested"
    )


class AnalyticsResponse(BaseModel):
    """Complete analytics of one account."""

    account_code: str | None = None
    inception_date: date | None = None
    latest_date: date | None = None

    has_benchmark: bool = False
    benchmark_symbol: str | None = None

    records: list[EnrichedRecordResponse] = Field(default_factory=list)
    drawdown: DrawdownSummaryResponse
    benchmark_drawdown: DrawdownSummaryResponse | None = None

    trailing_returns: dict[str, str | None] = Field(
        ...,
        description="1W, 10D, 1M, 3M, 6M, 1Y, Since Inception in percent"
    )
    benchmark_trailing_returns: dict[str, str | None] | None = None

    quarterly_pnl: dict[int, QuarterlyPnlResponse] = Field(default_factory=dict)
    monthly_pnl: dict[int, MonthlyPnlResponse] = Field(default_factory=dict)

    summary: PortfolioSummaryResponse

    warnings: list[str] = Field(
        default_factory=list,
        description="Data quality notes (duplicates dropped, benchmark missing, ...)"
    )


class CacheInvalidationResponse(BaseModel):
    """Result of dropping an account's cached analytics."""

    account_code: str
    invalidated: int
