# backend/portfolio_analytics/services/analytics/pnl.py
"""
Calendar-period profit and loss.

Monthly, quarterly and yearly P&L are produced in one forward pass over the
valuation history. Each level (year, quarter, month) keeps only its start
NAV, start value and the capital moved in or out since it started.

When a record falls into a new period, the period that just ended is closed
with the previous record as its end point:

    percent = (end_nav / start_nav - 1) * 100        (0 if start_nav <= 0)
    cash    = end_value - start_value - capital_moved

so `cash` is the gain or loss net of deposits and withdrawals. A new year
always opens a new quarter, and a new quarter a new month. The open periods
are closed with the last record after the pass.

Every record's cash_in_out is booked to the year, quarter and month it
falls in, the opening record of a period included. capitalInOut, yearCash
and totalCapitalInOut therefore add up to the net capital of the history.

Where the next period starts depends on PeriodAnchor:
    FIRST_OBSERVATION  at the period's own first record
    PREVIOUS_CLOSE     at the previous record

The very first period of the history always starts at the first record.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from portfolio_analytics.services.analytics.types import (
    MonthPnl,
    MonthlyPnl,
    PeriodAnchor,
    PeriodPnl,
    QuarterlyPnl,
    ValuationRecord,
)
from portfolio_analytics.services.constants import HUNDRED, MONTH_NAMES, ONE, QUARTER_KEYS, ZERO
from portfolio_analytics.utils.date_utils import quarter_of

logger = logging.getLogger(__name__)


@dataclass
class _OpenPeriod:
    """Running state of one calendar period."""
    start_nav: Decimal
    start_value: Decimal
    capital_moved: Decimal = ZERO

    def close(self, end: ValuationRecord) -> tuple[Decimal, Decimal]:
        """Return (percent, cash) of the period ending at `end`."""
        if self.start_nav <= ZERO:
            percent = ZERO
        else:
            percent = (end.nav / self.start_nav - ONE) * HUNDRED
        cash = end.portfolio_value - self.start_value - self.capital_moved
        return percent, cash


def _open_at(record: ValuationRecord) -> _OpenPeriod:
    return _OpenPeriod(start_nav=record.nav, start_value=record.portfolio_value)


def _book_cash(record: ValuationRecord, *periods: _OpenPeriod) -> None:
    for period in periods:
        period.capital_moved += record.cash_in_out


def _empty_quarterly() -> QuarterlyPnl:
    keys = (*QUARTER_KEYS, "total")
    return QuarterlyPnl(
        percent={key: None for key in keys},
        cash={key: None for key in keys},
    )


class _PnlBuilder:
    """Collects closed periods into a PeriodPnl."""

    def __init__(self) -> None:
        self.result = PeriodPnl()

    def start_year(self, year: int) -> None:
        self.result.quarterly.setdefault(year, _empty_quarterly())
        self.result.monthly.setdefault(year, MonthlyPnl())

    def close_month(self, year: int, month: int, period: _OpenPeriod, end: ValuationRecord) -> None:
        percent, cash = period.close(end)
        self.result.monthly[year].months[MONTH_NAMES[month - 1]] = MonthPnl(
            percent=percent,
            cash=cash,
            capital_in_out=period.capital_moved,
        )

    def close_quarter(self, year: int, quarter: int, period: _OpenPeriod, end: ValuationRecord) -> None:
        percent, cash = period.close(end)
        key = QUARTER_KEYS[quarter - 1]
        quarterly = self.result.quarterly[year]
        quarterly.percent[key] = percent
        quarterly.cash[key] = cash

    def close_year(self, year: int, period: _OpenPeriod, end: ValuationRecord) -> None:
        percent, cash = period.close(end)

        quarterly = self.result.quarterly[year]
        quarterly.percent["total"] = percent
        quarterly.cash["total"] = cash
        quarterly.year_cash = period.capital_moved

        monthly = self.result.monthly[year]
        monthly.total_percent = percent
        monthly.total_cash = cash
        monthly.total_capital_in_out = period.capital_moved


def calculate_period_pnl(
        records: Sequence[ValuationRecord],
        anchor: PeriodAnchor = PeriodAnchor.FIRST_OBSERVATION,
) -> PeriodPnl:
    """
    Monthly and quarterly P&L of a valuation history, keyed by year.

    Args:
        records: Valuation history (sorted defensively, unique dates expected)
        anchor: Where each new period starts (see module docstring)

    Returns:
        PeriodPnl; quarters without any record stay None

    Example:
        value 1,000,000 on Jan 1, +20,000 deposited on Jan 15,
        value 1,050,000 on Jan 30 -> January cash P&L = 30,000
    """
    anchor = PeriodAnchor(anchor)
    ordered = sorted(records, key=lambda r: r.report_date)
    builder = _PnlBuilder()
    if not ordered:
        return builder.result

    first = ordered[0]
    builder.start_year(first.report_date.year)
    year_period = _open_at(first)
    quarter_period = _open_at(first)
    month_period = _open_at(first)
    _book_cash(first, year_period, quarter_period, month_period)

    prev = first
    for record in ordered[1:]:
        prev_date, current = prev.report_date, record.report_date
        prev_quarter = quarter_of(prev_date)

        new_year = current.year != prev_date.year
        new_quarter = new_year or quarter_of(current) != prev_quarter
        new_month = new_quarter or current.month != prev_date.month

        if new_year:
            builder.close_year(prev_date.year, year_period, prev)
            builder.start_year(current.year)
        if new_quarter:
            builder.close_quarter(prev_date.year, prev_quarter, quarter_period, prev)
        if new_month:
            builder.close_month(prev_date.year, prev_date.month, month_period, prev)

        start = record if anchor == PeriodAnchor.FIRST_OBSERVATION else prev
        if new_year:
            year_period = _open_at(start)
        if new_quarter:
            quarter_period = _open_at(start)
        if new_month:
            month_period = _open_at(start)

        _book_cash(record, year_period, quarter_period, month_period)
        prev = record

    last = prev.report_date
    builder.close_month(last.year, last.month, month_period, prev)
    builder.close_quarter(last.year, quarter_of(last), quarter_period, prev)
    builder.close_year(last.year, year_period, prev)

    logger.debug(
        f"P&L computed for {len(ordered)} records over "
        f"{len(builder.result.monthly)} year(s), anchor={anchor.value}"
    )
    return builder.result
