# backend/portfolio_analytics/services/analytics/returns.py
"""
Trailing return calculations.

Pure functions over a (date, value) series such as NAV or a benchmark index.
All results are percentages (12.5 = 12.5%), or None when the window cannot
be evaluated.

Windows (anchored at the latest observation):
    1W, 10D   7 / 10 business days back (Mon-Fri, holidays not modelled)
    1M .. 1Y  1, 3, 6, 12 calendar months back; a month-end anchor looks
              back to the month end N months earlier
    Since Inception
              from the inception observation (explicit date, or the first
              record) to the latest

The start observation of a window is the latest record on or before the
window's target date (backward fill). No such record -> None.

Return convention by horizon:
    shorter than one year   absolute: (end / start - 1) * 100
    one year or longer      CAGR:     ((end / start) ** (1 / years) - 1) * 100

Precision Note:
    Decimal.__pow__() supports non-integer exponents, so CAGR stays in
    Decimal. Extreme ratios can raise InvalidOperation; those fall back to
    float, which keeps ~15 significant digits.
"""

import decimal
import logging
from collections.abc import Sequence
from datetime import date
from decimal import Decimal

from portfolio_analytics.services.analytics.alignment import backward_fill_index
from portfolio_analytics.services.analytics.types import TrailingReturns
from portfolio_analytics.services.constants import (
    ANNUALIZATION_THRESHOLD_MONTHS,
    DAY_WINDOWS,
    DAYS_PER_YEAR,
    HUNDRED,
    MONTH_WINDOWS,
    MONTHS_PER_YEAR,
    ONE,
    SINCE_INCEPTION,
    ZERO,
)
from portfolio_analytics.utils.date_utils import business_days_ago, months_ago

logger = logging.getLogger(__name__)

Observation = tuple[date, Decimal]


# =============================================================================
# RETURN FORMULAS
# =============================================================================

def simple_return_percent(start_value: Decimal, end_value: Decimal) -> Decimal | None:
    """
    Absolute return in percent.

    Formula: (End / Start - 1) * 100

    Returns:
        Percent return, or None if start_value is not positive
    """
    if start_value <= ZERO:
        return None
    return (end_value / start_value - ONE) * HUNDRED


def annualized_return_percent(
        start_value: Decimal,
        end_value: Decimal,
        years: Decimal,
) -> Decimal | None:
    """
    Compound annual growth rate in percent.

    Formula: ((End / Start) ** (1 / years) - 1) * 100

    Args:
        start_value: Value at the start of the window
        end_value: Value at the end of the window
        years: Window length in years (> 0)

    Returns:
        CAGR in percent, or None if start is not positive, years is not
        positive, or the ratio is negative (no real fractional root)
    """
    if start_value <= ZERO or years <= ZERO:
        return None

    ratio = end_value / start_value
    if ratio < ZERO:
        return None
    if ratio == ZERO:
        return -HUNDRED

    exponent = ONE / years
    try:
        growth = ratio ** exponent
    except decimal.InvalidOperation:
        growth = Decimal(str(float(ratio) ** float(exponent)))

    return (growth - ONE) * HUNDRED


# =============================================================================
# TRAILING RETURNS
# =============================================================================

def _start_value(dates: list[date], values: list[Decimal], target: date) -> tuple[date, Decimal] | None:
    index = backward_fill_index(dates, target)
    if index is None:
        return None
    return dates[index], values[index]


def _since_inception(
        dates: list[date],
        values: list[Decimal],
        inception_date: date | None,
) -> Decimal | None:
    if len(dates) < 2:
        return None

    if inception_date is None:
        start = dates[0], values[0]
    else:
        start = _start_value(dates, values, inception_date)
        if start is None:
            return None

    start_date, start_value = start
    latest_date, latest_value = dates[-1], values[-1]

    years = Decimal((latest_date - start_date).days) / DAYS_PER_YEAR
    if years < ONE:
        return simple_return_percent(start_value, latest_value)
    return annualized_return_percent(start_value, latest_value, years)


def calculate_trailing_returns(
        series: Sequence[Observation],
        inception_date: date | None = None,
) -> TrailingReturns:
    """
    Trailing returns of a dated value series.

    Args:
        series: (date, value) observations; sorted defensively, dates are
            expected to be unique
        inception_date: Start of the Since Inception window. Defaults to the
            first observation.

    Returns:
        Ordered mapping "1W", "10D", "1M", "3M", "6M", "1Y",
        "Since Inception" -> percent or None

    Example:
        NAV 100 on 2023-01-01, 110 on 2023-07-01, 121 on 2024-01-01
        -> 6M = 10, 1Y = 21, Since Inception = 21
    """
    ordered = sorted(series, key=lambda observation: observation[0])
    returns: TrailingReturns = {}

    if not ordered:
        for label in (*DAY_WINDOWS, *MONTH_WINDOWS, SINCE_INCEPTION):
            returns[label] = None
        return returns

    dates = [d for d, _ in ordered]
    values = [v for _, v in ordered]
    latest_date, latest_value = dates[-1], values[-1]

    for label, business_days in DAY_WINDOWS.items():
        target = business_days_ago(latest_date, business_days)
        start = _start_value(dates, values, target)
        logger.debug(f"{label}: target {target}, start {start}")
        returns[label] = None if start is None else simple_return_percent(start[1], latest_value)

    for label, months in MONTH_WINDOWS.items():
        target = months_ago(latest_date, months)
        start = _start_value(dates, values, target)
        logger.debug(f"{label}: target {target}, start {start}")
        if start is None:
            returns[label] = None
        elif months < ANNUALIZATION_THRESHOLD_MONTHS:
            returns[label] = simple_return_percent(start[1], latest_value)
        else:
            years = Decimal(months) / Decimal(MONTHS_PER_YEAR)
            returns[label] = annualized_return_percent(start[1], latest_value, years)

    returns[SINCE_INCEPTION] = _since_inception(dates, values, inception_date)
    return returns
