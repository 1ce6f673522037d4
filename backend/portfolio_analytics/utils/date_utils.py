# backend/portfolio_analytics/utils/date_utils.py
"""
Date and calendar-period helpers for the analytics engine.

Everything here is a pure function of its arguments. The engine works on
plain `datetime.date` values (no time zones, no times of day).

Business days:
    Monday through Friday. Market holidays are NOT modelled, so a lookback
    that crosses a holiday lands one exchange session further back than a
    holiday-aware calendar would.

Month arithmetic:
    `subtract_months` keeps the day-of-month and clamps it to the length of
    the target month (31 Mar - 1 month = 29 Feb in a leap year).
    `month_end_lookback` is used when the anchor itself is a month end, so
    that month-end observations are always compared with month-end
    observations.

Usage:
    from portfolio_analytics.utils.date_utils import business_days_ago

    target = business_days_ago(date(2024, 1, 8), 7)  # -> 2023-12-28
"""

import calendar
from datetime import date, datetime, timedelta


def is_business_day(d: date) -> bool:
    """Return True for Monday-Friday."""
    return d.weekday() < 5


def business_days_ago(d: date, business_days: int) -> date:
    """
    Walk backwards from `d` until `business_days` weekdays have been counted.

    The walk decrements one calendar day at a time; Saturdays and Sundays
    are stepped over without being counted. The starting date itself is
    never counted.

    Args:
        d: Anchor date
        business_days: Number of weekdays to step back (>= 0)

    Returns:
        The date on which the count is reached

    Example:
        >>> business_days_ago(date(2024, 1, 8), 1)   # Monday
        datetime.date(2024, 1, 5)                    # previous Friday
    """
    if business_days < 0:
        raise ValueError(f"business_days must be non-negative, got {business_days}")

    target = d
    counted = 0
    while counted < business_days:
        target -= timedelta(days=1)
        if is_business_day(target):
            counted += 1
    return target


def days_in_month(year: int, month: int) -> int:
    """Number of calendar days in the given month."""
    return calendar.monthrange(year, month)[1]


def is_month_end(d: date) -> bool:
    """True if `d` is the last calendar day of its month."""
    return d.day == days_in_month(d.year, d.month)


def _shift_month(year: int, month: int, months_back: int) -> tuple[int, int]:
    """Return (year, month) that lies `months_back` months before the input."""
    index = year * 12 + (month - 1) - months_back
    return index // 12, index % 12 + 1


def subtract_months(d: date, months: int) -> date:
    """
    Plain calendar-month subtraction preserving the day of month.

    If the target month is shorter than `d.day`, the result is clamped to
    the target month's last day.
    """
    year, month = _shift_month(d.year, d.month, months)
    day = min(d.day, days_in_month(year, month))
    return date(year, month, day)


def month_end_lookback(d: date, months: int) -> date:
    """Last calendar day of the month lying `months` months before `d`."""
    year, month = _shift_month(d.year, d.month, months)
    return date(year, month, days_in_month(year, month))


def months_ago(d: date, months: int) -> date:
    """
    Target date for an N-month trailing window anchored at `d`.

    Month-end anchors map to the month end N months earlier; any other
    anchor uses `subtract_months`.
    """
    if is_month_end(d):
        return month_end_lookback(d, months)
    return subtract_months(d, months)


def quarter_of(d: date) -> int:
    """Calendar quarter (1-4) of a date."""
    return (d.month - 1) // 3 + 1


def parse_iso_date(value: str | date | datetime) -> date:
    """
    Parse the date part of an ISO-8601 date or datetime.

    Feeds deliver either plain dates ("2024-03-31") or timestamps
    ("2024-03-31T00:00:00.000Z"); only the calendar date is kept.

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        raise ValueError("empty date string")
    return date.fromisoformat(text[:10])
