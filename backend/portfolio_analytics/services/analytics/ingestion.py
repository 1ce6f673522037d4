# backend/portfolio_analytics/services/analytics/ingestion.py
"""
Ingestion boundary of the analytics engine.

Raw rows (from the feeds or from a request body) are turned into validated
ValuationRecord / BenchmarkRecord values here, once. Everything downstream
can rely on:
- finite Decimal values
- records sorted by date
- at most one record per date (first-seen wins)
"""

import logging
from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, TypeVar

from portfolio_analytics.services.analytics.types import BenchmarkRecord, ValuationRecord
from portfolio_analytics.services.constants import ZERO
from portfolio_analytics.services.exceptions import ValidationError
from portfolio_analytics.utils.date_utils import parse_iso_date

logger = logging.getLogger(__name__)

R = TypeVar("R", ValuationRecord, BenchmarkRecord)


def to_decimal(value: Any, field_name: str) -> Decimal:
    """
    Convert a feed/request number to a finite Decimal.

    Strings and ints convert exactly; floats go through str() so that 0.1
    becomes Decimal("0.1") rather than its binary expansion.

    Raises:
        ValidationError: If the value is missing, not numeric, or not finite
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number, got {value!r}", field=field_name)

    try:
        if isinstance(value, Decimal):
            result = value
        elif isinstance(value, float):
            result = Decimal(str(value))
        else:
            result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field_name} is not a valid number: {value!r}", field=field_name)

    if not result.is_finite():
        raise ValidationError(f"{field_name} must be finite, got {value!r}", field=field_name)
    return result


def to_date(value: Any, field_name: str) -> date:
    """Parse an ISO date/datetime, raising ValidationError on failure."""
    if isinstance(value, (date, datetime)):
        return parse_iso_date(value)
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be an ISO date, got {value!r}", field=field_name)
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{field_name} is not a valid ISO date: {value!r}", field=field_name)


def build_valuation_record(
        report_date: Any,
        nav: Any,
        portfolio_value: Any,
        cash_in_out: Any = None,
) -> ValuationRecord:
    """
    Build a ValuationRecord from raw values.

    A missing or null cash_in_out means no capital movement. A non-positive
    NAV is accepted; the engine reports dependent metrics as unavailable.

    Raises:
        ValidationError: If any field cannot be parsed
    """
    return ValuationRecord(
        report_date=to_date(report_date, "report_date"),
        nav=to_decimal(nav, "nav"),
        portfolio_value=to_decimal(portfolio_value, "portfolio_value"),
        cash_in_out=ZERO if cash_in_out in (None, "") else to_decimal(cash_in_out, "cash_in_out"),
    )


def build_benchmark_record(record_date: Any, value: Any) -> BenchmarkRecord:
    """
    Build a BenchmarkRecord from raw values.

    Raises:
        ValidationError: If the date or value cannot be parsed
    """
    return BenchmarkRecord(
        date=to_date(record_date, "date"),
        value=to_decimal(value, "value"),
    )


def _record_date(record: ValuationRecord | BenchmarkRecord) -> date:
    if isinstance(record, ValuationRecord):
        return record.report_date
    return record.date


def prepare_series(records: Iterable[R], label: str = "history") -> tuple[list[R], list[str]]:
    """
    Sort records by date and drop duplicate dates.

    The sort is stable, so when several records share a date the one that
    appeared first in the input is kept.

    Args:
        records: Valuation or benchmark records in any order
        label: Series name used in warnings

    Returns:
        Tuple of (clean records, warnings)
    """
    ordered = sorted(records, key=_record_date)

    clean: list[R] = []
    dropped: list[date] = []
    for record in ordered:
        if clean and _record_date(clean[-1]) == _record_date(record):
            dropped.append(_record_date(record))
            continue
        clean.append(record)

    warnings: list[str] = []
    if dropped:
        unique_dates = sorted(set(dropped))
        message = (
            f"{label}: dropped {len(dropped)} duplicate record(s) on "
            f"{', '.join(d.isoformat() for d in unique_dates[:5])}"
            f"{' ...' if len(unique_dates) > 5 else ''}; first occurrence kept"
        )
        logger.warning(message)
        warnings.append(message)

    return clean, warnings
