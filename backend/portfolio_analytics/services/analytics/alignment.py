# backend/portfolio_analytics/services/analytics/alignment.py
"""
Series alignment: NAV normalization and benchmark join.

The portfolio and the benchmark are observed on different, irregular
calendars. Each portfolio date is joined with the benchmark level in effect
on that date (the latest benchmark observation on or before it), and both
series are rebased to 100 at the portfolio's first date so they can be
plotted and compared on one axis.

Formulas:
    normalized_nav[i]       = nav[i] / nav[0] * 100
    normalized_benchmark[i] = benchmark_value[i] / benchmark_value[0] * 100

Degenerate bases:
    nav[0] <= 0             -> portfolio fields are None; the benchmark is
                               joined and normalized as usual
    no benchmark on or before the first date, or base <= 0
                            -> benchmark fields are None for the whole series
"""

import logging
from bisect import bisect_right
from collections.abc import Sequence
from dataclasses import replace
from datetime import date
from decimal import Decimal

from portfolio_analytics.services.analytics.types import (
    BenchmarkRecord,
    EnrichedRecord,
    ValuationRecord,
)
from portfolio_analytics.services.constants import NORMALIZATION_BASE, ZERO

logger = logging.getLogger(__name__)


def backward_fill_index(dates: Sequence[date], target: date) -> int | None:
    """
    Index of the latest date <= target in an ascending date list.

    Returns:
        The index, or None if every date is after target
    """
    position = bisect_right(dates, target)
    if position == 0:
        return None
    return position - 1


def normalize(value: Decimal, base: Decimal) -> Decimal | None:
    """Rebase a value to NORMALIZATION_BASE; None for a non-positive base."""
    if base <= ZERO:
        return None
    return value / base * NORMALIZATION_BASE


def align_series(
        records: Sequence[ValuationRecord],
        benchmark: Sequence[BenchmarkRecord] | None = None,
) -> list[EnrichedRecord]:
    """
    Normalize the portfolio NAV and join the benchmark onto portfolio dates.

    Both inputs must be sorted ascending by date. Drawdown fields are left
    unset; see drawdown.apply_drawdowns.

    Args:
        records: Valuation history
        benchmark: Benchmark index levels (optional)

    Returns:
        One EnrichedRecord per input record, same order
    """
    if not records:
        return []

    enriched = [EnrichedRecord.from_record(r) for r in records]

    # A bad portfolio base leaves the benchmark join untouched
    base_nav = records[0].nav
    if base_nav <= ZERO:
        logger.warning(
            f"Base NAV {base_nav} on {records[0].report_date} is not positive; "
            f"normalized series unavailable"
        )
    else:
        enriched = [replace(e, normalized_nav=normalize(e.nav, base_nav)) for e in enriched]

    if not benchmark:
        return enriched

    benchmark_dates = [b.date for b in benchmark]
    matches = [backward_fill_index(benchmark_dates, r.report_date) for r in records]

    base_index = matches[0]
    if base_index is None:
        logger.info(
            f"No benchmark observation on or before {records[0].report_date}; "
            f"benchmark omitted"
        )
        return enriched

    base_value = benchmark[base_index].value
    if base_value <= ZERO:
        logger.warning(f"Benchmark base value {base_value} is not positive; benchmark omitted")
        return enriched

    aligned = []
    for record, index in zip(enriched, matches):
        # Dates are ascending, so every later match exists once the first does
        value = benchmark[index].value
        aligned.append(replace(
            record,
            benchmark_value=value,
            normalized_benchmark=normalize(value, base_value),
        ))
    return aligned
