# backend/portfolio_analytics/services/analytics/drawdown.py
"""
Drawdown calculations.

A drawdown is the decline of a series from its running peak, expressed as a
positive percentage:

    peak[i]     = max(value[0..i])
    drawdown[i] = (peak[i] - value[i]) / peak[i] * 100

so drawdown is 0 at every new high. The portfolio drawdown runs on the
normalized NAV and the benchmark drawdown on the normalized benchmark; the
two are independent.
"""

import logging
from collections.abc import Sequence
from dataclasses import replace
from decimal import Decimal

from portfolio_analytics.services.analytics.types import DrawdownSummary, EnrichedRecord
from portfolio_analytics.services.constants import HUNDRED, ZERO

logger = logging.getLogger(__name__)


def calculate_drawdown_series(values: Sequence[Decimal]) -> list[Decimal] | None:
    """
    Running drawdown of a value series.

    Args:
        values: Series values in date order

    Returns:
        One drawdown percent per value ([] for an empty series), or None if
        the series starts at a non-positive value (peak undefined)

    Example:
        values 100, 120, 90 -> drawdowns 0, 0, 25
    """
    if not values:
        return []

    peak = values[0]
    if peak <= ZERO:
        return None

    drawdowns = []
    for value in values:
        if value > peak:
            peak = value
        drawdowns.append((peak - value) / peak * HUNDRED)
    return drawdowns


def summarize_drawdowns(drawdowns: Sequence[Decimal] | None) -> DrawdownSummary:
    """
    Current (latest) and maximum drawdown of a drawdown series.

    An empty or unavailable series gives an all-None summary.
    """
    if not drawdowns:
        return DrawdownSummary()
    return DrawdownSummary(
        current_drawdown=drawdowns[-1],
        max_drawdown=max(drawdowns),
    )


def _series_or_none(values: list[Decimal | None]) -> list[Decimal] | None:
    # Aligned series are all-or-nothing
    if not values or any(v is None for v in values):
        return None
    return values  # type: ignore[return-value]


def apply_drawdowns(records: Sequence[EnrichedRecord]) -> list[EnrichedRecord]:
    """
    Fill drawdown_percent and benchmark_drawdown_percent on aligned records.

    Each series is processed only when it is present on every record;
    otherwise its drawdown fields stay None.
    """
    records = list(records)

    portfolio = _series_or_none([r.normalized_nav for r in records])
    if portfolio is not None:
        portfolio_dd = calculate_drawdown_series(portfolio)
        if portfolio_dd is not None:
            records = [replace(r, drawdown_percent=d) for r, d in zip(records, portfolio_dd)]

    benchmark = _series_or_none([r.normalized_benchmark for r in records])
    if benchmark is not None:
        benchmark_dd = calculate_drawdown_series(benchmark)
        if benchmark_dd is not None:
            records = [
                replace(r, benchmark_drawdown_percent=d) for r, d in zip(records, benchmark_dd)
            ]

    return records


def summarize_record_drawdowns(
        records: Sequence[EnrichedRecord],
) -> tuple[DrawdownSummary, DrawdownSummary]:
    """Portfolio and benchmark drawdown summaries of enriched records."""
    portfolio = _series_or_none([r.drawdown_percent for r in records])
    benchmark = _series_or_none([r.benchmark_drawdown_percent for r in records])
    return summarize_drawdowns(portfolio), summarize_drawdowns(benchmark)
