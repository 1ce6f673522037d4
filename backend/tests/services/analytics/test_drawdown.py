# backend/tests/services/analytics/test_drawdown.py
"""
Unit tests for drawdown calculations.

Test Coverage:
- calculate_drawdown_series: running-peak drawdowns
- summarize_drawdowns: current and maximum drawdown
- apply_drawdowns: portfolio and benchmark drawdowns on aligned records
"""

from decimal import Decimal

from portfolio_analytics.services.analytics.alignment import align_series
from portfolio_analytics.services.analytics.drawdown import (
    apply_drawdowns,
    calculate_drawdown_series,
    summarize_drawdowns,
    summarize_record_drawdowns,
)
from portfolio_analytics.services.analytics.types import DrawdownSummary
from tests.conftest import make_benchmark, make_record


def _d(*values) -> list[Decimal]:
    return [Decimal(str(v)) for v in values]


# =============================================================================
# DRAWDOWN SERIES
# =============================================================================

class TestDrawdownSeries:
    """Tests for calculate_drawdown_series."""

    def test_peak_then_decline(self):
        assert calculate_drawdown_series(_d(100, 120, 90)) == _d(0, 0, 25)

    def test_zero_at_new_high(self):
        result = calculate_drawdown_series(_d(100, 80, 130, 117))
        assert result == _d(0, 20, 0, 10)

    def test_monotonic_rise_has_no_drawdown(self):
        assert calculate_drawdown_series(_d(100, 101, 102)) == _d(0, 0, 0)

    def test_bounded_between_0_and_100(self, daily_history):
        values = [r.nav for r in daily_history]
        result = calculate_drawdown_series(values)

        assert all(Decimal("0") <= d <= Decimal("100") for d in result)

    def test_single_value_has_zero_drawdown(self):
        assert calculate_drawdown_series(_d(100)) == _d(0)

    def test_empty_series(self):
        assert calculate_drawdown_series([]) == []

    def test_non_positive_start_is_unavailable(self):
        assert calculate_drawdown_series(_d(0, 10)) is None


class TestSummarizeDrawdowns:
    """Tests for summarize_drawdowns."""

    def test_current_and_max(self):
        summary = summarize_drawdowns(_d(0, 20, 0, 10))
        assert summary.current_drawdown == Decimal("10")
        assert summary.max_drawdown == Decimal("20")

    def test_unavailable_series(self):
        assert summarize_drawdowns(None) == DrawdownSummary()
        assert summarize_drawdowns([]) == DrawdownSummary()


# =============================================================================
# ENRICHED RECORDS
# =============================================================================

class TestApplyDrawdowns:
    """Tests for drawdowns on aligned records."""

    def test_daily_history_dip(self, daily_history):
        records = apply_drawdowns(align_series(daily_history))
        portfolio, _ = summarize_record_drawdowns(records)

        # Peak 110 on Jan 12, trough 99 on Jan 19
        assert portfolio.max_drawdown == Decimal("10")
        assert portfolio.current_drawdown == Decimal("0")

    def test_benchmark_drawdown_independent(self):
        history = [
            make_record("2024-01-01", 100),
            make_record("2024-01-02", 90),
            make_record("2024-01-03", 95),
        ]
        benchmark = [
            make_benchmark("2024-01-01", 200),
            make_benchmark("2024-01-02", 220),
            make_benchmark("2024-01-03", 165),
        ]
        records = apply_drawdowns(align_series(history, benchmark))

        assert [r.drawdown_percent for r in records] == _d(0, 10, 5)
        assert [r.benchmark_drawdown_percent for r in records] == _d(0, 0, 25)

    def test_absent_benchmark_leaves_fields_none(self, growth_history):
        records = apply_drawdowns(align_series(growth_history))
        portfolio, benchmark = summarize_record_drawdowns(records)

        assert all(r.benchmark_drawdown_percent is None for r in records)
        assert benchmark == DrawdownSummary()
        assert portfolio.max_drawdown == Decimal("0")

    def test_single_record(self):
        records = apply_drawdowns(align_series(
            [make_record("2024-01-01", 100)],
            [make_benchmark("2024-01-01", 1000)],
        ))
        portfolio, benchmark = summarize_record_drawdowns(records)

        assert records[0].drawdown_percent == Decimal("0")
        assert records[0].benchmark_drawdown_percent == Decimal("0")
        for summary in (portfolio, benchmark):
            assert summary.current_drawdown == Decimal("0")
            assert summary.max_drawdown == Decimal("0")
