# backend/tests/services/analytics/test_alignment.py
"""
Unit tests for NAV normalization and the benchmark join.

All tests use known values that can be verified by hand.
"""

from datetime import date
from decimal import Decimal

from portfolio_analytics.services.analytics.alignment import (
    align_series,
    backward_fill_index,
    normalize,
)
from tests.conftest import make_benchmark, make_record


# =============================================================================
# BACKWARD FILL
# =============================================================================

class TestBackwardFillIndex:
    """Tests for backward_fill_index."""

    DATES = [date(2024, 1, 2), date(2024, 1, 5), date(2024, 1, 9)]

    def test_exact_match(self):
        assert backward_fill_index(self.DATES, date(2024, 1, 5)) == 1

    def test_between_dates_takes_earlier(self):
        assert backward_fill_index(self.DATES, date(2024, 1, 8)) == 1

    def test_after_last_date(self):
        assert backward_fill_index(self.DATES, date(2024, 3, 1)) == 2

    def test_before_first_date_is_none(self):
        assert backward_fill_index(self.DATES, date(2024, 1, 1)) is None

    def test_empty_list(self):
        assert backward_fill_index([], date(2024, 1, 1)) is None


# =============================================================================
# NORMALIZATION
# =============================================================================

class TestNormalization:
    """Tests for the rebasing of NAV to 100."""

    def test_normalize(self):
        assert normalize(Decimal("75"), Decimal("50")) == Decimal("150")

    def test_normalize_non_positive_base(self):
        assert normalize(Decimal("75"), Decimal("0")) is None
        assert normalize(Decimal("75"), Decimal("-1")) is None

    def test_first_record_is_100(self):
        records = [
            make_record("2024-01-01", "50"),
            make_record("2024-01-02", "55"),
            make_record("2024-01-03", "45"),
        ]
        enriched = align_series(records)

        assert [e.normalized_nav for e in enriched] == [Decimal("100"), Decimal("110"), Decimal("90")]

    def test_non_positive_base_nav_leaves_series_empty(self):
        records = [make_record("2024-01-01", "0", value="0"), make_record("2024-01-02", "10")]
        enriched = align_series(records)

        assert all(e.normalized_nav is None for e in enriched)
        assert all(e.normalized_benchmark is None for e in enriched)

    def test_non_positive_base_nav_keeps_benchmark(self):
        records = [make_record("2024-01-01", "0", value="0"), make_record("2024-06-03", "1")]
        benchmark = [make_benchmark("2024-01-01", 100), make_benchmark("2024-06-03", 110)]
        enriched = align_series(records, benchmark)

        assert all(e.normalized_nav is None for e in enriched)
        assert [e.benchmark_value for e in enriched] == [Decimal("100"), Decimal("110")]
        assert [e.normalized_benchmark for e in enriched] == [Decimal("100"), Decimal("110")]

    def test_empty_history(self):
        assert align_series([]) == []

    def test_source_fields_copied(self):
        record = make_record("2024-01-01", "100", value="123456.78", cash="500")
        enriched = align_series([record])[0]

        assert enriched.report_date == date(2024, 1, 1)
        assert enriched.portfolio_value == Decimal("123456.78")
        assert enriched.cash_in_out == Decimal("500")


# =============================================================================
# BENCHMARK JOIN
# =============================================================================

class TestBenchmarkJoin:
    """Tests for aligning benchmark levels onto portfolio dates."""

    def test_benchmark_backward_filled_and_rebased(self, growth_history, benchmark_feed):
        benchmark = benchmark_feed.series["BSE500"]
        enriched = align_series(growth_history, benchmark)

        # 2023-07-01 falls before the 2023-07-03 level, so 2022-12-30 still applies
        assert [e.benchmark_value for e in enriched] == [Decimal("1000"), Decimal("1000"), Decimal("1200")]
        assert [e.normalized_benchmark for e in enriched] == [Decimal("100"), Decimal("100"), Decimal("120")]

    def test_no_benchmark_before_inception_omits_benchmark(self, growth_history):
        benchmark = [make_benchmark("2023-01-02", 1000), make_benchmark("2024-01-01", 1100)]
        enriched = align_series(growth_history, benchmark)

        assert all(e.benchmark_value is None for e in enriched)
        assert all(e.normalized_benchmark is None for e in enriched)
        # Portfolio side unaffected
        assert enriched[0].normalized_nav == Decimal("100")

    def test_non_positive_benchmark_base_omits_benchmark(self, growth_history):
        benchmark = [make_benchmark("2023-01-01", 0), make_benchmark("2024-01-01", 1100)]
        enriched = align_series(growth_history, benchmark)

        assert all(e.normalized_benchmark is None for e in enriched)

    def test_empty_benchmark(self, growth_history):
        enriched = align_series(growth_history, [])
        assert all(e.benchmark_value is None for e in enriched)

    def test_inputs_not_mutated(self, growth_history, benchmark_feed):
        history_before = list(growth_history)
        benchmark = benchmark_feed.series["BSE500"]
        benchmark_before = list(benchmark)

        align_series(growth_history, benchmark)

        assert growth_history == history_before
        assert benchmark == benchmark_before
