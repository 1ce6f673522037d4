# backend/tests/services/analytics/test_pnl.py
"""
Unit tests for calendar-period P&L.

Test Coverage:
- Monthly cash P&L net of capital movement
- FIRST_OBSERVATION vs PREVIOUS_CLOSE period anchors
- Quarters without data
- Year reconciliation: end value - start value == year cash + cash P&L
"""

from decimal import Decimal

import pytest

from portfolio_analytics.services.analytics.pnl import calculate_period_pnl
from portfolio_analytics.services.analytics.types import PeriodAnchor
from tests.conftest import make_record


# =============================================================================
# SINGLE MONTH
# =============================================================================

class TestMonthlyCashPnl:
    """P&L inside one month."""

    @pytest.fixture
    def january(self):
        """1,000,000 on Jan 1, +20,000 deposited Jan 15, 1,050,000 on Jan 30."""
        return [
            make_record("2024-01-01", "100", value="1000000"),
            make_record("2024-01-15", "101", value="1030000", cash="20000"),
            make_record("2024-01-30", "103", value="1050000"),
        ]

    def test_cash_pnl_excludes_deposit(self, january):
        pnl = calculate_period_pnl(january)
        month = pnl.monthly[2024].months["January"]

        assert month.cash == Decimal("30000")
        assert month.capital_in_out == Decimal("20000")
        assert month.percent == Decimal("3")

    def test_quarter_and_year_totals(self, january):
        pnl = calculate_period_pnl(january)
        quarterly = pnl.quarterly[2024]

        assert quarterly.cash["q1"] == Decimal("30000")
        assert quarterly.cash["total"] == Decimal("30000")
        assert quarterly.year_cash == Decimal("20000")
        assert pnl.monthly[2024].total_cash == Decimal("30000")
        assert pnl.monthly[2024].total_capital_in_out == Decimal("20000")

    def test_quarters_without_data_are_none(self, january):
        quarterly = calculate_period_pnl(january).quarterly[2024]

        for key in ("q2", "q3", "q4"):
            assert quarterly.percent[key] is None
            assert quarterly.cash[key] is None

    def test_only_observed_months_present(self, january):
        months = calculate_period_pnl(january).monthly[2024].months
        assert list(months) == ["January"]


# =============================================================================
# PERIOD ANCHORS
# =============================================================================

class TestPeriodAnchor:
    """Where a new period starts."""

    @pytest.fixture
    def month_ends(self):
        return [
            make_record("2024-01-31", "100", value="1000"),
            make_record("2024-02-29", "110", value="1100"),
            make_record("2024-03-31", "121", value="1310", cash="100"),
        ]

    def test_first_observation_single_record_months_are_flat(self, month_ends):
        months = calculate_period_pnl(month_ends, PeriodAnchor.FIRST_OBSERVATION).monthly[2024].months

        for name in ("January", "February", "March"):
            assert months[name].percent == Decimal("0")
        assert months["January"].cash == Decimal("0")
        assert months["February"].cash == Decimal("0")
        # The deposit is booked even though the value opened with it
        assert months["March"].capital_in_out == Decimal("100")
        assert months["March"].cash == Decimal("-100")

    def test_previous_close_links_months(self, month_ends):
        months = calculate_period_pnl(month_ends, PeriodAnchor.PREVIOUS_CLOSE).monthly[2024].months

        assert months["February"].percent == Decimal("10")
        assert months["February"].cash == Decimal("100")
        assert months["March"].percent == Decimal("10")
        assert months["March"].cash == Decimal("110")
        assert months["March"].capital_in_out == Decimal("100")

    @pytest.mark.parametrize("anchor", list(PeriodAnchor))
    def test_first_year_starts_at_first_record(self, month_ends, anchor):
        pnl = calculate_period_pnl(month_ends, anchor)
        quarterly = pnl.quarterly[2024]

        assert quarterly.percent["q1"] == Decimal("21")
        assert quarterly.cash["q1"] == Decimal("210")
        assert quarterly.percent["total"] == Decimal("21")
        assert quarterly.year_cash == Decimal("100")

    def test_previous_close_across_year_end(self):
        records = [
            make_record("2023-12-31", "100", value="1000"),
            make_record("2024-01-31", "105", value="1050"),
        ]
        pnl = calculate_period_pnl(records, PeriodAnchor.PREVIOUS_CLOSE)

        assert pnl.quarterly[2024].percent["total"] == Decimal("5")
        assert pnl.quarterly[2024].cash["q1"] == Decimal("50")
        assert pnl.monthly[2024].months["January"].cash == Decimal("50")
        assert pnl.quarterly[2023].percent["q4"] == Decimal("0")

    def test_first_observation_across_year_end(self):
        records = [
            make_record("2023-12-31", "100", value="1000"),
            make_record("2024-01-31", "105", value="1050"),
        ]
        pnl = calculate_period_pnl(records, PeriodAnchor.FIRST_OBSERVATION)

        assert pnl.quarterly[2024].percent["total"] == Decimal("0")
        assert pnl.monthly[2024].total_cash == Decimal("0")

    def test_cash_on_opening_record(self):
        """A deposit booked on a period's first record."""
        records = [
            make_record("2024-01-31", "100", value="1000"),
            make_record("2024-02-01", "100", value="1500", cash="500"),
            make_record("2024-02-28", "110", value="1650"),
        ]
        first = calculate_period_pnl(records, PeriodAnchor.FIRST_OBSERVATION).monthly[2024]
        previous = calculate_period_pnl(records, PeriodAnchor.PREVIOUS_CLOSE).monthly[2024]

        for monthly in (first, previous):
            assert monthly.months["February"].capital_in_out == Decimal("500")
            assert monthly.total_capital_in_out == Decimal("500")
            assert monthly.total_cash == Decimal("150")

        # 1650 - 1500 - 500 when February opens on the deposit record
        assert first.months["February"].cash == Decimal("-350")
        assert previous.months["February"].cash == Decimal("150")

    @pytest.mark.parametrize("anchor", list(PeriodAnchor))
    def test_cash_on_first_record_of_history(self, anchor):
        """Deposits on the very first record and on a month's first record are both booked."""
        records = [
            make_record("2024-01-02", "100", value="1000", cash="1000"),
            make_record("2024-01-31", "101", value="1010"),
            make_record("2024-02-01", "101", value="1510", cash="500"),
            make_record("2024-02-29", "102", value="1525"),
        ]
        pnl = calculate_period_pnl(records, anchor)
        monthly = pnl.monthly[2024]

        assert monthly.months["January"].capital_in_out == Decimal("1000")
        assert monthly.months["February"].capital_in_out == Decimal("500")
        assert monthly.total_capital_in_out == Decimal("1500")
        assert pnl.quarterly[2024].year_cash == Decimal("1500")

    def test_anchor_accepts_string_value(self, month_ends):
        assert calculate_period_pnl(month_ends, "previous_close") == \
            calculate_period_pnl(month_ends, PeriodAnchor.PREVIOUS_CLOSE)


# =============================================================================
# EDGE CASES
# =============================================================================

class TestPnlEdgeCases:

    def test_empty_history(self):
        pnl = calculate_period_pnl([])
        assert pnl.quarterly == {}
        assert pnl.monthly == {}

    def test_non_positive_start_nav_gives_zero_percent(self):
        records = [
            make_record("2024-01-02", "0", value="0"),
            make_record("2024-01-20", "10", value="100"),
        ]
        month = calculate_period_pnl(records).monthly[2024].months["January"]

        assert month.percent == Decimal("0")
        assert month.cash == Decimal("100")

    def test_gap_quarter_is_none(self):
        records = [make_record("2024-01-15", "100"), make_record("2024-07-15", "110")]
        quarterly = calculate_period_pnl(records).quarterly[2024]

        assert quarterly.percent["q2"] is None
        assert quarterly.percent["q1"] == Decimal("0")
        assert quarterly.percent["q3"] == Decimal("0")

    def test_year_reconciles(self, daily_history):
        """end value - start value == net capital moved + cash P&L."""
        records = list(daily_history)
        records[5] = make_record(records[5].report_date, records[5].nav, cash="25000")
        records[15] = make_record(records[15].report_date, records[15].nav, cash="-5000")

        for anchor in PeriodAnchor:
            quarterly = calculate_period_pnl(records, anchor).quarterly[2024]
            change = records[-1].portfolio_value - records[0].portfolio_value
            assert change == quarterly.year_cash + quarterly.cash["total"]
