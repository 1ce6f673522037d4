# backend/tests/routers/test_analytics_api.py
"""
API layer tests for analytics endpoints.

These tests verify the HTTP layer using FastAPI's TestClient:
- Correct status codes (200, 400, 404, 422)
- Response JSON structure and number formats
- Query parameter handling
- Cache invalidation

Test Methodology:
    1. Override the analytics service dependency with one backed by fake feeds
    2. Make HTTP requests via TestClient
    3. Assert status codes and response structure
"""

import pytest
from fastapi.testclient import TestClient

from portfolio_analytics.dependencies import get_analytics_service
from portfolio_analytics.main import app
from portfolio_analytics.services.analytics import AnalyticsCache, AnalyticsService
from tests.conftest import FakeBenchmarkFeed, FakeHistoryFeed


# =============================================================================
# CLIENT SETUP
# =============================================================================

@pytest.fixture
def service(history_feed: FakeHistoryFeed, benchmark_feed: FakeBenchmarkFeed) -> AnalyticsService:
    return AnalyticsService(history_feed, benchmark_feed, cache=AnalyticsCache())


@pytest.fixture
def client(service: AnalyticsService) -> TestClient:
    """Create TestClient with the analytics service override."""
    app.dependency_overrides[get_analytics_service] = lambda: service

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


# =============================================================================
# GET /accounts/{account_code}/analytics
# =============================================================================

class TestGetAccountAnalytics:
    """Tests for GET /accounts/{account_code}/analytics."""

    def test_success(self, client):
        response = client.get("/accounts/AC001/analytics")

        assert response.status_code == 200
        data = response.json()
        assert data["account_code"] == "AC001"
        assert data["inception_date"] == "2023-01-01"
        assert data["latest_date"] == "2024-01-01"
        assert data["has_benchmark"] is True
        assert data["benchmark_symbol"] == "BSE500"

    def test_trailing_returns_format(self, client):
        data = client.get("/accounts/AC001/analytics").json()
        returns = data["trailing_returns"]

        assert list(returns) == ["1W", "10D", "1M", "3M", "6M", "1Y", "Since Inception"]
        assert returns["6M"] == "10.0000"
        assert returns["1Y"] == "21.0000"
        assert returns["Since Inception"] == "21.0000"
        assert data["benchmark_trailing_returns"]["6M"] == "20.0000"

    def test_records_format(self, client):
        records = client.get("/accounts/AC001/analytics").json()["records"]

        assert len(records) == 3
        first = records[0]
        assert first["report_date"] == "2023-01-01"
        assert first["nav"] == "100"
        assert first["portfolio_value"] == "1000000"
        assert first["normalized_nav"] == "100.0000"
        assert first["drawdown_percent"] == "0.0000"
        assert first["benchmark_value"] == "1000"
        assert records[-1]["normalized_benchmark"] == "120.0000"

    def test_pnl_format(self, client):
        data = client.get("/accounts/AC001/analytics").json()

        quarterly = data["quarterly_pnl"]["2023"]
        assert quarterly["percent"] == {"q1": "0.00", "q2": None, "q3": "0.00", "q4": None, "total": "10.00"}
        assert quarterly["cash"]["total"] == "100000.00"
        assert quarterly["yearCash"] == "0.00"

        monthly = data["monthly_pnl"]["2023"]
        assert list(monthly["months"]) == ["January", "July"]
        assert monthly["months"]["July"] == {"percent": "0.00", "cash": "0.00", "capitalInOut": "0.00"}
        assert monthly["totalPercent"] == 10.0
        assert monthly["totalCash"] == 100000.0
        assert monthly["totalCapitalInOut"] == 0.0

    def test_summary(self, client):
        summary = client.get("/accounts/AC001/analytics").json()["summary"]

        assert summary["total_invested"] == "0.00"
        assert summary["current_value"] == "1210000.00"
        assert summary["returns_percent"] is None

    def test_previous_close_anchor(self, client):
        data = client.get("/accounts/AC001/analytics", params={"pnl_anchor": "previous_close"}).json()

        assert data["quarterly_pnl"]["2024"]["percent"]["total"] == "10.00"

    def test_without_benchmark(self, client, benchmark_feed):
        data = client.get("/accounts/AC001/analytics", params={"include_benchmark": "false"}).json()

        assert data["has_benchmark"] is False
        assert data["benchmark_trailing_returns"] is None
        assert data["benchmark_drawdown"] is None
        assert data["records"][0]["benchmark_value"] is None
        assert benchmark_feed.calls == []

    def test_benchmark_symbol_normalized(self, client, benchmark_feed):
        response = client.get("/accounts/AC001/analytics", params={"benchmark_symbol": " bse500 "})

        assert response.status_code == 200
        assert benchmark_feed.calls[0][0] == "BSE500"

    def test_unknown_account(self, client):
        response = client.get("/accounts/AC404/analytics")

        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "AccountNotFoundError"
        assert data["details"]["resource_id"] == "AC404"

    def test_unknown_benchmark(self, client):
        response = client.get("/accounts/AC001/analytics", params={"benchmark_symbol": "NIFTY9999"})

        assert response.status_code == 404
        assert response.json()["error"] == "BenchmarkNotFoundError"

    def test_invalid_anchor(self, client):
        response = client.get("/accounts/AC001/analytics", params={"pnl_anchor": "sometimes"})

        assert response.status_code == 422
        assert response.json()["error"] == "ValidationError"

    def test_invalid_account_code(self, client):
        response = client.get(f"/accounts/{'A' * 65}/analytics")
        assert response.status_code == 422


# =============================================================================
# POST /analytics/compute
# =============================================================================

class TestComputeAnalytics:
    """Tests for POST /analytics/compute."""

    HISTORY = [
        {"report_date": "2024-01-01", "nav": "100", "portfolio_value": "1000000"},
        {"report_date": "2024-01-15T00:00:00.000Z", "nav": 101, "portfolio_value": 1030000, "cash_in_out": "20000"},
        {"report_date": "2024-01-30", "nav": "103", "portfolio_value": "1050000", "cash_in_out": None},
    ]

    def test_monthly_cash_pnl(self, client):
        response = client.post("/analytics/compute", json={"history": self.HISTORY})

        assert response.status_code == 200
        data = response.json()
        january = data["monthly_pnl"]["2024"]["months"]["January"]
        assert january == {"percent": "3.00", "cash": "30000.00", "capitalInOut": "20000.00"}
        assert data["account_code"] is None
        assert data["summary"]["total_invested"] == "20000.00"

    def test_records_sorted(self, client):
        response = client.post("/analytics/compute", json={"history": self.HISTORY[::-1]})

        dates = [r["report_date"] for r in response.json()["records"]]
        assert dates == ["2024-01-01", "2024-01-15", "2024-01-30"]

    def test_with_benchmark_nav_key(self, client):
        body = {
            "history": self.HISTORY,
            "benchmark": [
                {"date": "2023-12-29", "nav": "200"},
                {"date": "2024-01-29", "value": "210"},
            ],
            "benchmark_symbol": "bse500",
        }
        data = client.post("/analytics/compute", json=body).json()

        assert data["has_benchmark"] is True
        assert data["benchmark_symbol"] == "BSE500"
        assert data["records"][-1]["normalized_benchmark"] == "105.0000"

    def test_benchmark_after_inception_is_absent(self, client):
        body = {"history": self.HISTORY, "benchmark": [{"date": "2024-01-10", "value": "200"}]}
        data = client.post("/analytics/compute", json=body).json()

        assert data["has_benchmark"] is False
        assert data["benchmark_trailing_returns"] is None
        assert data["warnings"]

    def test_inception_date(self, client):
        body = {"history": self.HISTORY, "inception_date": "2024-01-15"}
        data = client.post("/analytics/compute", json=body).json()

        expected = (103 / 101 - 1) * 100
        assert float(data["trailing_returns"]["Since Inception"]) == pytest.approx(expected, abs=1e-4)

    def test_inception_after_last_record(self, client):
        body = {"history": self.HISTORY, "inception_date": "2024-02-01"}
        response = client.post("/analytics/compute", json=body)

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "ValidationError"
        assert data["details"] == {"field": "inception_date"}

    def test_empty_history(self, client):
        response = client.post("/analytics/compute", json={"history": []})

        assert response.status_code == 200
        data = response.json()
        assert data["records"] == []
        assert all(v is None for v in data["trailing_returns"].values())

    def test_tiny_base_nav_is_formatted(self, client):
        history = [
            {"report_date": "2024-01-01", "nav": "1e-30", "portfolio_value": "1"},
            {"report_date": "2024-01-31", "nav": "1", "portfolio_value": "1"},
        ]
        response = client.post("/analytics/compute", json={"history": history})

        assert response.status_code == 200
        data = response.json()
        assert data["records"][1]["normalized_nav"] == "1" + "0" * 32 + ".0000"
        assert data["trailing_returns"]["Since Inception"] == "1" + "0" * 32 + ".0000"
        assert data["monthly_pnl"]["2024"]["months"]["January"]["percent"] == "1" + "0" * 32 + ".00"

    def test_invalid_number(self, client):
        body = {"history": [{"report_date": "2024-01-01", "nav": "abc", "portfolio_value": "1"}]}
        response = client.post("/analytics/compute", json=body)

        assert response.status_code == 422
        fields = [d["field"] for d in response.json()["details"]]
        assert "body.history.0.nav" in fields

    def test_missing_history(self, client):
        response = client.post("/analytics/compute", json={})
        assert response.status_code == 422


# =============================================================================
# DELETE /accounts/{account_code}/analytics/cache
# =============================================================================

class TestInvalidateCache:
    """Tests for DELETE /accounts/{account_code}/analytics/cache."""

    def test_invalidates_cached_results(self, client, history_feed):
        client.get("/accounts/AC001/analytics")

        response = client.delete("/accounts/AC001/analytics/cache")

        assert response.status_code == 200
        assert response.json() == {"account_code": "AC001", "invalidated": 1}

        client.get("/accounts/AC001/analytics")
        assert history_feed.calls == 2

    def test_nothing_cached(self, client):
        response = client.delete("/accounts/AC002/analytics/cache")
        assert response.json()["invalidated"] == 0
