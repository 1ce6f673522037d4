# backend/portfolio_analytics/services/feeds/benchmark.py
"""
Client of the index-data (benchmark) service.

Request:
    GET {BENCHMARK_FEED_URL}?indices=BSE500&startDate=2023-12-25&endDate=2024-06-30

Response (either form):
    [{"date": "2024-01-01", "nav": 31250.4}, ...]
    {"data": [{"date": "2024-01-01", "value": "31250.40"}, ...]}

The level is read from "value", falling back to "nav". Rows whose date or
level cannot be parsed are skipped with a warning; index services publish
the occasional blank holiday row.
"""

import logging
from datetime import date

import httpx

from portfolio_analytics.services.analytics.ingestion import build_benchmark_record
from portfolio_analytics.services.analytics.types import BenchmarkRecord
from portfolio_analytics.services.circuit_breaker import CircuitBreaker
from portfolio_analytics.services.exceptions import (
    BenchmarkNotFoundError,
    NotFoundError,
    ValidationError,
)
from portfolio_analytics.services.feeds.base import FeedClient, unwrap_rows

logger = logging.getLogger(__name__)


class BenchmarkFeedClient(FeedClient):
    """Fetches benchmark index levels for a date window."""

    def __init__(
            self,
            base_url: str,
            timeout: float = 10.0,
            client: httpx.Client | None = None,
            breaker: CircuitBreaker | None = None,
    ) -> None:
        super().__init__(base_url, timeout=timeout, client=client, breaker=breaker)

    @property
    def name(self) -> str:
        return "benchmark"

    def _not_found(self, params: dict[str, str]) -> NotFoundError:
        return BenchmarkNotFoundError(params.get("indices", ""))

    def get_series(self, symbol: str, start_date: date, end_date: date) -> list[BenchmarkRecord]:
        """
        Fetch index levels between two dates (inclusive).

        Raises:
            ValueError: If start_date is after end_date
            BenchmarkNotFoundError: Unknown symbol
            FeedUnavailableError / RateLimitError: After retries are exhausted
            FeedDataError: Payload is not a row list
            CircuitBreakerOpen: Feed circuit is open
        """
        if start_date > end_date:
            raise ValueError(f"start_date {start_date} is after end_date {end_date}")

        params = {
            "indices": symbol,
            "startDate": start_date.isoformat(),
            "endDate": end_date.isoformat(),
        }
        payload = self._execute_with_retry(self._get_json, params)
        rows = unwrap_rows(self.name, payload)

        records = []
        skipped = 0
        for row in rows:
            if not isinstance(row, dict):
                skipped += 1
                continue
            level = row.get("value", row.get("nav"))
            try:
                records.append(build_benchmark_record(row.get("date"), level))
            except ValidationError:
                skipped += 1

        if skipped:
            logger.warning(f"Skipped {skipped} unparseable {symbol} rows")
        logger.info(
            f"Fetched {len(records)} {symbol} levels for {start_date} to {end_date}"
        )
        return records
