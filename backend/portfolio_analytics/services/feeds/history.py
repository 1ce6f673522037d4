# backend/portfolio_analytics/services/feeds/history.py
"""
Client of the portfolio history feed.

Request:
    GET {HISTORY_FEED_URL}?account_code=AC123

Response (either form):
    [{"report_date": "...", "nav": ..., "portfolio_value": ..., "cash_in_out": ...}, ...]
    {"success": true, "data": [ ...same rows... ]}

Numbers may be JSON numbers or numeric strings; report_date may be a date
or a timestamp. A missing or null cash_in_out means no capital movement.
Every row must parse: one bad row fails the whole fetch with FeedDataError.
"""

import logging

import httpx

from portfolio_analytics.services.analytics.ingestion import build_valuation_record
from portfolio_analytics.services.analytics.types import ValuationRecord
from portfolio_analytics.services.circuit_breaker import CircuitBreaker
from portfolio_analytics.services.exceptions import (
    AccountNotFoundError,
    FeedDataError,
    NotFoundError,
    ValidationError,
)
from portfolio_analytics.services.feeds.base import FeedClient, unwrap_rows

logger = logging.getLogger(__name__)


class HistoryFeedClient(FeedClient):
    """Fetches an account's valuation history."""

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
        return "history"

    def _not_found(self, params: dict[str, str]) -> NotFoundError:
        return AccountNotFoundError(params.get("account_code", ""))

    def get_history(self, account_code: str) -> list[ValuationRecord]:
        """
        Fetch the full valuation history of an account.

        Returns:
            Records in feed order (sorting happens in the engine)

        Raises:
            AccountNotFoundError: The feed does not know the account
            FeedUnavailableError / RateLimitError: After retries are exhausted
            FeedDataError: Malformed payload or row
            CircuitBreakerOpen: Feed circuit is open
        """
        payload = self._execute_with_retry(self._get_json, {"account_code": account_code})
        rows = unwrap_rows(self.name, payload)

        records = []
        for index, row in enumerate(rows):
            if not isinstance(row, dict):
                raise FeedDataError(self.name, f"row {index} is not an object")
            try:
                records.append(build_valuation_record(
                    report_date=row.get("report_date"),
                    nav=row.get("nav"),
                    portfolio_value=row.get("portfolio_value"),
                    cash_in_out=row.get("cash_in_out"),
                ))
            except ValidationError as e:
                raise FeedDataError(self.name, f"row {index}: {e.message}")

        logger.info(f"Fetched {len(records)} history records for account {account_code}")
        return records
