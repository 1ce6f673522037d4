# backend/portfolio_analytics/services/feeds/base.py
"""
Shared plumbing for the upstream data feeds.

Both feeds are plain JSON-over-HTTP services. FeedClient gives every
concrete client the same behaviour:
- One httpx.Client per feed (injectable, so tests use httpx.MockTransport)
- One CircuitBreaker per feed
- Exponential-backoff retries (tenacity) for transient failures
- Uniform mapping of HTTP outcomes to service exceptions

Retry Behavior:
    Subclasses (or tests) can tune the retry by overriding:

    - MAX_RETRY_ATTEMPTS: Total attempts (default: 3)
    - RETRY_MIN_WAIT: Minimum wait in seconds (default: 1)
    - RETRY_MAX_WAIT: Maximum wait in seconds (default: 10)
    - RETRY_MULTIPLIER: Exponential multiplier (default: 1)

Retryable Exceptions:
    - FeedUnavailableError: Network issues, timeouts, 5xx responses
    - RateLimitError: HTTP 429

Non-Retryable Exceptions:
    - NotFoundError: Unknown account / symbol (HTTP 404)
    - FeedDataError: Malformed payload
    - CircuitBreakerOpen: Feed known to be down
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, TypeVar

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from portfolio_analytics.services.circuit_breaker import CircuitBreaker
from portfolio_analytics.services.constants import (
    FEED_CIRCUIT_FAILURE_THRESHOLD,
    FEED_CIRCUIT_RECOVERY_TIMEOUT,
    FEED_MAX_RETRY_ATTEMPTS,
    FEED_RETRY_MAX_WAIT,
    FEED_RETRY_MIN_WAIT,
)
from portfolio_analytics.services.exceptions import (
    FeedDataError,
    FeedUnavailableError,
    NotFoundError,
    RateLimitError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FeedClient(ABC):
    """
    Base class of the history and benchmark feed clients.

    Attributes:
        base_url: Endpoint queried with GET
        timeout: Per-request timeout in seconds
        breaker: Circuit breaker guarding the endpoint
    """

    MAX_RETRY_ATTEMPTS: int = FEED_MAX_RETRY_ATTEMPTS
    RETRY_MIN_WAIT: int = FEED_RETRY_MIN_WAIT
    RETRY_MAX_WAIT: int = FEED_RETRY_MAX_WAIT
    RETRY_MULTIPLIER: int = 1

    def __init__(
            self,
            base_url: str,
            timeout: float = 10.0,
            client: httpx.Client | None = None,
            breaker: CircuitBreaker | None = None,
    ) -> None:
        if not base_url:
            raise ValueError(f"{self.name} feed URL is not configured")

        self.base_url = base_url
        self.timeout = timeout
        self._client = client or httpx.Client(timeout=timeout)
        self.breaker = breaker or CircuitBreaker(
            name=f"{self.name}-feed",
            failure_threshold=FEED_CIRCUIT_FAILURE_THRESHOLD,
            recovery_timeout=FEED_CIRCUIT_RECOVERY_TIMEOUT,
            excluded_exceptions=(NotFoundError,),
        )

    @property
    @abstractmethod
    def name(self) -> str:
        """Feed name used in logs and errors ("history", "benchmark")."""

    @abstractmethod
    def _not_found(self, params: dict[str, str]) -> NotFoundError:
        """Exception raised when the feed answers 404."""

    def close(self) -> None:
        self._client.close()

    # =========================================================================
    # HTTP
    # =========================================================================

    def _get_json(self, params: dict[str, str]) -> Any:
        """
        GET base_url with query parameters and decode the JSON body.

        One attempt, guarded by the circuit breaker.

        Raises:
            NotFoundError: HTTP 404
            RateLimitError: HTTP 429
            FeedUnavailableError: Transport error or other non-2xx status
            FeedDataError: Body is not JSON
            CircuitBreakerOpen: Breaker is open
        """
        with self.breaker:
            try:
                response = self._client.get(self.base_url, params=params, timeout=self.timeout)
            except httpx.TimeoutException as e:
                raise FeedUnavailableError(self.name, f"timeout: {e}")
            except httpx.RequestError as e:
                raise FeedUnavailableError(self.name, f"network error: {e}")

            if response.status_code == 404:
                raise self._not_found(params)
            if response.status_code == 429:
                raise RateLimitError(self.name, _retry_after(response))
            if response.is_error:
                raise FeedUnavailableError(self.name, f"HTTP {response.status_code}")

            try:
                return response.json()
            except ValueError as e:
                raise FeedDataError(self.name, f"invalid JSON: {e}")

    # =========================================================================
    # RETRY HELPER METHOD
    # =========================================================================

    def _execute_with_retry(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """
        Execute a function with exponential backoff on transient failures.

        Raises:
            The last exception if all attempts fail
        """

        @retry(
            stop=stop_after_attempt(self.MAX_RETRY_ATTEMPTS),
            wait=wait_exponential(
                multiplier=self.RETRY_MULTIPLIER,
                min=self.RETRY_MIN_WAIT,
                max=self.RETRY_MAX_WAIT,
            ),
            retry=retry_if_exception_type((FeedUnavailableError, RateLimitError)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        def _inner() -> T:
            return func(*args, **kwargs)

        return _inner()


def _retry_after(response: httpx.Response) -> int | None:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def unwrap_rows(feed: str, payload: Any) -> list[Any]:
    """
    Extract the row list from a feed payload.

    Accepts a bare JSON list or an envelope {"data": [...]}; an envelope
    with "success": false is treated as a data error.

    Raises:
        FeedDataError: If no row list can be found
    """
    if isinstance(payload, list):
        return payload

    if isinstance(payload, dict):
        if payload.get("success") is False:
            message = payload.get("message") or payload.get("error") or "request not successful"
            raise FeedDataError(feed, str(message))
        rows = payload.get("data")
        if isinstance(rows, list):
            return rows

    raise FeedDataError(feed, f"expected a list of rows, got {type(payload).__name__}")
