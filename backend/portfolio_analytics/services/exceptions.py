# backend/portfolio_analytics/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO HTTP knowledge.
The exception handlers in main.py map them to HTTP responses.

The analytics engine itself never raises for degenerate data (empty history,
non-positive base NAV, windows predating inception); those are reported as
unavailable metrics. The errors below cover bad input at the ingestion
boundary and failures of the upstream feeds.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    ├── NotFoundError
    │   ├── AccountNotFoundError
    │   └── BenchmarkNotFoundError
    └── FeedError
        ├── FeedUnavailableError
        ├── FeedDataError
        └── RateLimitError

    CircuitBreakerOpen (from circuit_breaker module)
        - Raised when a feed's circuit breaker is open and blocking requests
"""

from portfolio_analytics.services.circuit_breaker import CircuitBreakerOpen


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when a record cannot be turned into a valid engine input.

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


# =============================================================================
# NOT FOUND ERRORS
# =============================================================================


class NotFoundError(ServiceError):
    """
    Base exception for resource not found errors.

    Attributes:
        resource_type: Type of resource (e.g., "Account", "Benchmark")
        resource_id: Identifier of the resource
    """

    def __init__(
            self,
            message: str,
            resource_type: str | None = None,
            resource_id: str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message)


class AccountNotFoundError(NotFoundError):
    """Raised when the history feed does not know an account code."""

    def __init__(self, account_code: str) -> None:
        self.account_code = account_code
        super().__init__(
            f"Account {account_code} not found",
            resource_type="Account",
            resource_id=account_code,
        )


class BenchmarkNotFoundError(NotFoundError):
    """Raised when the index-data service does not know a benchmark symbol."""

    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        super().__init__(
            f"Benchmark {symbol} not found",
            resource_type="Benchmark",
            resource_id=symbol,
        )


# =============================================================================
# FEED ERRORS
# =============================================================================


class FeedError(ServiceError):
    """
    Base exception for upstream feed failures.

    Attributes:
        feed: Name of the feed ("history" or "benchmark")
    """

    def __init__(self, feed: str, message: str) -> None:
        self.feed = feed
        super().__init__(message)


class FeedUnavailableError(FeedError):
    """
    Raised on network errors, timeouts or 5xx responses.

    This error is transient and the call is retried.
    """

    def __init__(self, feed: str, reason: str) -> None:
        self.reason = reason
        super().__init__(feed, f"{feed} feed unavailable: {reason}")


class FeedDataError(FeedError):
    """
    Raised when a feed answers with a payload that cannot be parsed.

    Not retried: repeating the call returns the same payload.
    """

    def __init__(self, feed: str, reason: str) -> None:
        self.reason = reason
        super().__init__(feed, f"{feed} feed returned malformed data: {reason}")


class RateLimitError(FeedError):
    """
    Raised when a feed rejects the call with HTTP 429.

    Attributes:
        retry_after: Seconds to wait before retrying (if provided)
    """

    def __init__(self, feed: str, retry_after: int | None = None) -> None:
        self.retry_after = retry_after
        message = f"{feed} feed rate limit exceeded"
        if retry_after:
            message += f", retry after {retry_after}s"
        super().__init__(feed, message)


__all__ = [
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "AccountNotFoundError",
    "BenchmarkNotFoundError",
    "FeedError",
    "FeedUnavailableError",
    "FeedDataError",
    "RateLimitError",
    "CircuitBreakerOpen",
]
