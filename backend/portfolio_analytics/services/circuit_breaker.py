# backend/portfolio_analytics/services/circuit_breaker.py
"""
Circuit breaker guarding the upstream feeds.

Each feed client owns one breaker. After `failure_threshold` consecutive
failed calls the breaker opens and further calls fail fast with
CircuitBreakerOpen until `recovery_timeout` has passed; then a limited
number of probe calls is let through (half-open). A successful probe
closes the breaker, a failed one re-opens it.

States:
    CLOSED    - calls pass through
    OPEN      - calls rejected immediately
    HALF_OPEN - probe calls allowed

Usage:
    breaker = CircuitBreaker(name="history-feed", failure_threshold=5)

    with breaker:
        response = client.get(url)
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from functools import wraps
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerOpen(Exception):
    """
    Raised when a call is rejected because the breaker is open.

    Attributes:
        breaker_name: Name of the circuit breaker
        time_remaining: Seconds until a probe call is allowed
    """

    def __init__(self, breaker_name: str, time_remaining: float) -> None:
        self.breaker_name = breaker_name
        self.time_remaining = time_remaining
        super().__init__(
            f"Circuit breaker '{breaker_name}' is open. "
            f"Retry in {time_remaining:.1f} seconds."
        )


@dataclass
class CircuitBreakerStats:
    """Counters exposed for the health endpoint and tests."""
    total_calls: int = 0
    successful_calls: int = 0
    failed_calls: int = 0
    rejected_calls: int = 0
    state_changes: int = 0


@dataclass
class CircuitBreaker:
    """
    Thread-safe circuit breaker.

    Attributes:
        name: Identifier used in logs and errors
        failure_threshold: Consecutive failures before opening
        recovery_timeout: Seconds to stay open before probing
        half_open_max_calls: Probe calls allowed while half-open
        excluded_exceptions: Exception types that do not count as failures
            (e.g. "account not found" says nothing about feed health)
    """

    name: str
    failure_threshold: int = 5
    recovery_timeout: float = 60.0
    half_open_max_calls: int = 1
    excluded_exceptions: tuple[type[Exception], ...] = field(default_factory=tuple)

    _state: CircuitState = field(default=CircuitState.CLOSED, init=False)
    _failure_count: int = field(default=0, init=False)
    _opened_at: float = field(default=0.0, init=False)
    _half_open_calls: int = field(default=0, init=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False)
    _stats: CircuitBreakerStats = field(default_factory=CircuitBreakerStats, init=False)

    def __post_init__(self) -> None:
        if self.failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        if self.recovery_timeout < 0:
            raise ValueError("recovery_timeout cannot be negative")
        if self.half_open_max_calls < 1:
            raise ValueError("half_open_max_calls must be at least 1")

    @property
    def state(self) -> CircuitState:
        """Current state, after applying any due OPEN -> HALF_OPEN transition."""
        with self._lock:
            self._refresh_state()
            return self._state

    @property
    def stats(self) -> CircuitBreakerStats:
        """Snapshot of the call counters."""
        with self._lock:
            return CircuitBreakerStats(**vars(self._stats))

    @property
    def is_open(self) -> bool:
        return self.state == CircuitState.OPEN

    def _refresh_state(self) -> None:
        # Caller holds the lock
        if self._state == CircuitState.OPEN and self._seconds_until_probe() <= 0:
            self._transition_to(CircuitState.HALF_OPEN)

    def _transition_to(self, new_state: CircuitState) -> None:
        old_state = self._state
        self._state = new_state
        self._stats.state_changes += 1

        if new_state == CircuitState.OPEN:
            self._opened_at = time.monotonic()
        elif new_state == CircuitState.HALF_OPEN:
            self._half_open_calls = 0
        else:
            self._failure_count = 0

        log = logger.warning if new_state == CircuitState.OPEN else logger.info
        log(f"CircuitBreaker '{self.name}': {old_state.value} -> {new_state.value}")

    def _seconds_until_probe(self) -> float:
        elapsed = time.monotonic() - self._opened_at
        return max(0.0, self.recovery_timeout - elapsed)

    def _allow(self) -> bool:
        self._refresh_state()

        if self._state == CircuitState.CLOSED:
            return True
        if self._state == CircuitState.HALF_OPEN and self._half_open_calls < self.half_open_max_calls:
            self._half_open_calls += 1
            return True
        return False

    def _on_success(self) -> None:
        self._stats.successful_calls += 1
        if self._state == CircuitState.HALF_OPEN:
            self._transition_to(CircuitState.CLOSED)
        else:
            self._failure_count = 0

    def _on_failure(self) -> None:
        self._stats.failed_calls += 1

        if self._state == CircuitState.HALF_OPEN:
            self._transition_to(CircuitState.OPEN)
            return

        self._failure_count += 1
        if self._state == CircuitState.CLOSED and self._failure_count >= self.failure_threshold:
            self._transition_to(CircuitState.OPEN)

    def __enter__(self) -> "CircuitBreaker":
        """
        Admit or reject a call.

        Raises:
            CircuitBreakerOpen: If the breaker is open
        """
        with self._lock:
            self._stats.total_calls += 1
            if not self._allow():
                self._stats.rejected_calls += 1
                raise CircuitBreakerOpen(self.name, self._seconds_until_probe())
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: Any) -> bool:
        with self._lock:
            if exc_val is None or (
                    self.excluded_exceptions and isinstance(exc_val, self.excluded_exceptions)
            ):
                self._on_success()
            else:
                self._on_failure()
        return False

    def __call__(self, func: Callable[..., T]) -> Callable[..., T]:
        """Guard a function with this breaker."""
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            with self:
                return func(*args, **kwargs)
        return wrapper

    def reset(self) -> None:
        """Force the breaker back to CLOSED."""
        with self._lock:
            self._transition_to(CircuitState.CLOSED)
