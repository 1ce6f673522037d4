# backend/portfolio_analytics/utils/context.py
"""
Request-scoped context for the analytics service.

Holds the correlation ID of the request currently being served so that log
records emitted anywhere below the router (feed clients, the analytics
engine, the cache) can be tied back to a single HTTP call.

Backed by `contextvars`, so values follow async tasks and thread-pool hops
made by FastAPI for sync endpoints.
"""

from contextvars import ContextVar

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    """Return the current request's correlation ID, or None outside a request."""
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """Bind a correlation ID to the current context (called by middleware)."""
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    """Unbind the correlation ID at the end of a request."""
    _correlation_id_var.set(None)
