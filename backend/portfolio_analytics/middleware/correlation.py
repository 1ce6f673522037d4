# backend/portfolio_analytics/middleware/correlation.py
"""
Correlation ID middleware for request tracing.

For each request the middleware takes the caller's X-Correlation-ID (or
X-Request-ID) header, or generates a UUID, stores it in the request context
so every log line carries it, and echoes it in the X-Correlation-ID
response header.

Usage:
    app.add_middleware(CorrelationIdMiddleware)

Client Usage:
    curl -H "X-Correlation-ID: my-trace-123" http://localhost:8000/health
"""

import logging
import uuid
from typing import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from portfolio_analytics.utils.context import clear_correlation_id, set_correlation_id

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"

# Longer inbound IDs are replaced to keep log lines bounded
MAX_CORRELATION_ID_LENGTH = 128


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Attach a correlation ID to the request context and the response."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        correlation_id = self._get_correlation_id(request)
        set_correlation_id(correlation_id)

        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            return response
        finally:
            clear_correlation_id()

    @staticmethod
    def _get_correlation_id(request: Request) -> str:
        """Inbound header value if usable, otherwise a new UUID4."""
        for header in (CORRELATION_ID_HEADER, REQUEST_ID_HEADER):
            value = request.headers.get(header, "").strip()
            if value and len(value) <= MAX_CORRELATION_ID_LENGTH:
                return value
        return str(uuid.uuid4())
