# backend/portfolio_analytics/schemas/__init__.py
"""
Pydantic schemas for request/response validation.

Usage:
    from portfolio_analytics.schemas import AnalyticsRequest, AnalyticsResponse
"""

from portfolio_analytics.schemas.analytics import (
    AnalyticsRequest,
    AnalyticsResponse,
    BenchmarkPointIn,
    CacheInvalidationResponse,
    DrawdownSummaryResponse,
    EnrichedRecordResponse,
    HistoryRecordIn,
    MonthlyPnlResponse,
    MonthPnlResponse,
    PortfolioSummaryResponse,
    QuarterlyPnlResponse,
)
from portfolio_analytics.schemas.errors import ErrorDetail, ValidationErrorDetail

__all__ = [
    # Requests
    "AnalyticsRequest",
    "HistoryRecordIn",
    "BenchmarkPointIn",

    # Responses
    "AnalyticsResponse",
    "EnrichedRecordResponse",
    "DrawdownSummaryResponse",
    "QuarterlyPnlResponse",
    "MonthlyPnlResponse",
    "MonthPnlResponse",
    "PortfolioSummaryResponse",
    "CacheInvalidationResponse",

    # Errors
    "ErrorDetail",
    "ValidationErrorDetail",
]
