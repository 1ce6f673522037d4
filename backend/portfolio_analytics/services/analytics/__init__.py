# backend/portfolio_analytics/services/analytics/__init__.py
"""
Portfolio performance analytics engine.

Turns an irregular valuation history (plus an optional benchmark) into:
- Normalized growth curves (portfolio and benchmark rebased to 100)
- Drawdown series and current / max drawdown
- Trailing returns (1W, 10D, 1M, 3M, 6M, 1Y, Since Inception)
- Monthly / quarterly / yearly P&L net of capital movement

Architecture:
    analytics/
    ├── __init__.py              # This file - package exports
    ├── types.py                 # Records and result dataclasses
    ├── ingestion.py             # Raw rows -> validated, sorted records
    ├── alignment.py             # Normalization and benchmark join
    ├── drawdown.py              # Running-peak drawdowns
    ├── returns.py               # Trailing returns (absolute / CAGR)
    ├── pnl.py                   # Calendar-period P&L
    ├── cache.py                 # AnalyticsCache (LRU + TTL)
    └── service.py               # compute_analytics, AnalyticsService

Data Flow:
    history feed / request body
        ↓
    ValuationRecord[]  (+ BenchmarkRecord[])
        ↓
    compute_analytics()
        ↓
    AnalyticsResult
"""

from portfolio_analytics.services.analytics.alignment import align_series, backward_fill_index
from portfolio_analytics.services.analytics.cache import AnalyticsCache
from portfolio_analytics.services.analytics.drawdown import (
    apply_drawdowns,
    calculate_drawdown_series,
    summarize_drawdowns,
)
from portfolio_analytics.services.analytics.ingestion import (
    build_benchmark_record,
    build_valuation_record,
    prepare_series,
)
from portfolio_analytics.services.analytics.pnl import calculate_period_pnl
from portfolio_analytics.services.analytics.returns import (
    annualized_return_percent,
    calculate_trailing_returns,
    simple_return_percent,
)
from portfolio_analytics.services.analytics.service import (
    AnalyticsService,
    compute_analytics,
    summarize_portfolio,
)
from portfolio_analytics.services.analytics.types import (
    AnalyticsResult,
    BenchmarkRecord,
    DrawdownSummary,
    EnrichedRecord,
    MonthlyPnl,
    MonthPnl,
    PeriodAnchor,
    PeriodPnl,
    PortfolioSummary,
    QuarterlyPnl,
    TrailingReturns,
    ValuationRecord,
)

__all__ = [
    # Entry points
    "compute_analytics",
    "AnalyticsService",
    "AnalyticsCache",

    # Input types
    "ValuationRecord",
    "BenchmarkRecord",
    "PeriodAnchor",
    "build_valuation_record",
    "build_benchmark_record",
    "prepare_series",

    # Result types
    "AnalyticsResult",
    "EnrichedRecord",
    "DrawdownSummary",
    "TrailingReturns",
    "PeriodPnl",
    "QuarterlyPnl",
    "MonthlyPnl",
    "MonthPnl",
    "PortfolioSummary",

    # Individual calculations (for testing)
    "align_series",
    "backward_fill_index",
    "calculate_drawdown_series",
    "summarize_drawdowns",
    "apply_drawdowns",
    "calculate_trailing_returns",
    "simple_return_percent",
    "annualized_return_percent",
    "calculate_period_pnl",
    "summarize_portfolio",
]
