# backend/portfolio_analytics/services/analytics/service.py
"""
Analytics orchestration.

compute_analytics() is the engine's entry point: a pure function from a
valuation history (and an optional benchmark) to an AnalyticsResult.
AnalyticsService wraps it for the HTTP layer:
1. Fetches the account history from the history feed
2. Fetches the benchmark for the same window (optional, failures tolerated)
3. Runs compute_analytics
4. Caches the result (AnalyticsCache)

Architecture:
    AnalyticsService
        ├── uses → HistoryFeedProtocol (valuation history)
        ├── uses → BenchmarkFeedProtocol (index levels)
        ├── uses → compute_analytics
        │           ├── ingestion.prepare_series (sort, de-duplicate)
        │           ├── alignment.align_series (normalize, join benchmark)
        │           ├── drawdown.apply_drawdowns
        │           ├── returns.calculate_trailing_returns
        │           └── pnl.calculate_period_pnl
        └── uses → AnalyticsCache

Usage:
    from portfolio_analytics.services.analytics import compute_analytics

    result = compute_analytics(history, benchmark)
    print(result.trailing_returns["1Y"])
"""

import logging
from collections.abc import Iterable, Sequence
from datetime import date, timedelta

from portfolio_analytics.config import settings
from portfolio_analytics.services.analytics.alignment import align_series
from portfolio_analytics.services.analytics.cache import AnalyticsCache
from portfolio_analytics.services.analytics.drawdown import (
    apply_drawdowns,
    summarize_record_drawdowns,
)
from portfolio_analytics.services.analytics.ingestion import prepare_series
from portfolio_analytics.services.analytics.pnl import calculate_period_pnl
from portfolio_analytics.services.analytics.returns import calculate_trailing_returns
from portfolio_analytics.services.analytics.types import (
    AnalyticsResult,
    BenchmarkRecord,
    PeriodAnchor,
    PortfolioSummary,
    ValuationRecord,
)
from portfolio_analytics.services.circuit_breaker import CircuitBreakerOpen
from portfolio_analytics.services.constants import HUNDRED, ZERO
from portfolio_analytics.services.exceptions import FeedError
from portfolio_analytics.services.protocols import BenchmarkFeedProtocol, HistoryFeedProtocol

logger = logging.getLogger(__name__)


# =============================================================================
# PURE COMPUTATION
# =============================================================================

def summarize_portfolio(records: Sequence[ValuationRecord]) -> PortfolioSummary:
    """
    Invested capital against current value.

    total_invested is the net of every cash_in_out; the return percent is
    unavailable when nothing (or less than nothing) is invested.
    """
    if not records:
        return PortfolioSummary()

    invested = sum((r.cash_in_out for r in records), ZERO)
    current = records[-1].portfolio_value
    gain = current - invested
    percent = gain / invested * HUNDRED if invested > ZERO else None

    return PortfolioSummary(
        total_invested=invested,
        current_value=current,
        total_returns=gain,
        returns_percent=percent,
    )


def compute_analytics(
        history: Iterable[ValuationRecord],
        benchmark: Iterable[BenchmarkRecord] | None = None,
        *,
        inception_date: date | None = None,
        pnl_anchor: PeriodAnchor = PeriodAnchor.FIRST_OBSERVATION,
        account_code: str | None = None,
        benchmark_symbol: str | None = None,
) -> AnalyticsResult:
    """
    Compute every analytic of one account.

    Pure and deterministic: the same inputs always give the same result and
    the inputs are never modified. Degenerate data never raises; affected
    metrics are None and a warning explains why.

    Args:
        history: Valuation records in any order (duplicates dropped, first wins)
        benchmark: Benchmark index levels (optional)
        inception_date: Start of the Since Inception window (defaults to the
            first record)
        pnl_anchor: Where calendar periods start for P&L
        account_code: Echoed in the result
        benchmark_symbol: Echoed in the result when the benchmark is used

    Returns:
        AnalyticsResult (empty, not an error, for an empty history)
    """
    records, warnings = prepare_series(history, "history")

    if not records:
        return AnalyticsResult(
            account_code=account_code,
            trailing_returns=calculate_trailing_returns([]),
            warnings=warnings,
        )

    benchmark_records: list[BenchmarkRecord] = []
    if benchmark is not None:
        benchmark_records, benchmark_warnings = prepare_series(benchmark, "benchmark")
        warnings.extend(benchmark_warnings)

    enriched = apply_drawdowns(align_series(records, benchmark_records))
    drawdown, benchmark_drawdown = summarize_record_drawdowns(enriched)
    has_benchmark = enriched[0].normalized_benchmark is not None

    if not records[0].has_positive_nav:
        warnings.append(
            f"Base NAV on {records[0].report_date.isoformat()} is not positive; "
            f"normalized series, drawdowns and trailing returns are unavailable"
        )
        trailing = calculate_trailing_returns([])
    else:
        trailing = calculate_trailing_returns(
            [(r.report_date, r.nav) for r in records],
            inception_date=inception_date,
        )

    benchmark_trailing = None
    if has_benchmark:
        benchmark_trailing = calculate_trailing_returns(
            [(b.date, b.value) for b in benchmark_records],
            inception_date=records[0].report_date,
        )
    elif benchmark_records:
        warnings.append(
            f"Benchmark has no usable observation on or before "
            f"{records[0].report_date.isoformat()}; benchmark omitted"
        )

    return AnalyticsResult(
        account_code=account_code,
        inception_date=records[0].report_date,
        latest_date=records[-1].report_date,
        records=enriched,
        drawdown=drawdown,
        benchmark_drawdown=benchmark_drawdown,
        trailing_returns=trailing,
        benchmark_trailing_returns=benchmark_trailing,
        pnl=calculate_period_pnl(records, pnl_anchor),
        summary=summarize_portfolio(records),
        has_benchmark=has_benchmark,
        benchmark_symbol=benchmark_symbol if has_benchmark else None,
        warnings=warnings,
    )


# =============================================================================
# ANALYTICS SERVICE
# =============================================================================

class AnalyticsService:
    """
    Fetch-compute-cache orchestrator used by the API.

    Attributes:
        _history_feed: Source of valuation history
        _benchmark_feed: Source of benchmark levels (None disables benchmarks)
        _cache: AnalyticsCache shared by all instances unless one is injected
    """

    _shared_cache: AnalyticsCache | None = None

    def __init__(
            self,
            history_feed: HistoryFeedProtocol,
            benchmark_feed: BenchmarkFeedProtocol | None = None,
            cache: AnalyticsCache | None = None,
    ):
        self._history_feed = history_feed
        self._benchmark_feed = benchmark_feed

        if cache is not None:
            self._cache = cache
        else:
            if AnalyticsService._shared_cache is None:
                AnalyticsService._shared_cache = AnalyticsCache(
                    ttl_seconds=settings.analytics_cache_ttl_seconds,
                    max_size=settings.analytics_cache_max_size,
                )
            self._cache = AnalyticsService._shared_cache

        logger.info("AnalyticsService initialized")

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def get_analytics(
            self,
            account_code: str,
            benchmark_symbol: str | None = None,
            include_benchmark: bool = True,
            pnl_anchor: PeriodAnchor = PeriodAnchor.FIRST_OBSERVATION,
    ) -> AnalyticsResult:
        """
        Analytics of an account, served from cache when fresh.

        Benchmark problems (feed down, malformed data, circuit open, no data
        at inception) degrade the result to "no benchmark" with a warning;
        a degraded result is not cached.

        Raises:
            AccountNotFoundError: Unknown account
            BenchmarkNotFoundError: Unknown benchmark symbol
            FeedError / CircuitBreakerOpen: History feed failure
        """
        pnl_anchor = PeriodAnchor(pnl_anchor)
        symbol = (benchmark_symbol or settings.default_benchmark_symbol) if include_benchmark else None

        cache_key = AnalyticsCache.make_key(account_code, date.today(), symbol, pnl_anchor)
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        logger.info(
            f"Computing analytics for account {account_code} "
            f"(benchmark={symbol or 'none'}, anchor={pnl_anchor.value})"
        )

        history = self._history_feed.get_history(account_code)

        benchmark: list[BenchmarkRecord] | None = None
        fetch_warnings: list[str] = []
        if symbol and history:
            benchmark, fetch_warnings = self._fetch_benchmark(symbol, history)

        result = compute_analytics(
            history,
            benchmark,
            pnl_anchor=pnl_anchor,
            account_code=account_code,
            benchmark_symbol=symbol,
        )
        result.warnings = fetch_warnings + result.warnings

        if not fetch_warnings:
            self._cache.set(cache_key, result)
        return result

    def invalidate_cache(self, account_code: str) -> int:
        """Drop cached analytics of one account; returns entries removed."""
        count = self._cache.invalidate(account_code)
        logger.info(f"Invalidated {count} cached analytics for account {account_code}")
        return count

    def clear_all_cache(self) -> int:
        """Drop every cached result."""
        return self._cache.clear()

    # =========================================================================
    # PRIVATE
    # =========================================================================

    def _fetch_benchmark(
            self,
            symbol: str,
            history: Sequence[ValuationRecord],
    ) -> tuple[list[BenchmarkRecord] | None, list[str]]:
        """
        Fetch the benchmark window covering the history.

        The window opens BENCHMARK_LOOKBACK_DAYS before inception so that a
        non-trading inception day still has a base observation.
        """
        if self._benchmark_feed is None:
            return None, []

        inception = min(r.report_date for r in history)
        latest = max(r.report_date for r in history)
        start = inception - timedelta(days=settings.benchmark_lookback_days)

        try:
            return self._benchmark_feed.get_series(symbol, start, latest), []
        except (FeedError, CircuitBreakerOpen) as e:
            logger.warning(f"Benchmark {symbol} unavailable, continuing without it: {e}")
            return None, [f"Benchmark {symbol} unavailable: {e}"]
