# backend/portfolio_analytics/routers/analytics.py
"""
Portfolio analytics endpoints.

- GET /accounts/{account_code}/analytics - Analytics of an account (feeds + cache)
- POST /analytics/compute - Analytics of a history supplied in the body
- DELETE /accounts/{account_code}/analytics/cache - Drop an account's cached analytics

Optional parameters (GET):
- benchmark_symbol: Index to compare against (default: DEFAULT_BENCHMARK_SYMBOL)
- include_benchmark: false skips the benchmark entirely
- pnl_anchor: "first_observation" (default) or "previous_close"

Numbers leave the API as strings with fixed precision; see
schemas/analytics.py for the formats.
"""

import logging
from decimal import ROUND_HALF_UP, Context, Decimal

from fastapi import APIRouter, Body, Depends, Path, Query, Request

from portfolio_analytics.dependencies import get_analytics_service
from portfolio_analytics.middleware.rate_limit import RATE_LIMIT_ANALYTICS, limiter
from portfolio_analytics.schemas.analytics import (
    AnalyticsRequest,
    AnalyticsResponse,
    CacheInvalidationResponse,
    DrawdownSummaryResponse,
    EnrichedRecordResponse,
    MonthlyPnlResponse,
    MonthPnlResponse,
    PortfolioSummaryResponse,
    QuarterlyPnlResponse,
)
from portfolio_analytics.services.analytics import (
    AnalyticsResult,
    AnalyticsService,
    DrawdownSummary,
    EnrichedRecord,
    MonthlyPnl,
    PeriodAnchor,
    PortfolioSummary,
    QuarterlyPnl,
    TrailingReturns,
    compute_analytics,
)
from portfolio_analytics.services.constants import METRIC_QUANTUM, PNL_QUANTUM
from portfolio_analytics.services.exceptions import ValidationError

logger = logging.getLogger(__name__)

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(tags=["Analytics"])

ACCOUNT_CODE_PATTERN = r"^[A-Za-z0-9_.-]{1,64}$"

# Precision of the default decimal context
DEFAULT_PRECISION = 28


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _quantize(value: Decimal, quantum: Decimal) -> Decimal:
    """
    Round half-up to `quantum`.

    The context precision is widened to fit the integer digits, so extreme
    values (e.g. a tiny base NAV) still round instead of raising.
    """
    digits = max(value.adjusted(), 0) - quantum.as_tuple().exponent + 2
    context = Context(prec=max(DEFAULT_PRECISION, digits))
    return value.quantize(quantum, rounding=ROUND_HALF_UP, context=context)


def _decimal_to_str(value: Decimal | None, quantum: Decimal = METRIC_QUANTUM) -> str | None:
    """Round half-up to `quantum` and render without exponent; None stays None."""
    if value is None:
        return None
    return format(_quantize(value, quantum), "f")


def _raw_to_str(value: Decimal) -> str:
    """Render an input value exactly as received."""
    return format(value, "f")


def _decimal_to_float(value: Decimal) -> float:
    return float(_quantize(value, PNL_QUANTUM))


# =============================================================================
# MAPPER FUNCTIONS (Internal Types -> Pydantic Schemas)
# =============================================================================

def _map_record(record: EnrichedRecord) -> EnrichedRecordResponse:
    return EnrichedRecordResponse(
        report_date=record.report_date,
        nav=_raw_to_str(record.nav),
        portfolio_value=_raw_to_str(record.portfolio_value),
        cash_in_out=_raw_to_str(record.cash_in_out),
        normalized_nav=_decimal_to_str(record.normalized_nav),
        drawdown_percent=_decimal_to_str(record.drawdown_percent),
        benchmark_value=None if record.benchmark_value is None else _raw_to_str(record.benchmark_value),
        normalized_benchmark=_decimal_to_str(record.normalized_benchmark),
        benchmark_drawdown_percent=_decimal_to_str(record.benchmark_drawdown_percent),
    )


def _map_drawdown(summary: DrawdownSummary) -> DrawdownSummaryResponse:
    return DrawdownSummaryResponse(
        current_drawdown=_decimal_to_str(summary.current_drawdown),
        max_drawdown=_decimal_to_str(summary.max_drawdown),
    )


def _map_returns(returns: TrailingReturns) -> dict[str, str | None]:
    return {label: _decimal_to_str(value) for label, value in returns.items()}


def _map_quarterly(pnl: QuarterlyPnl) -> QuarterlyPnlResponse:
    return QuarterlyPnlResponse(
        percent={key: _decimal_to_str(value, PNL_QUANTUM) for key, value in pnl.percent.items()},
        cash={key: _decimal_to_str(value, PNL_QUANTUM) for key, value in pnl.cash.items()},
        year_cash=_decimal_to_str(pnl.year_cash, PNL_QUANTUM),
    )


def _map_monthly(pnl: MonthlyPnl) -> MonthlyPnlResponse:
    """Map a year of monthly P&L; the year totals are JSON numbers."""
    return MonthlyPnlResponse(
        months={
            name: MonthPnlResponse(
                percent=_decimal_to_str(month.percent, PNL_QUANTUM),
                cash=_decimal_to_str(month.cash, PNL_QUANTUM),
                capital_in_out=_decimal_to_str(month.capital_in_out, PNL_QUANTUM),
            )
            for name, month in pnl.months.items()
        },
        total_percent=_decimal_to_float(pnl.total_percent),
        total_cash=_decimal_to_float(pnl.total_cash),
        total_capital_in_out=_decimal_to_float(pnl.total_capital_in_out),
    )


def _map_summary(summary: PortfolioSummary) -> PortfolioSummaryResponse:
    return PortfolioSummaryResponse(
        total_invested=_decimal_to_str(summary.total_invested, PNL_QUANTUM),
        current_value=_decimal_to_str(summary.current_value, PNL_QUANTUM),
        total_returns=_decimal_to_str(summary.total_returns, PNL_QUANTUM),
        returns_percent=_decimal_to_str(summary.returns_percent, PNL_QUANTUM),
    )


def _map_result(result: AnalyticsResult) -> AnalyticsResponse:
    """Map an AnalyticsResult to the response schema."""
    return AnalyticsResponse(
        account_code=result.account_code,
        inception_date=result.inception_date,
        latest_date=result.latest_date,
        has_benchmark=result.has_benchmark,
        benchmark_symbol=result.benchmark_symbol,
        records=[_map_record(r) for r in result.records],
        drawdown=_map_drawdown(result.drawdown),
        benchmark_drawdown=_map_drawdown(result.benchmark_drawdown) if result.has_benchmark else None,
        trailing_returns=_map_returns(result.trailing_returns),
        benchmark_trailing_returns=(
            _map_returns(result.benchmark_trailing_returns)
            if result.benchmark_trailing_returns is not None else None
        ),
        quarterly_pnl={year: _map_quarterly(q) for year, q in result.pnl.quarterly.items()},
        monthly_pnl={year: _map_monthly(m) for year, m in result.pnl.monthly.items()},
        summary=_map_summary(result.summary),
        warnings=result.warnings,
    )


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get(
    "/accounts/{account_code}/analytics",
    response_model=AnalyticsResponse,
    summary="Get account analytics",
    response_description="Growth, drawdown, trailing returns and P&L of the account",
)
@limiter.limit(RATE_LIMIT_ANALYTICS)
def get_account_analytics(
        request: Request,  # Required for rate limiting
        account_code: str = Path(..., pattern=ACCOUNT_CODE_PATTERN, description="Account code"),
        benchmark_symbol: str | None = Query(
            default=None,
            max_length=32,
            description="Benchmark index (default: BSE500)",
        ),
        include_benchmark: bool = Query(
            default=True,
            description="Compare against a benchmark",
        ),
        pnl_anchor: PeriodAnchor = Query(
            default=PeriodAnchor.FIRST_OBSERVATION,
            description="Where calendar periods start for P&L",
        ),
        service: AnalyticsService = Depends(get_analytics_service),
) -> AnalyticsResponse:
    """
    Get the analytics of an account.

    The history is fetched from the history feed and the benchmark from the
    index-data service; results are cached per account and day.

    If the benchmark cannot be fetched the analytics are still returned,
    without benchmark figures and with a warning.

    Raises **404** for an unknown account or benchmark symbol, **503** when
    the history feed is unavailable.
    """
    symbol = benchmark_symbol.strip().upper() if benchmark_symbol else None

    result = service.get_analytics(
        account_code=account_code,
        benchmark_symbol=symbol or None,
        include_benchmark=include_benchmark,
        pnl_anchor=pnl_anchor,
    )
    return _map_result(result)


@router.post(
    "/analytics/compute",
    response_model=AnalyticsResponse,
    summary="Compute analytics of a supplied history",
    response_description="Analytics of the posted history",
)
@limiter.limit(RATE_LIMIT_ANALYTICS)
def compute_posted_analytics(
        request: Request,  # Required for rate limiting
        payload: AnalyticsRequest = Body(...),
) -> AnalyticsResponse:
    """
    Compute analytics of the history in the request body.

    Nothing is fetched or cached. Records may arrive in any order; duplicate
    dates keep the first record.

    Raises **400** when inception_date lies after the last record.
    """
    history = [record.to_record() for record in payload.history]
    benchmark = [point.to_record() for point in payload.benchmark] if payload.benchmark else None

    if payload.inception_date is not None and history:
        latest = max(r.report_date for r in history)
        if payload.inception_date > latest:
            raise ValidationError(
                f"inception_date {payload.inception_date.isoformat()} is after "
                f"the last record ({latest.isoformat()})",
                field="inception_date",
            )

    logger.debug(f"Computing posted analytics for {len(history)} records")
    result = compute_analytics(
        history,
        benchmark,
        inception_date=payload.inception_date,
        pnl_anchor=payload.pnl_anchor,
        benchmark_symbol=payload.benchmark_symbol,
    )
    return _map_result(result)


@router.delete(
    "/accounts/{account_code}/analytics/cache",
    response_model=CacheInvalidationResponse,
    summary="Invalidate cached analytics",
)
@limiter.limit(RATE_LIMIT_ANALYTICS)
def invalidate_account_cache(
        request: Request,  # Required for rate limiting
        account_code: str = Path(..., pattern=ACCOUNT_CODE_PATTERN, description="Account code"),
        service: AnalyticsService = Depends(get_analytics_service),
) -> CacheInvalidationResponse:
    """
    Drop every cached analytics result of an account.

    Call after the account's history has been corrected upstream.
    """
    count = service.invalidate_cache(account_code)
    return CacheInvalidationResponse(account_code=account_code, invalidated=count)
