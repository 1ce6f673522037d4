# backend/portfolio_analytics/services/constants.py
"""
Centralized constants for the analytics services.

Single source of truth for calendar conventions, trailing-window
definitions and rate limits.

Usage:
    from portfolio_analytics.services.constants import (
        DAYS_PER_YEAR,
        DAY_WINDOWS,
        MONTH_WINDOWS,
    )
"""

from decimal import Decimal


# =============================================================================
# NUMERIC CONSTANTS
# =============================================================================

ZERO: Decimal = Decimal("0")
ONE: Decimal = Decimal("1")
HUNDRED: Decimal = Decimal("100")

# Base level every normalized series is rebased to
NORMALIZATION_BASE: Decimal = HUNDRED


# =============================================================================
# CALENDAR CONVENTIONS
# =============================================================================

# Average year length (leap years included) used to turn a day count into
# years for the Since Inception return
DAYS_PER_YEAR: Decimal = Decimal("365.25")

MONTHS_PER_YEAR: int = 12

# Horizon (in months) from which a return is annualized
ANNUALIZATION_THRESHOLD_MONTHS: int = 12

MONTH_NAMES: tuple[str, ...] = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

QUARTER_KEYS: tuple[str, ...] = ("q1", "q2", "q3", "q4")


# =============================================================================
# TRAILING RETURN WINDOWS
# =============================================================================

# Short windows counted in business days (Mon-Fri); always absolute returns
DAY_WINDOWS: dict[str, int] = {
    "1W": 7,
    "10D": 10,
}

# Calendar-month windows; annualized once they reach a full year
MONTH_WINDOWS: dict[str, int] = {
    "1M": 1,
    "3M": 3,
    "6M": 6,
    "1Y": 12,
}

SINCE_INCEPTION: str = "Since Inception"

# Display order of the trailing-returns table
TRAILING_PERIODS: tuple[str, ...] = (*DAY_WINDOWS, *MONTH_WINDOWS, SINCE_INCEPTION)


# =============================================================================
# SERIALIZATION
# =============================================================================

# Quantum for P&L figures on the wire ("12.35")
PNL_QUANTUM: Decimal = Decimal("0.01")

# Quantum for growth, drawdown and trailing-return figures
METRIC_QUANTUM: Decimal = Decimal("0.0001")


# =============================================================================
# RATE LIMITING
# =============================================================================

RATE_LIMIT_DEFAULT: str = "100/minute"

# Analytics recompute a full multi-year history per call
RATE_LIMIT_ANALYTICS: str = "30/minute"

RATE_LIMIT_HEALTH: str = "300/minute"


# =============================================================================
# FEED CLIENTS
# =============================================================================

FEED_MAX_RETRY_ATTEMPTS: int = 3
FEED_RETRY_MIN_WAIT: int = 1
FEED_RETRY_MAX_WAIT: int = 10

FEED_CIRCUIT_FAILURE_THRESHOLD: int = 5
FEED_CIRCUIT_RECOVERY_TIMEOUT: float = 60.0
