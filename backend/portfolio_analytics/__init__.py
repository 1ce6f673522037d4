# backend/portfolio_analytics/__init__.py
"""
Portfolio Performance Analytics service.

Turns an account's valuation history (NAV, portfolio value, capital
movements) into growth curves, drawdowns, trailing returns and calendar
P&L, optionally against a benchmark index.
"""

__version__ = "0.1.0"
