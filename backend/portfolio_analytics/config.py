# backend/portfolio_analytics/config.py
"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables (or a `.env` file in the
project root) with validation:
- ENVIRONMENT: Runtime mode (development, test, production)
- HISTORY_FEED_URL / BENCHMARK_FEED_URL: upstream data feeds
- ANALYTICS_CACHE_*: memoization of computed analytics
- LOG_LEVEL / LOG_FORMAT: logging

Environment-specific behavior:
- test: feed URLs default to local placeholders, rate limiting usually off
- development: missing feed URLs only disable the account endpoint
- production: both feed URLs are required

Usage:
    from portfolio_analytics.config import settings

    if settings.is_production:
        ...
"""
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Single .env at the project root (parent of backend/)
_BACKEND_DIR = Path(__file__).resolve().parent.parent
_PROJECT_ROOT = _BACKEND_DIR.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables:
        - ENVIRONMENT: Runtime environment (development, test, production)
        - APP_NAME: Application name
        - DEBUG: Enable debug mode (default: False)
        - LOG_LEVEL: Logging level (default: "INFO")
        - LOG_FORMAT: "text" or "json" (default: "text")

    Feed settings:
        - HISTORY_FEED_URL: REST endpoint returning an account's valuation history
        - BENCHMARK_FEED_URL: REST endpoint of the index-data service
        - DEFAULT_BENCHMARK_SYMBOL: Index requested when none is given (BSE500)
        - BENCHMARK_LOOKBACK_DAYS: Days requested before inception so a base
          observation exists when inception falls on a non-trading day
        - FEED_TIMEOUT_SECONDS: Per-request timeout for both feeds
    """

    environment: Literal["development", "test", "production"] = Field(
        default="development",
        description="Runtime environment (development, test, production)"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: Literal["text", "json"] = Field(
        default="text",
        description="Log output format"
    )

    app_name: str = "Portfolio Performance Analytics"
    debug: bool = False

    # =========================================================================
    # UPSTREAM FEEDS
    # =========================================================================
    history_feed_url: str | None = Field(
        default=None,
        description="Endpoint serving valuation history for an account"
    )
    benchmark_feed_url: str | None = Field(
        default=None,
        description="Endpoint of the index-data service"
    )
    default_benchmark_symbol: str = Field(
        default="BSE500",
        description="Benchmark index used when the caller does not choose one"
    )
    benchmark_lookback_days: int = Field(
        default=7,
        ge=0,
        le=31,
        description="Extra calendar days of benchmark data requested before inception"
    )
    feed_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Timeout for a single feed request"
    )

    # =========================================================================
    # ANALYTICS CACHE
    # =========================================================================
    analytics_cache_ttl_seconds: int = Field(
        default=3600,
        ge=0,
        description="Lifetime of a memoized analytics result"
    )
    analytics_cache_max_size: int = Field(
        default=1000,
        ge=1,
        description="Maximum number of memoized analytics results"
    )

    # =========================================================================
    # RATE LIMITING
    # =========================================================================
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable per-client rate limiting"
    )
    trust_proxy_headers: bool = Field(
        default=False,
        description="Trust X-Forwarded-For from any client (only behind a trusted load balancer)"
    )
    trusted_proxy_ips: list[str] = Field(
        default=["127.0.0.1"],
        description="Proxy addresses whose forwarded headers are trusted"
    )

    # =========================================================================
    # CORS
    # =========================================================================
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
        description="Allowed CORS origins"
    )
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = Field(default=["*"])
    cors_allow_headers: list[str] = Field(default=["*"])

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE) if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_feed_config(self) -> "Settings":
        """
        Validate feed configuration based on environment.

        Rules:
        - test: placeholder URLs are filled in (clients are mocked anyway)
        - development: feeds optional
        - production: both feed URLs required and must be http(s)
        """
        if self.environment == "test":
            if self.history_feed_url is None:
                object.__setattr__(self, "history_feed_url", "http://history.test/portfolio-history")
            if self.benchmark_feed_url is None:
                object.__setattr__(self, "benchmark_feed_url", "http://indices.test/getIndices")
            return self

        if self.environment == "production":
            missing = [
                name for name, value in (
                    ("HISTORY_FEED_URL", self.history_feed_url),
                    ("BENCHMARK_FEED_URL", self.benchmark_feed_url),
                ) if not value
            ]
            if missing:
                raise ValueError(
                    f"{', '.join(missing)} required in production environment."
                )

        for name, value in (
                ("HISTORY_FEED_URL", self.history_feed_url),
                ("BENCHMARK_FEED_URL", self.benchmark_feed_url),
        ):
            if value and not value.lower().startswith(("http://", "https://")):
                raise ValueError(f"{name} must be an http(s) URL, got: {value[:30]}")

        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_test(self) -> bool:
        """Check if running in test environment."""
        return self.environment == "test"

    @property
    def is_history_feed_configured(self) -> bool:
        """Check if the account endpoint can fetch history."""
        return bool(self.history_feed_url)


# Create single instance
settings = Settings()
