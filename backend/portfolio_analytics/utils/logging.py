# backend/portfolio_analytics/utils/logging.py
"""
Logging configuration for the Portfolio Analytics service.

Called once at startup (before the FastAPI app is created):

    from portfolio_analytics.utils import setup_logging
    setup_logging()

Formats:
    text (default)  "2024-01-15 10:30:00 | INFO     | <correlation-id> | logger | message"
    json            one JSON object per line, suitable for log aggregation

Levels:
    DEBUG   - cache hits/misses, per-window lookback targets
    INFO    - analytics requests, feed fetches
    WARNING - degenerate input (duplicate dates, non-positive base NAV),
              benchmark feed failures, retries
    ERROR   - unexpected service failures

Environment:
    LOG_LEVEL=DEBUG|INFO|WARNING|ERROR|CRITICAL
    LOG_FORMAT=text|json
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from portfolio_analytics.config import settings
from portfolio_analytics.utils.context import get_correlation_id

DEFAULT_TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(correlation_id)s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NO_CORRELATION_ID = "no-correlation-id"

# HTTP client internals log every connection at DEBUG/INFO
NOISY_LOGGERS = [
    "httpx",
    "httpcore",
    "urllib3",
    "asyncio",
]

_STANDARD_RECORD_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "correlation_id", "message", "taskName",
}


class CorrelationIdFilter(logging.Filter):
    """Attach the current correlation ID to every record as `correlation_id`."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        return True


class JsonFormatter(logging.Formatter):
    """
    Render records as single-line JSON.

    Fields passed through `extra=` are copied under an "extra" key; values
    that are not JSON serializable are stringified.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "correlation_id": getattr(record, "correlation_id", NO_CORRELATION_ID),
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extra = {}
        for key, value in record.__dict__.items():
            if key in _STANDARD_RECORD_ATTRS:
                continue
            try:
                json.dumps(value)
                extra[key] = value
            except (TypeError, ValueError):
                extra[key] = str(value)

        if extra:
            log_entry["extra"] = extra

        return json.dumps(log_entry)


def setup_logging(
        level: str | None = None,
        log_format: str | None = None,
        suppress_noisy_loggers: bool = True,
) -> None:
    """
    Configure the root logger with a stdout handler and correlation IDs.

    Args:
        level: Log level name. Defaults to settings.log_level.
        log_format: "text" or "json". Defaults to settings.log_format.
        suppress_noisy_loggers: Raise HTTP client loggers to WARNING.

    Raises:
        ValueError: If the level name is not recognised
    """
    log_level_str = level or settings.log_level
    log_level = _get_log_level(log_level_str)
    format_type = (log_format or settings.log_format).lower()

    if format_type == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(fmt=DEFAULT_TEXT_FORMAT, datefmt=DEFAULT_DATE_FORMAT)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIdFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    if suppress_noisy_loggers:
        for logger_name in NOISY_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Logging configured: level={log_level_str}, format={format_type}",
        extra={"config": {"level": log_level_str, "format": format_type}},
    )


def _get_log_level(level_str: str) -> int:
    """Map a (case-insensitive) level name to its logging constant."""
    level_mapping = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "WARN": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }

    normalized = level_str.upper().strip()
    if normalized not in level_mapping:
        valid_levels = ", ".join(level_mapping.keys())
        raise ValueError(
            f"Invalid log level: '{level_str}'. Valid levels are: {valid_levels}"
        )
    return level_mapping[normalized]
