# backend/portfolio_analytics/services/analytics/cache.py
"""
In-memory cache of computed analytics.

Analytics are recomputed from the full history on every call, so results
are memoized per account for ANALYTICS_CACHE_TTL_SECONDS. The cache is a
bounded LRU: when full, the least recently used entry is evicted.

Cache key format: "analytics:{account_code}:{as_of}:{benchmark}:{anchor}"

Thread Safety:
    Guarded by a threading.Lock; safe for a single worker process. Each
    worker keeps its own cache.

Results are deep-copied on the way in and out; callers never share the
stored instance.
"""

import copy
import logging
import threading
from collections import OrderedDict
from datetime import date, datetime, timedelta

from portfolio_analytics.services.analytics.types import AnalyticsResult, PeriodAnchor

logger = logging.getLogger(__name__)


class AnalyticsCache:
    """Thread-safe bounded LRU cache with TTL for AnalyticsResult values."""

    def __init__(self, ttl_seconds: int = 3600, max_size: int = 1000):
        """
        Args:
            ttl_seconds: Lifetime of an entry
            max_size: Maximum number of entries
        """
        self._cache: OrderedDict[str, tuple[datetime, AnalyticsResult]] = OrderedDict()
        self._ttl = timedelta(seconds=ttl_seconds)
        self._max_size = max_size
        self._lock = threading.Lock()

    @staticmethod
    def make_key(
            account_code: str,
            as_of: date,
            benchmark_symbol: str | None,
            anchor: PeriodAnchor,
    ) -> str:
        return f"analytics:{account_code}:{as_of.isoformat()}:{benchmark_symbol or 'none'}:{anchor.value}"

    def get(self, key: str) -> AnalyticsResult | None:
        """Return a live entry (marking it most recently used), else None."""
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None

            stored_at, result = entry
            if datetime.now() - stored_at >= self._ttl:
                del self._cache[key]
                logger.debug(f"Cache expired for {key}")
                return None

            self._cache.move_to_end(key)

        logger.debug(f"Cache hit for {key}")
        return copy.deepcopy(result)

    def set(self, key: str, result: AnalyticsResult) -> None:
        """Store a result, evicting least recently used entries when full."""
        with self._lock:
            self._cache.pop(key, None)
            while len(self._cache) >= self._max_size:
                evicted, _ = self._cache.popitem(last=False)
                logger.debug(f"Cache evicted {evicted} (LRU)")
            self._cache[key] = (datetime.now(), copy.deepcopy(result))
        logger.debug(f"Cached result for {key}")

    def invalidate(self, account_code: str) -> int:
        """
        Drop every entry of an account.

        Returns:
            Number of entries removed
        """
        prefix = f"analytics:{account_code}:"
        with self._lock:
            stale = [key for key in self._cache if key.startswith(prefix)]
            for key in stale:
                del self._cache[key]

        if stale:
            logger.debug(f"Invalidated {len(stale)} cache entries for account {account_code}")
        return len(stale)

    def clear(self) -> int:
        """Drop every entry; returns how many were removed."""
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
        logger.debug(f"Cleared {count} cache entries")
        return count

    def size(self) -> int:
        with self._lock:
            return len(self._cache)
