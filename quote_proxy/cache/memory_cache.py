"""
In-memory TTL cache for daily price series.

Maps a validated symbol to the PriceSeries fetched for it. Entries expire a
fixed time after insertion; expiry is checked lazily when an entry is read.
"""

import logging
import threading
import time
from typing import Callable, Dict, Optional

from cachetools import TTLCache  # type: ignore[import-untyped]

from quote_proxy.domain.entities import PriceSeries

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600

# The allow-list keeps the working set tiny; the bound only satisfies TTLCache.
DEFAULT_MAX_SIZE = 1024


class QuoteCache:
    """
    Time-to-live cache of price series keyed by symbol.

    Attributes:
        cache: Underlying TTLCache
        ttl_seconds: Lifetime of an entry measured from its insertion
        hits: Number of cache hits
        misses: Number of cache misses
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        max_size: int = DEFAULT_MAX_SIZE,
        timer: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize quote cache.

        Args:
            ttl_seconds: Seconds an entry stays valid after insertion
            max_size: Upper bound on entries held at once
            timer: Clock used to stamp and age entries
        """
        self.ttl_seconds = ttl_seconds
        self.cache: TTLCache = TTLCache(maxsize=max_size, ttl=ttl_seconds, timer=timer)
        self._lock = threading.RLock()

        self.hits = 0
        self.misses = 0

        logger.info(f"Initialized QuoteCache with ttl={ttl_seconds}s")

    def get(self, symbol: str) -> Optional[PriceSeries]:
        """
        Get the cached series for a symbol.

        Returns:
            PriceSeries if present and younger than the TTL, None otherwise
        """
        with self._lock:
            series = self.cache.get(symbol)

            if series is None:
                self.misses += 1
                logger.debug(f"Cache MISS: {symbol}")
                return None

            self.hits += 1
            logger.debug(f"Cache HIT: {symbol}")
            return series

    def put(self, symbol: str, series: PriceSeries) -> None:
        """Store a series, replacing any prior entry and restarting its TTL."""
        with self._lock:
            self.cache.pop(symbol, None)
            self.cache[symbol] = series
            logger.debug(f"Cached: {symbol} ({len(series)} points, TTL: {self.ttl_seconds}s)")

    def clear(self) -> None:
        """Clear all entries."""
        with self._lock:
            count = len(self.cache)
            self.cache.clear()
            logger.info(f"Cleared {count} items from cache")

    def get_stats(self) -> Dict[str, int]:
        """
        Get cache statistics.

        Returns:
            Dictionary with cache statistics
        """
        with self._lock:
            self.cache.expire()
            total_requests = self.hits + self.misses
            hit_rate = (self.hits / total_requests * 100) if total_requests > 0 else 0

            return {
                "size": len(self.cache),
                "ttl_seconds": self.ttl_seconds,
                "hits": self.hits,
                "misses": self.misses,
                "total_requests": total_requests,
                "hit_rate_percent": int(round(hit_rate)),
            }
