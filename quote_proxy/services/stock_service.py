"""
Business logic service layer.

Orchestrates closing-price lookups: symbol validation, the hourly quote
cache, usage tracking and the rate-gated provider fetch.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Protocol, Set

from .. import metrics
from ..cache.memory_cache import QuoteCache
from ..domain.entities import PriceSeries
from ..domain.exceptions import InvalidSymbolException, QuoteProxyException
from ..infrastructure.rate_limiter import RateGate
from ..validators import SymbolValidator, normalize_symbol
from .usage_tracker import UsageTracker

logger = logging.getLogger(__name__)


class DailySeriesProvider(Protocol):
    """Anything able to fetch a full daily series for a symbol."""

    async def fetch_daily_series(self, symbol: str) -> PriceSeries:
        ...


@dataclass(frozen=True)
class SeriesResult:
    """Outcome of a series lookup."""

    symbol: str
    series: PriceSeries
    cached: bool


class StockDataService:
    """
    Closing-price pipeline.

    Implements the following strategy:
    1. Validate the symbol
    2. Serve from the quote cache when fresh
    3. Otherwise record usage, wait for the rate gate and fetch once
    4. Store the fresh series in the cache
    """

    def __init__(
        self,
        validator: SymbolValidator,
        cache: QuoteCache,
        usage_tracker: UsageTracker,
        rate_gate: RateGate,
        provider: DailySeriesProvider,
        now: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize stock data service.

        Args:
            validator: Symbol format and allow-list predicate
            cache: Hourly quote cache
            usage_tracker: Provider usage counters
            rate_gate: Gate serializing provider calls
            provider: Daily series provider client
            now: Wall-clock source used for usage bucketing
        """
        self.validator = validator
        self.cache = cache
        self.usage_tracker = usage_tracker
        self.rate_gate = rate_gate
        self.provider = provider
        self._now = now
        self._background: Set["asyncio.Future[PriceSeries]"] = set()

    async def get_series(self, raw_symbol: str) -> SeriesResult:
        """
        Get the daily closing-price series for a symbol.

        Args:
            raw_symbol: Symbol as received, any case

        Returns:
            SeriesResult with the series and whether it came from cache

        Raises:
            InvalidSymbolException: If the symbol is rejected
            QuoteProxyException: Any provider failure, unchanged
        """
        if not self.validator.is_valid(raw_symbol):
            logger.info(f"Rejected symbol: {raw_symbol!r}")
            raise InvalidSymbolException(raw_symbol)
        symbol = normalize_symbol(raw_symbol)

        series = self.cache.get(symbol)
        if series is not None:
            metrics.cache_lookups_total.labels(result="hit").inc()
            logger.info(f"Serving {symbol} from cache")
            return SeriesResult(symbol=symbol, series=series, cached=True)

        metrics.cache_lookups_total.labels(result="miss").inc()
        self._record_usage(symbol)

        # Shielded so a disconnecting client does not abort the fetch; the
        # result still lands in the cache.
        fetch = asyncio.ensure_future(self._fetch_and_store(symbol))
        self._background.add(fetch)
        fetch.add_done_callback(self._fetch_done)
        series = await asyncio.shield(fetch)

        return SeriesResult(symbol=symbol, series=series, cached=False)

    def _fetch_done(self, task: "asyncio.Future[PriceSeries]") -> None:
        """Release a finished fetch and retrieve its outcome."""
        self._background.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.debug(f"Background fetch finished with {type(error).__name__}")

    async def _fetch_and_store(self, symbol: str) -> PriceSeries:
        async with self.rate_gate.acquire():
            start_time = time.perf_counter()
            try:
                series = await self.provider.fetch_daily_series(symbol)
            except QuoteProxyException as e:
                metrics.provider_calls_total.labels(outcome=type(e).__name__).inc()
                logger.warning(f"Provider fetch failed for {symbol}: {e.message}")
                raise
            except Exception:
                metrics.provider_calls_total.labels(outcome="error").inc()
                raise
            finally:
                metrics.provider_call_duration_seconds.observe(
                    time.perf_counter() - start_time
                )

        metrics.provider_calls_total.labels(outcome="success").inc()
        self.cache.put(symbol, series)
        logger.info(f"Fetched and cached {symbol}: {len(series)} data points")
        return series

    def _record_usage(self, symbol: str) -> None:
        """Count the upcoming provider call; never fails the request."""
        try:
            self.usage_tracker.record(symbol, self._now())
        except Exception as e:
            logger.error(f"Failed to record usage for {symbol}: {e}", exc_info=True)

    def get_usage(self, now: Optional[datetime] = None) -> list:
        """Summarize tracked provider usage."""
        return self.usage_tracker.snapshot(now or self._now())
