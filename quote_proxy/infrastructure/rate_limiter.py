"""
Outbound rate gate for provider calls.

Serializes provider calls through a single FIFO lane and keeps them under
the provider's free-tier quota: a fixed gap between the end of one call and
the start of the next, plus a sliding-window cap on calls per minute.
"""

import asyncio
import logging
import time
from collections import deque
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Deque, Optional

from .. import metrics

logger = logging.getLogger(__name__)


class RateGate:
    """
    Single-lane gate spacing outbound calls.

    The permit returned by ``acquire`` is held for the whole call, so calls
    never overlap. The spacing is measured from the end of the previous call.
    """

    def __init__(
        self,
        min_interval_seconds: float = 13.0,
        max_requests: int = 5,
        window_seconds: float = 60.0,
        name: str = "default",
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize rate gate.

        Args:
            min_interval_seconds: Gap required after the previous call ends
            max_requests: Maximum calls started per window
            window_seconds: Sliding window duration in seconds
            name: Gate name for logging
            clock: Monotonic time source
            sleep: Coroutine used to wait
        """
        self.name = name
        self.min_interval_seconds = min_interval_seconds
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.requests: Deque[float] = deque()
        self.last_finished_at: Optional[float] = None

        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[None]:
        """
        Wait for the gate to open and hold it for the duration of one call.

        Waiters are admitted first-come-first-served.
        """
        async with self._lock:
            await self._wait_for_slot()
            self.requests.append(self._clock())
            logger.debug(
                f"Rate gate '{self.name}': {len(self.requests)}/{self.max_requests} "
                f"calls in window"
            )
            try:
                yield
            finally:
                self.last_finished_at = self._clock()

    async def _wait_for_slot(self) -> None:
        waited = 0.0
        while True:
            now = self._clock()
            self._clean_old_requests(now)
            wait_time = self._required_wait(now)

            if wait_time <= 0:
                metrics.rate_gate_wait_seconds.labels(gate=self.name).observe(waited)
                return

            logger.info(f"Rate gate '{self.name}': waiting {wait_time:.2f}s before next call")
            await self._sleep(wait_time)
            waited += wait_time

    def _required_wait(self, now: float) -> float:
        wait_time = 0.0
        if self.last_finished_at is not None:
            wait_time = self.last_finished_at + self.min_interval_seconds - now

        if len(self.requests) >= self.max_requests:
            oldest_request = self.requests[0]
            wait_time = max(wait_time, self.window_seconds - (now - oldest_request))

        return wait_time

    def _clean_old_requests(self, now: float) -> None:
        """Remove calls that have left the current window."""
        window_start = now - self.window_seconds

        while self.requests and self.requests[0] <= window_start:
            self.requests.popleft()

    def get_current_usage(self) -> dict:
        """Get current gate usage statistics."""
        now = self._clock()
        self._clean_old_requests(now)

        return {
            "name": self.name,
            "current_requests": len(self.requests),
            "max_requests": self.max_requests,
            "window_seconds": self.window_seconds,
            "min_interval_seconds": self.min_interval_seconds,
            "busy": self._lock.locked(),
        }

    def reset(self) -> None:
        """Forget all tracked calls."""
        logger.info(f"Rate gate '{self.name}' reset")
        self.requests.clear()
        self.last_finished_at = None
