"""
Provider usage tracking.

Counts outbound provider calls per calendar day, with hour and minute
sub-counts inside each day's record. Used for observability only.
"""

import logging
import threading
from collections import Counter, OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 30


@dataclass
class DailyUsage:
    """Call counts for one calendar day."""

    daily: int = 0
    hourly: Counter = field(default_factory=Counter)
    minutely: Counter = field(default_factory=Counter)


class UsageTracker:
    """
    In-memory usage counters bucketed by day, hour and minute.

    Days older than the retention window are dropped on each record.
    """

    def __init__(self, retention_days: int = DEFAULT_RETENTION_DAYS):
        if retention_days < 1:
            raise ValueError("retention_days must be at least 1")
        self.retention_days = retention_days
        self._days: "OrderedDict[str, DailyUsage]" = OrderedDict()
        self._lock = threading.Lock()

    @staticmethod
    def day_key(now: datetime) -> str:
        return now.strftime("%Y-%m-%d")

    def record(self, symbol: str, now: datetime) -> DailyUsage:
        """
        Count one provider call.

        Args:
            symbol: Symbol the call is made for
            now: Wall-clock time of the call

        Returns:
            The updated record for the current day
        """
        key = self.day_key(now)

        with self._lock:
            usage = self._days.get(key)
            if usage is None:
                usage = DailyUsage()
                self._days[key] = usage
                self._prune(now)

            usage.daily += 1
            usage.hourly[now.hour] += 1
            usage.minutely[now.minute] += 1

            logger.info(
                f"API call for {symbol}: daily={usage.daily} "
                f"hourly={usage.hourly[now.hour]} minutely={usage.minutely[now.minute]}"
            )
            return usage

    def snapshot(self, now: datetime) -> List[Dict]:
        """
        Summarize every tracked day.

        The hourly and minutely figures of each day are read at the hour and
        minute of ``now``, not at the time of that day's calls.
        """
        with self._lock:
            return [
                {
                    "date": key,
                    "daily": usage.daily,
                    "hourly": usage.hourly.get(now.hour, 0),
                    "minutely": usage.minutely.get(now.minute, 0),
                }
                for key, usage in self._days.items()
            ]

    def _prune(self, now: datetime) -> None:
        oldest_kept = self.day_key(now - timedelta(days=self.retention_days - 1))
        for key in [key for key in self._days if key < oldest_kept]:
            del self._days[key]
            logger.debug(f"Dropped usage record for {key}")
