"""
Tests for provider usage tracking.
"""

from datetime import datetime

import pytest

from quote_proxy.services.usage_tracker import UsageTracker


@pytest.fixture
def tracker():
    return UsageTracker(retention_days=3)


class TestRecord:
    """Test counting of provider calls."""

    def test_counts_day_hour_and_minute(self, tracker):
        tracker.record("AAPL", datetime(2024, 1, 5, 14, 30, 1))
        tracker.record("MSFT", datetime(2024, 1, 5, 14, 30, 40))
        usage = tracker.record("AAPL", datetime(2024, 1, 5, 15, 2, 0))

        assert usage.daily == 3
        assert usage.hourly[14] == 2
        assert usage.hourly[15] == 1
        assert usage.minutely[30] == 2
        assert usage.minutely[2] == 1

    def test_new_day_starts_fresh(self, tracker):
        tracker.record("AAPL", datetime(2024, 1, 5, 23, 59))
        usage = tracker.record("AAPL", datetime(2024, 1, 6, 0, 0))

        assert usage.daily == 1

    def test_retention_window_prunes_old_days(self, tracker):
        for day in range(1, 6):
            tracker.record("AAPL", datetime(2024, 1, day, 9, 0))

        dates = [entry["date"] for entry in tracker.snapshot(datetime(2024, 1, 5, 9, 0))]

        assert dates == ["2024-01-03", "2024-01-04", "2024-01-05"]

    def test_invalid_retention(self):
        with pytest.raises(ValueError):
            UsageTracker(retention_days=0)


class TestSnapshot:
    """Test usage summaries."""

    def test_empty(self, tracker):
        assert tracker.snapshot(datetime(2024, 1, 5)) == []

    def test_reads_sub_counts_at_current_hour_and_minute(self, tracker):
        """Past days report their counts for the live clock's hour and minute."""
        tracker.record("AAPL", datetime(2024, 1, 4, 10, 15))
        tracker.record("AAPL", datetime(2024, 1, 4, 12, 45))
        tracker.record("AAPL", datetime(2024, 1, 5, 12, 45))

        snapshot = tracker.snapshot(datetime(2024, 1, 5, 12, 45))

        assert snapshot == [
            {"date": "2024-01-04", "daily": 2, "hourly": 1, "minutely": 1},
            {"date": "2024-01-05", "daily": 1, "hourly": 1, "minutely": 1},
        ]

    def test_zero_when_no_calls_in_current_buckets(self, tracker):
        tracker.record("AAPL", datetime(2024, 1, 5, 9, 10))

        snapshot = tracker.snapshot(datetime(2024, 1, 5, 11, 20))

        assert snapshot == [{"date": "2024-01-05", "daily": 1, "hourly": 0, "minutely": 0}]
