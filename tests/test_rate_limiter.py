"""
Unit tests for the outbound rate gate.

Uses a fake clock whose sleep advances time instantly.
"""

import asyncio

import pytest

from quote_proxy.infrastructure.rate_limiter import RateGate


@pytest.fixture
def rate_gate(fake_clock):
    """Create a rate gate for testing."""
    return RateGate(
        min_interval_seconds=13,
        max_requests=5,
        window_seconds=60,
        name="test_gate",
        clock=fake_clock,
        sleep=fake_clock.sleep,
    )


async def make_call(gate, clock, starts, duration=0.0):
    async with gate.acquire():
        starts.append(clock())
        clock.advance(duration)


class TestRateGateSpacing:
    """Tests for spacing between calls."""

    @pytest.mark.asyncio
    async def test_first_call_does_not_wait(self, rate_gate, fake_clock):
        starts = []
        await make_call(rate_gate, fake_clock, starts)

        assert fake_clock.sleeps == []
        assert starts == [1000.0]

    @pytest.mark.asyncio
    async def test_waits_min_interval_after_previous_call_ends(self, rate_gate, fake_clock):
        """The gap is measured from the end of the previous call."""
        starts = []
        await make_call(rate_gate, fake_clock, starts, duration=2.0)
        await make_call(rate_gate, fake_clock, starts, duration=2.0)

        assert starts[1] - starts[0] == pytest.approx(15.0)
        assert fake_clock.sleeps == [pytest.approx(13.0)]

    @pytest.mark.asyncio
    async def test_no_wait_when_gap_already_elapsed(self, rate_gate, fake_clock):
        starts = []
        await make_call(rate_gate, fake_clock, starts)
        fake_clock.advance(20)
        await make_call(rate_gate, fake_clock, starts)

        assert fake_clock.sleeps == []

    @pytest.mark.asyncio
    async def test_partial_wait(self, rate_gate, fake_clock):
        starts = []
        await make_call(rate_gate, fake_clock, starts)
        fake_clock.advance(5)
        await make_call(rate_gate, fake_clock, starts)

        assert fake_clock.sleeps == [pytest.approx(8.0)]

    @pytest.mark.asyncio
    async def test_failed_call_still_counts(self, rate_gate, fake_clock):
        """A call that raises still spaces the next one."""
        with pytest.raises(RuntimeError):
            async with rate_gate.acquire():
                fake_clock.advance(1)
                raise RuntimeError("provider down")

        starts = []
        await make_call(rate_gate, fake_clock, starts)

        assert fake_clock.sleeps == [pytest.approx(13.0)]


class TestRateGateConcurrency:
    """Tests for serialization of concurrent callers."""

    @pytest.mark.asyncio
    async def test_concurrent_calls_never_overlap(self, rate_gate, fake_clock):
        active = 0
        max_active = 0
        starts = []

        async def call():
            nonlocal active, max_active
            async with rate_gate.acquire():
                active += 1
                max_active = max(max_active, active)
                starts.append(fake_clock())
                await fake_clock.sleep(1.5)
                active -= 1

        await asyncio.gather(*(call() for _ in range(4)))

        assert max_active == 1
        assert len(starts) == 4
        for previous, current in zip(starts, starts[1:]):
            assert current - previous >= 13 + 1.5 - 1e-9

    @pytest.mark.asyncio
    async def test_first_come_first_served(self, rate_gate, fake_clock):
        order = []

        async def call(name):
            async with rate_gate.acquire():
                order.append(name)
                await asyncio.sleep(0)

        await asyncio.gather(call("a"), call("b"), call("c"))

        assert order == ["a", "b", "c"]


class TestRateGateWindow:
    """Tests for the per-minute cap."""

    @pytest.mark.asyncio
    async def test_caps_calls_per_window(self, fake_clock):
        gate = RateGate(
            min_interval_seconds=0,
            max_requests=2,
            window_seconds=60,
            clock=fake_clock,
            sleep=fake_clock.sleep,
        )
        starts = []
        for _ in range(3):
            await make_call(gate, fake_clock, starts)

        assert starts[2] - starts[0] == pytest.approx(60.0)

    @pytest.mark.asyncio
    async def test_never_more_than_five_per_minute(self, rate_gate, fake_clock):
        starts = []
        for _ in range(12):
            await make_call(rate_gate, fake_clock, starts, duration=0.5)

        for index, start in enumerate(starts):
            in_window = [s for s in starts[index:] if s - start < 60]
            assert len(in_window) <= 5

    @pytest.mark.asyncio
    async def test_get_current_usage(self, rate_gate, fake_clock):
        starts = []
        await make_call(rate_gate, fake_clock, starts)

        usage = rate_gate.get_current_usage()

        assert usage["name"] == "test_gate"
        assert usage["current_requests"] == 1
        assert usage["max_requests"] == 5
        assert usage["busy"] is False

    @pytest.mark.asyncio
    async def test_reset(self, rate_gate, fake_clock):
        starts = []
        await make_call(rate_gate, fake_clock, starts)

        rate_gate.reset()
        await make_call(rate_gate, fake_clock, starts)

        assert fake_clock.sleeps == []
        assert rate_gate.get_current_usage()["current_requests"] == 1
