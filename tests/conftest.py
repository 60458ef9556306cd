"""
Test configuration and fixtures
"""

import asyncio
from datetime import datetime
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from quote_proxy.app import app
from quote_proxy.cache.memory_cache import QuoteCache
from quote_proxy.dependencies import get_stock_service
from quote_proxy.infrastructure.alpha_vantage_client import AlphaVantageClient
from quote_proxy.infrastructure.rate_limiter import RateGate
from quote_proxy.services.stock_service import StockDataService
from quote_proxy.services.usage_tracker import UsageTracker
from quote_proxy.validators import SymbolValidator


class FakeClock:
    """Manually advanced clock; ``sleep`` advances it instead of waiting."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


@pytest.fixture
def fake_clock():
    """Fresh fake clock for each test."""
    return FakeClock()


@pytest.fixture
def sample_payload():
    """Provider payload with three daily entries, newest first."""
    return {
        "Meta Data": {
            "1. Information": "Daily Prices (open, high, low, close) and Volumes",
            "2. Symbol": "AAPL",
        },
        "Time Series (Daily)": {
            "2024-01-04": {"1. open": "185.0", "4. close": "184.9", "5. volume": "100"},
            "2024-01-03": {"1. open": "186.0", "4. close": "186.2", "5. volume": "100"},
            "2024-01-02": {"1. open": "185.1", "4. close": "185.6", "5. volume": "100"},
        },
    }


@pytest.fixture
def sample_series(sample_payload):
    """PriceSeries parsed from the sample payload."""
    return AlphaVantageClient.parse_time_series(
        "AAPL", sample_payload["Time Series (Daily)"]
    )


@pytest.fixture
def mock_provider(sample_series):
    """Provider mock returning the sample series."""
    provider = AsyncMock()
    provider.fetch_daily_series.return_value = sample_series
    return provider


@pytest.fixture
def stock_service(fake_clock, mock_provider):
    """Stock data service wired with fakes."""
    return StockDataService(
        validator=SymbolValidator(),
        cache=QuoteCache(ttl_seconds=3600, timer=fake_clock),
        usage_tracker=UsageTracker(retention_days=30),
        rate_gate=RateGate(
            min_interval_seconds=13,
            max_requests=5,
            window_seconds=60,
            name="test",
            clock=fake_clock,
            sleep=fake_clock.sleep,
        ),
        provider=mock_provider,
        now=lambda: datetime(2024, 1, 5, 14, 30, 15),
    )


@pytest.fixture
def client(stock_service):
    """Create a test client with the stock service dependency overridden."""

    async def override_get_stock_service():
        return stock_service

    app.dependency_overrides[get_stock_service] = override_get_stock_service
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()
