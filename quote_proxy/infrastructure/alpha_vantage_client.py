"""
Alpha Vantage client for daily closing prices.

Fetches the full TIME_SERIES_DAILY history for a symbol and normalizes it
into a PriceSeries. Classifies non-data payloads as throttling notices or
missing data.

API Documentation: https://www.alphavantage.co/documentation/
"""

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

import httpx

from ..domain.entities import PricePoint, PriceSeries
from ..domain.exceptions import (
    ExternalServiceException,
    MalformedResponseException,
    RateLimitedException,
    StockNotFoundException,
)

logger = logging.getLogger(__name__)

SERVICE_NAME = "alpha_vantage"

TIME_SERIES_FIELDS = ("Time Series (Daily)", "Time Series (Daily Adjusted)")
CLOSE_FIELD = "4. close"
ADJUSTED_CLOSE_FIELD = "5. adjusted close"
NOTE_FIELD = "Note"
INFORMATION_FIELD = "Information"
ERROR_MESSAGE_FIELD = "Error Message"


class AlphaVantageClient:
    """
    Async Alpha Vantage client.

    Issues exactly one request per fetch. Throttling and caching are left to
    the caller.
    """

    BASE_URL = "https://www.alphavantage.co/query"

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout_seconds: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize Alpha Vantage client.

        Args:
            api_key: Alpha Vantage API key
            base_url: Query endpoint (defaults to the public API)
            timeout_seconds: Request timeout
            client: Pre-built HTTP client, mainly for tests
        """
        if not api_key:
            raise ValueError("Alpha Vantage API key is required")

        self.api_key = api_key
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout = timeout_seconds
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"User-Agent": "Stock-Quote-Proxy/1.0"},
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client connections."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def fetch_daily_series(self, symbol: str) -> PriceSeries:
        """
        Fetch the full daily closing-price history for a symbol.

        Args:
            symbol: Validated, upper-case ticker symbol

        Returns:
            PriceSeries sorted ascending by date

        Raises:
            RateLimitedException: Provider answered with a throttling notice
            StockNotFoundException: Provider answered without a time series
            MalformedResponseException: Payload could not be parsed
            ExternalServiceException: The HTTP call failed
        """
        payload = await self._request(symbol)

        time_series = None
        for series_field in TIME_SERIES_FIELDS:
            if series_field in payload:
                time_series = payload[series_field]
                break

        if time_series is None:
            self._raise_for_missing_series(symbol, payload)

        series = self.parse_time_series(symbol, time_series)
        logger.info(f"Called Alpha Vantage API for {symbol}: {len(series)} data points")
        return series

    async def _request(self, symbol: str) -> Dict[str, Any]:
        params = {
            "function": "TIME_SERIES_DAILY",
            "symbol": symbol,
            "apikey": self.api_key,
            "outputsize": "full",
            "datatype": "json",
        }

        client = self._get_client()
        try:
            response = await client.get(self.base_url, params=params)
        except httpx.HTTPError as e:
            logger.error(f"Alpha Vantage request failed for {symbol}: {e}")
            raise ExternalServiceException(SERVICE_NAME, str(e)) from e

        if response.status_code == 429:
            raise RateLimitedException(symbol, notice="HTTP 429 response")

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Alpha Vantage HTTP error for {symbol}: {e}")
            raise ExternalServiceException(
                SERVICE_NAME, f"HTTP {response.status_code}"
            ) from e

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponseException(symbol, "response is not valid JSON") from e

        if not isinstance(payload, dict):
            raise MalformedResponseException(symbol, "response is not a JSON object")

        return payload

    @staticmethod
    def _raise_for_missing_series(symbol: str, payload: Dict[str, Any]) -> None:
        note = payload.get(NOTE_FIELD)
        information = payload.get(INFORMATION_FIELD)

        if note:
            logger.warning(f"Alpha Vantage throttling notice for {symbol}: {note}")
            raise RateLimitedException(symbol, notice=str(note))

        if information and "rate limit" in str(information).lower():
            logger.warning(f"Alpha Vantage throttling notice for {symbol}: {information}")
            raise RateLimitedException(symbol, notice=str(information))

        reason = payload.get(ERROR_MESSAGE_FIELD) or information
        logger.info(f"No time series returned for {symbol}")
        raise StockNotFoundException(symbol, str(reason) if reason else None)

    @staticmethod
    def parse_time_series(symbol: str, time_series: Any) -> PriceSeries:
        """
        Convert the provider's date-keyed entries into a PriceSeries.

        Every entry must yield a date and a finite, non-negative close; the
        first bad entry fails the whole parse.

        Raises:
            MalformedResponseException: On any malformed entry
        """
        if not isinstance(time_series, dict):
            raise MalformedResponseException(symbol, "time series is not an object")

        points: List[PricePoint] = []
        seen_dates = set()
        for index, (raw_date, entry) in enumerate(time_series.items()):
            try:
                session_date = date.fromisoformat(raw_date)
            except (TypeError, ValueError):
                raise MalformedResponseException(
                    symbol, "invalid date", index=index, date=str(raw_date)
                ) from None

            if session_date in seen_dates:
                raise MalformedResponseException(
                    symbol, "duplicate date", index=index, date=str(raw_date)
                )
            seen_dates.add(session_date)

            raw_close = None
            if isinstance(entry, dict):
                raw_close = entry.get(CLOSE_FIELD)
                if raw_close is None:
                    raw_close = entry.get(ADJUSTED_CLOSE_FIELD)

            try:
                close = Decimal(str(raw_close)) if raw_close is not None else None
                point = PricePoint(date=session_date, close=close)
            except (InvalidOperation, TypeError, ValueError):
                raise MalformedResponseException(
                    symbol, f"invalid close price {raw_close!r}", index=index, date=raw_date
                ) from None

            points.append(point)

        return PriceSeries.from_points(points)
