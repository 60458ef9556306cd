"""
Stock Data Router for daily closing prices.

Provides:
- GET /api/stock/{symbol}: full daily closing-price history

Domain errors raised by the service are translated into the error envelope
by the application's exception handlers.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..dependencies import get_stock_service
from ..helpers import utc_timestamp
from ..services.stock_service import SeriesResult, StockDataService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stock", tags=["Stock Data"])


class ClosingPrice(BaseModel):
    """One day's closing price."""

    date: str = Field(..., description="Session date (YYYY-MM-DD)")
    close: float = Field(..., description="Closing price")


class StockData(BaseModel):
    """Closing-price history for one symbol."""

    symbol: str = Field(..., description="Stock ticker symbol")
    closingPrices: List[ClosingPrice] = Field(..., description="Ascending by date")
    cached: bool = Field(..., description="Served from the hourly cache")
    dataPoints: int = Field(..., description="Number of closing prices")


class StockResponse(BaseModel):
    """Success envelope for the stock endpoint."""

    status: str = "success"
    data: StockData
    timestamp: str


def build_stock_response(result: SeriesResult) -> StockResponse:
    """Convert a service result into the response envelope."""
    closing_prices = [ClosingPrice(**point) for point in result.series.to_list()]
    return StockResponse(
        data=StockData(
            symbol=result.symbol,
            closingPrices=closing_prices,
            cached=result.cached,
            dataPoints=len(closing_prices),
        ),
        timestamp=utc_timestamp(),
    )


@router.get(
    "/{symbol}",
    response_model=StockResponse,
    summary="Get daily closing prices for a stock symbol",
)
async def get_stock(
    symbol: str,
    service: StockDataService = Depends(get_stock_service),
) -> StockResponse:
    """
    Get daily closing prices for a stock symbol.

    Args:
        symbol: Stock ticker symbol (e.g., AAPL), any case

    Returns:
        Closing prices ascending by date, with cache flag and point count

    Raises:
        InvalidSymbolException: 400 if the symbol is rejected
        StockNotFoundException: 404 if the provider has no data
        RateLimitedException: 429 if the provider is throttling
    """
    logger.info(f"Fetching closing prices for symbol: {symbol}")
    result = await service.get_series(symbol)
    return build_stock_response(result)
