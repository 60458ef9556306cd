"""
Health, documentation and usage router.

Provides service health, a static endpoint description and provider usage
statistics.
"""

import logging
import time

from fastapi import APIRouter, Depends, Request

from ..config import get_settings
from ..dependencies import get_stock_service
from ..helpers import success_envelope
from ..services.stock_service import StockDataService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

API_DOCS = {
    "endpoints": {
        "/api/stock/{symbol}": {
            "method": "GET",
            "description": "Get daily closing prices for a stock symbol",
            "parameters": {"symbol": "Stock symbol (e.g., AAPL)"},
            "example": "/api/stock/AAPL",
        },
        "/api-usage": {
            "method": "GET",
            "description": "Provider usage for every tracked day",
        },
        "/health": {
            "method": "GET",
            "description": "Server health check",
        },
    }
}


@router.get("/health", summary="Health check")
async def health_check(request: Request):
    """
    Basic health check.

    Always returns 200 OK with the process uptime in seconds.
    """
    started_at = getattr(request.app.state, "started_at", time.monotonic())
    return success_envelope(
        {"status": "healthy", "uptime": time.monotonic() - started_at}
    )


@router.get("/api-docs", summary="API documentation")
async def api_docs():
    """Describe the public endpoints."""
    return success_envelope(API_DOCS)


@router.get("/api-usage", summary="Provider usage statistics")
async def api_usage(service: StockDataService = Depends(get_stock_service)):
    """
    Provider call counts per tracked day.

    Hourly and minutely figures are read at the current hour and minute.
    """
    settings = get_settings()
    return success_envelope(
        {
            "usage": service.get_usage(),
            "limits": {
                "daily": settings.USAGE_LIMIT_DAILY,
                "hourly": settings.USAGE_LIMIT_HOURLY,
                "minutely": settings.USAGE_LIMIT_MINUTELY,
            },
            "rateGate": service.rate_gate.get_current_usage(),
            "cache": service.cache.get_stats(),
        }
    )
