"""
Stock data service holder for FastAPI dependency injection.

The lifespan in app.py builds one StockDataService per process (one quote
cache, one usage tracker and one rate gate shared by every request) and
installs it here. Tests swap it out through app.dependency_overrides.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .services.stock_service import StockDataService

# Process-wide pipeline; None outside the app lifespan
_stock_service: Optional["StockDataService"] = None


def set_stock_service(service: Optional["StockDataService"]) -> None:
    """
    Install the process-wide stock data service.

    The lifespan passes the freshly wired service on startup and None on
    shutdown, after the provider client has been closed.
    """
    global _stock_service
    _stock_service = service


async def get_stock_service() -> "StockDataService":
    """
    Resolve the shared stock data service.

    Backs GET /api/stock/{symbol} and /api-usage, so every request sees the
    same cache, usage counters and rate gate.

    Raises:
        RuntimeError: If called outside the app lifespan
    """
    if _stock_service is None:
        raise RuntimeError("Stock data service not initialized")
    return _stock_service
