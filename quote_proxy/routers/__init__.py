"""
API routers for quote proxy endpoints.
"""

from . import health_router, stock_router

__all__ = ["stock_router", "health_router"]
