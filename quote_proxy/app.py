"""
Main FastAPI application.

This file wires together all layers:
- Domain: Price entities and errors
- Infrastructure: Alpha Vantage client, outbound rate gate
- Cache: Hourly in-memory quote cache
- Services: Closing-price pipeline and usage tracking
- Routers: HTTP endpoints
"""

import time
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from . import __version__, metrics
from .cache.memory_cache import QuoteCache
from .config import Settings, get_settings
from .dependencies import set_stock_service
from .domain.exceptions import QuoteProxyException
from .helpers import error_response
from .infrastructure.alpha_vantage_client import AlphaVantageClient
from .infrastructure.rate_limiter import RateGate
from .logging_config import setup_logging
from .routers import health_router, stock_router
from .services.stock_service import StockDataService
from .services.usage_tracker import UsageTracker
from .validators import SymbolValidator

settings = get_settings()
setup_logging(settings.LOG_LEVEL, use_json=settings.LOG_JSON)

logger = structlog.get_logger(__name__)

GENERIC_ERROR_MESSAGE = "Failed to process stock data"


def create_stock_service(
    settings: Settings, provider: Optional[AlphaVantageClient] = None
) -> StockDataService:
    """
    Create and configure the stock data service with all dependencies.

    Args:
        settings: Application settings
        provider: Provider client (built from settings if None)

    Returns:
        Configured StockDataService instance
    """
    if provider is None:
        provider = AlphaVantageClient(
            api_key=settings.ALPHA_VANTAGE_API_KEY,
            base_url=settings.ALPHA_VANTAGE_BASE_URL,
            timeout_seconds=settings.REQUEST_TIMEOUT,
        )
    return StockDataService(
        validator=SymbolValidator(settings.ALLOWED_SYMBOLS),
        cache=QuoteCache(ttl_seconds=settings.CACHE_TTL_SECONDS),
        usage_tracker=UsageTracker(retention_days=settings.USAGE_RETENTION_DAYS),
        rate_gate=RateGate(
            min_interval_seconds=settings.PROVIDER_MIN_INTERVAL_SECONDS,
            max_requests=settings.PROVIDER_MAX_CALLS_PER_MINUTE,
            window_seconds=60,
            name="alpha_vantage",
        ),
        provider=provider,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Stock Quote Proxy...", version=__version__)

    app.state.started_at = time.monotonic()
    service = create_stock_service(settings)
    set_stock_service(service)
    logger.info(
        "Stock data service initialized",
        cache_ttl=settings.CACHE_TTL_SECONDS,
        min_interval=settings.PROVIDER_MIN_INTERVAL_SECONDS,
        symbols=len(settings.ALLOWED_SYMBOLS),
    )

    yield

    logger.info("Shutting down Stock Quote Proxy...")
    await service.provider.close()
    set_stock_service(None)
    logger.info("Stock Quote Proxy shut down complete")


app = FastAPI(
    title=settings.APP_NAME,
    description="Daily closing prices with hourly caching and provider rate limiting",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_methods=["GET"],
    allow_headers=["*"],
)


# Request ID middleware
@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add request ID for distributed tracing."""
    request_id = request.headers.get("X-Request-ID", f"req-{id(request)}")

    structlog.contextvars.bind_contextvars(request_id=request_id)
    try:
        response = await call_next(request)
    finally:
        structlog.contextvars.clear_contextvars()

    response.headers["X-Request-ID"] = request_id
    return response


# Metrics middleware
@app.middleware("http")
async def track_metrics(request: Request, call_next):
    """Track Prometheus metrics."""
    start_time = time.perf_counter()

    response = await call_next(request)

    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)
    metrics.http_requests_total.labels(
        method=request.method, endpoint=endpoint, status=response.status_code
    ).inc()
    metrics.http_request_duration_seconds.labels(
        method=request.method, endpoint=endpoint
    ).observe(time.perf_counter() - start_time)

    return response


app.include_router(stock_router.router)
app.include_router(health_router.router)


@app.get("/metrics", include_in_schema=False)
async def prometheus_metrics():
    """Prometheus metrics endpoint."""
    return metrics.metrics_endpoint()


@app.exception_handler(QuoteProxyException)
async def quote_proxy_exception_handler(request: Request, exc: QuoteProxyException):
    """Translate domain errors into the error envelope."""
    if exc.status_code >= 500:
        logger.error(
            "Stock data error",
            path=request.url.path,
            error=exc.message,
            details=exc.details,
        )
        return error_response(GENERIC_ERROR_MESSAGE, exc.status_code)

    logger.info(
        "Request rejected",
        path=request.url.path,
        status_code=exc.status_code,
        error=exc.message,
    )
    return error_response(exc.message, exc.status_code)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions."""
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True,
    )
    return error_response(GENERIC_ERROR_MESSAGE, 500)
