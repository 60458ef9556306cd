"""
Prometheus metrics for the quote proxy.

Tracks HTTP traffic, cache performance, provider calls and rate gate waits.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Request metrics
http_requests_total = Counter(
    "quote_proxy_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "quote_proxy_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 15.0, 30.0, 60.0),
)

# Cache metrics
cache_lookups_total = Counter(
    "quote_proxy_cache_lookups_total", "Quote cache lookups", ["result"]
)

# Provider metrics
provider_calls_total = Counter(
    "quote_proxy_provider_calls_total",
    "Outbound provider calls",
    ["outcome"],
)

provider_call_duration_seconds = Histogram(
    "quote_proxy_provider_call_duration_seconds",
    "Provider call duration in seconds",
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

rate_gate_wait_seconds = Histogram(
    "quote_proxy_rate_gate_wait_seconds",
    "Time spent waiting for the outbound rate gate",
    ["gate"],
    buckets=(0, 1, 5, 13, 30, 60, 120),
)


def metrics_endpoint() -> Response:
    """Render all metrics in the Prometheus text format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
