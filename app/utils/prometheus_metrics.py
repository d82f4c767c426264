"""
Prometheus metrics for the storefront API.
"""
import re
from time import time
from typing import Callable

from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

# HTTP requests
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0]
)

http_errors_total = Counter(
    'http_errors_total',
    'Total HTTP errors',
    ['method', 'endpoint', 'status_code']
)

active_connections = Gauge(
    'active_connections',
    'Requests currently in flight'
)

log_messages_total = Counter(
    'log_messages_total',
    'Total log messages',
    ['level']
)

# Checkout / pricing
pricing_fallback_total = Counter(
    'pricing_fallback_total',
    'Cart calculations served by the local fallback formula'
)

otp_fallback_total = Counter(
    'otp_fallback_total',
    'Checkout attempts switched to OTP fallback mode',
    ['stage']
)

orders_created_total = Counter(
    'orders_created_total',
    'Orders created at checkout'
)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Collects Prometheus metrics for every HTTP request."""

    async def dispatch(self, request: Request, call_next: Callable):
        if request.url.path.endswith("/metrics"):
            return await call_next(request)

        method = request.method
        normalized_endpoint = self._normalize_endpoint(request.url.path)

        start_time = time()
        active_connections.inc()

        try:
            response = await call_next(request)
            status_code = response.status_code

            http_requests_total.labels(
                method=method,
                endpoint=normalized_endpoint,
                status_code=status_code
            ).inc()

            http_request_duration_seconds.labels(
                method=method,
                endpoint=normalized_endpoint
            ).observe(time() - start_time)

            if status_code >= 400:
                http_errors_total.labels(
                    method=method,
                    endpoint=normalized_endpoint,
                    status_code=status_code
                ).inc()

            return response

        except Exception:
            http_requests_total.labels(
                method=method,
                endpoint=normalized_endpoint,
                status_code=500
            ).inc()
            http_errors_total.labels(
                method=method,
                endpoint=normalized_endpoint,
                status_code=500
            ).inc()
            raise
        finally:
            active_connections.dec()

    def _normalize_endpoint(self, endpoint: str) -> str:
        """
        Collapses ids in the path to keep label cardinality low.
        Ex: /api/orders/client/orders/3f2a...e1 -> /api/orders/client/orders/{uuid}
        """
        endpoint = re.sub(r'/[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}', '/{uuid}', endpoint)
        endpoint = re.sub(r'/[0-9a-f]{32}', '/{uuid}', endpoint)
        endpoint = re.sub(r'/ME\d{9}', '/{order_number}', endpoint)
        endpoint = re.sub(r'/\d+', '/{id}', endpoint)
        return endpoint


def get_metrics():
    """Returns the metrics in the Prometheus text format."""
    return generate_latest()


def record_log(level: str):
    """Counts a log message."""
    log_messages_total.labels(level=level).inc()


__all__ = [
    "PrometheusMiddleware",
    "CONTENT_TYPE_LATEST",
    "get_metrics",
    "record_log",
    "pricing_fallback_total",
    "otp_fallback_total",
    "orders_created_total",
]
