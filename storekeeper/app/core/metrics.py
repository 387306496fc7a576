"""
Prometheus metrics for the tool servers.

HTTP traffic is counted by `PrometheusMiddleware`; individual tool calls are
counted by `core.instrumentation.instrument_tool`.
"""
import time

from fastapi import Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from prometheus_client.openmetrics.exposition import (
    CONTENT_TYPE_LATEST as OPENMETRICS_CONTENT_TYPE,
    generate_latest as generate_latest_openmetrics,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

METRICS_PATH = "/metrics"

http_requests_total = Counter(
    'http_requests_total',
    'HTTP requests handled, by route template',
    ['method', 'endpoint', 'status_code']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request latency in seconds',
    ['method', 'endpoint'],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# outcome: ok | soft_failure | error
tool_calls_total = Counter(
    'tool_calls_total',
    'Tool invocations by server, tool and outcome',
    ['server', 'tool', 'outcome']
)

tool_call_duration_seconds = Histogram(
    'tool_call_duration_seconds',
    'Time spent inside a tool handler in seconds',
    ['server', 'tool'],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0]
)


def _endpoint_label(request: Request) -> str:
    # Route template (/tools/cart/{tool_name}) once routing has run, raw path before
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Counts every request except scrapes of the metrics endpoint itself."""

    async def dispatch(self, request: Request, call_next):
        if request.url.path == METRICS_PATH:
            return await call_next(request)

        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            endpoint = _endpoint_label(request)
            http_requests_total.labels(
                method=request.method,
                endpoint=endpoint,
                status_code=status_code,
            ).inc()
            http_request_duration_seconds.labels(
                method=request.method,
                endpoint=endpoint,
            ).observe(time.perf_counter() - started)


def get_metrics_response(openmetrics: bool = False) -> Response:
    """Render the default registry in Prometheus text format, or OpenMetrics when asked."""
    if openmetrics:
        return Response(content=generate_latest_openmetrics(), media_type=OPENMETRICS_CONTENT_TYPE)
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
