"""Prometheus instrumentation for the ReportDesk API."""

from __future__ import annotations

import re
import time

from fastapi import Request, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware


http_requests_total = Counter(
    "http_server_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

http_request_duration_seconds = Histogram(
    "http_server_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

http_exceptions_total = Counter(
    "http_server_exceptions_total",
    "Total unhandled exceptions",
    ["method", "path", "exception_type"],
)

reports_submitted_total = Counter(
    "reportdesk_reports_submitted_total",
    "Report uploads accepted",
    ["kind"],
)

feedback_posted_total = Counter(
    "reportdesk_feedback_posted_total",
    "Supervisor feedback entries by resulting status",
    ["status"],
)

emails_failed_total = Counter(
    "reportdesk_emails_failed_total",
    "Notification emails that could not be delivered",
)

_ID_SEGMENT = re.compile(r"/\d+")


def normalize_path(path: str) -> str:
    """Replace numeric IDs with a placeholder to keep label cardinality low."""
    parts = _ID_SEGMENT.sub("/{id}", path).split("/")[:5]
    return "/".join(parts)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to collect Prometheus metrics for all requests."""

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method
        path = normalize_path(request.url.path)
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            http_exceptions_total.labels(method=method, path=path, exception_type=type(exc).__name__).inc()
            http_requests_total.labels(method=method, path=path, status=500).inc()
            http_request_duration_seconds.labels(method=method, path=path).observe(time.perf_counter() - start_time)
            raise

        http_requests_total.labels(method=method, path=path, status=response.status_code).inc()
        http_request_duration_seconds.labels(method=method, path=path).observe(time.perf_counter() - start_time)
        return response


async def metrics_endpoint(request: Request) -> Response:
    """Prometheus metrics endpoint handler."""
    return PlainTextResponse(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
