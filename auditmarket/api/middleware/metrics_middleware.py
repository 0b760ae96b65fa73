"""Metrics middleware recording HTTP requests to Prometheus.

Endpoints are labelled by route template (/v1/audits/{request_id}), not
by raw path, so request ids never become label values.
"""

import time
from collections.abc import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from auditmarket.infrastructure.monitoring.metrics import get_pipeline_metrics

_ERROR_TYPES = {
    400: "bad_request",
    403: "forbidden",
    404: "not_found",
    409: "conflict",
    422: "unprocessable",
    500: "internal_error",
    502: "bad_gateway",
    503: "service_unavailable",
}


def classify_error_type(status_code: int) -> str | None:
    """Classify a 4xx/5xx status code, None for success."""
    if status_code < 400:
        return None
    if status_code in _ERROR_TYPES:
        return _ERROR_TYPES[status_code]
    return "client_error" if status_code < 500 else "server_error"


def _endpoint(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class MetricsMiddleware(BaseHTTPMiddleware):
    """Records request duration, totals and failures per route."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        get_pipeline_metrics().observe_request(
            method=request.method,
            endpoint=_endpoint(request),
            status=response.status_code,
            duration=time.perf_counter() - start_time,
            error_type=classify_error_type(response.status_code),
        )
        return response
