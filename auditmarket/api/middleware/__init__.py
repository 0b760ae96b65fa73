"""HTTP middleware."""

from auditmarket.api.middleware.logging_middleware import (
    CORRELATION_HEADER,
    LoggingMiddleware,
)
from auditmarket.api.middleware.metrics_middleware import MetricsMiddleware

__all__ = ["CORRELATION_HEADER", "LoggingMiddleware", "MetricsMiddleware"]
