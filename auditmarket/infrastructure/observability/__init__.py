"""Observability: structured logging and correlation ids."""

from auditmarket.infrastructure.observability.correlation import (
    accept_correlation_id,
    correlation_id_processor,
    generate_correlation_id,
    get_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)
from auditmarket.infrastructure.observability.logging import (
    configure_structlog,
    redact_secrets,
)

__all__ = [
    "accept_correlation_id",
    "configure_structlog",
    "correlation_id_processor",
    "generate_correlation_id",
    "get_correlation_id",
    "redact_secrets",
    "reset_correlation_id",
    "set_correlation_id",
]
