"""Logging bootstrap: structlog configured from the marketplace config."""

from __future__ import annotations

import structlog

from auditmarket.config.marketplace_config import MarketplaceConfig
from auditmarket.infrastructure.observability import configure_structlog


def configure_logging(config: MarketplaceConfig) -> None:
    """Configure structlog for config.environment and record the wiring."""
    configure_structlog(environment=config.environment)
    structlog.get_logger().bind(component="startup").info(
        "logging_configured",
        environment=config.environment,
        backend=config.backend,
        estimation_backend_configured=config.estimation.has_usable_key,
    )


__all__ = ["configure_logging"]
