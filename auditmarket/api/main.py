"""FastAPI application entry point for AuditMarket."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from auditmarket.api.middleware import LoggingMiddleware, MetricsMiddleware
from auditmarket.api.routes import (
    audits_router,
    estimates_router,
    health_router,
    insights_router,
    metadata_router,
    metrics_router,
)
from auditmarket.bootstrap.database import close_database_engine
from auditmarket.bootstrap.logging import configure_logging
from auditmarket.bootstrap.marketplace import get_marketplace


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    marketplace = get_marketplace()
    configure_logging(marketplace.config)
    log = structlog.get_logger().bind(component="startup")
    if marketplace.config.backend == "production":
        # Production stores create their schema idempotently
        await marketplace.record_store.ensure_schema()
    log.info(
        "marketplace_started",
        backend=marketplace.config.backend,
        network=marketplace.config.ledger.network_name,
    )
    yield
    await close_database_engine()
    log.info("marketplace_stopped")


def create_app() -> FastAPI:
    """Build the application with middleware and every router."""
    app = FastAPI(
        title="AuditMarket API",
        description="Anonymous smart contract audit marketplace",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(LoggingMiddleware)
    for router in (
        health_router,
        metrics_router,
        estimates_router,
        audits_router,
        metadata_router,
        insights_router,
    ):
        app.include_router(router)
    return app


app = create_app()
