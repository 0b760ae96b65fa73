"""API routers."""

from auditmarket.api.routes.audits import router as audits_router
from auditmarket.api.routes.estimates import router as estimates_router
from auditmarket.api.routes.health import router as health_router
from auditmarket.api.routes.insights import router as insights_router
from auditmarket.api.routes.metadata import router as metadata_router
from auditmarket.api.routes.metrics import router as metrics_router

__all__ = [
    "audits_router",
    "estimates_router",
    "health_router",
    "insights_router",
    "metadata_router",
    "metrics_router",
]
