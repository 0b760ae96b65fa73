"""Health check endpoint."""

from fastapi import APIRouter, Depends

from auditmarket.api.dependencies.marketplace import get_marketplace_dependency
from auditmarket.api.models.health import HealthResponse
from auditmarket.bootstrap.marketplace import Marketplace

router = APIRouter(prefix="/v1", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    marketplace: Marketplace = Depends(get_marketplace_dependency),
) -> HealthResponse:
    """Return health status.

    Returns:
        Health status with 200 OK.
    """
    return HealthResponse(
        status="healthy",
        backend=marketplace.config.backend,
        network=marketplace.config.ledger.network_name,
    )
