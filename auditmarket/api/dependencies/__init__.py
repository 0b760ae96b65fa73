"""API dependency providers."""

from auditmarket.api.dependencies.marketplace import (
    get_lifecycle_service,
    get_marketplace_dependency,
    get_metadata_resolver,
    get_metrics,
    get_signer_provider,
    get_verification_service,
)

__all__ = [
    "get_lifecycle_service",
    "get_marketplace_dependency",
    "get_metadata_resolver",
    "get_metrics",
    "get_signer_provider",
    "get_verification_service",
]
