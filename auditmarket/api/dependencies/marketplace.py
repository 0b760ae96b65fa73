"""Marketplace API dependencies.

Each dependency reads from the process-wide Marketplace built by
auditmarket.bootstrap.marketplace. Tests install their own with
set_marketplace() or override these functions on the app.
"""

from auditmarket.application.ports.signer import SignerProviderProtocol
from auditmarket.application.services.audit_lifecycle_service import (
    AuditLifecycleService,
)
from auditmarket.application.services.audit_verification_service import (
    AuditVerificationService,
)
from auditmarket.application.services.marketplace_insights import (
    MarketplaceInsightsService,
)
from auditmarket.application.services.metadata_resolver import MetadataResolver
from auditmarket.bootstrap.marketplace import Marketplace, get_marketplace
from auditmarket.infrastructure.monitoring.metrics import PipelineMetrics


def get_marketplace_dependency() -> Marketplace:
    """Get the wired marketplace."""
    return get_marketplace()


def get_lifecycle_service() -> AuditLifecycleService:
    """Get the audit lifecycle controller."""
    return get_marketplace().lifecycle


def get_signer_provider() -> SignerProviderProtocol:
    """Get the signer provider used for submitter and reviewer transactions."""
    return get_marketplace().signers


def get_metadata_resolver() -> MetadataResolver:
    return get_marketplace().resolver


def get_verification_service() -> AuditVerificationService:
    return get_marketplace().verification


def get_metrics() -> PipelineMetrics:
    return get_marketplace().metrics


def get_insights_service() -> MarketplaceInsightsService:
    return get_marketplace().insights
