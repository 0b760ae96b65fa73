"""Application services for AuditMarket."""

from auditmarket.application.services.audit_lifecycle_service import (
    AuditLifecycleService,
    AuditQuote,
    AuditReport,
    CertificationOutcome,
    NewFinding,
    SubmitAuditInput,
)
from auditmarket.application.services.audit_verification_service import (
    AuditVerificationService,
    VerificationReport,
)
from auditmarket.application.services.certificate_minter import CertificateMinter
from auditmarket.application.services.estimation_engine import (
    EstimationEngine,
    classify_repository,
)
from auditmarket.application.services.evidence_packager import EvidencePackager
from auditmarket.application.services.marketplace_insights import (
    MarketplaceInsightsService,
    MarketplaceStats,
    ReviewerProfile,
)
from auditmarket.application.services.metadata_resolver import (
    MetadataResolver,
    ResolvedMetadata,
)
from auditmarket.application.services.pricing_calculator import calculate_payment
from auditmarket.application.services.project_tags import generate_project_tags
from auditmarket.application.services.repository_fingerprint import (
    RepositoryFingerprinter,
)

__all__ = [
    "AuditLifecycleService",
    "AuditQuote",
    "AuditReport",
    "AuditVerificationService",
    "CertificateMinter",
    "CertificationOutcome",
    "EstimationEngine",
    "EvidencePackager",
    "MarketplaceInsightsService",
    "MarketplaceStats",
    "MetadataResolver",
    "NewFinding",
    "RepositoryFingerprinter",
    "ResolvedMetadata",
    "ReviewerProfile",
    "SubmitAuditInput",
    "VerificationReport",
    "calculate_payment",
    "classify_repository",
    "generate_project_tags",
]
