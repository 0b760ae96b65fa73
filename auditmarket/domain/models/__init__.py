"""Domain models for AuditMarket."""

from auditmarket.domain.models.audit_request import (
    REVIEWER_STATUSES,
    STATE_TRANSITION_MATRIX,
    TERMINAL_STATUSES,
    AuditRequest,
    AuditStatus,
    CertificateStage,
    PendingSubmission,
)
from auditmarket.domain.models.certificate import (
    TRANSFER_EVENT_TOPIC,
    CertificateKind,
    LedgerLog,
    LedgerReceipt,
    MintReceipt,
)
from auditmarket.domain.models.estimation import (
    Complexity,
    EstimationReport,
    EstimationSource,
    RepositoryAnalysis,
)
from auditmarket.domain.models.evidence import (
    EvidenceDocument,
    EvidenceKind,
    PlatformInfo,
    ProfileEvidence,
    ProfileRole,
    RequestEvidence,
    ResultEvidence,
    ResultSubmission,
)
from auditmarket.domain.models.finding import (
    Finding,
    FindingStatus,
    Severity,
    VulnerabilityCategory,
)
from auditmarket.domain.models.pricing import PaymentBreakdown, limit_to_cents, to_cents
from auditmarket.domain.models.repository import RepositoryFile, RepositorySnapshot

__all__ = [
    "REVIEWER_STATUSES",
    "STATE_TRANSITION_MATRIX",
    "TERMINAL_STATUSES",
    "TRANSFER_EVENT_TOPIC",
    "AuditRequest",
    "AuditStatus",
    "CertificateKind",
    "CertificateStage",
    "Complexity",
    "EstimationReport",
    "EstimationSource",
    "EvidenceDocument",
    "EvidenceKind",
    "Finding",
    "FindingStatus",
    "LedgerLog",
    "LedgerReceipt",
    "MintReceipt",
    "PaymentBreakdown",
    "PendingSubmission",
    "PlatformInfo",
    "ProfileEvidence",
    "ProfileRole",
    "RepositoryAnalysis",
    "RepositoryFile",
    "RepositorySnapshot",
    "RequestEvidence",
    "ResultEvidence",
    "ResultSubmission",
    "Severity",
    "VulnerabilityCategory",
    "limit_to_cents",
    "to_cents",
]
