"""API request/response models."""

from auditmarket.api.models.audit import (
    AcceptAuditRequest,
    AddFindingRequest,
    AuditListResponse,
    AuditReportResponse,
    AuditRequestModel,
    CancelAuditRequest,
    CertificationResponse,
    FindingInput,
    FindingModel,
    ResumeSubmissionRequest,
    SubmitAuditRequest,
    SubmitResultsRequest,
    VerificationResponse,
)
from auditmarket.api.models.common import (
    DateTimeWithZ,
    PaymentBreakdownModel,
    ProblemDetail,
)
from auditmarket.api.models.estimate import (
    EstimateRequest,
    EstimateResponse,
    EstimationModel,
    PricingRequest,
    RepositoryAnalysisModel,
)
from auditmarket.api.models.health import HealthResponse
from auditmarket.api.models.insights import (
    MarketplaceStatsResponse,
    ReviewerProfileResponse,
)
from auditmarket.api.models.metadata import MetadataResponse

__all__ = [
    "AcceptAuditRequest",
    "AddFindingRequest",
    "AuditListResponse",
    "AuditReportResponse",
    "AuditRequestModel",
    "CancelAuditRequest",
    "CertificationResponse",
    "DateTimeWithZ",
    "EstimateRequest",
    "EstimateResponse",
    "EstimationModel",
    "FindingInput",
    "FindingModel",
    "HealthResponse",
    "MarketplaceStatsResponse",
    "MetadataResponse",
    "PaymentBreakdownModel",
    "PricingRequest",
    "ProblemDetail",
    "RepositoryAnalysisModel",
    "ResumeSubmissionRequest",
    "ReviewerProfileResponse",
    "SubmitAuditRequest",
    "SubmitResultsRequest",
    "VerificationResponse",
]
