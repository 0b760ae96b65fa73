"""Audit lifecycle request/response models.

Addresses are accepted in any casing and returned checksummed. Money is
serialized as decimal strings.
"""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from auditmarket.api.models.common import DateTimeWithZ, Money, PaymentBreakdownModel
from auditmarket.api.models.estimate import EstimationModel


class SubmitAuditRequest(BaseModel):
    """Request body for POST /v1/audits.

    Attributes:
        project_name: Display name of the project.
        project_description: Free-form description.
        source_url: Repository URL of the code to audit.
        submitter_address: Ledger address of the submitter.
        proposed_price: Offered price; defaults to the estimated price.
        reviewer_count: Reviewers requested, 1 to 3.
        tags: Submitter tags merged with the generated ones.
        estimation: Quoted estimate to persist as-is.
    """

    project_name: str = Field(..., min_length=1, max_length=200)
    project_description: str = Field(default="", max_length=5000)
    source_url: str = Field(..., min_length=1, max_length=2048)
    submitter_address: str
    proposed_price: Decimal | None = None
    reviewer_count: int = 1
    tags: list[str] = Field(default_factory=list, max_length=50)
    estimation: EstimationModel | None = None


class ResumeSubmissionRequest(BaseModel):
    """Request body for resuming an interrupted submission."""

    submitter_address: str


class AcceptAuditRequest(BaseModel):
    """Request body for POST /v1/audits/{request_id}/accept."""

    reviewer_address: str
    negotiated_price: Decimal | None = None


class CancelAuditRequest(BaseModel):
    """Request body for POST /v1/audits/{request_id}/cancel."""

    actor_address: str


class FindingInput(BaseModel):
    """A reviewer-reported finding."""

    severity: str
    category: str = "other"
    title: str = Field(..., min_length=1, max_length=300)
    description: str = Field(..., min_length=1)
    file_name: str | None = None
    line_number: int | None = None
    recommendation: str | None = None


class SubmitResultsRequest(BaseModel):
    """Request body for POST /v1/audits/{request_id}/results."""

    reviewer_address: str
    findings: list[FindingInput] = Field(default_factory=list)
    contract_hash: str = ""
    audit_notes: str = ""
    static_analysis_reports: list[str] = Field(default_factory=list)
    evidence_file_cids: list[str] = Field(default_factory=list)
    reviewer_name: str = "Anonymous Reviewer"
    checked_vulnerabilities: list[str] = Field(default_factory=list)


class AddFindingRequest(BaseModel):
    """Request body for POST /v1/audits/{request_id}/findings."""

    reviewer_address: str
    finding: FindingInput


class FindingModel(BaseModel):
    """A persisted finding."""

    id: UUID
    request_id: UUID
    severity: str
    category: str
    title: str
    description: str
    file_name: str | None = None
    line_number: int | None = None
    status: str
    recommendation: str | None = None
    created_at: DateTimeWithZ


class AuditRequestModel(BaseModel):
    """An audit request as stored."""

    id: UUID
    project_name: str
    project_description: str
    source_url: str
    repository_hash: str
    submitter_address: str
    estimation: EstimationModel
    proposed_price: Money
    negotiated_price: Money | None = None
    reviewer_count: int
    tags: list[str]
    status: str
    reviewer_address: str | None = None
    created_at: DateTimeWithZ
    updated_at: DateTimeWithZ
    start_date: DateTimeWithZ | None = None
    estimated_completion_date: DateTimeWithZ | None = None
    results_submitted_at: DateTimeWithZ | None = None
    completed_at: DateTimeWithZ | None = None
    request_record_id: int | None = None
    request_evidence_cid: str | None = None
    request_contract_address: str | None = None
    request_transaction_id: str | None = None
    result_evidence_cid: str | None = None
    result_record_id: int | None = None
    result_contract_address: str | None = None
    result_transaction_id: str | None = None


class CertificationResponse(BaseModel):
    """A request plus the explorer link of the certificate just minted."""

    request: AuditRequestModel
    explorer_reference: str | None = None


class AuditReportResponse(BaseModel):
    """Dashboard view of one request."""

    request: AuditRequestModel
    findings: list[FindingModel]
    severity_breakdown: dict[str, int]
    certificates: dict[str, str]
    pipeline_progress: dict[str, bool]
    payment: PaymentBreakdownModel


class AuditListResponse(BaseModel):
    """A page of requests, newest first."""

    items: list[AuditRequestModel]
    total: int
    limit: int
    offset: int


class VerificationResponse(BaseModel):
    """Outcome of verifying a Completed request."""

    request_id: UUID
    verified: bool
    evidence_verified: bool
    ledger_verified: bool
    result_evidence_cid: str | None = None
    result_record_id: int | None = None
    mismatches: list[str] = Field(default_factory=list)
