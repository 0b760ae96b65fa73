"""Reviewer profile and marketplace statistics models."""

from pydantic import BaseModel, Field

from auditmarket.api.models.audit import AuditRequestModel
from auditmarket.api.models.common import DateTimeWithZ, Money


class ReviewerProfileResponse(BaseModel):
    """Aggregated record of one reviewer.

    Attributes:
        evidence_cid: Present when the profile was just published.
        evidence_gateway_url: Public gateway URL of the published profile document.
    """

    address: str
    total_audits: int
    completed_audits: int
    in_progress_audits: int
    total_findings: int
    severity_breakdown: dict[str, int]
    total_earnings: Money
    completion_rate: int
    average_completion_days: float | None = None
    specializations: list[str] = Field(default_factory=list)
    member_since: DateTimeWithZ | None = None
    last_activity: DateTimeWithZ | None = None
    recent: list[AuditRequestModel] = Field(default_factory=list)
    evidence_cid: str | None = None
    evidence_gateway_url: str | None = None


class MarketplaceStatsResponse(BaseModel):
    """Marketplace-wide counts and prices."""

    total_requests: int
    status_counts: dict[str, int]
    complexity_breakdown: dict[str, int]
    total_proposed_value: Money
    average_proposed_price: Money
    recent: list[AuditRequestModel] = Field(default_factory=list)
