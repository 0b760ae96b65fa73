"""Estimate and pricing request/response models.

Developer Golden Rules:
1. VALIDATE EARLY - Pydantic handles schema validation
2. FAIL LOUD - Invalid requests return 400/422 with RFC 7807
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from auditmarket.api.models.common import Money, PaymentBreakdownModel


class RepositoryAnalysisModel(BaseModel):
    """Optional raw analysis forwarded to the reasoning backend."""

    file_count: int = Field(..., ge=0)
    solidity_file_count: int = Field(..., ge=0)
    total_lines: int = Field(..., ge=0)


class EstimateRequest(BaseModel):
    """Request body for POST /v1/estimates.

    Attributes:
        source_url: Repository URL or owner/repo identifier.
        analysis: Optional raw analysis.
        reviewer_count: Reviewers requested, 1 to 3 (prices the quote).
        fast: Deterministic pass only, no reasoning backend call.
    """

    source_url: str = Field(..., min_length=1, max_length=2048)
    analysis: RepositoryAnalysisModel | None = None
    reviewer_count: int = Field(default=1, ge=1, le=3)
    fast: bool = False


class EstimationModel(BaseModel):
    """An estimation report.

    Also accepted as input on submission, so a quoted estimate can be
    captured and persisted exactly as the submitter saw it.
    """

    complexity: str
    duration_days: int = Field(..., gt=0)
    price: Money = Field(..., gt=0)
    minimum_price: Money = Field(..., gt=0)
    reasoning: str = ""
    risk_factors: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    audit_scope: str = ""
    estimated_effort: str = ""
    source: str = "captured"


class EstimateResponse(BaseModel):
    """Estimate plus the payment breakdown for the requested reviewer count."""

    estimation: EstimationModel
    duration: str
    payment: PaymentBreakdownModel


class PricingRequest(BaseModel):
    """Request body for POST /v1/pricing."""

    base_price: Decimal = Field(..., gt=0)
    reviewer_count: int = Field(default=1)
