"""Domain to API model conversion."""

from decimal import Decimal

from auditmarket.api.models.audit import AuditRequestModel, FindingModel
from auditmarket.api.models.common import PaymentBreakdownModel
from auditmarket.api.models.estimate import EstimationModel
from auditmarket.api.models.insights import (
    MarketplaceStatsResponse,
    ReviewerProfileResponse,
)
from auditmarket.application.services.marketplace_insights import (
    MarketplaceStats,
    ReviewerProfile,
)
from auditmarket.domain.errors import ValidationError
from auditmarket.domain.models.audit_request import AuditRequest
from auditmarket.domain.models.estimation import (
    Complexity,
    EstimationReport,
    EstimationSource,
)
from auditmarket.domain.models.finding import Finding
from auditmarket.domain.models.pricing import PaymentBreakdown, limit_to_cents


def estimation_to_model(report: EstimationReport) -> EstimationModel:
    return EstimationModel(
        complexity=report.complexity.value,
        duration_days=report.duration_days,
        price=report.price,
        minimum_price=report.minimum_price,
        reasoning=report.reasoning,
        risk_factors=list(report.risk_factors),
        recommendations=list(report.recommendations),
        audit_scope=report.audit_scope,
        estimated_effort=report.estimated_effort,
        source=report.source.value,
    )


def estimation_from_model(model: EstimationModel) -> EstimationReport:
    """Rebuild a captured estimate sent back by the submitter.

    Raises:
        ValidationError: If the estimate is inconsistent.
    """
    try:
        return EstimationReport(
            complexity=Complexity.parse(model.complexity),
            duration_days=model.duration_days,
            price=limit_to_cents(Decimal(model.price)),
            minimum_price=limit_to_cents(Decimal(model.minimum_price)),
            reasoning=model.reasoning,
            risk_factors=tuple(model.risk_factors),
            recommendations=tuple(model.recommendations),
            audit_scope=model.audit_scope,
            estimated_effort=model.estimated_effort,
            source=EstimationSource.CAPTURED,
        )
    except ValueError as exc:
        raise ValidationError("estimation", str(exc)) from None


def payment_to_model(payment: PaymentBreakdown) -> PaymentBreakdownModel:
    return PaymentBreakdownModel(
        base_price=payment.base_price,
        reviewer_count=payment.reviewer_count,
        initial_engagement_fee=payment.initial_engagement_fee,
        reviewer_payout=payment.reviewer_payout,
        platform_fee=payment.platform_fee,
        total_price=payment.total_price,
    )


def request_to_model(request: AuditRequest) -> AuditRequestModel:
    return AuditRequestModel(
        id=request.id,
        project_name=request.project_name,
        project_description=request.project_description,
        source_url=request.source_url,
        repository_hash=request.repository_hash,
        submitter_address=request.submitter_address,
        estimation=estimation_to_model(request.estimation),
        proposed_price=request.proposed_price,
        negotiated_price=request.negotiated_price,
        reviewer_count=request.reviewer_count,
        tags=sorted(request.tags),
        status=request.status.value,
        reviewer_address=request.reviewer_address,
        created_at=request.created_at,
        updated_at=request.updated_at,
        start_date=request.start_date,
        estimated_completion_date=request.estimated_completion_date,
        results_submitted_at=request.results_submitted_at,
        completed_at=request.completed_at,
        request_record_id=request.request_record_id,
        request_evidence_cid=request.request_evidence_cid,
        request_contract_address=request.request_contract_address,
        request_transaction_id=request.request_transaction_id,
        result_evidence_cid=request.result_evidence_cid,
        result_record_id=request.result_record_id,
        result_contract_address=request.result_contract_address,
        result_transaction_id=request.result_transaction_id,
    )


def finding_to_model(finding: Finding) -> FindingModel:
    return FindingModel(
        id=finding.id,
        request_id=finding.request_id,
        severity=finding.severity.value,
        category=finding.category.value,
        title=finding.title,
        description=finding.description,
        file_name=finding.file_name,
        line_number=finding.line_number,
        status=finding.status.value,
        recommendation=finding.recommendation,
        created_at=finding.created_at,
    )


def profile_to_model(profile: ReviewerProfile) -> ReviewerProfileResponse:
    return ReviewerProfileResponse(
        address=profile.address,
        total_audits=profile.total_audits,
        completed_audits=profile.completed_audits,
        in_progress_audits=profile.in_progress_audits,
        total_findings=profile.total_findings,
        severity_breakdown=profile.severity_breakdown,
        total_earnings=profile.total_earnings,
        completion_rate=profile.completion_rate,
        average_completion_days=profile.average_completion_days,
        specializations=list(profile.specializations),
        member_since=profile.member_since,
        last_activity=profile.last_activity,
        recent=[request_to_model(r) for r in profile.recent],
        evidence_cid=profile.evidence_cid,
        evidence_gateway_url=profile.evidence_gateway_url,
    )


def stats_to_model(stats: MarketplaceStats) -> MarketplaceStatsResponse:
    return MarketplaceStatsResponse(
        total_requests=stats.total_requests,
        status_counts=stats.status_counts,
        complexity_breakdown=stats.complexity_breakdown,
        total_proposed_value=stats.total_proposed_value,
        average_proposed_price=stats.average_proposed_price,
        recent=[request_to_model(r) for r in stats.recent],
    )
