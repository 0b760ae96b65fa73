"""Audit lifecycle routes.

Developer Golden Rules:
1. SIGNER BY ADDRESS - the signer acting for a submitter or reviewer is
   looked up from the provider; the minter refuses a signer that does not
   hold that address's authority (403)
2. FAIL LOUD - every domain error becomes an RFC 7807 response
3. RESUMABLE 502 - external failures carry step, cid and checkpoint_id so
   the caller can resume instead of resubmitting
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from auditmarket.api.converters import (
    estimation_from_model,
    finding_to_model,
    payment_to_model,
    request_to_model,
)
from auditmarket.api.dependencies.marketplace import (
    get_lifecycle_service,
    get_signer_provider,
    get_verification_service,
)
from auditmarket.api.errors import problem
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
from auditmarket.api.models.common import ProblemDetail
from auditmarket.application.ports.signer import SignerProviderProtocol
from auditmarket.application.services.audit_lifecycle_service import (
    AuditLifecycleService,
    CertificationOutcome,
    NewFinding,
    SubmitAuditInput,
)
from auditmarket.application.services.audit_verification_service import (
    AuditVerificationService,
)
from auditmarket.domain.exceptions import AuditMarketError
from auditmarket.domain.models.audit_request import AuditStatus
from auditmarket.domain.models.evidence import ResultSubmission

router = APIRouter(prefix="/v1/audits", tags=["audits"])

_ERRORS = {
    400: {"model": ProblemDetail, "description": "Invalid request"},
    403: {"model": ProblemDetail, "description": "Caller or signer not authorized"},
    404: {"model": ProblemDetail, "description": "Request not found"},
    409: {"model": ProblemDetail, "description": "Request no longer in the expected status"},
    502: {"model": ProblemDetail, "description": "Content store or ledger failure"},
}


def _new_finding(item: FindingInput) -> NewFinding:
    return NewFinding(
        severity=item.severity,
        category=item.category,
        title=item.title,
        description=item.description,
        file_name=item.file_name,
        line_number=item.line_number,
        recommendation=item.recommendation,
    )


def _certification(outcome: CertificationOutcome) -> CertificationResponse:
    return CertificationResponse(
        request=request_to_model(outcome.request),
        explorer_reference=outcome.explorer_reference,
    )


@router.post(
    "",
    response_model=CertificationResponse,
    status_code=201,
    responses=_ERRORS,
    summary="Submit an audit request",
    description=(
        "Estimates (or persists the captured estimate), publishes request evidence, "
        "mints the request certificate and stores the request as Available."
    ),
)
async def submit_audit(
    body: SubmitAuditRequest,
    request: Request,
    service: AuditLifecycleService = Depends(get_lifecycle_service),
    signers: SignerProviderProtocol = Depends(get_signer_provider),
) -> CertificationResponse:
    try:
        data = SubmitAuditInput(
            project_name=body.project_name,
            project_description=body.project_description,
            source_url=body.source_url,
            submitter_address=body.submitter_address,
            proposed_price=body.proposed_price,
            reviewer_count=body.reviewer_count,
            tags=tuple(body.tags),
            estimation=(
                estimation_from_model(body.estimation) if body.estimation is not None else None
            ),
        )
        outcome = await service.submit(data, signers.signer_for(body.submitter_address))
    except AuditMarketError as e:
        raise problem(e, request) from None
    return _certification(outcome)


@router.post(
    "/submissions/{checkpoint_id}/resume",
    response_model=CertificationResponse,
    responses=_ERRORS,
    summary="Resume an interrupted submission",
    description="Retries the request certificate mint with the evidence already published.",
)
async def resume_submission(
    checkpoint_id: UUID,
    body: ResumeSubmissionRequest,
    request: Request,
    service: AuditLifecycleService = Depends(get_lifecycle_service),
    signers: SignerProviderProtocol = Depends(get_signer_provider),
) -> CertificationResponse:
    try:
        outcome = await service.resume_submission(
            checkpoint_id, signers.signer_for(body.submitter_address)
        )
    except AuditMarketError as e:
        raise problem(e, request) from None
    return _certification(outcome)


@router.post(
    "/{request_id}/accept",
    response_model=AuditRequestModel,
    responses=_ERRORS,
    summary="Accept an audit request",
)
async def accept_audit(
    request_id: UUID,
    body: AcceptAuditRequest,
    request: Request,
    service: AuditLifecycleService = Depends(get_lifecycle_service),
) -> AuditRequestModel:
    """Commit a reviewer to an Available request (Available -> InProgress)."""
    try:
        updated = await service.accept(request_id, body.reviewer_address, body.negotiated_price)
    except AuditMarketError as e:
        raise problem(e, request) from None
    return request_to_model(updated)


@router.post(
    "/{request_id}/results",
    response_model=CertificationResponse,
    responses=_ERRORS,
    summary="Submit audit results",
    description=(
        "Persists findings, publishes result evidence, mints the result certificate "
        "and completes the request. Retrying after a 502 reuses the published evidence."
    ),
)
async def submit_results(
    request_id: UUID,
    body: SubmitResultsRequest,
    request: Request,
    service: AuditLifecycleService = Depends(get_lifecycle_service),
    signers: SignerProviderProtocol = Depends(get_signer_provider),
) -> CertificationResponse:
    submission = ResultSubmission(
        contract_hash=body.contract_hash,
        audit_notes=body.audit_notes,
        static_analysis_reports=tuple(body.static_analysis_reports),
        evidence_file_cids=tuple(body.evidence_file_cids),
        reviewer_name=body.reviewer_name,
        checked_vulnerabilities=tuple(body.checked_vulnerabilities),
    )
    try:
        outcome = await service.submit_results(
            request_id,
            body.reviewer_address,
            [_new_finding(f) for f in body.findings],
            submission,
            signers.signer_for(body.reviewer_address),
        )
    except AuditMarketError as e:
        raise problem(e, request) from None
    return _certification(outcome)


@router.post(
    "/{request_id}/cancel",
    response_model=AuditRequestModel,
    responses=_ERRORS,
    summary="Cancel an audit request",
)
async def cancel_audit(
    request_id: UUID,
    body: CancelAuditRequest,
    request: Request,
    service: AuditLifecycleService = Depends(get_lifecycle_service),
) -> AuditRequestModel:
    """Cancel an Available or InProgress request (submitter only)."""
    try:
        updated = await service.cancel(request_id, body.actor_address)
    except AuditMarketError as e:
        raise problem(e, request) from None
    return request_to_model(updated)


@router.post(
    "/{request_id}/findings",
    response_model=FindingModel,
    status_code=201,
    responses=_ERRORS,
    summary="Append a finding to a completed audit",
)
async def add_finding(
    request_id: UUID,
    body: AddFindingRequest,
    request: Request,
    service: AuditLifecycleService = Depends(get_lifecycle_service),
) -> FindingModel:
    try:
        finding = await service.add_finding(
            request_id, body.reviewer_address, _new_finding(body.finding)
        )
    except AuditMarketError as e:
        raise problem(e, request) from None
    return finding_to_model(finding)


@router.get(
    "",
    response_model=AuditListResponse,
    responses={400: _ERRORS[400]},
    summary="List audit requests",
)
async def list_audits(
    request: Request,
    status: AuditStatus | None = Query(default=None, description="Filter by status"),
    reviewer_address: str | None = Query(default=None, description="Filter by reviewer"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    service: AuditLifecycleService = Depends(get_lifecycle_service),
) -> AuditListResponse:
    """Dashboard listing, newest first."""
    try:
        items, total = await service.list_requests(
            status=status,
            reviewer_address=reviewer_address,
            limit=limit,
            offset=offset,
        )
    except AuditMarketError as e:
        raise problem(e, request) from None
    return AuditListResponse(
        items=[request_to_model(r) for r in items],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get(
    "/{request_id}",
    response_model=AuditReportResponse,
    responses={404: _ERRORS[404]},
    summary="Get an audit report",
)
async def get_audit(
    request_id: UUID,
    request: Request,
    service: AuditLifecycleService = Depends(get_lifecycle_service),
) -> AuditReportResponse:
    """Request, findings, severity breakdown, certificate stages and pipeline progress."""
    try:
        report = await service.get_report(request_id)
    except AuditMarketError as e:
        raise problem(e, request) from None
    return AuditReportResponse(
        request=request_to_model(report.request),
        findings=[finding_to_model(f) for f in report.findings],
        severity_breakdown=report.severity_breakdown,
        certificates={kind: stage.value for kind, stage in report.certificates.items()},
        pipeline_progress=report.pipeline_progress,
        payment=payment_to_model(report.payment),
    )


@router.get(
    "/{request_id}/verification",
    response_model=VerificationResponse,
    responses={404: _ERRORS[404], 409: _ERRORS[409]},
    summary="Verify a completed audit",
)
async def verify_audit(
    request_id: UUID,
    request: Request,
    service: AuditVerificationService = Depends(get_verification_service),
) -> VerificationResponse:
    """Check the result evidence and ledger records of a Completed request."""
    try:
        report = await service.verify(request_id)
    except AuditMarketError as e:
        raise problem(e, request) from None
    return VerificationResponse(
        request_id=report.request_id,
        verified=report.verified,
        evidence_verified=report.evidence_verified,
        ledger_verified=report.ledger_verified,
        result_evidence_cid=report.result_evidence_cid,
        result_record_id=report.result_record_id,
        mismatches=list(report.mismatches),
    )
