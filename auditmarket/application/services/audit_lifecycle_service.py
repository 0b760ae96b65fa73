"""Audit lifecycle controller.

Owns the audit request state machine and drives the certification
pipeline across three external systems: the record store, the content
store and the ledger.

Flow:
    submit          -> Estimate -> Package -> Mint RequestCertificate -> persist Available
    accept          -> Available -> InProgress (reviewer commitment, no mint)
    submit_results  -> Package -> Mint ResultCertificate -> InProgress -> Completed
    cancel          -> Available | InProgress -> Cancelled (persist only)

Every transition re-reads the persisted status, checks the transition
matrix, and is applied through the record store's conditional update.
A failed conditional update is a ConflictError and is never retried.

Resumption:
    - Packaging failure at submission: nothing persisted, retry freely.
    - Mint failure at submission: a PendingSubmission checkpoint holds the
      request and its CID; resume_submission() mints with the same CID.
      A retried submit() with identical content finds the checkpoint by
      CID and continues it.
    - Mint failure at completion: result_evidence_cid is already on the
      row; calling submit_results() again mints with that CID.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from uuid6 import uuid7

from auditmarket.application.ports.record_store import AuditRecordStoreProtocol
from auditmarket.application.ports.signer import SignerProtocol
from auditmarket.application.services.base import LoggingMixin
from auditmarket.application.services.certificate_minter import CertificateMinter
from auditmarket.application.services.estimation_engine import EstimationEngine
from auditmarket.application.services.evidence_packager import EvidencePackager
from auditmarket.application.services.pricing_calculator import calculate_payment
from auditmarket.application.services.project_tags import generate_project_tags
from auditmarket.application.services.repository_fingerprint import (
    RepositoryFingerprinter,
)
from auditmarket.domain.errors import (
    AuditRequestNotFoundError,
    AuthorizationError,
    ConflictError,
    ExternalServiceError,
    InvalidStateTransitionError,
    PendingSubmissionNotFoundError,
    ValidationError,
)
from auditmarket.domain.models.audit_request import (
    AuditRequest,
    AuditStatus,
    CertificateStage,
    PendingSubmission,
)
from auditmarket.domain.models.common import normalize_address, same_address, utc_now
from auditmarket.domain.models.estimation import (
    EstimationReport,
    EstimationSource,
    RepositoryAnalysis,
)
from auditmarket.domain.models.evidence import ResultSubmission
from auditmarket.domain.models.finding import (
    Finding,
    FindingStatus,
    Severity,
    VulnerabilityCategory,
    severity_breakdown,
)
from auditmarket.domain.models.pricing import PaymentBreakdown, limit_to_cents
from auditmarket.infrastructure.monitoring.metrics import (
    PipelineMetrics,
    get_pipeline_metrics,
)

REQUEST_CONTRACT_NAME = "Audit Request Records"
REQUEST_CONTRACT_SYMBOL = "AUDITREQ"
RESULT_CONTRACT_NAME = "Audit Result Records"
RESULT_CONTRACT_SYMBOL = "AUDITRES"

MINT_REQUEST_STEP = "mint_request_certificate"
MINT_RESULT_STEP = "mint_result_certificate"
CHECKPOINT_STEP = "checkpoint_submission"


@dataclass(frozen=True)
class SubmitAuditInput:
    """Submitter-supplied data for a new audit request.

    Attributes:
        project_name: Display name of the project.
        project_description: Free-form description.
        source_url: Repository URL of the code to audit.
        submitter_address: Ledger address of the submitter.
        proposed_price: Offered price; defaults to the estimated price.
        reviewer_count: Reviewers requested, 1 to 3.
        tags: Submitter tags merged with the generated ones.
        estimation: Estimate captured at quote time. When given it is
            persisted as-is and the engine is not called again.
    """

    project_name: str
    project_description: str
    source_url: str
    submitter_address: str
    proposed_price: Decimal | None = None
    reviewer_count: int = 1
    tags: tuple[str, ...] = field(default_factory=tuple)
    estimation: EstimationReport | None = None


@dataclass(frozen=True)
class NewFinding:
    """Reviewer-supplied finding before it is assigned an id."""

    severity: str
    category: str
    title: str
    description: str
    file_name: str | None = None
    line_number: int | None = None
    recommendation: str | None = None


@dataclass(frozen=True)
class AuditQuote:
    """Estimate plus settlement breakdown, nothing persisted."""

    estimation: EstimationReport
    payment: PaymentBreakdown


@dataclass(frozen=True)
class CertificationOutcome:
    """A persisted request plus the explorer link of the certificate just minted."""

    request: AuditRequest
    explorer_reference: str | None = None


@dataclass(frozen=True)
class AuditReport:
    """Everything a dashboard shows for one request."""

    request: AuditRequest
    findings: tuple[Finding, ...]
    severity_breakdown: dict[str, int]
    certificates: dict[str, CertificateStage]
    pipeline_progress: dict[str, bool]
    payment: PaymentBreakdown


def _parse_price(value: Any, field_name: str) -> Decimal:
    try:
        price = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(field_name, f"not a number: {value!r}") from None
    if not price.is_finite():
        raise ValidationError(field_name, f"must be positive, got {value}")
    price = limit_to_cents(price)
    if price <= 0:
        raise ValidationError(field_name, f"must be positive, got {value}")
    return price


def _address(value: str, field_name: str) -> str:
    try:
        return normalize_address(value, field_name)
    except ValueError as exc:
        raise ValidationError(field_name, str(exc)) from None


class AuditLifecycleService(LoggingMixin):
    """Drives audit requests through submission, acceptance and completion.

    Example:
        >>> service = AuditLifecycleService(
        ...     record_store=store,
        ...     estimation_engine=engine,
        ...     packager=packager,
        ...     minter=minter,
        ...     fingerprinter=fingerprinter,
        ... )
        >>> outcome = await service.submit(audit_input, signer)
        >>> await service.accept(outcome.request.id, reviewer_address)
    """

    def __init__(
        self,
        record_store: AuditRecordStoreProtocol,
        estimation_engine: EstimationEngine,
        packager: EvidencePackager,
        minter: CertificateMinter,
        fingerprinter: RepositoryFingerprinter,
        metrics: PipelineMetrics | None = None,
    ) -> None:
        """Initialize the lifecycle controller.

        Args:
            record_store: Persistence with conditional updates.
            estimation_engine: Total estimator with deterministic fallback.
            packager: Evidence packager over the content store.
            minter: Certificate minter over the ledger.
            fingerprinter: Repository fingerprinter with a repository source.
            metrics: Pipeline metrics (defaults to the process collector).
        """
        self._store = record_store
        self._engine = estimation_engine
        self._packager = packager
        self._minter = minter
        self._fingerprinter = fingerprinter
        self._metrics = metrics or get_pipeline_metrics()
        self._init_logger(component="lifecycle")

    # ------------------------------------------------------------------
    # Quoting
    # ------------------------------------------------------------------

    async def quote(
        self,
        source_url: str,
        analysis: RepositoryAnalysis | None = None,
        reviewer_count: int = 1,
        fast: bool = False,
    ) -> AuditQuote:
        """Estimate a repository and price it, without persisting anything.

        Args:
            source_url: Repository URL or identifier.
            analysis: Optional raw analysis forwarded to the backend.
            reviewer_count: Reviewers requested, 1 to 3.
            fast: Use the deterministic pass only.

        Raises:
            ValidationError: If source_url is empty or reviewer_count invalid.
        """
        if not source_url or not source_url.strip():
            raise ValidationError("source_url", "is required")
        if fast:
            estimation = self._engine.quick_estimate(source_url)
        else:
            estimation = await self._engine.estimate(source_url, analysis)
        payment = calculate_payment(estimation.price, reviewer_count)
        return AuditQuote(estimation=estimation, payment=payment)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit(self, data: SubmitAuditInput, signer: SignerProtocol) -> CertificationOutcome:
        """Create an audit request and mint its RequestCertificate.

        Args:
            data: Submitter input.
            signer: Signer holding the submitter's authority.

        Returns:
            CertificationOutcome with the persisted Available request.

        Raises:
            ValidationError: On malformed input.
            AuthorizationError: If the signer is not the submitter.
            ExternalServiceError: step="package_evidence" (nothing persisted),
                or step="mint_request_certificate" with cid and checkpoint_id
                set (resume with resume_submission()).
        """
        submitter = _address(data.submitter_address, "submitter_address")
        log = self._log_operation(
            "submit",
            project_name=data.project_name,
            submitter_address=submitter,
        )
        log.info("submission_started")

        # Step 1: Validate before touching any external system
        self._validate_submission(data)
        self._check_signer(submitter, signer, "submit an audit request")

        # Step 2: Fingerprint the snapshot that will be reviewed
        snapshot, repository_hash = await self._fingerprinter.fingerprint_source(
            data.source_url
        )
        analysis = snapshot.analysis()

        # Step 3: Estimate, unless the quoted estimate was captured
        if data.estimation is not None:
            estimation = data.estimation
            self._metrics.record_estimation(EstimationSource.CAPTURED.value)
        else:
            estimation = await self._engine.estimate(data.source_url, analysis)

        proposed_price = (
            _parse_price(data.proposed_price, "proposed_price")
            if data.proposed_price is not None
            else estimation.price
        )
        if proposed_price < estimation.minimum_price:
            raise ValidationError(
                "proposed_price",
                f"{proposed_price} is below the minimum price {estimation.minimum_price}",
            )

        try:
            request = AuditRequest(
                id=uuid7(),
                project_name=data.project_name.strip(),
                project_description=data.project_description.strip(),
                source_url=data.source_url.strip(),
                repository_hash=repository_hash,
                submitter_address=submitter,
                estimation=estimation,
                proposed_price=proposed_price,
                reviewer_count=data.reviewer_count,
                tags=generate_project_tags(estimation, analysis, data.tags),
            )
        except ValueError as exc:
            raise ValidationError("", str(exc)) from None

        # Step 4: Package request evidence (failure leaves nothing behind)
        cid = await self._packager.package(self._packager.build_request_evidence(request))

        # Step 5: Continue an interrupted submission of identical content
        pending = await self._store.find_pending_submission(cid)
        if pending is not None:
            log.info(
                "submission_checkpoint_reused",
                checkpoint_id=str(pending.checkpoint_id),
                evidence_cid=cid,
            )
            pending = pending.with_attempt()
        else:
            pending = PendingSubmission(
                request=request.apply_patch({"request_evidence_cid": cid}),
                evidence_cid=cid,
            )

        # Step 6: Checkpoint, then mint with the same CID
        return await self._mint_and_persist(pending, signer)

    async def resume_submission(
        self,
        checkpoint_id: UUID,
        signer: SignerProtocol,
    ) -> CertificationOutcome:
        """Finish an interrupted submission without re-packaging.

        Raises:
            PendingSubmissionNotFoundError: If no checkpoint exists.
            AuthorizationError: If the signer is not the submitter.
            ExternalServiceError: If the mint fails again (cid unchanged).
        """
        log = self._log_operation("resume_submission", checkpoint_id=str(checkpoint_id))
        pending = await self._store.get_pending_submission(checkpoint_id)
        if pending is None:
            existing = await self._store.get(checkpoint_id)
            if existing is not None and existing.request_record_id is not None:
                log.info("submission_already_persisted")
                return CertificationOutcome(request=existing)
            raise PendingSubmissionNotFoundError(checkpoint_id)

        self._check_signer(pending.request.submitter_address, signer, "resume a submission")
        log.info(
            "submission_resuming",
            evidence_cid=pending.evidence_cid,
            attempts=pending.attempts,
        )
        return await self._mint_and_persist(pending.with_attempt(), signer)

    async def _mint_and_persist(
        self,
        pending: PendingSubmission,
        signer: SignerProtocol,
    ) -> CertificationOutcome:
        request = pending.request
        cid = pending.evidence_cid
        checkpoint_id = str(pending.checkpoint_id)
        log = self._log_operation(
            "mint_and_persist",
            request_id=checkpoint_id,
            evidence_cid=cid,
            attempt=pending.attempts,
        )

        # A previous attempt may have persisted before dropping its checkpoint
        existing = await self._store.get(request.id)
        if existing is not None:
            await self._store.delete_pending_submission(pending.checkpoint_id)
            log.info("submission_already_persisted")
            return CertificationOutcome(request=existing)

        try:
            await self._store.save_pending_submission(pending)
            if pending.contract_address is None:
                contract = await self._minter.ensure_contract(
                    request.submitter_address,
                    signer,
                    name=REQUEST_CONTRACT_NAME,
                    symbol=REQUEST_CONTRACT_SYMBOL,
                )
                pending = pending.with_contract(contract)
                await self._store.save_pending_submission(pending)
            receipt = await self._minter.mint(
                recipient=request.submitter_address,
                cid=cid,
                signer=signer,
                contract_address=pending.contract_address,
            )
        except ExternalServiceError as exc:
            step = CHECKPOINT_STEP if exc.service == "record_store" else MINT_REQUEST_STEP
            self._metrics.record_pipeline_failure(step)
            log.error(
                "submission_mint_failed",
                step=exc.step,
                reason=exc.reason,
                resumable=True,
            )
            raise exc.with_context(step, cid=cid, checkpoint_id=checkpoint_id) from exc
        except ConflictError:
            self._metrics.record_conflict(CHECKPOINT_STEP)
            log.warning("submission_checkpoint_conflict")
            raise

        self._metrics.record_certificate_minted("request")
        certified = request.apply_patch(
            {
                "request_record_id": receipt.record_id,
                "request_evidence_cid": cid,
                "request_contract_address": receipt.contract_address,
                "request_transaction_id": receipt.transaction_id,
            }
        )
        try:
            stored = await self._store.create(certified)
        except ExternalServiceError as exc:
            self._metrics.record_pipeline_failure("persist_request")
            log.error("submission_persist_failed", reason=exc.reason, record_id=receipt.record_id)
            raise exc.with_context("persist_request", cid=cid, checkpoint_id=checkpoint_id) from exc

        await self._store.delete_pending_submission(pending.checkpoint_id)
        self._metrics.record_transition(AuditStatus.AVAILABLE.value)
        log.info(
            "submission_completed",
            record_id=receipt.record_id,
            transaction_id=receipt.transaction_id,
        )
        return CertificationOutcome(request=stored, explorer_reference=receipt.explorer_reference)

    # ------------------------------------------------------------------
    # Acceptance and cancellation
    # ------------------------------------------------------------------

    async def accept(
        self,
        request_id: UUID,
        reviewer_address: str,
        negotiated_price: Decimal | None = None,
    ) -> AuditRequest:
        """Commit a reviewer to an Available request.

        The reviewer ownership certificate is not minted; the request's
        owner_certificate stage reads PLANNED afterwards.

        Raises:
            AuditRequestNotFoundError: If the request does not exist.
            ValidationError: On a bad address or a price below the minimum.
            ConflictError: If the request is no longer Available.
        """
        reviewer = _address(reviewer_address, "reviewer_address")
        log = self._log_operation("accept", request_id=str(request_id), reviewer_address=reviewer)

        request = await self._get(request_id)
        self._guard(request, AuditStatus.IN_PROGRESS, "accept")
        if same_address(reviewer, request.submitter_address):
            raise ValidationError("reviewer_address", "a submitter cannot review its own request")

        patch: dict[str, Any] = {"status": AuditStatus.IN_PROGRESS, "reviewer_address": reviewer}
        if negotiated_price is not None:
            price = _parse_price(negotiated_price, "negotiated_price")
            if price < request.minimum_price:
                raise ValidationError(
                    "negotiated_price",
                    f"{price} is below the minimum price {request.minimum_price}",
                )
            patch["negotiated_price"] = price
        start = utc_now()
        patch["start_date"] = start
        patch["estimated_completion_date"] = start + timedelta(days=request.estimated_duration_days)

        updated = await self._conditional_update(request, patch, "accept")
        log.info(
            "request_accepted",
            agreed_price=str(updated.agreed_price),
            estimated_completion_date=updated.estimated_completion_date.isoformat(),
        )
        return updated

    async def cancel(self, request_id: UUID, actor_address: str) -> AuditRequest:
        """Cancel an Available or InProgress request (submitter only).

        Raises:
            AuditRequestNotFoundError: If the request does not exist.
            AuthorizationError: If the actor is not the submitter.
            ConflictError: If the request is already terminal.
        """
        actor = _address(actor_address, "actor_address")
        log = self._log_operation("cancel", request_id=str(request_id), actor_address=actor)

        request = await self._get(request_id)
        if not same_address(actor, request.submitter_address):
            raise AuthorizationError(
                expected_address=request.submitter_address,
                actual_address=actor,
                action="cancel the audit request",
            )
        self._guard(request, AuditStatus.CANCELLED, "cancel")

        updated = await self._conditional_update(
            request,
            {"status": AuditStatus.CANCELLED, "reviewer_address": None},
            "cancel",
        )
        log.info("request_cancelled", previous_status=request.status.value)
        return updated

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    async def submit_results(
        self,
        request_id: UUID,
        reviewer_address: str,
        findings: Iterable[NewFinding],
        submission: ResultSubmission,
        signer: SignerProtocol,
    ) -> CertificationOutcome:
        """Certify the reviewer's results and complete the request.

        Findings are written once, by the first attempt; a retry after a
        mint failure reuses the persisted findings and result_evidence_cid.

        Raises:
            AuditRequestNotFoundError: If the request does not exist.
            AuthorizationError: If the caller or signer is not the reviewer.
            ValidationError: On a malformed finding.
            ConflictError: If the request is not InProgress.
            ExternalServiceError: step="package_evidence" or
                step="mint_result_certificate" (cid set, retry submit_results).
        """
        reviewer = _address(reviewer_address, "reviewer_address")
        log = self._log_operation("submit_results", request_id=str(request_id), reviewer_address=reviewer)

        request = await self._get(request_id)
        self._guard(request, AuditStatus.COMPLETED, "submit_results")
        if not same_address(reviewer, request.reviewer_address):
            raise AuthorizationError(
                expected_address=request.reviewer_address or "",
                actual_address=reviewer,
                action="submit results",
            )
        self._check_signer(request.reviewer_address, signer, "submit results")

        # Step 1: Package result evidence, unless a previous attempt did
        if request.result_evidence_cid is None:
            new_findings = self._build_findings(request.id, findings)
            persisted = await self._store.list_findings(request.id)
            if persisted:
                log.info("persisted_findings_reused", count=len(persisted))
            else:
                await self._store.add_findings(request.id, new_findings)
                persisted = new_findings

            submitted_at = request.results_submitted_at or utc_now()
            pending_request = request.apply_patch({"results_submitted_at": submitted_at})
            try:
                document = self._packager.build_result_evidence(
                    pending_request, persisted, submission, submitted_at
                )
            except ValueError as exc:
                raise ValidationError("", str(exc)) from None
            cid = await self._packager.package(document)

            # Step 2: Record the CID so a retry never re-packages
            request = await self._conditional_update(
                request,
                {"results_submitted_at": submitted_at, "result_evidence_cid": cid},
                "record_result_evidence",
            )
        else:
            cid = request.result_evidence_cid
            log.info("result_evidence_reused", evidence_cid=cid)

        # Step 3: Mint the ResultCertificate with that CID
        try:
            contract = request.result_contract_address
            if contract is None:
                contract = await self._minter.ensure_contract(
                    request.reviewer_address,
                    signer,
                    name=RESULT_CONTRACT_NAME,
                    symbol=RESULT_CONTRACT_SYMBOL,
                )
                request = await self._conditional_update(
                    request, {"result_contract_address": contract}, "record_result_contract"
                )
            receipt = await self._minter.mint(
                recipient=request.reviewer_address,
                cid=cid,
                signer=signer,
                contract_address=contract,
            )
        except ExternalServiceError as exc:
            self._metrics.record_pipeline_failure(MINT_RESULT_STEP)
            log.error("result_mint_failed", step=exc.step, reason=exc.reason, evidence_cid=cid)
            raise exc.with_context(MINT_RESULT_STEP, cid=cid, checkpoint_id=str(request.id)) from exc
        self._metrics.record_certificate_minted("result")

        # Step 4: Finalize
        completed = await self._conditional_update(
            request,
            {
                "status": AuditStatus.COMPLETED,
                "completed_at": utc_now(),
                "result_record_id": receipt.record_id,
                "result_contract_address": receipt.contract_address,
                "result_transaction_id": receipt.transaction_id,
            },
            "complete",
        )
        log.info(
            "request_completed",
            result_record_id=receipt.record_id,
            request_record_id=completed.request_record_id,
        )
        return CertificationOutcome(request=completed, explorer_reference=receipt.explorer_reference)

    async def add_finding(
        self,
        request_id: UUID,
        reviewer_address: str,
        finding: NewFinding,
    ) -> Finding:
        """Append a finding to a Completed request (assigned reviewer only).

        Raises:
            ConflictError: If the request is not Completed.
            AuthorizationError: If the caller is not the reviewer.
        """
        reviewer = _address(reviewer_address, "reviewer_address")
        request = await self._get(request_id)
        if request.status != AuditStatus.COMPLETED:
            self._metrics.record_conflict("add_finding")
            raise ConflictError(
                request_id=request.id,
                expected_status=AuditStatus.COMPLETED,
                actual_status=request.status,
                operation="add_finding",
            )
        if not same_address(reviewer, request.reviewer_address):
            raise AuthorizationError(
                expected_address=request.reviewer_address or "",
                actual_address=reviewer,
                action="add a finding",
            )
        (created,) = self._build_findings(request.id, [finding])
        await self._store.add_findings(request.id, [created])
        self._log_operation("add_finding", request_id=str(request_id)).info(
            "finding_added",
            finding_id=str(created.id),
            severity=created.severity.value,
        )
        return created

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_report(self, request_id: UUID) -> AuditReport:
        """Request, findings, certificate stages and pipeline progress."""
        request = await self._get(request_id)
        findings = tuple(await self._store.list_findings(request_id))
        return AuditReport(
            request=request,
            findings=findings,
            severity_breakdown=severity_breakdown(list(findings)),
            certificates={
                "request": request.request_certificate,
                "owner": request.owner_certificate,
                "result": request.result_certificate,
            },
            pipeline_progress={
                "estimated": True,
                "request_evidence_published": request.request_evidence_cid is not None,
                "request_certificate_issued": request.request_record_id is not None,
                "accepted": request.start_date is not None,
                "results_submitted": request.results_submitted_at is not None,
                "result_evidence_published": request.result_evidence_cid is not None,
                "result_certificate_issued": request.result_record_id is not None,
            },
            payment=calculate_payment(request.agreed_price, request.reviewer_count),
        )

    async def list_requests(
        self,
        status: AuditStatus | None = None,
        reviewer_address: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[AuditRequest], int]:
        """Dashboard listing, newest first."""
        reviewer = (
            _address(reviewer_address, "reviewer_address")
            if reviewer_address is not None
            else None
        )
        return await self._store.list_requests(
            status=status,
            reviewer_address=reviewer,
            limit=limit,
            offset=offset,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get(self, request_id: UUID) -> AuditRequest:
        request = await self._store.get(request_id)
        if request is None:
            raise AuditRequestNotFoundError(request_id)
        return request

    def _guard(self, request: AuditRequest, target: AuditStatus, operation: str) -> None:
        """Check the transition matrix against the freshly read status."""
        if target not in request.status.valid_transitions():
            self._metrics.record_conflict(operation)
            raise InvalidStateTransitionError(
                request_id=request.id,
                from_status=request.status,
                to_status=target,
                allowed_transitions=sorted(
                    request.status.valid_transitions(), key=lambda s: s.value
                ),
            )

    async def _conditional_update(
        self,
        request: AuditRequest,
        patch: dict[str, Any],
        operation: str,
    ) -> AuditRequest:
        try:
            updated = await self._store.conditional_update(request.id, request.status, patch)
        except ConflictError as exc:
            self._metrics.record_conflict(operation)
            self._log.warning(
                "conditional_update_conflict",
                request_id=str(request.id),
                operation=operation,
                expected_status=request.status.value,
                actual_status=exc.actual_status.value if exc.actual_status else None,
            )
            raise
        except ValueError as exc:
            raise ValidationError("", str(exc)) from None
        if "status" in patch:
            self._metrics.record_transition(updated.status.value)
        return updated

    def _check_signer(self, owner: str | None, signer: SignerProtocol, action: str) -> None:
        if owner is None or not same_address(signer.address, owner):
            raise AuthorizationError(
                expected_address=owner or "",
                actual_address=signer.address,
                action=action,
            )

    def _validate_submission(self, data: SubmitAuditInput) -> None:
        if not data.project_name or not data.project_name.strip():
            raise ValidationError("project_name", "is required")
        if len(data.project_name) > AuditRequest.MAX_PROJECT_NAME_LENGTH:
            raise ValidationError(
                "project_name",
                f"exceeds {AuditRequest.MAX_PROJECT_NAME_LENGTH} characters",
            )
        if len(data.project_description) > AuditRequest.MAX_DESCRIPTION_LENGTH:
            raise ValidationError(
                "project_description",
                f"exceeds {AuditRequest.MAX_DESCRIPTION_LENGTH} characters",
            )
        if not data.source_url or not data.source_url.strip():
            raise ValidationError("source_url", "is required")
        if isinstance(data.reviewer_count, bool) or not 1 <= data.reviewer_count <= 3:
            raise ValidationError(
                "reviewer_count", f"must be between 1 and 3, got {data.reviewer_count}"
            )

    def _build_findings(
        self,
        request_id: UUID,
        findings: Iterable[NewFinding],
    ) -> list[Finding]:
        built = []
        created_at: datetime = utc_now()
        for index, item in enumerate(findings):
            try:
                built.append(
                    Finding(
                        id=uuid7(),
                        request_id=request_id,
                        severity=Severity(item.severity.strip().lower()),
                        category=VulnerabilityCategory(item.category.strip().lower()),
                        title=item.title,
                        description=item.description,
                        file_name=item.file_name,
                        line_number=item.line_number,
                        status=FindingStatus.OPEN,
                        recommendation=item.recommendation,
                        # Distinct timestamps keep document order stable
                        created_at=created_at + timedelta(microseconds=index),
                    )
                )
            except ValueError as exc:
                raise ValidationError(f"findings[{index}]", str(exc)) from None
        return built
