"""Unit tests for the audit lifecycle controller.

Covers submission with resumption, acceptance races, cancellation,
result certification and the append-only findings rule.
"""

import asyncio
import dataclasses
from datetime import timedelta
from decimal import Decimal
from uuid import UUID

import pytest

from auditmarket.application.services.audit_lifecycle_service import (
    CHECKPOINT_STEP,
    MINT_REQUEST_STEP,
    MINT_RESULT_STEP,
    AuditLifecycleService,
    NewFinding,
    SubmitAuditInput,
)
from auditmarket.application.services.estimation_engine import classify_repository
from auditmarket.application.services.evidence_packager import PACKAGE_STEP
from auditmarket.domain.errors import (
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
)
from auditmarket.domain.models.estimation import EstimationSource
from auditmarket.domain.models.evidence import ResultSubmission
from auditmarket.infrastructure.monitoring.metrics import PipelineMetrics
from auditmarket.infrastructure.stubs import (
    InMemoryAuditRecordStore,
    InMemoryContentStore,
    InMemoryLedger,
    StubSigner,
    StubSignerProvider,
)

SUBMITTER = "0x1111111111111111111111111111111111111111"
REVIEWER = "0x2222222222222222222222222222222222222222"
STRANGER = "0x3333333333333333333333333333333333333333"

REENTRANCY = NewFinding(
    severity="Critical",
    category="reentrancy",
    title="Reentrancy in withdraw",
    description="State is updated after the external call.",
    file_name="contracts/Bridge.sol",
    line_number=42,
)
GAS = NewFinding(
    severity="low",
    category="gas_limit",
    title="Unbounded loop",
    description="Loop over all deposits.",
)


async def _submit(
    lifecycle: AuditLifecycleService, submission: SubmitAuditInput
) -> AuditRequest:
    outcome = await lifecycle.submit(submission, StubSigner(SUBMITTER))
    return outcome.request


async def _accepted(
    lifecycle: AuditLifecycleService, submission: SubmitAuditInput
) -> AuditRequest:
    request = await _submit(lifecycle, submission)
    return await lifecycle.accept(request.id, REVIEWER)


async def _completed(
    lifecycle: AuditLifecycleService, submission: SubmitAuditInput
) -> AuditRequest:
    request = await _accepted(lifecycle, submission)
    outcome = await lifecycle.submit_results(
        request.id, REVIEWER, [REENTRANCY, GAS], ResultSubmission(), StubSigner(REVIEWER)
    )
    return outcome.request


def _counter(metrics: PipelineMetrics, name: str, **labels: str) -> float:
    value = metrics.registry.get_sample_value(
        name, {"service": "auditmarket-api", "environment": "development", **labels}
    )
    return value or 0.0


class TestQuote:
    """Tests for quote."""

    @pytest.mark.asyncio
    async def test_quote_prices_estimate(self, lifecycle: AuditLifecycleService) -> None:
        """The quote prices the estimate for the requested reviewers."""
        quote = await lifecycle.quote("https://github.com/acme/defi-bridge", reviewer_count=3)
        assert quote.estimation.price == Decimal("35000")
        assert quote.payment.reviewer_payout == Decimal("52500.00")
        assert quote.payment.total_price == Decimal("60375.00")

    @pytest.mark.asyncio
    async def test_fast_quote(self, lifecycle: AuditLifecycleService) -> None:
        """The fast path returns the deterministic estimate."""
        quote = await lifecycle.quote("acme/nft-drop", fast=True)
        assert quote.estimation == classify_repository("acme/nft-drop")

    @pytest.mark.asyncio
    async def test_empty_source_rejected(self, lifecycle: AuditLifecycleService) -> None:
        """A source URL is required."""
        with pytest.raises(ValidationError):
            await lifecycle.quote("  ")


class TestSubmit:
    """Tests for submit."""

    @pytest.mark.asyncio
    async def test_submit_creates_available_request(
        self,
        lifecycle: AuditLifecycleService,
        submission: SubmitAuditInput,
        record_store: InMemoryAuditRecordStore,
        content_store: InMemoryContentStore,
        ledger: InMemoryLedger,
        metrics: PipelineMetrics,
    ) -> None:
        """Submission packages evidence, mints the request certificate and persists."""
        outcome = await lifecycle.submit(submission, StubSigner(SUBMITTER))
        request = outcome.request

        assert request.status == AuditStatus.AVAILABLE
        assert request.request_record_id == 1
        assert request.request_evidence_cid == content_store.put_calls[0][0]
        assert ledger.mint_calls[0].token_uri == f"ipfs://{request.request_evidence_cid}"
        assert request.request_contract_address == ledger.mint_calls[0].contract_address
        assert outcome.explorer_reference.endswith(request.request_transaction_id)
        assert len(request.repository_hash) == 64
        assert {"complexity-high", "high-risk", "bridge"} <= request.tags
        assert await record_store.get(request.id) == request
        assert record_store.pending_submissions == []
        assert _counter(metrics, "audit_transitions_total", status="Available") == 1
        assert _counter(metrics, "certificates_minted_total", kind="request") == 1

    @pytest.mark.asyncio
    async def test_captured_estimate_persisted_as_is(
        self,
        lifecycle: AuditLifecycleService,
        submission: SubmitAuditInput,
        metrics: PipelineMetrics,
    ) -> None:
        """A quoted estimate is stored unchanged instead of re-estimating."""
        captured = dataclasses.replace(
            classify_repository("acme/defi-bridge"),
            price=Decimal("40000"),
            source=EstimationSource.CAPTURED,
        )
        request = await _submit(
            lifecycle, dataclasses.replace(submission, estimation=captured, proposed_price=None)
        )
        assert request.estimation == captured
        assert request.proposed_price == Decimal("40000")
        assert _counter(metrics, "estimations_total", source="captured") == 1

    @pytest.mark.asyncio
    async def test_price_below_minimum_rejected(
        self,
        lifecycle: AuditLifecycleService,
        submission: SubmitAuditInput,
        content_store: InMemoryContentStore,
    ) -> None:
        """Proposed price below the floor fails before anything is published."""
        with pytest.raises(ValidationError) as exc_info:
            await _submit(
                lifecycle, dataclasses.replace(submission, proposed_price=Decimal("26249"))
            )
        assert exc_info.value.field == "proposed_price"
        assert content_store.put_calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "changes",
        [
            {"reviewer_count": 4},
            {"project_name": " "},
            {"source_url": ""},
            {"submitter_address": "not-an-address"},
        ],
    )
    async def test_invalid_input_rejected(
        self,
        lifecycle: AuditLifecycleService,
        submission: SubmitAuditInput,
        changes: dict,
    ) -> None:
        """Malformed submissions are validation errors."""
        with pytest.raises(ValidationError):
            await lifecycle.submit(dataclasses.replace(submission, **changes), StubSigner(SUBMITTER))

    @pytest.mark.asyncio
    async def test_wrong_signer_refused(
        self,
        lifecycle: AuditLifecycleService,
        submission: SubmitAuditInput,
        content_store: InMemoryContentStore,
        ledger: InMemoryLedger,
    ) -> None:
        """A signer for another address is refused before any side effect."""
        with pytest.raises(AuthorizationError):
            await lifecycle.submit(submission, StubSigner(STRANGER))
        assert content_store.put_calls == []
        assert ledger.mint_calls == []

    @pytest.mark.asyncio
    async def test_packaging_failure_persists_nothing(
        self,
        lifecycle: AuditLifecycleService,
        submission: SubmitAuditInput,
        content_store: InMemoryContentStore,
        record_store: InMemoryAuditRecordStore,
    ) -> None:
        """A content store outage leaves no request and no checkpoint behind."""
        content_store.fail_next_puts(1)
        with pytest.raises(ExternalServiceError) as exc_info:
            await _submit(lifecycle, submission)

        assert exc_info.value.step == PACKAGE_STEP
        assert exc_info.value.cid is None
        assert record_store.pending_submissions == []
        assert (await record_store.list_requests())[1] == 0

    @pytest.mark.asyncio
    async def test_checkpoint_store_failure_relabelled(
        self,
        lifecycle: AuditLifecycleService,
        submission: SubmitAuditInput,
        record_store: InMemoryAuditRecordStore,
        ledger: InMemoryLedger,
    ) -> None:
        """A record store outage while checkpointing is reported with the cid."""
        original_save = record_store.save_pending_submission

        async def failing_save(pending):
            record_store.set_unavailable("connection reset")
            try:
                await original_save(pending)
            finally:
                record_store.set_unavailable(None)

        record_store.save_pending_submission = failing_save
        with pytest.raises(ExternalServiceError) as exc_info:
            await _submit(lifecycle, submission)

        assert exc_info.value.step == CHECKPOINT_STEP
        assert exc_info.value.service == "record_store"
        assert exc_info.value.cid is not None
        assert ledger.mint_calls == []


class TestSubmissionResumption:
    """Tests for resuming a submission after a mint failure."""

    @pytest.mark.asyncio
    async def test_mint_failure_then_resume_reuses_cid(
        self,
        lifecycle: AuditLifecycleService,
        submission: SubmitAuditInput,
        content_store: InMemoryContentStore,
        ledger: InMemoryLedger,
        record_store: InMemoryAuditRecordStore,
    ) -> None:
        """Resuming mints with the published cid and never re-packages."""
        ledger.fail_next_mints(1)
        with pytest.raises(ExternalServiceError) as exc_info:
            await _submit(lifecycle, submission)

        error = exc_info.value
        assert error.step == MINT_REQUEST_STEP
        assert error.resumable
        assert error.checkpoint_id is not None
        assert len(record_store.pending_submissions) == 1

        outcome = await lifecycle.resume_submission(
            UUID(error.checkpoint_id), StubSigner(SUBMITTER)
        )

        assert len(content_store.put_calls) == 1
        assert [call.token_uri for call in ledger.mint_calls] == [f"ipfs://{error.cid}"] * 2
        assert len(ledger.deploy_calls) == 1
        assert outcome.request.id == UUID(error.checkpoint_id)
        assert outcome.request.request_evidence_cid == error.cid
        assert outcome.request.status == AuditStatus.AVAILABLE
        assert record_store.pending_submissions == []

    @pytest.mark.asyncio
    async def test_identical_resubmission_continues_checkpoint(
        self,
        lifecycle: AuditLifecycleService,
        submission: SubmitAuditInput,
        ledger: InMemoryLedger,
        record_store: InMemoryAuditRecordStore,
    ) -> None:
        """Resubmitting identical content finds the checkpoint by cid."""
        ledger.fail_next_mints(1)
        with pytest.raises(ExternalServiceError) as exc_info:
            await _submit(lifecycle, submission)

        request = await _submit(lifecycle, submission)

        assert request.id == UUID(exc_info.value.checkpoint_id)
        assert request.request_evidence_cid == exc_info.value.cid
        assert (await record_store.list_requests())[1] == 1

    @pytest.mark.asyncio
    async def test_racing_identical_submission_conflicts(
        self,
        lifecycle: AuditLifecycleService,
        submission: SubmitAuditInput,
        ledger: InMemoryLedger,
        record_store: InMemoryAuditRecordStore,
        metrics: PipelineMetrics,
    ) -> None:
        """A submission that missed the held checkpoint lookup is a conflict, not a crash."""
        ledger.fail_next_mints(1)
        with pytest.raises(ExternalServiceError) as exc_info:
            await _submit(lifecycle, submission)
        held = record_store.pending_submissions

        async def missed_lookup(evidence_cid):
            return None

        record_store.find_pending_submission = missed_lookup
        with pytest.raises(ConflictError) as conflict_info:
            await _submit(lifecycle, submission)

        assert conflict_info.value.operation == CHECKPOINT_STEP
        assert record_store.pending_submissions == held
        assert held[0].checkpoint_id == UUID(exc_info.value.checkpoint_id)
        assert len(ledger.mint_calls) == 1
        assert _counter(metrics, "audit_conflicts_total", operation=CHECKPOINT_STEP) == 1

    @pytest.mark.asyncio
    async def test_resume_unknown_checkpoint(self, lifecycle: AuditLifecycleService) -> None:
        """An unknown checkpoint id is reported as not found."""
        with pytest.raises(PendingSubmissionNotFoundError):
            await lifecycle.resume_submission(
                UUID("00000000-0000-7000-8000-000000000000"), StubSigner(SUBMITTER)
            )

    @pytest.mark.asyncio
    async def test_resume_after_success_returns_request(
        self, lifecycle: AuditLifecycleService, submission: SubmitAuditInput
    ) -> None:
        """Resuming an already persisted submission returns it unchanged."""
        request = await _submit(lifecycle, submission)
        outcome = await lifecycle.resume_submission(request.id, StubSigner(SUBMITTER))
        assert outcome.request == request

    @pytest.mark.asyncio
    async def test_resume_requires_submitter_signer(
        self,
        lifecycle: AuditLifecycleService,
        submission: SubmitAuditInput,
        ledger: InMemoryLedger,
    ) -> None:
        """Only the submitter's signer can resume."""
        ledger.fail_next_mints(1)
        with pytest.raises(ExternalServiceError) as exc_info:
            await _submit(lifecycle, submission)
        with pytest.raises(AuthorizationError):
            await lifecycle.resume_submission(
                UUID(exc_info.value.checkpoint_id), StubSigner(STRANGER)
            )


class TestAccept:
    """Tests for accept."""

    @pytest.mark.asyncio
    async def test_accept_commits_reviewer(
        self, lifecycle: AuditLifecycleService, submission: SubmitAuditInput
    ) -> None:
        """Accepting moves to InProgress with dates and the owner tier planned."""
        request = await _submit(lifecycle, submission)
        accepted = await lifecycle.accept(request.id, REVIEWER.lower(), Decimal("28000"))

        assert accepted.status == AuditStatus.IN_PROGRESS
        assert accepted.reviewer_address == REVIEWER
        assert accepted.negotiated_price == Decimal("28000")
        assert accepted.estimated_completion_date - accepted.start_date == timedelta(days=12)
        assert accepted.owner_certificate == CertificateStage.PLANNED

    @pytest.mark.asyncio
    async def test_sub_cent_negotiated_price_is_rounded(
        self,
        lifecycle: AuditLifecycleService,
        submission: SubmitAuditInput,
        record_store: InMemoryAuditRecordStore,
    ) -> None:
        """Negotiated prices are kept at the cent precision the store holds."""
        request = await _submit(lifecycle, submission)

        accepted = await lifecycle.accept(request.id, REVIEWER, Decimal("28000.004"))

        assert str(accepted.negotiated_price) == "28000.00"
        assert (await record_store.get(request.id)).negotiated_price == Decimal("28000.00")

    @pytest.mark.asyncio
    async def test_concurrent_accepts_one_wins(
        self,
        lifecycle: AuditLifecycleService,
        submission: SubmitAuditInput,
        record_store: InMemoryAuditRecordStore,
    ) -> None:
        """Two reviewers racing for one request: exactly one conflict."""
        request = await _submit(lifecycle, submission)

        results = await asyncio.gather(
            lifecycle.accept(request.id, REVIEWER),
            lifecycle.accept(request.id, STRANGER),
            return_exceptions=True,
        )

        winners = [r for r in results if isinstance(r, AuditRequest)]
        conflicts = [r for r in results if isinstance(r, ConflictError)]
        assert len(winners) == 1
        assert len(conflicts) == 1
        stored = await record_store.get(request.id)
        assert stored == winners[0]
        assert stored.reviewer_address == winners[0].reviewer_address

    @pytest.mark.asyncio
    async def test_negotiated_price_below_minimum(
        self,
        lifecycle: AuditLifecycleService,
        submission: SubmitAuditInput,
        record_store: InMemoryAuditRecordStore,
    ) -> None:
        """A negotiated price below the floor is rejected and stays Available."""
        request = await _submit(lifecycle, submission)
        with pytest.raises(ValidationError) as exc_info:
            await lifecycle.accept(request.id, REVIEWER, Decimal("100"))
        assert exc_info.value.field == "negotiated_price"
        assert await record_store.get(request.id) == request

    @pytest.mark.asyncio
    async def test_submitter_cannot_review(
        self, lifecycle: AuditLifecycleService, submission: SubmitAuditInput
    ) -> None:
        """The submitter cannot accept its own request."""
        request = await _submit(lifecycle, submission)
        with pytest.raises(ValidationError):
            await lifecycle.accept(request.id, SUBMITTER)

    @pytest.mark.asyncio
    async def test_accept_twice_conflicts(
        self,
        lifecycle: AuditLifecycleService,
        submission: SubmitAuditInput,
        metrics: PipelineMetrics,
        record_store: InMemoryAuditRecordStore,
    ) -> None:
        """A second accept is an invalid transition and changes nothing stored."""
        request = await _accepted(lifecycle, submission)
        before = await record_store.get(request.id)

        with pytest.raises(InvalidStateTransitionError):
            await lifecycle.accept(request.id, STRANGER, Decimal("30000"))

        after = await record_store.get(request.id)
        assert after == before
        assert after.reviewer_address == REVIEWER
        assert after.start_date == before.start_date
        assert after.updated_at == before.updated_at
        assert after.negotiated_price == before.negotiated_price
        assert _counter(metrics, "audit_conflicts_total", operation="accept") == 1


class TestCancel:
    """Tests for cancel."""

    @pytest.mark.asyncio
    async def test_cancel_available(
        self, lifecycle: AuditLifecycleService, submission: SubmitAuditInput
    ) -> None:
        """The submitter can cancel an Available request."""
        request = await _submit(lifecycle, submission)
        cancelled = await lifecycle.cancel(request.id, SUBMITTER)
        assert cancelled.status == AuditStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_cancel_in_progress_clears_reviewer(
        self, lifecycle: AuditLifecycleService, submission: SubmitAuditInput
    ) -> None:
        """Cancelling an InProgress request releases the reviewer."""
        request = await _accepted(lifecycle, submission)
        cancelled = await lifecycle.cancel(request.id, SUBMITTER)
        assert cancelled.status == AuditStatus.CANCELLED
        assert cancelled.reviewer_address is None
        assert cancelled.start_date == request.start_date

    @pytest.mark.asyncio
    async def test_only_submitter_can_cancel(
        self, lifecycle: AuditLifecycleService, submission: SubmitAuditInput
    ) -> None:
        """Anyone else is refused."""
        request = await _accepted(lifecycle, submission)
        with pytest.raises(AuthorizationError):
            await lifecycle.cancel(request.id, REVIEWER)

    @pytest.mark.asyncio
    async def test_cancel_terminal_conflicts(
        self, lifecycle: AuditLifecycleService, submission: SubmitAuditInput
    ) -> None:
        """Cancelled is terminal."""
        request = await _submit(lifecycle, submission)
        await lifecycle.cancel(request.id, SUBMITTER)
        with pytest.raises(ConflictError):
            await lifecycle.cancel(request.id, SUBMITTER)


class TestSubmitResults:
    """Tests for submit_results."""

    @pytest.mark.asyncio
    async def test_completes_request(
        self,
        lifecycle: AuditLifecycleService,
        submission: SubmitAuditInput,
        record_store: InMemoryAuditRecordStore,
        content_store: InMemoryContentStore,
    ) -> None:
        """Results are certified and the request completes."""
        completed = await _completed(lifecycle, submission)

        assert completed.status == AuditStatus.COMPLETED
        assert completed.result_record_id == 1
        assert completed.completed_at is not None
        assert completed.result_certificate == CertificateStage.ISSUED
        findings = await record_store.list_findings(completed.id)
        assert [f.title for f in findings] == [REENTRANCY.title, GAS.title]

        document = await content_store.get(completed.result_evidence_cid)
        assert document["original_audit_request"]["request_nft_id"] == str(
            completed.request_record_id
        )
        assert document["audit_results_summary"]["severity_breakdown"]["critical"] == 1

    @pytest.mark.asyncio
    async def test_mint_failure_retry_reuses_evidence(
        self,
        lifecycle: AuditLifecycleService,
        submission: SubmitAuditInput,
        record_store: InMemoryAuditRecordStore,
        content_store: InMemoryContentStore,
        ledger: InMemoryLedger,
    ) -> None:
        """A retry after a mint failure mints the same cid with the first findings."""
        request = await _accepted(lifecycle, submission)
        ledger.fail_next_mints(1)
        with pytest.raises(ExternalServiceError) as exc_info:
            await lifecycle.submit_results(
                request.id, REVIEWER, [REENTRANCY], ResultSubmission(), StubSigner(REVIEWER)
            )
        assert exc_info.value.step == MINT_RESULT_STEP
        stored = await record_store.get(request.id)
        assert stored.status == AuditStatus.IN_PROGRESS
        assert stored.result_evidence_cid == exc_info.value.cid
        assert stored.results_submitted_at is not None
        puts_before = len(content_store.put_calls)

        outcome = await lifecycle.submit_results(
            request.id, REVIEWER, [GAS], ResultSubmission(), StubSigner(REVIEWER)
        )

        assert outcome.request.status == AuditStatus.COMPLETED
        assert outcome.request.result_evidence_cid == exc_info.value.cid
        assert len(content_store.put_calls) == puts_before
        assert ledger.mint_calls[-1].token_uri == f"ipfs://{exc_info.value.cid}"
        findings = await record_store.list_findings(request.id)
        assert [f.title for f in findings] == [REENTRANCY.title]

    @pytest.mark.asyncio
    async def test_only_assigned_reviewer(
        self, lifecycle: AuditLifecycleService, submission: SubmitAuditInput
    ) -> None:
        """Another address cannot submit results."""
        request = await _accepted(lifecycle, submission)
        with pytest.raises(AuthorizationError):
            await lifecycle.submit_results(
                request.id, STRANGER, [], ResultSubmission(), StubSigner(STRANGER)
            )

    @pytest.mark.asyncio
    async def test_reviewer_signer_required(
        self,
        lifecycle: AuditLifecycleService,
        submission: SubmitAuditInput,
        signers: StubSignerProvider,
    ) -> None:
        """The signer must hold the reviewer's authority."""
        request = await _accepted(lifecycle, submission)
        with pytest.raises(AuthorizationError):
            await lifecycle.submit_results(
                request.id, REVIEWER, [], ResultSubmission(), signers.signer_for(STRANGER)
            )

    @pytest.mark.asyncio
    async def test_results_on_available_conflict(
        self, lifecycle: AuditLifecycleService, submission: SubmitAuditInput
    ) -> None:
        """Results cannot be submitted before acceptance."""
        request = await _submit(lifecycle, submission)
        with pytest.raises(ConflictError):
            await lifecycle.submit_results(
                request.id, REVIEWER, [], ResultSubmission(), StubSigner(REVIEWER)
            )

    @pytest.mark.asyncio
    async def test_malformed_finding(
        self,
        lifecycle: AuditLifecycleService,
        submission: SubmitAuditInput,
        record_store: InMemoryAuditRecordStore,
    ) -> None:
        """Unknown severities are validation errors and nothing is stored."""
        request = await _accepted(lifecycle, submission)
        bad = dataclasses.replace(GAS, severity="catastrophic")
        with pytest.raises(ValidationError) as exc_info:
            await lifecycle.submit_results(
                request.id, REVIEWER, [bad], ResultSubmission(), StubSigner(REVIEWER)
            )
        assert exc_info.value.field == "findings[0]"
        assert await record_store.list_findings(request.id) == []


class TestAddFinding:
    """Tests for add_finding."""

    @pytest.mark.asyncio
    async def test_reviewer_appends_to_completed(
        self,
        lifecycle: AuditLifecycleService,
        submission: SubmitAuditInput,
        record_store: InMemoryAuditRecordStore,
    ) -> None:
        """Findings are appended after completion, never replaced."""
        completed = await _completed(lifecycle, submission)
        finding = await lifecycle.add_finding(completed.id, REVIEWER, GAS)

        findings = await record_store.list_findings(completed.id)
        assert len(findings) == 3
        assert findings[-1] == finding

    @pytest.mark.asyncio
    async def test_not_completed_conflicts(
        self, lifecycle: AuditLifecycleService, submission: SubmitAuditInput
    ) -> None:
        """Findings are only appended to Completed requests."""
        request = await _accepted(lifecycle, submission)
        with pytest.raises(ConflictError):
            await lifecycle.add_finding(request.id, REVIEWER, GAS)

    @pytest.mark.asyncio
    async def test_only_reviewer(
        self, lifecycle: AuditLifecycleService, submission: SubmitAuditInput
    ) -> None:
        """The submitter cannot add findings."""
        completed = await _completed(lifecycle, submission)
        with pytest.raises(AuthorizationError):
            await lifecycle.add_finding(completed.id, SUBMITTER, GAS)


class TestQueries:
    """Tests for get_report and list_requests."""

    @pytest.mark.asyncio
    async def test_report_after_acceptance(
        self, lifecycle: AuditLifecycleService, submission: SubmitAuditInput
    ) -> None:
        """The report shows certificate stages, progress and payment."""
        request = await _accepted(lifecycle, submission)
        report = await lifecycle.get_report(request.id)

        assert report.certificates == {
            "request": CertificateStage.ISSUED,
            "owner": CertificateStage.PLANNED,
            "result": CertificateStage.NOT_STARTED,
        }
        assert report.pipeline_progress["accepted"] is True
        assert report.pipeline_progress["results_submitted"] is False
        assert report.payment.base_price == Decimal("30000")
        assert report.severity_breakdown == {"low": 0, "medium": 0, "high": 0, "critical": 0}

    @pytest.mark.asyncio
    async def test_list_by_reviewer(
        self, lifecycle: AuditLifecycleService, submission: SubmitAuditInput
    ) -> None:
        """Listing filters by reviewer case-insensitively."""
        accepted = await _accepted(lifecycle, submission)
        await _submit(lifecycle, dataclasses.replace(submission, project_name="Other"))

        items, total = await lifecycle.list_requests(reviewer_address=REVIEWER.lower())
        assert total == 1
        assert items[0].id == accepted.id

        _, available = await lifecycle.list_requests(status=AuditStatus.AVAILABLE)
        assert available == 1
