"""Unit tests for the audit request model and its state machine."""

from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from auditmarket.domain.models.audit_request import (
    STATE_TRANSITION_MATRIX,
    AuditRequest,
    AuditStatus,
    CertificateStage,
    PendingSubmission,
)
from auditmarket.domain.models.common import utc_now
from auditmarket.domain.models.estimation import Complexity, EstimationReport

SUBMITTER = "0x1111111111111111111111111111111111111111"
REVIEWER = "0x2222222222222222222222222222222222222222"


def _estimation() -> EstimationReport:
    return EstimationReport(
        complexity=Complexity.MEDIUM,
        duration_days=6,
        price=Decimal("12000"),
        minimum_price=Decimal("9000"),
        reasoning="test",
    )


def _request(**overrides: object) -> AuditRequest:
    values: dict[str, object] = {
        "id": uuid4(),
        "project_name": "Vault",
        "project_description": "Yield vault",
        "source_url": "https://github.com/acme/vault",
        "repository_hash": "a" * 64,
        "submitter_address": SUBMITTER,
        "estimation": _estimation(),
        "proposed_price": Decimal("12000"),
    }
    values.update(overrides)
    return AuditRequest(**values)


class TestAuditStatus:
    """Tests for the transition matrix."""

    def test_terminal_statuses_have_no_transitions(self) -> None:
        """Completed and Cancelled are terminal."""
        assert AuditStatus.COMPLETED.is_terminal()
        assert AuditStatus.CANCELLED.is_terminal()
        assert AuditStatus.COMPLETED.valid_transitions() == frozenset()
        assert AuditStatus.CANCELLED.valid_transitions() == frozenset()

    def test_available_transitions(self) -> None:
        """Available can be accepted or cancelled, never completed directly."""
        allowed = AuditStatus.AVAILABLE.valid_transitions()
        assert allowed == {AuditStatus.IN_PROGRESS, AuditStatus.CANCELLED}
        assert AuditStatus.COMPLETED not in allowed

    def test_every_status_is_in_matrix(self) -> None:
        """The matrix covers every status."""
        assert set(STATE_TRANSITION_MATRIX) == set(AuditStatus)


class TestAuditRequestInvariants:
    """Tests for field and cross-field validation."""

    def test_valid_request(self) -> None:
        """A fresh request is Available without a reviewer."""
        request = _request()
        assert request.status == AuditStatus.AVAILABLE
        assert request.reviewer_address is None
        assert request.agreed_price == Decimal("12000")

    def test_proposed_price_below_minimum_rejected(self) -> None:
        """Proposed price must respect the estimate's floor."""
        with pytest.raises(ValueError, match="minimum_price"):
            _request(proposed_price=Decimal("8999"))

    def test_reviewer_count_bounds(self) -> None:
        """Reviewer count must be 1 to 3."""
        with pytest.raises(ValueError, match="reviewer_count"):
            _request(reviewer_count=4)
        with pytest.raises(ValueError, match="reviewer_count"):
            _request(reviewer_count=0)

    def test_repository_hash_must_be_hex_digest(self) -> None:
        """Repository hash is a 64-character lowercase hex digest."""
        with pytest.raises(ValueError, match="repository_hash"):
            _request(repository_hash="xyz")

    def test_submitter_must_be_checksummed(self) -> None:
        """Submitter address is stored in checksum form."""
        with pytest.raises(ValueError, match="checksummed"):
            _request(submitter_address="0xabcdefabcdefabcdefabcdefabcdefabcdefabcd")

    def test_reviewer_requires_reviewer_status(self) -> None:
        """An Available request cannot carry a reviewer."""
        with pytest.raises(ValueError, match="reviewer_address"):
            _request(reviewer_address=REVIEWER)

    def test_in_progress_requires_reviewer(self) -> None:
        """An InProgress request must carry a reviewer."""
        with pytest.raises(ValueError, match="reviewer_address"):
            _request(status=AuditStatus.IN_PROGRESS)

    def test_completed_requires_result_record(self) -> None:
        """A Completed request must hold its result record id."""
        with pytest.raises(ValueError, match="result_record_id"):
            _request(status=AuditStatus.COMPLETED, reviewer_address=REVIEWER)

    def test_result_record_only_on_completed(self) -> None:
        """A result record id cannot exist before completion."""
        with pytest.raises(ValueError, match="result_record_id"):
            _request(
                status=AuditStatus.IN_PROGRESS,
                reviewer_address=REVIEWER,
                result_record_id=1,
            )


class TestTransitions:
    """Tests for apply_patch and transition_to."""

    def test_transition_to_in_progress(self) -> None:
        """Accepting sets the reviewer together with the status."""
        request = _request()
        updated = request.transition_to(AuditStatus.IN_PROGRESS, reviewer_address=REVIEWER)
        assert updated.status == AuditStatus.IN_PROGRESS
        assert updated.reviewer_address == REVIEWER
        assert request.status == AuditStatus.AVAILABLE

    def test_invalid_transition_rejected(self) -> None:
        """Available cannot jump to Completed."""
        with pytest.raises(ValueError, match="Invalid transition"):
            _request().transition_to(AuditStatus.COMPLETED, result_record_id=1)

    def test_immutable_fields_cannot_be_patched(self) -> None:
        """Submitter and repository hash never change."""
        with pytest.raises(ValueError, match="cannot be patched"):
            _request().apply_patch({"submitter_address": REVIEWER})

    def test_request_record_id_is_write_once(self) -> None:
        """A request record id cannot be replaced once assigned."""
        request = _request(request_record_id=7)
        with pytest.raises(ValueError, match="immutable"):
            request.apply_patch({"request_record_id": 8})
        assert request.apply_patch({"request_record_id": 7}).request_record_id == 7

    def test_patch_refreshes_updated_at(self) -> None:
        """updated_at moves forward on every patch."""
        request = _request(updated_at=utc_now() - timedelta(days=1))
        updated = request.apply_patch({"request_evidence_cid": "bafy"})
        assert updated.updated_at > request.updated_at


class TestCertificateStages:
    """Tests for the three certificate tiers."""

    def test_request_certificate_stages(self) -> None:
        """Request tier moves from not started to published to issued."""
        request = _request()
        assert request.request_certificate == CertificateStage.NOT_STARTED
        published = request.apply_patch({"request_evidence_cid": "bafy"})
        assert published.request_certificate == CertificateStage.EVIDENCE_PUBLISHED
        issued = published.apply_patch({"request_record_id": 1})
        assert issued.request_certificate == CertificateStage.ISSUED

    def test_owner_certificate_is_planned_after_acceptance(self) -> None:
        """The owner tier is recorded as planned, never issued."""
        request = _request()
        assert request.owner_certificate == CertificateStage.NOT_STARTED
        accepted = request.transition_to(
            AuditStatus.IN_PROGRESS, reviewer_address=REVIEWER, start_date=utc_now()
        )
        assert accepted.owner_certificate == CertificateStage.PLANNED


class TestPendingSubmission:
    """Tests for the submission checkpoint."""

    def test_checkpoint_id_is_request_id(self) -> None:
        """The checkpoint is addressed by the request id it will persist under."""
        request = _request()
        pending = PendingSubmission(request=request, evidence_cid="bafy")
        assert pending.checkpoint_id == request.id

    def test_with_attempt_and_contract(self) -> None:
        """Checkpoint updates return new instances."""
        pending = PendingSubmission(request=_request(), evidence_cid="bafy")
        updated = pending.with_attempt().with_contract("0xabc")
        assert updated.attempts == 2
        assert updated.contract_address == "0xabc"
        assert pending.attempts == 1
