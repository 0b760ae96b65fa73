"""Audit request domain model and lifecycle state machine.

The audit request is the central entity of the marketplace. It is created
by a submitter, mutated only by the lifecycle controller, and never
physically deleted: Cancelled is a terminal status, not a removal.

State Machine:
    Available -> InProgress (reviewer accepts)
    Available -> Cancelled (submitter cancels)
    PendingAcceptance -> InProgress | Cancelled (reserved; no flow enters it)
    InProgress -> Completed (reviewer submits results)
    InProgress -> Cancelled (submitter cancels)

Terminal States:
    Completed, Cancelled
"""

from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from auditmarket.domain.models.common import normalize_address, utc_now
from auditmarket.domain.models.estimation import Complexity, EstimationReport


class AuditStatus(Enum):
    """Lifecycle status of an audit request."""

    AVAILABLE = "Available"
    PENDING_ACCEPTANCE = "PendingAcceptance"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"

    def is_terminal(self) -> bool:
        """Check if no further transitions are permitted from this status."""
        return self in TERMINAL_STATUSES

    def valid_transitions(self) -> frozenset[AuditStatus]:
        """Get valid target statuses from this status.

        Returns:
            Frozenset of reachable statuses; empty for terminal statuses.
        """
        return STATE_TRANSITION_MATRIX.get(self, frozenset())


class CertificateStage(Enum):
    """Issuance stage of one certificate tier for a request.

    PLANNED marks a tier that the lifecycle documents but does not issue
    yet (the reviewer ownership certificate). It is distinct from
    NOT_STARTED so dashboards can show the gap explicitly.
    """

    NOT_STARTED = "not_started"
    EVIDENCE_PUBLISHED = "evidence_published"
    ISSUED = "issued"
    PLANNED = "planned"


TERMINAL_STATUSES: frozenset[AuditStatus] = frozenset(
    {AuditStatus.COMPLETED, AuditStatus.CANCELLED}
)

# Statuses in which a reviewer is committed to the request
REVIEWER_STATUSES: frozenset[AuditStatus] = frozenset(
    {
        AuditStatus.PENDING_ACCEPTANCE,
        AuditStatus.IN_PROGRESS,
        AuditStatus.COMPLETED,
    }
)

STATE_TRANSITION_MATRIX: dict[AuditStatus, frozenset[AuditStatus]] = {
    AuditStatus.AVAILABLE: frozenset({AuditStatus.IN_PROGRESS, AuditStatus.CANCELLED}),
    AuditStatus.PENDING_ACCEPTANCE: frozenset(
        {AuditStatus.IN_PROGRESS, AuditStatus.CANCELLED}
    ),
    AuditStatus.IN_PROGRESS: frozenset({AuditStatus.COMPLETED, AuditStatus.CANCELLED}),
    AuditStatus.COMPLETED: frozenset(),
    AuditStatus.CANCELLED: frozenset(),
}

# Fields a conditional update may patch
PATCHABLE_FIELDS: frozenset[str] = frozenset(
    {
        "status",
        "negotiated_price",
        "reviewer_address",
        "start_date",
        "estimated_completion_date",
        "results_submitted_at",
        "completed_at",
        "request_record_id",
        "request_evidence_cid",
        "request_contract_address",
        "request_transaction_id",
        "result_evidence_cid",
        "result_record_id",
        "result_contract_address",
        "result_transaction_id",
    }
)

_REPOSITORY_HASH_PATTERN = re.compile(r"^[0-9a-f]{64}$")


@dataclass(frozen=True, eq=True)
class AuditRequest:
    """An audit request moving through the marketplace lifecycle.

    Attributes:
        id: UUIDv7 identifier assigned at submission.
        project_name: Display name of the audited project.
        project_description: Free-form description.
        source_url: Where the reviewed source lives.
        repository_hash: BLAKE3 fingerprint of the anonymized snapshot (hex).
        submitter_address: Ledger address of the submitter (immutable).
        estimation: Estimation report captured at submission.
        proposed_price: Price offered to reviewers.
        reviewer_count: Number of reviewers requested, 1 to 3.
        tags: Project tags (generated plus user supplied).
        status: Lifecycle status.
        negotiated_price: Price agreed at acceptance, >= minimum price.
        reviewer_address: Set only while a reviewer is committed.
        created_at: Submission timestamp (UTC).
        updated_at: Last modification timestamp (UTC).
        start_date: When the reviewer accepted.
        estimated_completion_date: start_date plus estimated duration.
        results_submitted_at: When the reviewer submitted results (drives evidence).
        completed_at: When results were certified.
        request_record_id: Ledger token id of the RequestCertificate.
        request_evidence_cid: CID of the request evidence document.
        request_contract_address: Record contract holding the request certificate.
        request_transaction_id: Mint transaction of the request certificate.
        result_evidence_cid: CID of the result evidence document.
        result_record_id: Ledger token id of the ResultCertificate.
        result_contract_address: Record contract holding the result certificate.
        result_transaction_id: Mint transaction of the result certificate.
    """

    id: UUID
    project_name: str
    project_description: str
    source_url: str
    repository_hash: str
    submitter_address: str
    estimation: EstimationReport
    proposed_price: Decimal
    reviewer_count: int = 1
    tags: frozenset[str] = field(default_factory=frozenset)
    status: AuditStatus = AuditStatus.AVAILABLE
    negotiated_price: Decimal | None = None
    reviewer_address: str | None = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    start_date: datetime | None = None
    estimated_completion_date: datetime | None = None
    results_submitted_at: datetime | None = None
    completed_at: datetime | None = None
    request_record_id: int | None = None
    request_evidence_cid: str | None = None
    request_contract_address: str | None = None
    request_transaction_id: str | None = None
    result_evidence_cid: str | None = None
    result_record_id: int | None = None
    result_contract_address: str | None = None
    result_transaction_id: str | None = None

    MAX_PROJECT_NAME_LENGTH: int = 200
    MAX_DESCRIPTION_LENGTH: int = 5_000

    def __post_init__(self) -> None:
        """Validate audit request fields and cross-field invariants."""
        if not self.project_name or not self.project_name.strip():
            raise ValueError("project_name is required")
        if len(self.project_name) > self.MAX_PROJECT_NAME_LENGTH:
            raise ValueError(
                f"project_name exceeds maximum length of {self.MAX_PROJECT_NAME_LENGTH}"
            )
        if len(self.project_description) > self.MAX_DESCRIPTION_LENGTH:
            raise ValueError(
                f"project_description exceeds maximum length of {self.MAX_DESCRIPTION_LENGTH}"
            )
        if not _REPOSITORY_HASH_PATTERN.match(self.repository_hash):
            raise ValueError("repository_hash must be a 64-character lowercase hex digest")
        if normalize_address(self.submitter_address) != self.submitter_address:
            raise ValueError("submitter_address must be checksummed")
        if not 1 <= self.reviewer_count <= 3:
            raise ValueError("reviewer_count must be between 1 and 3")
        if self.proposed_price < self.minimum_price:
            raise ValueError("proposed_price cannot be below minimum_price")
        if self.negotiated_price is not None and self.negotiated_price < self.minimum_price:
            raise ValueError("negotiated_price cannot be below minimum_price")

        has_reviewer = self.reviewer_address is not None
        if has_reviewer != (self.status in REVIEWER_STATUSES):
            raise ValueError(
                f"reviewer_address must be set if and only if status is one of "
                f"{sorted(s.value for s in REVIEWER_STATUSES)}"
            )
        if has_reviewer and normalize_address(self.reviewer_address) != self.reviewer_address:
            raise ValueError("reviewer_address must be checksummed")
        if self.result_record_id is not None and self.status != AuditStatus.COMPLETED:
            raise ValueError("result_record_id can only exist on a Completed request")
        if self.status == AuditStatus.COMPLETED and self.result_record_id is None:
            raise ValueError("A Completed request requires result_record_id")

    @property
    def complexity(self) -> Complexity:
        return self.estimation.complexity

    @property
    def estimated_duration_days(self) -> int:
        return self.estimation.duration_days

    @property
    def minimum_price(self) -> Decimal:
        return self.estimation.minimum_price

    @property
    def agreed_price(self) -> Decimal:
        """Price the reviewer works for: negotiated if present, else proposed."""
        return self.negotiated_price if self.negotiated_price is not None else self.proposed_price

    @property
    def request_certificate(self) -> CertificateStage:
        if self.request_record_id is not None:
            return CertificateStage.ISSUED
        if self.request_evidence_cid is not None:
            return CertificateStage.EVIDENCE_PUBLISHED
        return CertificateStage.NOT_STARTED

    @property
    def owner_certificate(self) -> CertificateStage:
        """Reviewer ownership tier: documented but never minted.

        Acceptance records the commitment in the record store only, so the
        stage moves from NOT_STARTED to PLANNED and stays there.
        """
        if self.start_date is not None:
            return CertificateStage.PLANNED
        return CertificateStage.NOT_STARTED

    @property
    def result_certificate(self) -> CertificateStage:
        if self.result_record_id is not None:
            return CertificateStage.ISSUED
        if self.result_evidence_cid is not None:
            return CertificateStage.EVIDENCE_PUBLISHED
        return CertificateStage.NOT_STARTED

    def apply_patch(self, patch: dict[str, Any]) -> AuditRequest:
        """Create a new request with patched fields.

        Since AuditRequest is frozen, returns a new instance; all field
        invariants are re-validated on the result.

        Args:
            patch: Mapping of field name to new value. Only PATCHABLE_FIELDS
                are accepted.

        Returns:
            New AuditRequest with the patch applied and updated_at refreshed.

        Raises:
            ValueError: If the patch names an unknown or immutable field, or
                tries to overwrite an already-assigned request_record_id.
        """
        unknown = set(patch) - PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be patched: {sorted(unknown)}")
        if (
            "request_record_id" in patch
            and self.request_record_id is not None
            and patch["request_record_id"] != self.request_record_id
        ):
            raise ValueError("request_record_id is immutable once assigned")
        return dataclasses.replace(self, **patch, updated_at=utc_now())

    def transition_to(self, new_status: AuditStatus, **changes: Any) -> AuditRequest:
        """Create a new request in new_status, enforcing the transition matrix.

        Args:
            new_status: Target status.
            **changes: Additional patch fields applied with the transition.

        Returns:
            New AuditRequest in the target status.

        Raises:
            ValueError: If the transition is not in the matrix.
        """
        if new_status not in self.status.valid_transitions():
            raise ValueError(
                f"Invalid transition {self.status.value} -> {new_status.value}"
            )
        return self.apply_patch({"status": new_status, **changes})


@dataclass(frozen=True)
class PendingSubmission:
    """Checkpoint of a submission whose evidence is published but not minted.

    Holds everything needed to finish the submission without re-packaging:
    the fully built request and the content identifier of its evidence.

    Attributes:
        request: The request as it will be persisted (no record id yet).
        evidence_cid: CID of the already-published request evidence.
        contract_address: Record contract deployed for the request, if any.
        created_at: When the checkpoint was taken.
        attempts: Number of mint attempts made so far.
    """

    request: AuditRequest
    evidence_cid: str
    contract_address: str | None = None
    created_at: datetime = field(default_factory=utc_now)
    attempts: int = 1

    @property
    def checkpoint_id(self) -> UUID:
        return self.request.id

    def with_contract(self, contract_address: str) -> PendingSubmission:
        return dataclasses.replace(self, contract_address=contract_address)

    def with_attempt(self) -> PendingSubmission:
        return dataclasses.replace(self, attempts=self.attempts + 1)
