"""Audit record store port.

This module defines the abstract interface for persisting audit requests,
their findings, and interrupted submissions.

Developer Golden Rules:
1. CONDITIONAL UPDATES ONLY - every mutation of an existing request goes
   through conditional_update(); it is the sole concurrency guard
2. FAIL LOUD - stores raise ExternalServiceError when unreachable
3. NEVER DELETE REQUESTS - Cancelled is a status, not a removal
4. APPEND-ONLY FINDINGS - findings are inserted, never rewritten
"""

from __future__ import annotations

from typing import Any, Protocol
from uuid import UUID

from auditmarket.domain.models.audit_request import (
    AuditRequest,
    AuditStatus,
    PendingSubmission,
)
from auditmarket.domain.models.finding import Finding


class AuditRecordStoreProtocol(Protocol):
    """Protocol for audit request persistence.

    Implementations may use PostgreSQL, in-memory storage, or other
    backends, but must implement conditional_update atomically.

    Methods:
        create: Store a new audit request
        get: Retrieve an audit request by id
        conditional_update: Patch a request only if its status matches
        list_requests: Dashboard listing by status and reviewer
        add_findings: Append findings to a request
        list_findings: Findings of a request
        save_pending_submission: Checkpoint a submission awaiting its mint
        get_pending_submission: Load a checkpoint by id
        find_pending_submission: Load a checkpoint by evidence CID
        delete_pending_submission: Drop a checkpoint once persisted
    """

    async def create(self, request: AuditRequest) -> AuditRequest:
        """Store a new audit request.

        Args:
            request: The request to store.

        Returns:
            The stored request.

        Raises:
            ValueError: If a request with the same id already exists.
            ExternalServiceError: If the store is unreachable.
        """
        ...

    async def get(self, request_id: UUID) -> AuditRequest | None:
        """Retrieve an audit request by id.

        Returns:
            The request if found, None otherwise.
        """
        ...

    async def conditional_update(
        self,
        request_id: UUID,
        expected_status: AuditStatus,
        patch: dict[str, Any],
    ) -> AuditRequest:
        """Atomically patch a request if its status still equals expected_status.

        The patch may include a new "status". When it does, the transition
        must be permitted by the transition matrix.

        Args:
            request_id: The request to update.
            expected_status: Status the request must currently have.
            patch: Field name to new value mapping.

        Returns:
            The updated request.

        Raises:
            AuditRequestNotFoundError: If the request does not exist.
            ConflictError: If the current status differs from expected_status.
            InvalidStateTransitionError: If the patched status is not reachable.
            ExternalServiceError: If the store is unreachable.
        """
        ...

    async def list_requests(
        self,
        status: AuditStatus | None = None,
        reviewer_address: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[AuditRequest], int]:
        """List requests filtered by status and/or reviewer, newest first.

        Returns:
            Tuple of (page of requests, total count matching the filters).
        """
        ...

    async def add_findings(self, request_id: UUID, findings: list[Finding]) -> None:
        """Append findings to a request.

        Raises:
            AuditRequestNotFoundError: If the request does not exist.
            ValueError: If a finding id already exists.
        """
        ...

    async def list_findings(self, request_id: UUID) -> list[Finding]:
        """Return a request's findings in creation order."""
        ...

    async def save_pending_submission(self, pending: PendingSubmission) -> None:
        """Create or replace the checkpoint for pending.checkpoint_id."""
        ...

    async def get_pending_submission(self, checkpoint_id: UUID) -> PendingSubmission | None:
        """Load a checkpoint by id, None if absent."""
        ...

    async def find_pending_submission(self, evidence_cid: str) -> PendingSubmission | None:
        """Load the checkpoint whose evidence has the given CID, None if absent."""
        ...

    async def delete_pending_submission(self, checkpoint_id: UUID) -> None:
        """Remove a checkpoint. Removing a missing checkpoint is a no-op."""
        ...
