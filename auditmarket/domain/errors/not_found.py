"""Lookup errors for audit requests and pending submissions."""

from __future__ import annotations

from uuid import UUID

from auditmarket.domain.exceptions import AuditMarketError


class AuditRequestNotFoundError(AuditMarketError):
    """Raised when an audit request does not exist.

    Attributes:
        request_id: The identifier that was looked up.
    """

    def __init__(self, request_id: UUID) -> None:
        self.request_id = request_id
        super().__init__(f"Audit request not found: {request_id}")


class PendingSubmissionNotFoundError(AuditMarketError):
    """Raised when no interrupted submission exists for a checkpoint id."""

    def __init__(self, checkpoint_id: UUID) -> None:
        self.checkpoint_id = checkpoint_id
        super().__init__(f"No pending submission for checkpoint: {checkpoint_id}")
