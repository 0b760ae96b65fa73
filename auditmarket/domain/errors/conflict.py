"""State transition guard errors for the audit lifecycle.

These errors signal that a request is no longer in the state the caller
expected. The caller should re-fetch the request and decide whether the
action still makes sense; the lifecycle controller never retries them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from auditmarket.domain.exceptions import AuditMarketError

if TYPE_CHECKING:
    from auditmarket.domain.models.audit_request import AuditStatus


class ConflictError(AuditMarketError):
    """Raised when a conditional update loses against a concurrent change.

    The persistence layer's conditional update (status must still equal the
    expected prior value) is the only concurrency guard. A failed guard is
    reported here and surfaced to the user as a 409.

    Attributes:
        request_id: Audit request that was being modified.
        expected_status: Status the caller expected to find.
        actual_status: Status actually found (None when unknown).
        operation: Name of the operation that lost the race.
    """

    def __init__(
        self,
        request_id: UUID,
        expected_status: AuditStatus,
        actual_status: AuditStatus | None = None,
        operation: str = "transition",
        message: str | None = None,
    ) -> None:
        """Initialize conflict error.

        Args:
            request_id: Audit request being modified.
            expected_status: Status expected by the conditional update.
            actual_status: Status found, if known.
            operation: Operation that failed.
            message: Overrides the generated message.
        """
        self.request_id = request_id
        self.expected_status = expected_status
        self.actual_status = actual_status
        self.operation = operation
        if message is None:
            found = f" Found: {actual_status.value}." if actual_status is not None else ""
            message = (
                f"Audit request {request_id} is no longer {expected_status.value} "
                f"during {operation}.{found}"
            )
        super().__init__(message)


class InvalidStateTransitionError(ConflictError):
    """Raised when a transition is not permitted by the transition matrix.

    Attributes:
        from_status: Current status of the request.
        to_status: Attempted target status.
        allowed_transitions: Valid target statuses from the current one.
    """

    def __init__(
        self,
        request_id: UUID,
        from_status: AuditStatus,
        to_status: AuditStatus,
        allowed_transitions: list[AuditStatus] | None = None,
    ) -> None:
        """Initialize invalid state transition error.

        Args:
            request_id: Audit request being modified.
            from_status: Current status.
            to_status: Attempted target status.
            allowed_transitions: Valid statuses from the current one.
        """
        self.from_status = from_status
        self.to_status = to_status
        self.allowed_transitions = allowed_transitions or []
        super().__init__(
            request_id=request_id,
            expected_status=from_status,
            actual_status=from_status,
            operation=f"transition_to_{to_status.name.lower()}",
            message=(
                f"Invalid state transition for audit request {request_id}: "
                f"{from_status.value} -> {to_status.value}. Valid transitions: "
                f"{sorted(s.value for s in self.allowed_transitions)}"
            ),
        )
