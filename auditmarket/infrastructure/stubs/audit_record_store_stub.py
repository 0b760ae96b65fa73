"""In-memory audit record store for development and testing.

Conditional updates are serialized with an asyncio.Lock, which gives the
same compare-and-set semantics as PostgreSQL's
UPDATE ... WHERE status = :expected RETURNING.
"""

from __future__ import annotations

import asyncio
from typing import Any
from uuid import UUID

from auditmarket.domain.errors import (
    AuditRequestNotFoundError,
    ConflictError,
    ExternalServiceError,
    InvalidStateTransitionError,
)
from auditmarket.domain.models.audit_request import (
    AuditRequest,
    AuditStatus,
    PendingSubmission,
)
from auditmarket.domain.models.finding import Finding


class InMemoryAuditRecordStore:
    """In-memory implementation of AuditRecordStoreProtocol.

    Example:
        >>> store = InMemoryAuditRecordStore()
        >>> await store.create(request)
        >>> await store.conditional_update(request.id, AuditStatus.AVAILABLE, patch)
    """

    def __init__(self) -> None:
        """Initialize empty store."""
        self._requests: dict[UUID, AuditRequest] = {}
        self._findings: dict[UUID, list[Finding]] = {}
        self._pending: dict[UUID, PendingSubmission] = {}
        self._lock = asyncio.Lock()
        self._unavailable_reason: str | None = None

    def clear(self) -> None:
        """Clear all data (for testing)."""
        self._requests.clear()
        self._findings.clear()
        self._pending.clear()
        self._unavailable_reason = None

    def set_unavailable(self, reason: str | None = "connection refused") -> None:
        """Make every call fail with ExternalServiceError (None restores)."""
        self._unavailable_reason = reason

    def _check_available(self, step: str) -> None:
        if self._unavailable_reason is not None:
            raise ExternalServiceError(
                step=step,
                service="record_store",
                reason=self._unavailable_reason,
            )

    async def create(self, request: AuditRequest) -> AuditRequest:
        self._check_available("create")
        async with self._lock:
            if request.id in self._requests:
                raise ValueError(f"Audit request {request.id} already exists")
            self._requests[request.id] = request
            self._findings.setdefault(request.id, [])
        return request

    async def get(self, request_id: UUID) -> AuditRequest | None:
        self._check_available("get")
        # Yield like a real round trip so concurrent callers interleave
        await asyncio.sleep(0)
        return self._requests.get(request_id)

    async def conditional_update(
        self,
        request_id: UUID,
        expected_status: AuditStatus,
        patch: dict[str, Any],
    ) -> AuditRequest:
        self._check_available("conditional_update")
        async with self._lock:
            current = self._requests.get(request_id)
            if current is None:
                raise AuditRequestNotFoundError(request_id)
            if current.status != expected_status:
                raise ConflictError(
                    request_id=request_id,
                    expected_status=expected_status,
                    actual_status=current.status,
                    operation="conditional_update",
                )
            new_status = patch.get("status")
            if new_status is not None and new_status not in current.status.valid_transitions():
                raise InvalidStateTransitionError(
                    request_id=request_id,
                    from_status=current.status,
                    to_status=new_status,
                    allowed_transitions=list(current.status.valid_transitions()),
                )
            updated = current.apply_patch(patch)
            self._requests[request_id] = updated
            return updated

    async def list_requests(
        self,
        status: AuditStatus | None = None,
        reviewer_address: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[AuditRequest], int]:
        self._check_available("list_requests")
        matches = [
            r
            for r in self._requests.values()
            if (status is None or r.status == status)
            and (
                reviewer_address is None
                or (r.reviewer_address or "").lower() == reviewer_address.lower()
            )
        ]
        matches.sort(key=lambda r: (r.created_at, str(r.id)), reverse=True)
        return matches[offset : offset + limit], len(matches)

    async def add_findings(self, request_id: UUID, findings: list[Finding]) -> None:
        self._check_available("add_findings")
        async with self._lock:
            if request_id not in self._requests:
                raise AuditRequestNotFoundError(request_id)
            existing = self._findings.setdefault(request_id, [])
            known = {f.id for f in existing}
            for finding in findings:
                if finding.id in known:
                    raise ValueError(f"Finding {finding.id} already exists")
            existing.extend(findings)

    async def list_findings(self, request_id: UUID) -> list[Finding]:
        self._check_available("list_findings")
        return sorted(self._findings.get(request_id, []), key=lambda f: (f.created_at, str(f.id)))

    async def save_pending_submission(self, pending: PendingSubmission) -> None:
        self._check_available("save_pending_submission")
        async with self._lock:
            for held in self._pending.values():
                # evidence_cid is unique across checkpoints, as in PostgreSQL
                if (
                    held.evidence_cid == pending.evidence_cid
                    and held.checkpoint_id != pending.checkpoint_id
                ):
                    raise ConflictError(
                        request_id=pending.request.id,
                        expected_status=AuditStatus.AVAILABLE,
                        operation="checkpoint_submission",
                        message=(
                            f"Evidence {pending.evidence_cid} is already checkpointed "
                            f"as {held.checkpoint_id}"
                        ),
                    )
            self._pending[pending.checkpoint_id] = pending

    async def get_pending_submission(self, checkpoint_id: UUID) -> PendingSubmission | None:
        self._check_available("get_pending_submission")
        return self._pending.get(checkpoint_id)

    async def find_pending_submission(self, evidence_cid: str) -> PendingSubmission | None:
        self._check_available("find_pending_submission")
        for pending in self._pending.values():
            if pending.evidence_cid == evidence_cid:
                return pending
        return None

    async def delete_pending_submission(self, checkpoint_id: UUID) -> None:
        self._check_available("delete_pending_submission")
        self._pending.pop(checkpoint_id, None)

    @property
    def pending_submissions(self) -> list[PendingSubmission]:
        """Checkpoints currently held (for assertions)."""
        return list(self._pending.values())
