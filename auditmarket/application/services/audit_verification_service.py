"""Audit verification service.

Cross-checks a Completed request against the two external systems that
anchor it:

1. The result evidence resolves from the content store, names this
   request, and links back to the request certificate
   (original_audit_request.request_nft_id == request_record_id).
2. The ledger records point at the stored CIDs (tokenURI == ipfs://<cid>)
   and the result record was minted to the assigned reviewer.

Unreachable collaborators are reported as mismatches, not raised, so a
verification page always renders.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from auditmarket.application.ports.ledger import LedgerProtocol
from auditmarket.application.ports.record_store import AuditRecordStoreProtocol
from auditmarket.application.services.base import LoggingMixin
from auditmarket.application.services.certificate_minter import token_uri_for
from auditmarket.application.services.metadata_resolver import MetadataResolver
from auditmarket.domain.errors import (
    AuditRequestNotFoundError,
    ConflictError,
    ExternalServiceError,
)
from auditmarket.domain.models.audit_request import AuditRequest, AuditStatus
from auditmarket.domain.models.certificate import topic_to_address
from auditmarket.domain.models.common import same_address
from auditmarket.domain.models.evidence import request_id_of


@dataclass(frozen=True)
class VerificationReport:
    """Outcome of verifying a Completed request.

    Attributes:
        request_id: The verified request.
        evidence_verified: Result evidence resolved and links correctly.
        ledger_verified: Ledger records point at the stored CIDs.
        mismatches: Human-readable description of every failed check.
    """

    request_id: UUID
    evidence_verified: bool
    ledger_verified: bool
    result_evidence_cid: str | None = None
    result_record_id: int | None = None
    mismatches: tuple[str, ...] = field(default_factory=tuple)

    @property
    def verified(self) -> bool:
        return self.evidence_verified and self.ledger_verified


class AuditVerificationService(LoggingMixin):
    """Verifies the certificate chain of completed audits."""

    def __init__(
        self,
        record_store: AuditRecordStoreProtocol,
        resolver: MetadataResolver,
        ledger: LedgerProtocol,
    ) -> None:
        self._store = record_store
        self._resolver = resolver
        self._ledger = ledger
        self._init_logger(component="verification")

    async def verify(self, request_id: UUID) -> VerificationReport:
        """Verify a Completed request.

        Raises:
            AuditRequestNotFoundError: If the request does not exist.
            ConflictError: If the request is not Completed.
        """
        log = self._log_operation("verify", request_id=str(request_id))
        request = await self._store.get(request_id)
        if request is None:
            raise AuditRequestNotFoundError(request_id)
        if request.status != AuditStatus.COMPLETED:
            raise ConflictError(
                request_id=request_id,
                expected_status=AuditStatus.COMPLETED,
                actual_status=request.status,
                operation="verify",
            )

        evidence_mismatches = await self._check_evidence(request)
        ledger_mismatches = await self._check_ledger(request)
        report = VerificationReport(
            request_id=request_id,
            evidence_verified=not evidence_mismatches,
            ledger_verified=not ledger_mismatches,
            result_evidence_cid=request.result_evidence_cid,
            result_record_id=request.result_record_id,
            mismatches=tuple(evidence_mismatches + ledger_mismatches),
        )
        log.info(
            "verification_completed",
            verified=report.verified,
            mismatches=len(report.mismatches),
        )
        return report

    async def _check_evidence(self, request: AuditRequest) -> list[str]:
        if request.result_evidence_cid is None:
            return ["result evidence CID is missing"]
        try:
            resolved = await self._resolver.resolve(request.result_evidence_cid)
        except ExternalServiceError as exc:
            return [f"result evidence unavailable: {exc.reason}"]

        mismatches = []
        if resolved.kind != "result":
            mismatches.append(f"evidence kind is {resolved.kind!r}, expected 'result'")
        try:
            document_request_id = request_id_of(resolved.document)
        except ValueError:
            document_request_id = None
        if document_request_id != request.id:
            mismatches.append(
                f"evidence names request {document_request_id}, expected {request.id}"
            )
        nft_id = resolved.summary.get("request_nft_id")
        if nft_id != str(request.request_record_id):
            mismatches.append(
                f"evidence request_nft_id {nft_id!r} does not match "
                f"request record {request.request_record_id}"
            )
        return mismatches

    async def _check_ledger(self, request: AuditRequest) -> list[str]:
        mismatches = []
        checks = (
            ("request", request.request_contract_address, request.request_record_id,
             request.request_evidence_cid),
            ("result", request.result_contract_address, request.result_record_id,
             request.result_evidence_cid),
        )
        for label, contract, record_id, cid in checks:
            if contract is None or record_id is None or cid is None:
                mismatches.append(f"{label} certificate reference is incomplete")
                continue
            try:
                uri = await self._ledger.token_uri(contract, record_id)
            except ExternalServiceError as exc:
                mismatches.append(f"{label} record unreadable: {exc.reason}")
                continue
            if uri != token_uri_for(cid):
                mismatches.append(
                    f"{label} record {record_id} points at {uri!r}, expected {token_uri_for(cid)!r}"
                )

        if request.result_contract_address and request.result_record_id is not None:
            try:
                logs = await self._ledger.get_logs(
                    request.result_contract_address, recipient=request.reviewer_address
                )
            except ExternalServiceError as exc:
                mismatches.append(f"result transfer logs unreadable: {exc.reason}")
            else:
                owned = any(
                    len(entry.topics) >= 4
                    and int(entry.topics[3], 16) == request.result_record_id
                    and same_address(topic_to_address(entry.topics[2]), request.reviewer_address)
                    for entry in logs
                )
                if not owned:
                    mismatches.append(
                        f"result record {request.result_record_id} was not minted to the reviewer"
                    )
        return mismatches
