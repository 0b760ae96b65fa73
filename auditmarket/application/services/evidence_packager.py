"""Evidence packager: canonical documents into content-addressed storage.

The packager renders an evidence document to its canonical bytes and
writes it to the content store, returning the content identifier. Two
semantically identical documents render byte-identically and therefore
map to the same identifier.

The packager fails loudly: an unpublished evidence document must never
be referenced by a certificate, so there is no fallback path.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from auditmarket.application.ports.content_store import ContentStoreProtocol
from auditmarket.application.services.base import LoggingMixin
from auditmarket.domain.errors import ExternalServiceError
from auditmarket.domain.models.audit_request import AuditRequest
from auditmarket.domain.models.evidence import (
    EvidenceDocument,
    PlatformInfo,
    ProfileEvidence,
    ProfileRole,
    RequestEvidence,
    ResultEvidence,
    ResultSubmission,
    canonical_json,
)
from auditmarket.domain.models.finding import Finding
from auditmarket.infrastructure.monitoring.metrics import (
    PipelineMetrics,
    get_pipeline_metrics,
)

PACKAGE_STEP = "package_evidence"


class EvidencePackager(LoggingMixin):
    """Builds and publishes evidence documents.

    Example:
        >>> packager = EvidencePackager(content_store, platform)
        >>> cid = await packager.package(packager.build_request_evidence(request))
    """

    def __init__(
        self,
        content_store: ContentStoreProtocol,
        platform: PlatformInfo | None = None,
        metrics: PipelineMetrics | None = None,
    ) -> None:
        """Initialize the packager.

        Args:
            content_store: Content-addressed store receiving the documents.
            platform: Platform block embedded in every document.
            metrics: Pipeline metrics (defaults to the process collector).
        """
        self._content_store = content_store
        self._platform = platform or PlatformInfo()
        self._metrics = metrics or get_pipeline_metrics()
        self._init_logger(component="evidence")

    @property
    def platform(self) -> PlatformInfo:
        return self._platform

    def gateway_url(self, cid: str) -> str:
        return self._content_store.gateway_url(cid)

    def build_request_evidence(self, request: AuditRequest) -> RequestEvidence:
        return RequestEvidence(request=request, platform=self._platform)

    def build_result_evidence(
        self,
        request: AuditRequest,
        findings: Iterable[Finding],
        submission: ResultSubmission,
        submitted_at: datetime,
    ) -> ResultEvidence:
        """Build result evidence linked to the request certificate.

        Args:
            request: The InProgress request, with request_record_id set.
            findings: Findings reported with the results.
            submission: Reviewer-supplied result material.
            submitted_at: Persisted results_submitted_at timestamp.

        Raises:
            ValueError: If the request has no record id or no reviewer.
        """
        return ResultEvidence(
            request=request,
            findings=tuple(findings),
            submission=submission,
            submitted_at=submitted_at,
            platform=self._platform,
        )

    def build_profile_evidence(
        self,
        role: ProfileRole,
        address: str,
        display_name: str,
        member_since: datetime,
        completed_audits: int = 0,
        total_findings: int = 0,
        specializations: Iterable[str] = (),
    ) -> ProfileEvidence:
        return ProfileEvidence(
            role=role,
            address=address,
            display_name=display_name,
            member_since=member_since,
            completed_audits=completed_audits,
            total_findings=total_findings,
            specializations=frozenset(specializations),
            platform=self._platform,
        )

    def render(self, document: EvidenceDocument) -> bytes:
        """Canonical bytes of a document, exactly as they are published."""
        return canonical_json(document.to_document())

    async def package(self, document: EvidenceDocument, name: str | None = None) -> str:
        """Publish a document and return its content identifier.

        Args:
            document: Typed evidence document.
            name: Document name stored as metadata (defaults per kind).

        Returns:
            Content identifier of the published document.

        Raises:
            ExternalServiceError: step="package_evidence" when the content
                store is unreachable or rejects the write.
        """
        document_name = name or document.document_name
        log = self._log_operation(
            "package",
            kind=document.kind.value,
            document_name=document_name,
        )
        payload = self.render(document)

        try:
            cid = await self._content_store.put(payload, document_name)
        except ExternalServiceError as exc:
            self._metrics.record_pipeline_failure(PACKAGE_STEP)
            log.error("evidence_publish_failed", service=exc.service, reason=exc.reason)
            raise exc.with_context(PACKAGE_STEP) from exc

        self._metrics.record_evidence_published(document.kind.value)
        log.info("evidence_published", cid=cid, size_bytes=len(payload))
        return cid
