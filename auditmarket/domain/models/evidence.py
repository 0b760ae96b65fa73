"""Evidence document models (tagged union) and canonical serialization.

Evidence documents are immutable, content-addressed JSON documents. Each
kind has a fixed, versioned field set so that two semantically identical
inputs serialize to byte-identical output and therefore to the same
content identifier.

Canonical form:
- keys sorted, compact separators, UTF-8 without ASCII escaping
- decimals rendered as strings, never floats
- timestamps rendered as ISO 8601 with a Z suffix
- no wall-clock values: every timestamp comes from a persisted field

Kinds:
    RequestEvidence: published at submission, anchors the RequestCertificate
    ResultEvidence: published at completion, anchors the ResultCertificate
    ProfileEvidence: reviewer or submitter profile token
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Union
from uuid import UUID

from auditmarket.domain.models.audit_request import AuditRequest
from auditmarket.domain.models.finding import Finding, severity_breakdown

SCHEMA_VERSION = 1
DETAILED_FINDINGS_LIMIT = 10
FINDING_EXCERPT_LENGTH = 200


class EvidenceKind(Enum):
    """Tag of an evidence document."""

    REQUEST = "request"
    RESULT = "result"
    PROFILE = "profile"


@dataclass(frozen=True)
class PlatformInfo:
    """Platform block embedded in every evidence document."""

    name: str = "AuditMarket"
    network: str = "ApeChain Testnet"
    chain_id: int = 33111
    gateway_url: str = "https://gateway.pinata.cloud/ipfs"

    def to_dict(self) -> dict[str, Any]:
        return {"platform": self.name, "network": self.network, "chain_id": self.chain_id}


def isoformat_z(value: datetime | None) -> str | None:
    """Render a datetime as ISO 8601 with Z suffix."""
    if value is None:
        return None
    return value.isoformat().replace("+00:00", "Z")


def canonical_json(document: dict[str, Any]) -> bytes:
    """Serialize a document to its canonical byte form.

    Raises:
        TypeError: If the document contains floats or non-JSON values.
    """
    _reject_floats(document)
    return json.dumps(
        document,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    ).encode("utf-8")


def _reject_floats(value: Any) -> None:
    if isinstance(value, float):
        raise TypeError("Evidence documents must not contain floats; use strings")
    if isinstance(value, dict):
        for item in value.values():
            _reject_floats(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _reject_floats(item)


def _money(value: Decimal | None) -> str | None:
    return None if value is None else str(value)


def _slug(text: str) -> str:
    return "-".join(text.lower().split())


def _request_section(request: AuditRequest, record_id: int | None = None) -> dict[str, Any]:
    section: dict[str, Any] = {
        "project_name": request.project_name,
        "project_description": request.project_description,
        "source_url": request.source_url,
        "repository_hash": request.repository_hash,
        "complexity": request.complexity.value,
        "estimated_duration": request.estimation.duration_label,
        "estimated_duration_days": request.estimated_duration_days,
        "proposed_price": _money(request.proposed_price),
        "minimum_price": _money(request.minimum_price),
        "reviewer_count": request.reviewer_count,
        "submitter_address": request.submitter_address,
        "tags": sorted(request.tags),
    }
    if record_id is not None:
        section["request_nft_id"] = str(record_id)
    return section


@dataclass(frozen=True)
class RequestEvidence:
    """Evidence published when an audit request is submitted.

    Excludes the store-assigned id and creation time, so a retried
    submission of the same request content yields the same content
    identifier.
    """

    kind: ClassVar[EvidenceKind] = EvidenceKind.REQUEST

    request: AuditRequest
    platform: PlatformInfo = field(default_factory=PlatformInfo)

    @property
    def document_name(self) -> str:
        return f"audit-request-{_slug(self.request.project_name)}.json"

    def to_document(self) -> dict[str, Any]:
        request = self.request
        return {
            "schema_version": SCHEMA_VERSION,
            "kind": self.kind.value,
            "name": f"Audit Request: {request.project_name}",
            "description": request.project_description,
            "external_url": request.source_url,
            "audit_request": _request_section(request),
            "estimation": {
                "reasoning": request.estimation.reasoning,
                "risk_factors": list(request.estimation.risk_factors),
                "recommendations": list(request.estimation.recommendations),
                "audit_scope": request.estimation.audit_scope,
                "estimated_effort": request.estimation.estimated_effort,
                "source": request.estimation.source.value,
            },
            "platform_info": self.platform.to_dict(),
            "attributes": [
                {"trait_type": "Project Name", "value": request.project_name},
                {"trait_type": "Repository Hash", "value": request.repository_hash},
                {"trait_type": "Complexity", "value": request.complexity.value},
                {"trait_type": "Estimated Duration", "value": request.estimation.duration_label},
                {"trait_type": "Proposed Price", "value": _money(request.proposed_price)},
                {"trait_type": "Reviewer Count", "value": str(request.reviewer_count)},
                {"trait_type": "Project Tags", "value": ", ".join(sorted(request.tags))},
                {"trait_type": "Platform", "value": self.platform.name},
                {"trait_type": "Certificate Type", "value": "Audit Request"},
            ],
        }


@dataclass(frozen=True)
class ResultSubmission:
    """Material a reviewer submits with the results of an audit.

    Attributes:
        contract_hash: Hash of the audited contract bytecode or sources.
        audit_notes: Reviewer's summary notes.
        static_analysis_reports: Names of attached static analysis reports.
        evidence_file_cids: CIDs of separately uploaded evidence files.
        reviewer_name: Pseudonym shown on the certificate.
        checked_vulnerabilities: Taxonomy categories the reviewer checked.
    """

    contract_hash: str = ""
    audit_notes: str = ""
    static_analysis_reports: tuple[str, ...] = field(default_factory=tuple)
    evidence_file_cids: tuple[str, ...] = field(default_factory=tuple)
    reviewer_name: str = "Anonymous Reviewer"
    checked_vulnerabilities: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ResultEvidence:
    """Evidence published when a reviewer submits results.

    original_audit_request.request_nft_id always carries the request's
    record id, which links the result certificate to the request
    certificate.
    """

    kind: ClassVar[EvidenceKind] = EvidenceKind.RESULT

    request: AuditRequest
    findings: tuple[Finding, ...]
    submission: ResultSubmission
    submitted_at: datetime
    platform: PlatformInfo = field(default_factory=PlatformInfo)

    def __post_init__(self) -> None:
        if self.request.request_record_id is None:
            raise ValueError("Result evidence requires the request's record id")
        if self.request.reviewer_address is None:
            raise ValueError("Result evidence requires an assigned reviewer")

    @property
    def document_name(self) -> str:
        return f"audit-result-{_slug(self.request.project_name)}.json"

    def _ordered_findings(self) -> list[Finding]:
        return sorted(self.findings, key=lambda f: (f.created_at, str(f.id)))

    def to_document(self) -> dict[str, Any]:
        request = self.request
        submission = self.submission
        findings = self._ordered_findings()
        breakdown = severity_breakdown(findings)
        gateway = self.platform.gateway_url.rstrip("/")
        return {
            "schema_version": SCHEMA_VERSION,
            "kind": self.kind.value,
            "name": f"Audit Result Certificate: {request.project_name}",
            "description": (
                f"Audit result certificate for {request.project_name}, linked to "
                f"request record #{request.request_record_id}."
            ),
            "external_url": request.source_url,
            "audit_result": {
                "audit_request_id": str(request.id),
                "project_name": request.project_name,
                "completion_date": isoformat_z(self.submitted_at),
                "reviewer_address": request.reviewer_address,
                "reviewer_name": submission.reviewer_name,
                "status": "completed",
            },
            "original_audit_request": _request_section(request, request.request_record_id),
            "auditor_info": {
                "wallet": request.reviewer_address,
                "name": submission.reviewer_name,
                "accepted_price": _money(request.agreed_price),
                "start_date": isoformat_z(request.start_date),
                "estimated_completion_date": isoformat_z(request.estimated_completion_date),
                "actual_completion_date": isoformat_z(self.submitted_at),
            },
            "audit_results_summary": {
                "total_findings": len(findings),
                "total_vulnerabilities": len(submission.checked_vulnerabilities),
                "severity_breakdown": breakdown,
                "contract_hash": submission.contract_hash,
                "audit_notes": submission.audit_notes,
                "static_analysis_reports": len(submission.static_analysis_reports),
                "evidence_files": len(submission.evidence_file_cids),
            },
            "ipfs_evidence": {
                "evidence_file_hashes": list(submission.evidence_file_cids),
                "total_evidence_files": len(submission.evidence_file_cids),
                "individual_files": [
                    f"{gateway}/{cid}" for cid in submission.evidence_file_cids
                ],
            },
            "detailed_findings": [
                _finding_excerpt(finding) for finding in findings[:DETAILED_FINDINGS_LIMIT]
            ],
            "platform_info": self.platform.to_dict(),
            "attributes": [
                {"trait_type": "Project Name", "value": request.project_name},
                {"trait_type": "Reviewer Name", "value": submission.reviewer_name},
                {"trait_type": "Total Findings", "value": str(len(findings))},
                {"trait_type": "Critical Findings", "value": str(breakdown["critical"])},
                {"trait_type": "High Findings", "value": str(breakdown["high"])},
                {"trait_type": "Medium Findings", "value": str(breakdown["medium"])},
                {"trait_type": "Low Findings", "value": str(breakdown["low"])},
                {"trait_type": "Complexity", "value": request.complexity.value},
                {"trait_type": "Accepted Price", "value": _money(request.agreed_price)},
                {"trait_type": "Request Record", "value": str(request.request_record_id)},
                {"trait_type": "Platform", "value": self.platform.name},
                {"trait_type": "Certificate Type", "value": "Audit Result"},
            ],
        }


def _finding_excerpt(finding: Finding) -> dict[str, Any]:
    description = finding.description
    if len(description) > FINDING_EXCERPT_LENGTH:
        description = description[:FINDING_EXCERPT_LENGTH] + "..."
    return {
        "title": finding.title,
        "severity": finding.severity.value,
        "category": finding.category.value,
        "file_name": finding.file_name,
        "line_number": finding.line_number,
        "description": description,
    }


class ProfileRole(Enum):
    """Which side of the marketplace a profile belongs to."""

    SUBMITTER = "submitter"
    REVIEWER = "reviewer"


@dataclass(frozen=True)
class ProfileEvidence:
    """Evidence backing a profile token for a reviewer or submitter.

    Attributes:
        role: Marketplace side.
        address: Ledger address of the profile owner.
        display_name: Pseudonym.
        member_since: When the profile was created.
        completed_audits: Number of completed audits.
        total_findings: Findings reported (reviewers) or received (submitters).
        specializations: Focus areas, sorted in the document.
    """

    kind: ClassVar[EvidenceKind] = EvidenceKind.PROFILE

    role: ProfileRole
    address: str
    display_name: str
    member_since: datetime
    completed_audits: int = 0
    total_findings: int = 0
    specializations: frozenset[str] = field(default_factory=frozenset)
    platform: PlatformInfo = field(default_factory=PlatformInfo)

    @property
    def document_name(self) -> str:
        return f"profile-{self.role.value}-{self.address.lower()}.json"

    def to_document(self) -> dict[str, Any]:
        return {
            "schema_version": SCHEMA_VERSION,
            "kind": self.kind.value,
            "name": f"{self.platform.name} {self.role.value.title()} Profile: {self.display_name}",
            "profile": {
                "role": self.role.value,
                "address": self.address,
                "display_name": self.display_name,
                "member_since": isoformat_z(self.member_since),
                "completed_audits": self.completed_audits,
                "total_findings": self.total_findings,
                "specializations": sorted(self.specializations),
            },
            "platform_info": self.platform.to_dict(),
            "attributes": [
                {"trait_type": "Role", "value": self.role.value},
                {"trait_type": "Completed Audits", "value": str(self.completed_audits)},
                {"trait_type": "Platform", "value": self.platform.name},
            ],
        }


EvidenceDocument = Union[RequestEvidence, ResultEvidence, ProfileEvidence]


def request_id_of(document: dict[str, Any]) -> UUID | None:
    """Extract the audit request id from a result document, if present."""
    value = document.get("audit_result", {}).get("audit_request_id")
    return UUID(value) if value else None
