"""Metadata resolver for content-addressed evidence documents.

Accepts an ipfs:// URI, a gateway URL or a bare content identifier,
fetches the document through the content store and normalizes it into a
flat summary for display and verification. Missing fields get display
defaults; documents that are not recognised evidence resolve with kind
"unknown" rather than failing.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from auditmarket.application.ports.content_store import ContentStoreProtocol
from auditmarket.application.services.base import LoggingMixin
from auditmarket.domain.errors import ExternalServiceError, ValidationError
from auditmarket.domain.models.evidence import EvidenceKind

RESOLVE_STEP = "resolve_metadata"
UNKNOWN_KIND = "unknown"

CID_V0_PATTERN = re.compile(r"^Qm[1-9A-HJ-NP-Za-km-z]{44}$")
CID_V1_PATTERN = re.compile(r"^b[A-Za-z2-7]{58}$")
_GATEWAY_PATH_PATTERN = re.compile(r"/ipfs/([^/?#]+)")

DEFAULT_COMPLEXITY = "Medium"
DEFAULT_PLATFORM = "AuditMarket"


def is_valid_cid(value: str) -> bool:
    """True for a base58 CIDv0 or a base32 CIDv1."""
    return bool(CID_V0_PATTERN.match(value) or CID_V1_PATTERN.match(value))


def parse_content_reference(reference: str) -> str:
    """Extract the content identifier from a URI, gateway URL or bare CID.

    Raises:
        ValidationError: If no well-formed CID can be extracted.
    """
    text = (reference or "").strip()
    if text.lower().startswith("ipfs://"):
        text = text[len("ipfs://"):].removeprefix("ipfs/").split("/", 1)[0]
    elif text.lower().startswith(("http://", "https://")):
        match = _GATEWAY_PATH_PATTERN.search(text)
        if match is None:
            raise ValidationError("cid", f"not a gateway URL: {reference!r}")
        text = match.group(1)
    if not is_valid_cid(text):
        raise ValidationError("cid", f"malformed content identifier: {reference!r}")
    return text


@dataclass(frozen=True)
class ResolvedMetadata:
    """A fetched evidence document plus its normalized summary.

    Attributes:
        cid: Content identifier.
        kind: "request", "result", "profile" or "unknown".
        gateway_url: Public gateway URL of the document.
        document: The raw document.
        summary: Flat, defaulted fields for display.
    """

    cid: str
    kind: str
    gateway_url: str
    document: dict[str, Any] = field(default_factory=dict)
    summary: dict[str, Any] = field(default_factory=dict)


def detect_kind(document: dict[str, Any]) -> str:
    declared = document.get("kind")
    if isinstance(declared, str) and declared in {k.value for k in EvidenceKind}:
        return declared
    if "audit_result" in document:
        return EvidenceKind.RESULT.value
    if "audit_request" in document:
        return EvidenceKind.REQUEST.value
    if "profile" in document:
        return EvidenceKind.PROFILE.value
    return UNKNOWN_KIND


def _section(document: dict[str, Any], key: str) -> dict[str, Any]:
    value = document.get(key)
    return value if isinstance(value, dict) else {}


def _text(*values: Any, default: str = "") -> str:
    # First non-empty scalar wins; containers and booleans count as missing.
    for value in values:
        if isinstance(value, bool):
            continue
        if isinstance(value, str) and value:
            return value
        if isinstance(value, (int, float)):
            return str(value)
    return default


def _count(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    return 0


def _strings(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def _severity_breakdown(value: Any) -> dict[str, int]:
    counts = value if isinstance(value, dict) else {}
    return {level: _count(counts.get(level)) for level in ("critical", "high", "medium", "low")}


def summarize(document: dict[str, Any], kind: str) -> dict[str, Any]:
    """Normalize request and result fields with display defaults.

    Older documents name some fields differently (github_url,
    auditor_count, developer_wallet); those are accepted as fallbacks.
    A field of the wrong JSON type is treated as missing.
    """
    platform = _section(document, "platform_info")
    attributes = document.get("attributes")
    summary: dict[str, Any] = {
        "name": _text(document.get("name"), default="Untitled"),
        "description": _text(document.get("description")),
        "platform": _text(
            platform.get("platform"), platform.get("platform_name"), default=DEFAULT_PLATFORM
        ),
        "network": _text(platform.get("network"), platform.get("blockchain_network")),
        "attributes": attributes if isinstance(attributes, list) else [],
    }
    if kind == EvidenceKind.PROFILE.value:
        summary.update(_section(document, "profile"))
        return summary

    request = _section(document, "audit_request") or _section(document, "original_audit_request")
    summary.update(
        {
            "project_name": _text(request.get("project_name"), default="Unknown"),
            "project_description": _text(
                request.get("project_description"), default="No description available"
            ),
            "source_url": _text(request.get("source_url"), request.get("github_url")),
            "complexity": _text(request.get("complexity"), default=DEFAULT_COMPLEXITY),
            "estimated_duration": _text(request.get("estimated_duration")),
            "proposed_price": _text(request.get("proposed_price"), default="0"),
            "reviewer_count": _text(
                request.get("reviewer_count"), request.get("auditor_count"), default="1"
            ),
            "submitter_address": _text(
                request.get("submitter_address"), request.get("developer_wallet")
            ),
            "tags": _strings(request.get("tags")),
            "repository_hash": _text(request.get("repository_hash")),
        }
    )
    if kind == EvidenceKind.RESULT.value:
        result = _section(document, "audit_result")
        results_summary = _section(document, "audit_results_summary")
        summary.update(
            {
                "audit_request_id": _text(result.get("audit_request_id")),
                "request_nft_id": _text(request.get("request_nft_id")),
                "reviewer_address": _text(result.get("reviewer_address")),
                "reviewer_name": _text(result.get("reviewer_name"), default="Anonymous Reviewer"),
                "completion_date": _text(result.get("completion_date")),
                "total_findings": _count(results_summary.get("total_findings")),
                "severity_breakdown": _severity_breakdown(
                    results_summary.get("severity_breakdown")
                ),
            }
        )
    return summary


class MetadataResolver(LoggingMixin):
    """Fetches and normalizes evidence documents."""

    def __init__(self, content_store: ContentStoreProtocol) -> None:
        self._content_store = content_store
        self._init_logger(component="metadata")

    async def resolve(self, reference: str) -> ResolvedMetadata:
        """Resolve a content reference to its normalized document.

        Raises:
            ValidationError: If the reference is not a well-formed CID.
            ExternalServiceError: step="resolve_metadata" when the fetch fails.
        """
        cid = parse_content_reference(reference)
        log = self._log_operation("resolve", cid=cid)

        try:
            document = await self._content_store.get(cid)
        except ExternalServiceError as exc:
            log.warning("metadata_fetch_failed", reason=exc.reason)
            raise exc.with_context(RESOLVE_STEP) from exc
        if not isinstance(document, dict):
            raise ExternalServiceError(
                step=RESOLVE_STEP,
                service="content_store",
                reason=f"document {cid} is not a JSON object",
            )

        kind = detect_kind(document)
        log.debug("metadata_resolved", kind=kind)
        return ResolvedMetadata(
            cid=cid,
            kind=kind,
            gateway_url=self._content_store.gateway_url(cid),
            document=document,
            summary=summarize(document, kind),
        )
