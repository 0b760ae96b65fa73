"""Reviewer profiles and marketplace statistics.

Both are read models computed from the record store on demand; no
request is modified here. A reviewer profile can additionally be
published as a ProfileEvidence document through the evidence packager,
so a reviewer can point at a content-addressed snapshot of their record.

Reviewer profile:
    audits           requests currently committed to the reviewer
    completed        Completed ones; only their findings are counted
    earnings         agreed prices of completed audits
    specializations  most frequent submitter tags (generated tags excluded)

Marketplace statistics:
    counts per status and complexity, total and average proposed price,
    and the most recently created requests
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from typing import Any

from auditmarket.application.ports.record_store import AuditRecordStoreProtocol
from auditmarket.application.services.base import LoggingMixin
from auditmarket.application.services.evidence_packager import EvidencePackager
from auditmarket.application.services.project_tags import is_generated_tag
from auditmarket.domain.errors import ValidationError
from auditmarket.domain.models.audit_request import AuditRequest, AuditStatus
from auditmarket.domain.models.common import normalize_address
from auditmarket.domain.models.estimation import Complexity
from auditmarket.domain.models.evidence import ProfileRole
from auditmarket.domain.models.finding import Finding, severity_breakdown
from auditmarket.domain.models.pricing import to_cents

PAGE_SIZE = 100
MAX_SPECIALIZATIONS = 5
RECENT_ACTIVITY_LIMIT = 10


@dataclass(frozen=True)
class ReviewerProfile:
    """Aggregated record of one reviewer.

    Attributes:
        address: Checksummed reviewer address.
        total_audits: Requests currently committed to the reviewer.
        completed_audits: Completed requests.
        in_progress_audits: InProgress requests.
        total_findings: Findings reported on completed requests.
        severity_breakdown: Those findings counted per severity.
        total_earnings: Sum of agreed prices of completed requests.
        completion_rate: Completed share of total_audits, percent.
        average_completion_days: Mean start-to-completion time, None
            before the first completion.
        specializations: Most frequent submitter tags, most common first.
        member_since: Earliest acceptance, None without audits.
        last_activity: Latest update of any committed request.
        recent: Newest committed requests first.
        evidence_cid: Set once the profile was published.
        evidence_gateway_url: Gateway URL of the published document.
    """

    address: str
    total_audits: int = 0
    completed_audits: int = 0
    in_progress_audits: int = 0
    total_findings: int = 0
    severity_breakdown: dict[str, int] = field(default_factory=dict)
    total_earnings: Decimal = Decimal("0.00")
    completion_rate: int = 0
    average_completion_days: float | None = None
    specializations: tuple[str, ...] = ()
    member_since: datetime | None = None
    last_activity: datetime | None = None
    recent: tuple[AuditRequest, ...] = ()
    evidence_cid: str | None = None
    evidence_gateway_url: str | None = None


@dataclass(frozen=True)
class MarketplaceStats:
    """Marketplace-wide request counts and prices."""

    total_requests: int
    status_counts: dict[str, int]
    complexity_breakdown: dict[str, int]
    total_proposed_value: Decimal
    average_proposed_price: Decimal
    recent: tuple[AuditRequest, ...] = ()


def _specializations(requests: list[AuditRequest]) -> tuple[str, ...]:
    counts = Counter(
        tag for request in requests for tag in request.tags if not is_generated_tag(tag)
    )
    # Ties break alphabetically so the profile document stays canonical
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return tuple(tag for tag, _ in ranked[:MAX_SPECIALIZATIONS])


def _average_completion_days(completed: list[AuditRequest]) -> float | None:
    spans = [
        (r.completed_at - r.start_date).total_seconds() / 86400
        for r in completed
        if r.completed_at is not None and r.start_date is not None
    ]
    if not spans:
        return None
    return round(sum(spans) / len(spans), 1)


def _pseudonym(address: str) -> str:
    return f"Reviewer {address[:6]}...{address[-4:]}"


class MarketplaceInsightsService(LoggingMixin):
    """Computes reviewer profiles and marketplace statistics."""

    def __init__(
        self,
        record_store: AuditRecordStoreProtocol,
        packager: EvidencePackager,
    ) -> None:
        self._store = record_store
        self._packager = packager
        self._init_logger(component="insights")

    async def _all_requests(self, **filters: Any) -> list[AuditRequest]:
        collected: list[AuditRequest] = []
        while True:
            page, total = await self._store.list_requests(
                limit=PAGE_SIZE, offset=len(collected), **filters
            )
            collected.extend(page)
            if not page or len(collected) >= total:
                return collected

    async def reviewer_profile(self, reviewer_address: str) -> ReviewerProfile:
        """Aggregate the audits committed to a reviewer.

        A reviewer without audits gets an empty profile, not an error.

        Raises:
            ValidationError: If the address is malformed.
            ExternalServiceError: If the record store is unreachable.
        """
        try:
            address = normalize_address(reviewer_address, "reviewer_address")
        except ValueError as exc:
            raise ValidationError("reviewer_address", str(exc)) from None
        log = self._log_operation("reviewer_profile", reviewer_address=address)

        requests = await self._all_requests(reviewer_address=address)
        completed = [r for r in requests if r.status == AuditStatus.COMPLETED]

        findings: list[Finding] = []
        for request in completed:
            findings.extend(await self._store.list_findings(request.id))

        profile = ReviewerProfile(
            address=address,
            total_audits=len(requests),
            completed_audits=len(completed),
            in_progress_audits=sum(r.status == AuditStatus.IN_PROGRESS for r in requests),
            total_findings=len(findings),
            severity_breakdown=severity_breakdown(findings),
            total_earnings=to_cents(sum((r.agreed_price for r in completed), Decimal(0))),
            completion_rate=round(100 * len(completed) / len(requests)) if requests else 0,
            average_completion_days=_average_completion_days(completed),
            specializations=_specializations(requests),
            member_since=min(
                (r.start_date for r in requests if r.start_date is not None), default=None
            ),
            last_activity=max((r.updated_at for r in requests), default=None),
            recent=tuple(requests[:RECENT_ACTIVITY_LIMIT]),
        )
        log.debug(
            "reviewer_profile_built",
            total_audits=profile.total_audits,
            completed_audits=profile.completed_audits,
        )
        return profile

    async def publish_reviewer_profile(self, reviewer_address: str) -> ReviewerProfile:
        """Package the reviewer's profile as ProfileEvidence.

        Identical records render identical documents, so republishing an
        unchanged profile returns the same CID.

        Raises:
            ValidationError: If the address is malformed or the reviewer
                has never accepted an audit.
            ExternalServiceError: step="package_evidence" when publishing fails.
        """
        profile = await self.reviewer_profile(reviewer_address)
        if profile.member_since is None:
            raise ValidationError("reviewer_address", "reviewer has not accepted any audit")

        evidence = self._packager.build_profile_evidence(
            role=ProfileRole.REVIEWER,
            address=profile.address,
            display_name=_pseudonym(profile.address),
            member_since=profile.member_since,
            completed_audits=profile.completed_audits,
            total_findings=profile.total_findings,
            specializations=profile.specializations,
        )
        cid = await self._packager.package(evidence)
        self._log_operation("publish_reviewer_profile", reviewer_address=profile.address).info(
            "reviewer_profile_published", cid=cid
        )
        return replace(
            profile, evidence_cid=cid, evidence_gateway_url=self._packager.gateway_url(cid)
        )

    async def marketplace_stats(self) -> MarketplaceStats:
        """Count every request by status and complexity and summarize prices.

        Raises:
            ExternalServiceError: If the record store is unreachable.
        """
        requests = await self._all_requests()
        statuses = Counter(r.status for r in requests)
        complexities = Counter(r.complexity for r in requests)
        total = sum((r.proposed_price for r in requests), Decimal(0))
        return MarketplaceStats(
            total_requests=len(requests),
            status_counts={status.value: statuses[status] for status in AuditStatus},
            complexity_breakdown={c.value: complexities[c] for c in Complexity},
            total_proposed_value=to_cents(total),
            average_proposed_price=to_cents(total / len(requests)) if requests else Decimal("0.00"),
            recent=tuple(requests[:RECENT_ACTIVITY_LIMIT]),
        )
