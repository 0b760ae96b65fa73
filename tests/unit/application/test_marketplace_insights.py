"""Unit tests for reviewer profiles and marketplace statistics."""

import dataclasses
from decimal import Decimal

import pytest

from auditmarket.application.services.audit_lifecycle_service import (
    AuditLifecycleService,
    NewFinding,
    SubmitAuditInput,
)
from auditmarket.application.services.evidence_packager import EvidencePackager
from auditmarket.application.services.marketplace_insights import (
    MarketplaceInsightsService,
)
from auditmarket.application.services.metadata_resolver import detect_kind, summarize
from auditmarket.domain.errors import ExternalServiceError, ValidationError
from auditmarket.domain.models.audit_request import AuditRequest, AuditStatus
from auditmarket.domain.models.evidence import ResultSubmission
from auditmarket.infrastructure.stubs import (
    InMemoryAuditRecordStore,
    InMemoryContentStore,
    StubSigner,
)

SUBMITTER = "0x1111111111111111111111111111111111111111"
REVIEWER = "0x2222222222222222222222222222222222222222"
STRANGER = "0x3333333333333333333333333333333333333333"

OVERFLOW = NewFinding(
    severity="high",
    category="arithmetic",
    title="Unchecked fee math",
    description="Fee multiplication can overflow for large deposits.",
)


@pytest.fixture
def insights(
    record_store: InMemoryAuditRecordStore, packager: EvidencePackager
) -> MarketplaceInsightsService:
    return MarketplaceInsightsService(record_store, packager)


async def _accepted(
    lifecycle: AuditLifecycleService, submission: SubmitAuditInput, **changes: object
) -> AuditRequest:
    outcome = await lifecycle.submit(
        dataclasses.replace(submission, **changes), StubSigner(SUBMITTER)
    )
    return await lifecycle.accept(outcome.request.id, REVIEWER)


class TestReviewerProfile:
    """Tests for reviewer_profile."""

    @pytest.mark.asyncio
    async def test_newcomer_gets_empty_profile(
        self, insights: MarketplaceInsightsService
    ) -> None:
        """A reviewer without audits is not an error."""
        profile = await insights.reviewer_profile(STRANGER)

        assert profile.address.lower() == STRANGER
        assert profile.total_audits == 0
        assert profile.completion_rate == 0
        assert profile.total_earnings == Decimal("0.00")
        assert profile.member_since is None
        assert profile.average_completion_days is None
        assert profile.recent == ()

    @pytest.mark.asyncio
    async def test_malformed_address_rejected(
        self, insights: MarketplaceInsightsService
    ) -> None:
        """Addresses are validated before the store is read."""
        with pytest.raises(ValidationError) as exc_info:
            await insights.reviewer_profile("0x1234")
        assert exc_info.value.field == "reviewer_address"

    @pytest.mark.asyncio
    async def test_aggregates_committed_audits(
        self,
        insights: MarketplaceInsightsService,
        lifecycle: AuditLifecycleService,
        submission: SubmitAuditInput,
    ) -> None:
        """Completed audits drive findings, earnings and the completion rate."""
        done = await _accepted(lifecycle, submission)
        await lifecycle.submit_results(
            done.id, REVIEWER, [OVERFLOW], ResultSubmission(), StubSigner(REVIEWER)
        )
        await _accepted(
            lifecycle,
            submission,
            project_name="Vault",
            source_url="https://github.com/acme/vault",
            proposed_price=Decimal("12000"),
            tags=("Vault", "Bridge"),
        )
        await lifecycle.submit(
            dataclasses.replace(
                submission, project_name="Open", source_url="https://github.com/acme/open"
            ),
            StubSigner(SUBMITTER),
        )

        profile = await insights.reviewer_profile(REVIEWER)

        assert profile.total_audits == 2
        assert profile.completed_audits == 1
        assert profile.in_progress_audits == 1
        assert profile.completion_rate == 50
        assert profile.total_findings == 1
        assert profile.severity_breakdown == {"low": 0, "medium": 0, "high": 1, "critical": 0}
        assert profile.total_earnings == Decimal("30000.00")
        assert profile.specializations == ("bridge", "vault")
        assert profile.average_completion_days is not None
        assert profile.member_since is not None
        assert profile.last_activity >= profile.member_since
        assert {r.status for r in profile.recent} == {
            AuditStatus.COMPLETED,
            AuditStatus.IN_PROGRESS,
        }

    @pytest.mark.asyncio
    async def test_findings_of_open_audits_not_counted(
        self,
        insights: MarketplaceInsightsService,
        lifecycle: AuditLifecycleService,
        submission: SubmitAuditInput,
    ) -> None:
        """Only completed audits contribute findings and earnings."""
        await _accepted(lifecycle, submission)

        profile = await insights.reviewer_profile(REVIEWER)

        assert profile.total_audits == 1
        assert profile.total_findings == 0
        assert profile.total_earnings == Decimal("0.00")
        assert profile.average_completion_days is None

    @pytest.mark.asyncio
    async def test_store_outage_propagates(
        self,
        insights: MarketplaceInsightsService,
        record_store: InMemoryAuditRecordStore,
    ) -> None:
        """An unreachable record store is an upstream failure."""
        record_store.set_unavailable()
        with pytest.raises(ExternalServiceError):
            await insights.reviewer_profile(REVIEWER)


class TestPublishReviewerProfile:
    """Tests for publish_reviewer_profile."""

    @pytest.mark.asyncio
    async def test_publishes_resolvable_profile(
        self,
        insights: MarketplaceInsightsService,
        lifecycle: AuditLifecycleService,
        submission: SubmitAuditInput,
        content_store: InMemoryContentStore,
    ) -> None:
        """The published document resolves as a pseudonymous reviewer profile."""
        await _accepted(lifecycle, submission)

        profile = await insights.publish_reviewer_profile(REVIEWER)

        assert profile.evidence_cid is not None
        assert profile.evidence_gateway_url == content_store.gateway_url(profile.evidence_cid)
        document = await content_store.get(profile.evidence_cid)
        kind = detect_kind(document)
        summary = summarize(document, kind)
        assert kind == "profile"
        assert summary["role"] == "reviewer"
        assert summary["display_name"] == "Reviewer 0x2222...2222"
        assert summary["specializations"] == ["bridge"]

    @pytest.mark.asyncio
    async def test_republishing_unchanged_profile_keeps_cid(
        self,
        insights: MarketplaceInsightsService,
        lifecycle: AuditLifecycleService,
        submission: SubmitAuditInput,
    ) -> None:
        """Identical records render identical documents."""
        await _accepted(lifecycle, submission)

        first = await insights.publish_reviewer_profile(REVIEWER)
        second = await insights.publish_reviewer_profile(REVIEWER)

        assert first.evidence_cid == second.evidence_cid

    @pytest.mark.asyncio
    async def test_newcomer_cannot_publish(
        self,
        insights: MarketplaceInsightsService,
        content_store: InMemoryContentStore,
    ) -> None:
        """A reviewer who never accepted an audit has nothing to publish."""
        with pytest.raises(ValidationError) as exc_info:
            await insights.publish_reviewer_profile(STRANGER)

        assert exc_info.value.field == "reviewer_address"
        assert content_store.put_calls == []


class TestMarketplaceStats:
    """Tests for marketplace_stats."""

    @pytest.mark.asyncio
    async def test_empty_marketplace(self, insights: MarketplaceInsightsService) -> None:
        """Every status and complexity is listed even with no requests."""
        stats = await insights.marketplace_stats()

        assert stats.total_requests == 0
        assert set(stats.status_counts) == {s.value for s in AuditStatus}
        assert sum(stats.status_counts.values()) == 0
        assert sum(stats.complexity_breakdown.values()) == 0
        assert stats.average_proposed_price == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_counts_and_prices(
        self,
        insights: MarketplaceInsightsService,
        lifecycle: AuditLifecycleService,
        submission: SubmitAuditInput,
    ) -> None:
        """Requests are counted per status and their proposed prices averaged."""
        await _accepted(lifecycle, submission)
        await lifecycle.submit(
            dataclasses.replace(
                submission,
                project_name="Vault",
                source_url="https://github.com/acme/vault",
                proposed_price=Decimal("12000.01"),
            ),
            StubSigner(SUBMITTER),
        )

        stats = await insights.marketplace_stats()

        assert stats.total_requests == 2
        assert stats.status_counts["Available"] == 1
        assert stats.status_counts["InProgress"] == 1
        assert stats.complexity_breakdown["High"] == 1
        assert stats.total_proposed_value == Decimal("42000.01")
        assert stats.average_proposed_price == Decimal("21000.01")
        assert len(stats.recent) == 2
