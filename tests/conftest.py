"""
Pytest configuration and shared fixtures for AuditMarket tests.

Testing Standards:
- All async tests use pytest.mark.asyncio (auto mode enabled in pyproject.toml)
- Services are wired to the in-memory stubs, never to live networks
- HTTP adapters are exercised through httpx.MockTransport
- Every test gets its own Prometheus registry
"""

from decimal import Decimal

import pytest
from prometheus_client import CollectorRegistry

from auditmarket.application.services.audit_lifecycle_service import (
    AuditLifecycleService,
    SubmitAuditInput,
)
from auditmarket.application.services.certificate_minter import CertificateMinter
from auditmarket.application.services.estimation_engine import EstimationEngine
from auditmarket.application.services.evidence_packager import EvidencePackager
from auditmarket.application.services.repository_fingerprint import (
    RepositoryFingerprinter,
)
from auditmarket.infrastructure.monitoring.metrics import PipelineMetrics
from auditmarket.infrastructure.stubs import (
    InMemoryAuditRecordStore,
    InMemoryContentStore,
    InMemoryLedger,
    InMemoryRepositorySource,
    StubSignerProvider,
)

SUBMITTER = "0x1111111111111111111111111111111111111111"
REVIEWER = "0x2222222222222222222222222222222222222222"
STRANGER = "0x3333333333333333333333333333333333333333"


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio as the async backend."""
    return "asyncio"


@pytest.fixture
def metrics() -> PipelineMetrics:
    """Provide metrics bound to an isolated registry."""
    return PipelineMetrics(registry=CollectorRegistry())


@pytest.fixture
def record_store() -> InMemoryAuditRecordStore:
    return InMemoryAuditRecordStore()


@pytest.fixture
def content_store() -> InMemoryContentStore:
    return InMemoryContentStore()


@pytest.fixture
def ledger() -> InMemoryLedger:
    return InMemoryLedger()


@pytest.fixture
def repository_source() -> InMemoryRepositorySource:
    return InMemoryRepositorySource()


@pytest.fixture
def signers() -> StubSignerProvider:
    """Provide a signer provider holding keys for the submitter and reviewer only."""
    return StubSignerProvider(addresses=[SUBMITTER, REVIEWER])


@pytest.fixture
def packager(
    content_store: InMemoryContentStore, metrics: PipelineMetrics
) -> EvidencePackager:
    return EvidencePackager(content_store, metrics=metrics)


@pytest.fixture
def minter(ledger: InMemoryLedger, metrics: PipelineMetrics) -> CertificateMinter:
    return CertificateMinter(ledger, metrics=metrics)


@pytest.fixture
def lifecycle(
    record_store: InMemoryAuditRecordStore,
    packager: EvidencePackager,
    minter: CertificateMinter,
    repository_source: InMemoryRepositorySource,
    metrics: PipelineMetrics,
) -> AuditLifecycleService:
    """Provide a lifecycle controller wired to in-memory stubs (fallback estimation)."""
    return AuditLifecycleService(
        record_store=record_store,
        estimation_engine=EstimationEngine(backend=None, metrics=metrics),
        packager=packager,
        minter=minter,
        fingerprinter=RepositoryFingerprinter(repository_source),
        metrics=metrics,
    )


@pytest.fixture
def submission() -> SubmitAuditInput:
    """Provide a valid submission for a DeFi bridge repository."""
    return SubmitAuditInput(
        project_name="Defi Bridge",
        project_description="Cross-chain bridge contracts",
        source_url="https://github.com/acme/defi-bridge",
        submitter_address=SUBMITTER,
        proposed_price=Decimal("30000"),
        reviewer_count=1,
        tags=("Bridge",),
    )
