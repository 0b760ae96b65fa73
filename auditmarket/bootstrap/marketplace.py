"""Bootstrap wiring for the marketplace services.

Two backends share the same services and differ only in adapters:

    memory      in-process stubs; every address is signable (local demo)
    production  PostgreSQL, Pinata/IPFS, web3 ledger, GitHub, OpenAI-compatible
                estimation; signers limited to LEDGER_PRIVATE_KEYS

Usage:
    from auditmarket.bootstrap.marketplace import get_marketplace

    marketplace = get_marketplace()
    outcome = await marketplace.lifecycle.submit(data, marketplace.signers.signer_for(address))
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from structlog import get_logger

from auditmarket.application.ports.content_store import ContentStoreProtocol
from auditmarket.application.ports.ledger import LedgerProtocol
from auditmarket.application.ports.record_store import AuditRecordStoreProtocol
from auditmarket.application.ports.signer import SignerProviderProtocol
from auditmarket.application.services.audit_lifecycle_service import (
    AuditLifecycleService,
)
from auditmarket.application.services.audit_verification_service import (
    AuditVerificationService,
)
from auditmarket.application.services.certificate_minter import CertificateMinter
from auditmarket.application.services.estimation_engine import EstimationEngine
from auditmarket.application.services.evidence_packager import EvidencePackager
from auditmarket.application.services.marketplace_insights import (
    MarketplaceInsightsService,
)
from auditmarket.application.services.metadata_resolver import MetadataResolver
from auditmarket.application.services.repository_fingerprint import (
    RepositoryFingerprinter,
)
from auditmarket.config.marketplace_config import MarketplaceConfig
from auditmarket.infrastructure.monitoring.metrics import (
    PipelineMetrics,
    get_pipeline_metrics,
)

logger = get_logger()


@dataclass
class Marketplace:
    """Wired services plus the adapters they run on."""

    config: MarketplaceConfig
    metrics: PipelineMetrics
    record_store: AuditRecordStoreProtocol
    content_store: ContentStoreProtocol
    ledger: LedgerProtocol
    signers: SignerProviderProtocol
    estimation_engine: EstimationEngine
    packager: EvidencePackager
    minter: CertificateMinter
    fingerprinter: RepositoryFingerprinter
    lifecycle: AuditLifecycleService
    resolver: MetadataResolver
    verification: AuditVerificationService
    insights: MarketplaceInsightsService


def _assemble(
    config: MarketplaceConfig,
    metrics: PipelineMetrics,
    record_store: AuditRecordStoreProtocol,
    content_store: ContentStoreProtocol,
    ledger: LedgerProtocol,
    signers: SignerProviderProtocol,
    estimation_backend: Any,
    repository_source: Any,
) -> Marketplace:
    engine = EstimationEngine(backend=estimation_backend, metrics=metrics)
    packager = EvidencePackager(content_store, platform=config.platform_info, metrics=metrics)
    minter = CertificateMinter(ledger, metrics=metrics)
    fingerprinter = RepositoryFingerprinter(source=repository_source)
    resolver = MetadataResolver(content_store)
    return Marketplace(
        config=config,
        metrics=metrics,
        record_store=record_store,
        content_store=content_store,
        ledger=ledger,
        signers=signers,
        estimation_engine=engine,
        packager=packager,
        minter=minter,
        fingerprinter=fingerprinter,
        lifecycle=AuditLifecycleService(
            record_store=record_store,
            estimation_engine=engine,
            packager=packager,
            minter=minter,
            fingerprinter=fingerprinter,
            metrics=metrics,
        ),
        resolver=resolver,
        verification=AuditVerificationService(record_store, resolver, ledger),
        insights=MarketplaceInsightsService(record_store, packager),
    )


def build_memory_marketplace(
    config: MarketplaceConfig | None = None,
    metrics: PipelineMetrics | None = None,
) -> Marketplace:
    """Wire every service to in-memory stubs."""
    from auditmarket.infrastructure.stubs import (
        InMemoryAuditRecordStore,
        InMemoryContentStore,
        InMemoryLedger,
        InMemoryRepositorySource,
        StubSignerProvider,
    )

    config = config or MarketplaceConfig()
    return _assemble(
        config=config,
        metrics=metrics or get_pipeline_metrics(),
        record_store=InMemoryAuditRecordStore(),
        content_store=InMemoryContentStore(config.storage.gateway_url),
        ledger=InMemoryLedger(config.ledger.explorer_url),
        signers=StubSignerProvider(allow_any=True),
        estimation_backend=None,
        repository_source=InMemoryRepositorySource(),
    )


def build_production_marketplace(
    config: MarketplaceConfig,
    metrics: PipelineMetrics | None = None,
) -> Marketplace:
    """Wire every service to its production adapter.

    Raises:
        ValueError: If DATABASE_URL, PINATA_JWT, LEDGER_CONTRACT_ARTIFACT or
            LEDGER_PRIVATE_KEYS is missing.
    """
    from auditmarket.bootstrap.database import get_session_factory
    from auditmarket.infrastructure.adapters.estimation import OpenAIEstimationBackend
    from auditmarket.infrastructure.adapters.ledger import LocalSignerProvider, Web3Ledger
    from auditmarket.infrastructure.adapters.persistence import PostgresAuditRecordStore
    from auditmarket.infrastructure.adapters.repository import GitHubRepositorySource
    from auditmarket.infrastructure.adapters.storage import PinataContentStore

    estimation_backend = OpenAIEstimationBackend(config.estimation)
    if not estimation_backend.is_configured():
        logger.warning("estimation_backend_not_configured", fallback_only=True)

    return _assemble(
        config=config,
        metrics=metrics or get_pipeline_metrics(),
        record_store=PostgresAuditRecordStore(get_session_factory()),
        content_store=PinataContentStore(config.storage),
        ledger=Web3Ledger.from_config(config.ledger),
        signers=LocalSignerProvider.from_config(config.ledger),
        estimation_backend=estimation_backend,
        repository_source=GitHubRepositorySource(config.repository),
    )


def build_marketplace(config: MarketplaceConfig) -> Marketplace:
    """Build the backend selected by config.backend."""
    log = logger.bind(component="marketplace_bootstrap")
    log.info("building_marketplace", backend=config.backend, environment=config.environment)
    if config.backend == "production":
        return build_production_marketplace(config)
    return build_memory_marketplace(config)


_marketplace: Marketplace | None = None


def get_marketplace() -> Marketplace:
    """Get the process-wide marketplace, built from the environment on first use."""
    global _marketplace
    if _marketplace is None:
        _marketplace = build_marketplace(MarketplaceConfig.from_environment())
    return _marketplace


def set_marketplace(marketplace: Marketplace) -> None:
    """Install a prebuilt marketplace (testing/override)."""
    global _marketplace
    _marketplace = marketplace


def reset_marketplace() -> None:
    """Reset the marketplace singleton (testing cleanup)."""
    global _marketplace
    _marketplace = None
