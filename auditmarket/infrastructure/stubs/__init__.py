"""In-memory adapters for development and testing."""

from auditmarket.infrastructure.stubs.audit_record_store_stub import (
    InMemoryAuditRecordStore,
)
from auditmarket.infrastructure.stubs.content_store_stub import (
    InMemoryContentStore,
    compute_cid,
)
from auditmarket.infrastructure.stubs.estimation_backend_stub import (
    StubEstimationBackend,
)
from auditmarket.infrastructure.stubs.ledger_stub import InMemoryLedger, MintCall
from auditmarket.infrastructure.stubs.repository_source_stub import (
    InMemoryRepositorySource,
)
from auditmarket.infrastructure.stubs.signer_stub import StubSigner, StubSignerProvider

__all__ = [
    "InMemoryAuditRecordStore",
    "InMemoryContentStore",
    "InMemoryLedger",
    "InMemoryRepositorySource",
    "MintCall",
    "StubEstimationBackend",
    "StubSigner",
    "StubSignerProvider",
    "compute_cid",
]
