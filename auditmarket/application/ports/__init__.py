"""Application ports (interfaces) for AuditMarket."""

from auditmarket.application.ports.content_store import ContentStoreProtocol
from auditmarket.application.ports.estimation_backend import (
    EstimationBackendError,
    EstimationBackendProtocol,
)
from auditmarket.application.ports.ledger import LedgerProtocol
from auditmarket.application.ports.record_store import AuditRecordStoreProtocol
from auditmarket.application.ports.repository_source import RepositorySourceProtocol
from auditmarket.application.ports.signer import SignerProtocol, SignerProviderProtocol

__all__ = [
    "AuditRecordStoreProtocol",
    "ContentStoreProtocol",
    "EstimationBackendError",
    "EstimationBackendProtocol",
    "LedgerProtocol",
    "RepositorySourceProtocol",
    "SignerProtocol",
    "SignerProviderProtocol",
]
