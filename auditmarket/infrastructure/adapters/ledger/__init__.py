"""Ledger and signer adapters."""

from auditmarket.infrastructure.adapters.ledger.local_signer import (
    LocalSigner,
    LocalSignerProvider,
)
from auditmarket.infrastructure.adapters.ledger.web3_ledger import (
    Web3Ledger,
    load_contract_artifact,
)

__all__ = ["LocalSigner", "LocalSignerProvider", "Web3Ledger", "load_contract_artifact"]
