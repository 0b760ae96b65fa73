"""Ledger port for record contracts and certificate mints.

The ledger is append-only and requires wallet-signed transactions.
Adapters submit exactly one transaction per call and never retry;
retrying is the caller's decision, keyed on the content identifier.
"""

from __future__ import annotations

from typing import Protocol

from auditmarket.application.ports.signer import SignerProtocol
from auditmarket.domain.models.certificate import LedgerLog, LedgerReceipt


class LedgerProtocol(Protocol):
    """Protocol for an EVM-style ledger hosting ERC-721 record contracts."""

    async def deploy_record_contract(
        self,
        owner: str,
        name: str,
        symbol: str,
        signer: SignerProtocol,
    ) -> str:
        """Deploy a record contract owned by owner.

        Returns:
            The deployed contract address.

        Raises:
            ExternalServiceError: On network failure or a reverted deployment.
        """
        ...

    async def mint(
        self,
        contract_address: str,
        recipient: str,
        token_uri: str,
        signer: SignerProtocol,
    ) -> LedgerReceipt:
        """Submit one safeMint(recipient, token_uri) transaction.

        Returns:
            The receipt with its emitted logs.

        Raises:
            ExternalServiceError: On network failure or a reverted mint.
        """
        ...

    async def get_logs(
        self,
        contract_address: str,
        recipient: str | None = None,
    ) -> list[LedgerLog]:
        """Transfer event logs of a contract, optionally filtered by recipient."""
        ...

    async def token_uri(self, contract_address: str, record_id: int) -> str | None:
        """Token URI of a record, None if the record does not exist."""
        ...

    def explorer_url(self, transaction_id: str) -> str:
        """Block explorer URL for a transaction."""
        ...
