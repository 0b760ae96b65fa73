"""Local private-key signers (eth_account).

The service holds keys only for the accounts it operates, normally the
platform account that owns the record contracts. Lookups for any other
address return the default signer, and the certificate minter refuses it
before a transaction is built.
"""

from __future__ import annotations

from typing import Any

from eth_account import Account
from eth_account.signers.local import LocalAccount

from auditmarket.config.marketplace_config import LedgerConfig


class LocalSigner:
    """SignerProtocol implementation around an eth_account LocalAccount."""

    def __init__(self, account: LocalAccount) -> None:
        self._account = account

    @classmethod
    def from_key(cls, private_key: str) -> LocalSigner:
        return cls(Account.from_key(private_key))

    @property
    def address(self) -> str:
        return self._account.address

    def sign_transaction(self, transaction: dict[str, Any]) -> bytes:
        return bytes(self._account.sign_transaction(transaction).raw_transaction)

    def __repr__(self) -> str:
        return f"LocalSigner({self.address})"


class LocalSignerProvider:
    """SignerProviderProtocol implementation over configured keys.

    The first configured key is the default signer.
    """

    def __init__(self, signers: list[LocalSigner]) -> None:
        if not signers:
            raise ValueError("At least one signer key is required")
        self._default = signers[0]
        self._signers = {s.address.lower(): s for s in signers}

    @classmethod
    def from_config(cls, config: LedgerConfig) -> LocalSignerProvider:
        if not config.private_keys:
            raise ValueError("LEDGER_PRIVATE_KEYS is required for the web3 ledger")
        return cls([LocalSigner.from_key(k) for k in config.private_keys])

    @property
    def default_signer(self) -> LocalSigner:
        return self._default

    def signer_for(self, address: str) -> LocalSigner:
        return self._signers.get(address.lower(), self._default)

    def holds(self, address: str) -> bool:
        return address.lower() in self._signers
