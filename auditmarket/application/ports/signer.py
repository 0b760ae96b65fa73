"""Transaction signer ports.

A signer holds the authority of one ledger address. The certificate
minter compares signer.address against the expected owner before any
transaction is built.
"""

from __future__ import annotations

from typing import Any, Protocol


class SignerProtocol(Protocol):
    """Protocol for something that can sign ledger transactions."""

    @property
    def address(self) -> str:
        """Checksummed address whose authority this signer holds."""
        ...

    def sign_transaction(self, transaction: dict[str, Any]) -> bytes:
        """Sign a transaction dict and return the raw signed bytes."""
        ...


class SignerProviderProtocol(Protocol):
    """Protocol for looking up the signer acting for an address."""

    def signer_for(self, address: str) -> SignerProtocol:
        """Return the signer acting for address.

        When no key for address is held, the provider returns its default
        signer; the minter then refuses it with AuthorizationError rather
        than letting the ledger reject the transaction.
        """
        ...
