"""Stub signers for development and testing.

StubSigner produces a deterministic pseudo-signature; it never touches a
private key. StubSignerProvider hands out signers for known addresses and
falls back to a default signer for unknown ones, mirroring the production
provider so the minter's authorization precheck is exercised.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

from eth_utils import to_checksum_address

from auditmarket.domain.models.common import same_address


class StubSigner:
    """Signer bound to one address, without a real key."""

    def __init__(self, address: str) -> None:
        self._address = to_checksum_address(address)
        self.signed: list[dict[str, Any]] = []

    @property
    def address(self) -> str:
        return self._address

    def sign_transaction(self, transaction: dict[str, Any]) -> bytes:
        self.signed.append(transaction)
        body = json.dumps(transaction, sort_keys=True, default=str).encode("utf-8")
        return hashlib.sha256(self._address.encode() + body).digest()


class StubSignerProvider:
    """Lookup of stub signers by address.

    Args:
        addresses: Addresses the provider holds keys for.
        default_address: Signer returned for unknown addresses.
        allow_any: Hold a key for every address (local development only).
    """

    def __init__(
        self,
        addresses: list[str] | None = None,
        default_address: str = "0x000000000000000000000000000000000000dEaD",
        allow_any: bool = False,
    ) -> None:
        self._signers = {a.lower(): StubSigner(a) for a in addresses or []}
        self._default = StubSigner(default_address)
        self._allow_any = allow_any

    def signer_for(self, address: str) -> StubSigner:
        signer = self._signers.get(address.lower())
        if signer is not None:
            return signer
        if self._allow_any:
            signer = StubSigner(address)
            self._signers[address.lower()] = signer
            return signer
        return self._default

    def holds(self, address: str) -> bool:
        return self._allow_any or any(same_address(address, a) for a in self._signers)
