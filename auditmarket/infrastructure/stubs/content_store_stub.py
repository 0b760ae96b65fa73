"""In-memory content-addressed store for development and testing.

Content identifiers are real CIDv1 strings (raw codec, sha2-256,
base32 lower), so identical bytes always map to the same identifier and
the resolver's CID validation accepts them.
"""

from __future__ import annotations

import base64
import hashlib
import json
from typing import Any

from auditmarket.domain.errors import ExternalServiceError

# CIDv1, raw codec (0x55), sha2-256 multihash (0x12, 32-byte digest)
_CID_PREFIX = bytes([0x01, 0x55, 0x12, 0x20])


def compute_cid(payload: bytes) -> str:
    """CIDv1 (base32, raw, sha2-256) of a byte payload."""
    digest = hashlib.sha256(payload).digest()
    encoded = base64.b32encode(_CID_PREFIX + digest).decode("ascii")
    return "b" + encoded.lower().rstrip("=")


class InMemoryContentStore:
    """In-memory implementation of ContentStoreProtocol.

    Attributes:
        put_calls: (cid, name) of every successful put, in order.
    """

    def __init__(self, gateway_url: str = "https://gateway.pinata.cloud/ipfs") -> None:
        self._gateway_url = gateway_url.rstrip("/")
        self._documents: dict[str, bytes] = {}
        self._failures_remaining = 0
        self._failure_reason = "storage network unreachable"
        self.put_calls: list[tuple[str, str]] = []

    def clear(self) -> None:
        """Clear all data (for testing)."""
        self._documents.clear()
        self._failures_remaining = 0
        self.put_calls.clear()

    def fail_next_puts(self, count: int = 1, reason: str = "storage network unreachable") -> None:
        """Make the next count puts fail with ExternalServiceError."""
        self._failures_remaining = count
        self._failure_reason = reason

    def seed(self, document: dict[str, Any]) -> str:
        """Store a document directly and return its CID (for testing)."""
        payload = json.dumps(document, sort_keys=True, separators=(",", ":")).encode("utf-8")
        cid = compute_cid(payload)
        self._documents[cid] = payload
        return cid

    def raw(self, cid: str) -> bytes | None:
        return self._documents.get(cid)

    async def put(self, payload: bytes, name: str) -> str:
        if self._failures_remaining > 0:
            self._failures_remaining -= 1
            raise ExternalServiceError(
                step="put",
                service="content_store",
                reason=self._failure_reason,
            )
        cid = compute_cid(payload)
        self._documents[cid] = payload
        self.put_calls.append((cid, name))
        return cid

    async def get(self, cid: str) -> dict[str, Any]:
        payload = self._documents.get(cid)
        if payload is None:
            raise ExternalServiceError(
                step="get",
                service="content_store",
                reason=f"content {cid} not found",
            )
        return json.loads(payload)

    def gateway_url(self, cid: str) -> str:
        return f"{self._gateway_url}/{cid}"
