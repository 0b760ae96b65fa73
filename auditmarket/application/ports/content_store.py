"""Content-addressed storage port.

Documents put into the store are immutable and addressed by a content
identifier derived from their bytes. Identical bytes always yield the
same identifier, which gives deduplication and tamper evidence.
"""

from __future__ import annotations

from typing import Any, Protocol


class ContentStoreProtocol(Protocol):
    """Protocol for a content-addressed document store (IPFS or in-memory)."""

    async def put(self, payload: bytes, name: str) -> str:
        """Publish canonical document bytes.

        Args:
            payload: Canonical UTF-8 JSON bytes.
            name: Human-readable document name (metadata only).

        Returns:
            The content identifier.

        Raises:
            ExternalServiceError: If the network is unreachable or rejects the write.
        """
        ...

    async def get(self, cid: str) -> dict[str, Any]:
        """Fetch and decode a JSON document.

        Raises:
            ExternalServiceError: If the document cannot be fetched or decoded.
        """
        ...

    def gateway_url(self, cid: str) -> str:
        """Public gateway URL for a content identifier."""
        ...
