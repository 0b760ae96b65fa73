"""BLAKE3 repository fingerprinting.

The repository hash anchors the exact snapshot a reviewer audits. It is
computed once at submission over a canonical listing of the snapshot
(source URL, then files sorted by path) and never recomputed afterwards.

Usage:
    fingerprinter = RepositoryFingerprinter(repository_source)
    snapshot, repository_hash = await fingerprinter.fingerprint_source(url)
"""

from __future__ import annotations

import hmac
import json

import blake3

from auditmarket.application.ports.repository_source import RepositorySourceProtocol
from auditmarket.application.services.base import LoggingMixin
from auditmarket.domain.models.repository import RepositorySnapshot


def canonical_snapshot_bytes(snapshot: RepositorySnapshot) -> bytes:
    """Serialize a snapshot to the byte form that is hashed."""
    listing = {
        "source_url": snapshot.source_url.strip().rstrip("/"),
        "files": [
            {"path": f.path, "content": f.content}
            for f in sorted(snapshot.files, key=lambda f: f.path)
        ],
    }
    return json.dumps(
        listing, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")


class RepositoryFingerprinter(LoggingMixin):
    """Computes the content fingerprint of a repository snapshot.

    Attributes:
        HASH_SIZE: BLAKE3 digest size in bytes.
    """

    HASH_SIZE: int = 32

    def __init__(self, source: RepositorySourceProtocol | None = None) -> None:
        """Initialize the fingerprinter.

        Args:
            source: Repository source used by fingerprint_source().
        """
        self._source = source
        self._init_logger(component="fingerprint")

    def fingerprint(self, snapshot: RepositorySnapshot) -> str:
        """Return the 64-character hex BLAKE3 digest of a snapshot."""
        return blake3.blake3(canonical_snapshot_bytes(snapshot)).hexdigest()

    def verify(self, snapshot: RepositorySnapshot, expected_hash: str) -> bool:
        """Constant-time check of a snapshot against a stored fingerprint.

        Raises:
            ValueError: If expected_hash is not a 64-character hex digest.
        """
        if len(expected_hash) != self.HASH_SIZE * 2:
            raise ValueError(
                f"Expected hash must be {self.HASH_SIZE * 2} hex characters, "
                f"got {len(expected_hash)}"
            )
        return hmac.compare_digest(self.fingerprint(snapshot), expected_hash.lower())

    async def fingerprint_source(self, source_url: str) -> tuple[RepositorySnapshot, str]:
        """Fetch a snapshot from the repository source and fingerprint it.

        Returns:
            Tuple of (snapshot, hex digest).

        Raises:
            RuntimeError: If no repository source was configured.
            ValidationError: If the source rejects the URL.
            ExternalServiceError: If the source host is unreachable.
        """
        if self._source is None:
            raise RuntimeError("RepositoryFingerprinter has no repository source")
        log = self._log_operation("fingerprint_source", source_url=source_url)
        snapshot = await self._source.fetch_snapshot(source_url)
        digest = self.fingerprint(snapshot)
        log.info(
            "repository_fingerprinted",
            files=len(snapshot.files),
            revision=snapshot.revision,
            repository_hash=digest,
        )
        return snapshot, digest
