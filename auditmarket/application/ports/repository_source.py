"""Repository source port: fetches the snapshot that will be audited."""

from __future__ import annotations

from typing import Protocol

from auditmarket.domain.models.repository import RepositorySnapshot


class RepositorySourceProtocol(Protocol):
    """Protocol for fetching a repository snapshot."""

    async def fetch_snapshot(self, source_url: str) -> RepositorySnapshot:
        """Fetch the source files to fingerprint and analyse.

        Raises:
            ValidationError: If source_url is not a supported repository URL.
            ExternalServiceError: If the source host is unreachable.
        """
        ...
