"""In-memory repository source for development and testing."""

from __future__ import annotations

from auditmarket.domain.errors import ExternalServiceError, ValidationError
from auditmarket.domain.models.repository import RepositoryFile, RepositorySnapshot


class InMemoryRepositorySource:
    """Serves seeded snapshots, or a one-file placeholder for unseeded URLs."""

    def __init__(self) -> None:
        self._snapshots: dict[str, RepositorySnapshot] = {}
        self._unavailable = False
        self.fetches: list[str] = []

    def clear(self) -> None:
        self._snapshots.clear()
        self._unavailable = False
        self.fetches.clear()

    def seed(self, snapshot: RepositorySnapshot) -> None:
        self._snapshots[snapshot.source_url] = snapshot

    def set_unavailable(self, unavailable: bool = True) -> None:
        self._unavailable = unavailable

    async def fetch_snapshot(self, source_url: str) -> RepositorySnapshot:
        if not source_url or not source_url.strip():
            raise ValidationError("source_url", "is required")
        self.fetches.append(source_url)
        if self._unavailable:
            raise ExternalServiceError(
                step="fetch_snapshot",
                service="repository_source",
                reason="repository host unreachable",
            )
        snapshot = self._snapshots.get(source_url)
        if snapshot is not None:
            return snapshot
        return RepositorySnapshot(
            source_url=source_url,
            files=(
                RepositoryFile(
                    path="contracts/Main.sol",
                    content=f"// SPDX-License-Identifier: MIT\n// {source_url}\ncontract Main {{}}\n",
                ),
            ),
            total_file_count=1,
        )
