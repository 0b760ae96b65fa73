"""Repository snapshot models used for fingerprinting and analysis."""

from __future__ import annotations

from dataclasses import dataclass, field

from auditmarket.domain.models.estimation import RepositoryAnalysis


@dataclass(frozen=True)
class RepositoryFile:
    """One source file in a repository snapshot."""

    path: str
    content: str

    @property
    def line_count(self) -> int:
        return len(self.content.split("\n")) if self.content else 0

    @property
    def is_solidity(self) -> bool:
        return self.path.endswith(".sol")


@dataclass(frozen=True)
class RepositorySnapshot:
    """The anonymized source snapshot a reviewer will audit.

    Attributes:
        source_url: Where the snapshot was taken from.
        files: Analysed source files.
        total_file_count: Files in the whole tree (may exceed len(files)).
        revision: Branch or commit the snapshot was taken at, if known.
    """

    source_url: str
    files: tuple[RepositoryFile, ...] = field(default_factory=tuple)
    total_file_count: int = 0
    revision: str | None = None

    def analysis(self) -> RepositoryAnalysis:
        """Derive the raw analysis record from the snapshot."""
        return RepositoryAnalysis(
            file_count=max(self.total_file_count, len(self.files)),
            solidity_file_count=sum(1 for f in self.files if f.is_solidity),
            total_lines=sum(f.line_count for f in self.files),
        )
