"""Estimation backend port (best-effort reasoning service).

Nothing raised by a backend ever propagates past the estimation engine:
the engine converts every failure into its deterministic fallback.
"""

from __future__ import annotations

from typing import Any, Protocol

from auditmarket.domain.models.estimation import RepositoryAnalysis


class EstimationBackendError(Exception):
    """Raised by backends for any failure (timeout, HTTP error, bad JSON)."""


class EstimationBackendProtocol(Protocol):
    """Protocol for an external audit estimation service."""

    def is_configured(self) -> bool:
        """False when the backend lacks a usable credential or endpoint."""
        ...

    async def estimate(
        self,
        repository_url: str,
        analysis: RepositoryAnalysis | None = None,
    ) -> dict[str, Any]:
        """Request an estimate.

        Returns:
            Raw estimate with complexity, price, durationDays, minimumPrice,
            reasoning, riskFactors and recommendations keys.

        Raises:
            EstimationBackendError: On any failure.
        """
        ...
