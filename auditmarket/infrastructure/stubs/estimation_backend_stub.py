"""Scripted estimation backend for testing the engine's fallback paths."""

from __future__ import annotations

from typing import Any

from auditmarket.application.ports.estimation_backend import EstimationBackendError
from auditmarket.domain.models.estimation import RepositoryAnalysis


class StubEstimationBackend:
    """Returns a canned response or raises a canned error.

    Example:
        >>> backend = StubEstimationBackend(response={"complexity": "Complex", ...})
        >>> engine = EstimationEngine(backend=backend)
    """

    def __init__(
        self,
        response: dict[str, Any] | None = None,
        error: Exception | None = None,
        configured: bool = True,
    ) -> None:
        self._response = response
        self._error = error
        self._configured = configured
        self.calls: list[tuple[str, RepositoryAnalysis | None]] = []

    def is_configured(self) -> bool:
        return self._configured

    async def estimate(
        self,
        repository_url: str,
        analysis: RepositoryAnalysis | None = None,
    ) -> dict[str, Any]:
        self.calls.append((repository_url, analysis))
        if self._error is not None:
            raise self._error
        if self._response is None:
            raise EstimationBackendError("no scripted response")
        return self._response
