"""Estimation backend adapters."""

from auditmarket.infrastructure.adapters.estimation.openai_estimation_backend import (
    OpenAIEstimationBackend,
    extract_json_object,
)

__all__ = ["OpenAIEstimationBackend", "extract_json_object"]
