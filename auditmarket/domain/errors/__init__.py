"""Domain errors for AuditMarket.

Provides the error taxonomy shared by services, adapters and routes.
All exceptions inherit from AuditMarketError.
"""

from auditmarket.domain.errors.authorization import AuthorizationError
from auditmarket.domain.errors.conflict import (
    ConflictError,
    InvalidStateTransitionError,
)
from auditmarket.domain.errors.external_service import ExternalServiceError
from auditmarket.domain.errors.not_found import (
    AuditRequestNotFoundError,
    PendingSubmissionNotFoundError,
)
from auditmarket.domain.errors.validation import ValidationError

__all__: list[str] = [
    "AuditRequestNotFoundError",
    "AuthorizationError",
    "ConflictError",
    "ExternalServiceError",
    "InvalidStateTransitionError",
    "PendingSubmissionNotFoundError",
    "ValidationError",
]
