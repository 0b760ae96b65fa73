"""Base exception classes for the AuditMarket domain layer."""


class AuditMarketError(Exception):
    """Base exception for all domain errors.

    All domain-specific exceptions MUST inherit from this class so the API
    layer can map the whole taxonomy onto HTTP responses in one place.

    Subclasses:
    - ValidationError
    - ConflictError
    - ExternalServiceError
    - AuthorizationError
    - AuditRequestNotFoundError
    """

    def __init__(self, message: str = "") -> None:
        """Initialize the exception with an optional message.

        Args:
            message: Human-readable error description.
        """
        super().__init__(message)
