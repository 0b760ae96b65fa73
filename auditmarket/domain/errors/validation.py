"""Validation error for malformed or out-of-range input.

Raised wherever input shape or range is wrong: reviewer counts outside
[1, 3], negotiated prices below the floor, unknown severities, malformed
content identifiers. Surfaced to callers as a 400.
"""

from __future__ import annotations

from auditmarket.domain.exceptions import AuditMarketError


class ValidationError(AuditMarketError):
    """Raised when caller-supplied data fails validation.

    This error is recovered locally by the caller: fix the input and retry.

    Attributes:
        field: Name of the offending field (empty when not field-specific).
        reason: Description of why the value was rejected.
    """

    def __init__(self, field: str, reason: str) -> None:
        """Initialize validation error.

        Args:
            field: Name of the offending field.
            reason: Why the value was rejected.
        """
        self.field = field
        self.reason = reason
        prefix = f"Invalid {field}: " if field else ""
        super().__init__(f"{prefix}{reason}")
