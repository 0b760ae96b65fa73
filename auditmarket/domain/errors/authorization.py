"""Authorization errors for signer and party checks.

A signer that is not the expected owner must never be silently swapped for
another one, since that would mint a certificate to the wrong identity.
These errors are fatal and never retried automatically.
"""

from __future__ import annotations

from auditmarket.domain.exceptions import AuditMarketError


class AuthorizationError(AuditMarketError):
    """Raised when the acting address is not the one authorized for an action.

    Attributes:
        expected_address: Address authorized for the action.
        actual_address: Address that attempted it.
        action: The action that was refused.
    """

    def __init__(self, expected_address: str, actual_address: str, action: str) -> None:
        """Initialize authorization error.

        Args:
            expected_address: Address authorized for the action.
            actual_address: Address that attempted it.
            action: The refused action.
        """
        self.expected_address = expected_address
        self.actual_address = actual_address
        self.action = action
        super().__init__(
            f"{actual_address} is not authorized to {action}; "
            f"expected {expected_address}"
        )
