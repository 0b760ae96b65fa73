"""Shared value helpers for domain models."""

from __future__ import annotations

from datetime import datetime, timezone

from eth_utils import is_address, to_checksum_address


def utc_now() -> datetime:
    """Return current UTC time with timezone info."""
    return datetime.now(timezone.utc)


def normalize_address(address: str, field_name: str = "address") -> str:
    """Validate a ledger account address and return its checksum form.

    Args:
        address: Hex address, any casing, with 0x prefix.
        field_name: Field name used in the error message.

    Returns:
        EIP-55 checksummed address.

    Raises:
        ValueError: If the value is not a 20-byte hex address.
    """
    if not isinstance(address, str) or not is_address(address.strip()):
        raise ValueError(f"{field_name} must be a 0x-prefixed 20-byte hex address")
    return to_checksum_address(address.strip())


def same_address(left: str | None, right: str | None) -> bool:
    """Compare two addresses case-insensitively."""
    if left is None or right is None:
        return False
    return left.lower() == right.lower()
