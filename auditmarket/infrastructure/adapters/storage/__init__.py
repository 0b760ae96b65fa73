"""Content storage adapters."""

from auditmarket.infrastructure.adapters.storage.pinata_content_store import (
    PinataContentStore,
)

__all__ = ["PinataContentStore"]
