"""Configuration for AuditMarket."""

from auditmarket.config.marketplace_config import (
    DEFAULT_MARKETPLACE_CONFIG,
    EstimationConfig,
    LedgerConfig,
    MarketplaceConfig,
    RepositorySourceConfig,
    StorageConfig,
)

__all__ = [
    "DEFAULT_MARKETPLACE_CONFIG",
    "EstimationConfig",
    "LedgerConfig",
    "MarketplaceConfig",
    "RepositorySourceConfig",
    "StorageConfig",
]
