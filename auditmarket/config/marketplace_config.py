"""Marketplace configuration loaded from the environment.

Each external collaborator gets its own frozen config so adapters only see
the settings they use. Every value can be overridden via environment
variables; invalid numeric values fall back to their defaults.

Environment Variables (Marketplace):
- MARKETPLACE_BACKEND: "memory" (in-process stubs) or "production" (default: memory)
- ENVIRONMENT: "production" selects JSON logs (default: development)
- PLATFORM_NAME: Name embedded in evidence documents (default: AuditMarket)

Environment Variables (Estimation):
- ESTIMATION_API_KEY: Credential for the reasoning service (unset = fallback only)
- ESTIMATION_API_URL: Base URL of an OpenAI-compatible API (default: https://api.openai.com/v1)
- ESTIMATION_MODEL: Model name (default: gpt-4o)
- ESTIMATION_TIMEOUT_SECONDS: Request timeout (default: 30.0)
- ESTIMATION_TEMPERATURE: Sampling temperature (default: 0.1)

Environment Variables (Storage):
- PINATA_JWT: Pinata API token (required for production storage)
- PINATA_API_URL: Pinning API base (default: https://api.pinata.cloud)
- IPFS_GATEWAY_URL: Public gateway (default: https://gateway.pinata.cloud/ipfs)
- STORAGE_TIMEOUT_SECONDS: Request timeout (default: 30.0)

Environment Variables (Ledger):
- LEDGER_RPC_URL: JSON-RPC endpoint (default: https://curtis.rpc.caldera.xyz/http)
- LEDGER_CHAIN_ID: Chain id (default: 33111)
- LEDGER_NETWORK_NAME: Display name (default: ApeChain Testnet)
- LEDGER_EXPLORER_URL: Block explorer base (default: https://curtis.explorer.caldera.xyz)
- LEDGER_CONTRACT_ARTIFACT: Path to the compiled record contract JSON (abi + bytecode)
- LEDGER_PRIVATE_KEYS: Comma-separated signer keys held by the service
- LEDGER_RECEIPT_TIMEOUT_SECONDS: Receipt wait timeout (default: 300)

Environment Variables (Repository source):
- GITHUB_API_URL: GitHub REST base (default: https://api.github.com)
- GITHUB_TOKEN: Optional token for higher rate limits
- REPOSITORY_MAX_FILES: Maximum source files fetched per snapshot (default: 20)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from auditmarket.domain.models.evidence import PlatformInfo

# Placeholder key shipped in sample env files; treated as "not configured"
PLACEHOLDER_API_KEY = "sk-your-openai-api-key-here"
MIN_API_KEY_LENGTH = 20


def _get_int_env(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed integer value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float_env(key: str, default: float) -> float:
    """Get float environment variable with default."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_str_env(key: str, default: str | None = None) -> str | None:
    value = os.environ.get(key)
    if value is None or not value.strip():
        return default
    return value.strip()


@dataclass(frozen=True)
class EstimationConfig:
    """Configuration for the reasoning-service estimation backend.

    Attributes:
        api_key: Credential; None or a placeholder disables the backend.
        api_url: Base URL of the chat-completions API.
        model: Model name.
        timeout_seconds: Per-request timeout.
        temperature: Sampling temperature.
    """

    api_key: str | None = None
    api_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4o"
    timeout_seconds: float = 30.0
    temperature: float = 0.1

    def __post_init__(self) -> None:
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {self.timeout_seconds}")
        if not 0 <= self.temperature <= 2:
            raise ValueError(f"temperature must be within [0, 2], got {self.temperature}")

    @property
    def has_usable_key(self) -> bool:
        """False for a missing, placeholder or implausibly short credential."""
        return (
            self.api_key is not None
            and self.api_key != PLACEHOLDER_API_KEY
            and len(self.api_key) >= MIN_API_KEY_LENGTH
        )

    @classmethod
    def from_environment(cls) -> EstimationConfig:
        return cls(
            api_key=_get_str_env("ESTIMATION_API_KEY"),
            api_url=_get_str_env("ESTIMATION_API_URL", cls.api_url) or cls.api_url,
            model=_get_str_env("ESTIMATION_MODEL", cls.model) or cls.model,
            timeout_seconds=_get_float_env("ESTIMATION_TIMEOUT_SECONDS", cls.timeout_seconds),
            temperature=_get_float_env("ESTIMATION_TEMPERATURE", cls.temperature),
        )


@dataclass(frozen=True)
class StorageConfig:
    """Configuration for the Pinata/IPFS content store."""

    pinata_jwt: str | None = None
    api_url: str = "https://api.pinata.cloud"
    gateway_url: str = "https://gateway.pinata.cloud/ipfs"
    timeout_seconds: float = 30.0

    def __post_init__(self) -> None:
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {self.timeout_seconds}")

    @classmethod
    def from_environment(cls) -> StorageConfig:
        return cls(
            pinata_jwt=_get_str_env("PINATA_JWT"),
            api_url=_get_str_env("PINATA_API_URL", cls.api_url) or cls.api_url,
            gateway_url=_get_str_env("IPFS_GATEWAY_URL", cls.gateway_url) or cls.gateway_url,
            timeout_seconds=_get_float_env("STORAGE_TIMEOUT_SECONDS", cls.timeout_seconds),
        )


@dataclass(frozen=True)
class LedgerConfig:
    """Configuration for the EVM ledger adapter.

    Attributes:
        rpc_url: JSON-RPC endpoint.
        chain_id: Chain id used when signing.
        network_name: Display name embedded in evidence.
        explorer_url: Block explorer base URL.
        contract_artifact: Path to compiled contract JSON with abi and bytecode.
        private_keys: Signer keys held by the service.
        receipt_timeout_seconds: How long to wait for a receipt.
    """

    rpc_url: str = "https://curtis.rpc.caldera.xyz/http"
    chain_id: int = 33111
    network_name: str = "ApeChain Testnet"
    explorer_url: str = "https://curtis.explorer.caldera.xyz"
    contract_artifact: str | None = None
    private_keys: tuple[str, ...] = field(default_factory=tuple, repr=False)
    receipt_timeout_seconds: int = 300

    def __post_init__(self) -> None:
        if self.chain_id <= 0:
            raise ValueError(f"chain_id must be positive, got {self.chain_id}")
        if self.receipt_timeout_seconds <= 0:
            raise ValueError(
                f"receipt_timeout_seconds must be positive, got {self.receipt_timeout_seconds}"
            )

    @classmethod
    def from_environment(cls) -> LedgerConfig:
        keys = _get_str_env("LEDGER_PRIVATE_KEYS", "") or ""
        return cls(
            rpc_url=_get_str_env("LEDGER_RPC_URL", cls.rpc_url) or cls.rpc_url,
            chain_id=_get_int_env("LEDGER_CHAIN_ID", cls.chain_id),
            network_name=_get_str_env("LEDGER_NETWORK_NAME", cls.network_name)
            or cls.network_name,
            explorer_url=_get_str_env("LEDGER_EXPLORER_URL", cls.explorer_url)
            or cls.explorer_url,
            contract_artifact=_get_str_env("LEDGER_CONTRACT_ARTIFACT"),
            private_keys=tuple(k.strip() for k in keys.split(",") if k.strip()),
            receipt_timeout_seconds=_get_int_env(
                "LEDGER_RECEIPT_TIMEOUT_SECONDS", cls.receipt_timeout_seconds
            ),
        )


@dataclass(frozen=True)
class RepositorySourceConfig:
    """Configuration for the GitHub repository source."""

    api_url: str = "https://api.github.com"
    token: str | None = field(default=None, repr=False)
    max_files: int = 20
    timeout_seconds: float = 30.0

    def __post_init__(self) -> None:
        if self.max_files < 1:
            raise ValueError(f"max_files must be >= 1, got {self.max_files}")

    @classmethod
    def from_environment(cls) -> RepositorySourceConfig:
        return cls(
            api_url=_get_str_env("GITHUB_API_URL", cls.api_url) or cls.api_url,
            token=_get_str_env("GITHUB_TOKEN"),
            max_files=_get_int_env("REPOSITORY_MAX_FILES", cls.max_files),
        )


@dataclass(frozen=True)
class MarketplaceConfig:
    """Top-level configuration: which backend to wire and the collaborators' settings."""

    backend: str = "memory"
    environment: str = "development"
    platform_name: str = "AuditMarket"
    estimation: EstimationConfig = field(default_factory=EstimationConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    repository: RepositorySourceConfig = field(default_factory=RepositorySourceConfig)

    VALID_BACKENDS = ("memory", "production")

    def __post_init__(self) -> None:
        if self.backend not in self.VALID_BACKENDS:
            raise ValueError(
                f"backend must be one of {self.VALID_BACKENDS}, got {self.backend!r}"
            )

    @property
    def platform_info(self) -> PlatformInfo:
        """Platform block embedded in evidence documents."""
        return PlatformInfo(
            name=self.platform_name,
            network=self.ledger.network_name,
            chain_id=self.ledger.chain_id,
            gateway_url=self.storage.gateway_url,
        )

    @classmethod
    def from_environment(cls) -> MarketplaceConfig:
        return cls(
            backend=(_get_str_env("MARKETPLACE_BACKEND", "memory") or "memory").lower(),
            environment=_get_str_env("ENVIRONMENT", "development") or "development",
            platform_name=_get_str_env("PLATFORM_NAME", "AuditMarket") or "AuditMarket",
            estimation=EstimationConfig.from_environment(),
            storage=StorageConfig.from_environment(),
            ledger=LedgerConfig.from_environment(),
            repository=RepositorySourceConfig.from_environment(),
        )


DEFAULT_MARKETPLACE_CONFIG = MarketplaceConfig()
