"""Audit estimation engine with deterministic fallback.

The engine maps a repository identifier (plus an optional raw analysis)
to a complexity class, price, duration and explanatory report. It is
total: it never raises to its caller. The reasoning backend is tried
first; any fault (no credential, timeout, HTTP error, malformed or
out-of-range response) drops to the rule-based classifier.

The classifier is a pure function of the repository name, so a quote
shown on one screen is reproduced exactly on the next.

Fallback profiles (first matching pattern group wins):
    protocol|defi|dex|swap|lending|yield|bridge|cross-chain -> High, 35000, 12 days
    nft|marketplace|collection|mint                        -> Medium, 18000, 8 days
    token|erc20|erc721|erc1155                             -> Low, 6000, 3 days
    anything else                                          -> Medium, 12000, 6 days
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from auditmarket.application.ports.estimation_backend import (
    EstimationBackendError,
    EstimationBackendProtocol,
)
from auditmarket.application.services.base import LoggingMixin
from auditmarket.domain.models.estimation import (
    Complexity,
    EstimationReport,
    EstimationSource,
    RepositoryAnalysis,
)
from auditmarket.domain.models.pricing import limit_to_cents
from auditmarket.infrastructure.monitoring.metrics import (
    PipelineMetrics,
    get_pipeline_metrics,
)

MINIMUM_PRICE_RATIO = Decimal("0.75")

_GITHUB_URL_PATTERN = re.compile(r"github\.com/([^/\s]+)/([^/\s?#]+)", re.IGNORECASE)


@dataclass(frozen=True)
class _FallbackProfile:
    complexity: Complexity
    price: int
    duration_days: int
    patterns: tuple[str, ...]
    risk_factors: tuple[str, ...]
    recommendations: tuple[str, ...]


_DEFI_PROFILE = _FallbackProfile(
    complexity=Complexity.HIGH,
    price=35000,
    duration_days=12,
    patterns=("protocol", "defi", "dex", "swap", "lending", "yield", "bridge", "cross-chain"),
    risk_factors=(
        "Reentrancy attacks in DeFi protocols",
        "Flash loan attack vectors",
        "Oracle manipulation and price feed attacks",
        "MEV (Maximal Extractable Value) exploitation",
        "Cross-chain bridge vulnerabilities",
        "Governance token manipulation",
        "Economic attack vectors and tokenomics exploits",
        "Smart contract upgrade vulnerabilities",
    ),
    recommendations=(
        "Comprehensive security review with focus on DeFi-specific vulnerabilities",
        "Economic analysis and tokenomics review",
        "Flash loan attack simulation and testing",
        "Oracle integration security assessment",
        "Cross-chain interaction security review",
        "Governance mechanism security analysis",
        "Formal verification for critical functions",
        "Gas optimization and MEV protection analysis",
    ),
)

_NFT_PROFILE = _FallbackProfile(
    complexity=Complexity.MEDIUM,
    price=18000,
    duration_days=8,
    patterns=("nft", "marketplace", "collection", "mint"),
    risk_factors=(
        "NFT minting vulnerabilities and supply manipulation",
        "Marketplace fee manipulation and economic attacks",
        "Metadata and IPFS security considerations",
        "Royalty mechanism vulnerabilities",
        "Access control and permission management",
        "Gas optimization for batch operations",
    ),
    recommendations=(
        "NFT marketplace security review",
        "Minting mechanism and supply control analysis",
        "Metadata and IPFS integration security",
        "Royalty and fee mechanism review",
        "Access control and permission system audit",
        "Gas optimization for batch operations",
    ),
)

_TOKEN_PROFILE = _FallbackProfile(
    complexity=Complexity.LOW,
    price=6000,
    duration_days=3,
    patterns=("token", "erc20", "erc721", "erc1155"),
    risk_factors=(
        "Token standard compliance issues",
        "Minting and burning mechanism vulnerabilities",
        "Access control and permission management",
        "Integer overflow/underflow in token operations",
        "Gas optimization opportunities",
    ),
    recommendations=(
        "ERC standard compliance verification",
        "Minting and burning mechanism security review",
        "Access control and permission system audit",
        "Gas optimization analysis",
        "Basic security vulnerability scanning",
    ),
)

_DEFAULT_PROFILE = _FallbackProfile(
    complexity=Complexity.MEDIUM,
    price=12000,
    duration_days=6,
    patterns=(),
    risk_factors=(
        "Reentrancy vulnerabilities",
        "Access control issues",
        "Integer overflow/underflow",
        "Front-running attacks",
        "Oracle manipulation",
        "Gas optimization opportunities",
    ),
    recommendations=(
        "Manual code review",
        "Automated security scanning",
        "Gas optimization analysis",
        "Integration testing",
        "Formal verification for critical functions",
    ),
)

# Order matters: the first profile with a matching pattern wins
_FALLBACK_PROFILES: tuple[_FallbackProfile, ...] = (_DEFI_PROFILE, _NFT_PROFILE, _TOKEN_PROFILE)


def parse_repository_identifier(identifier: str) -> tuple[str, str]:
    """Split a repository identifier into (owner, repository name).

    Accepts GitHub URLs, "owner/repo" paths and bare names. Missing parts
    come back as "unknown".
    """
    text = (identifier or "").strip()
    match = _GITHUB_URL_PATTERN.search(text)
    if match:
        return match.group(1), match.group(2).removesuffix(".git")
    text = re.sub(r"^[a-z][a-z0-9+.-]*://", "", text, flags=re.IGNORECASE)
    parts = [p for p in text.split("/") if p]
    if len(parts) >= 2:
        return parts[-2], parts[-1].removesuffix(".git")
    if parts:
        return "unknown", parts[0].removesuffix(".git")
    return "unknown", "unknown"


def minimum_price_for(price: Decimal) -> Decimal:
    """floor(price * 0.75) as a whole-unit Decimal."""
    return Decimal(int(price * MINIMUM_PRICE_RATIO))


def _effort_breakdown(days: int) -> str:
    return (
        f"{days} days total: {days * 5 // 10} days security review, "
        f"{days * 2 // 10} days gas optimization, {days * 2 // 10} days economic analysis, "
        f"{days // 10} days integration testing"
    )


def classify_repository(identifier: str) -> EstimationReport:
    """Deterministic rule-based estimate keyed on the repository name.

    Pure: identical input always yields an identical report.

    Args:
        identifier: GitHub URL, "owner/repo" path or bare repository name.

    Returns:
        EstimationReport with source FALLBACK.
    """
    owner, repo = parse_repository_identifier(identifier)
    name = repo.lower()
    profile = next(
        (p for p in _FALLBACK_PROFILES if any(pattern in name for pattern in p.patterns)),
        _DEFAULT_PROFILE,
    )
    price = Decimal(profile.price)
    level = profile.complexity.value.lower()
    return EstimationReport(
        complexity=profile.complexity,
        duration_days=profile.duration_days,
        price=price,
        minimum_price=minimum_price_for(price),
        reasoning=(
            f'Fallback analysis of repository "{repo}" by "{owner}". Detected {level} '
            f"complexity requiring {profile.duration_days} days of audit work, based on "
            "repository naming patterns."
        ),
        risk_factors=profile.risk_factors,
        recommendations=profile.recommendations,
        audit_scope=(
            f"Comprehensive {level} complexity audit including security review, gas "
            "optimization, economic analysis and integration testing."
        ),
        estimated_effort=_effort_breakdown(profile.duration_days),
        source=EstimationSource.FALLBACK,
    )


def _positive_decimal(value: Any, field_name: str) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise ValueError(f"{field_name} is missing")
    try:
        number = Decimal(str(value).replace(",", "").lstrip("$"))
    except InvalidOperation:
        raise ValueError(f"{field_name} is not a number: {value!r}") from None
    if not number.is_finite() or number <= 0:
        raise ValueError(f"{field_name} must be positive: {value!r}")
    return number


def _price(value: Any, field_name: str) -> Decimal:
    price = limit_to_cents(_positive_decimal(value, field_name))
    if price <= 0:
        raise ValueError(f"{field_name} rounds to zero: {value!r}")
    return price


def _string_list(value: Any, field_name: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{field_name} must be a list of strings")
    return tuple(v.strip() for v in value if v.strip())


def normalize_backend_estimate(raw: dict[str, Any]) -> EstimationReport:
    """Validate a reasoning-service response into an EstimationReport.

    Accepts either a flat estimate or one nested under "estimation".
    Complexity may use the Simple/Medium/Complex or the
    Low/Medium/High/Critical scale; anything else is rejected.

    Raises:
        ValueError: If any field is missing, free text or out of range.
    """
    if not isinstance(raw, dict):
        raise ValueError("estimate must be a JSON object")
    data = raw.get("estimation", raw)
    if not isinstance(data, dict):
        raise ValueError("estimation must be a JSON object")

    complexity = Complexity.parse(data.get("complexity", ""))
    price = _price(data.get("price"), "price")
    duration = _positive_decimal(data.get("durationDays", data.get("duration_days")), "durationDays")
    if duration != duration.to_integral_value():
        raise ValueError(f"durationDays must be a whole number: {duration}")
    raw_minimum = data.get("minimumPrice", data.get("minimum_price"))
    minimum = (
        minimum_price_for(price)
        if raw_minimum is None
        else _price(raw_minimum, "minimumPrice")
    )
    if minimum > price:
        raise ValueError("minimumPrice exceeds price")

    reasoning = data.get("reasoning") or "Estimate produced by the reasoning service."
    if not isinstance(reasoning, str):
        raise ValueError("reasoning must be text")
    return EstimationReport(
        complexity=complexity,
        duration_days=int(duration),
        price=price,
        minimum_price=minimum,
        reasoning=reasoning.strip(),
        risk_factors=_string_list(data.get("riskFactors"), "riskFactors"),
        recommendations=_string_list(data.get("recommendations"), "recommendations"),
        audit_scope=str(data.get("auditScope") or ""),
        estimated_effort=str(data.get("estimatedEffort") or _effort_breakdown(int(duration))),
        source=EstimationSource.AI,
    )


class EstimationEngine(LoggingMixin):
    """Produces audit estimates, preferring the reasoning backend.

    The engine never raises: every backend fault is converted to the
    deterministic fallback and logged.
    """

    def __init__(
        self,
        backend: EstimationBackendProtocol | None = None,
        metrics: PipelineMetrics | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            backend: Optional reasoning backend; None means fallback only.
            metrics: Pipeline metrics (defaults to the process collector).
        """
        self._backend = backend
        self._metrics = metrics or get_pipeline_metrics()
        self._init_logger(component="estimation")

    async def estimate(
        self,
        repository: str,
        analysis: RepositoryAnalysis | None = None,
    ) -> EstimationReport:
        """Estimate complexity, price and duration for a repository.

        Args:
            repository: Repository URL or identifier.
            analysis: Optional raw analysis passed to the backend.

        Returns:
            EstimationReport from the backend, or the fallback report.
        """
        log = self._log_operation("estimate", repository=repository)

        if self._backend is None or not self._backend.is_configured():
            log.info("estimation_backend_unavailable", fallback=True)
            return self._fallback(repository)

        try:
            raw = await self._backend.estimate(repository, analysis)
            report = normalize_backend_estimate(raw)
        except EstimationBackendError as exc:
            log.warning("estimation_backend_failed", error=str(exc), fallback=True)
            return self._fallback(repository)
        except (ValueError, TypeError) as exc:
            log.warning("estimation_response_rejected", error=str(exc), fallback=True)
            return self._fallback(repository)
        except Exception as exc:
            log.exception(
                "estimation_backend_error",
                error_type=type(exc).__name__,
                fallback=True,
            )
            return self._fallback(repository)

        self._metrics.record_estimation(EstimationSource.AI.value)
        log.info(
            "estimation_completed",
            source=report.source.value,
            complexity=report.complexity.value,
            price=str(report.price),
            duration_days=report.duration_days,
        )
        return report

    def quick_estimate(self, repository: str) -> EstimationReport:
        """Deterministic pass only, for instant quotes before the backend answers."""
        self._log_operation("quick_estimate", repository=repository).debug(
            "estimation_fast_path"
        )
        return self._fallback(repository)

    def _fallback(self, repository: str) -> EstimationReport:
        report = classify_repository(repository)
        self._metrics.record_estimation(EstimationSource.FALLBACK.value)
        return report
