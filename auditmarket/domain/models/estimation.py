"""Estimation domain models.

Complexity classes, the optional raw repository analysis, and the
estimation report captured with every audit request. The report is an
input to submission: it is persisted exactly as it was quoted, so the
price a submitter saw never drifts from the price that was stored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class Complexity(Enum):
    """Complexity class of an audit request.

    Critical is only produced by the reasoning backend; the deterministic
    classifier tops out at High.
    """

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

    @classmethod
    def parse(cls, value: str) -> Complexity:
        """Parse a complexity label, accepting the Simple/Medium/Complex scale.

        Args:
            value: Label such as "High", "critical" or "Complex".

        Returns:
            Matching Complexity member.

        Raises:
            ValueError: If the label is not a known complexity class.
        """
        normalized = str(value).strip().lower()
        aliases = {"simple": cls.LOW, "complex": cls.HIGH}
        if normalized in aliases:
            return aliases[normalized]
        for member in cls:
            if member.value.lower() == normalized:
                return member
        raise ValueError(f"Unknown complexity: {value!r}")


class EstimationSource(Enum):
    """Which estimation path produced a report."""

    AI = "ai"
    FALLBACK = "fallback"
    CAPTURED = "captured"


@dataclass(frozen=True)
class RepositoryAnalysis:
    """Raw analysis of a repository snapshot.

    Attributes:
        file_count: Total files in the repository tree.
        solidity_file_count: Number of .sol files.
        total_lines: Lines across the analysed source files.
    """

    file_count: int
    solidity_file_count: int
    total_lines: int

    def __post_init__(self) -> None:
        if self.file_count < 0 or self.solidity_file_count < 0 or self.total_lines < 0:
            raise ValueError("Repository analysis counts must be non-negative")

    def to_dict(self) -> dict[str, int]:
        return {
            "file_count": self.file_count,
            "solidity_file_count": self.solidity_file_count,
            "total_lines": self.total_lines,
        }


def duration_label(duration_days: int) -> str:
    """Render a duration as the bucketed label shown on quotes."""
    if duration_days <= 2:
        return "1-2 days"
    if duration_days <= 5:
        return "3-5 days"
    if duration_days <= 10:
        return "7-10 days"
    return f"{duration_days} days"


@dataclass(frozen=True)
class EstimationReport:
    """Complexity, price and duration estimate with its explanation.

    Attributes:
        complexity: Complexity class (never free text).
        duration_days: Estimated audit duration, positive.
        price: Proposed price, positive.
        minimum_price: Floor for negotiation, positive and <= price.
        reasoning: Human-readable explanation of the estimate.
        risk_factors: Risks that drove the estimate.
        recommendations: Suggested audit focus areas.
        audit_scope: Scope statement for the audit.
        estimated_effort: Effort breakdown by audit phase.
        source: Which path produced the report.
    """

    complexity: Complexity
    duration_days: int
    price: Decimal
    minimum_price: Decimal
    reasoning: str
    risk_factors: tuple[str, ...] = field(default_factory=tuple)
    recommendations: tuple[str, ...] = field(default_factory=tuple)
    audit_scope: str = ""
    estimated_effort: str = ""
    source: EstimationSource = EstimationSource.FALLBACK

    def __post_init__(self) -> None:
        """Validate estimate ranges."""
        if self.duration_days <= 0:
            raise ValueError("duration_days must be positive")
        if self.price <= 0:
            raise ValueError("price must be positive")
        if self.minimum_price <= 0:
            raise ValueError("minimum_price must be positive")
        if self.minimum_price > self.price:
            raise ValueError("minimum_price cannot exceed price")

    @property
    def duration_label(self) -> str:
        return duration_label(self.duration_days)

    def to_dict(self) -> dict[str, object]:
        """Serialize with decimals as strings for canonical documents."""
        return {
            "complexity": self.complexity.value,
            "duration_days": self.duration_days,
            "duration": self.duration_label,
            "price": str(self.price),
            "minimum_price": str(self.minimum_price),
            "reasoning": self.reasoning,
            "risk_factors": list(self.risk_factors),
            "recommendations": list(self.recommendations),
            "audit_scope": self.audit_scope,
            "estimated_effort": self.estimated_effort,
            "source": self.source.value,
        }
