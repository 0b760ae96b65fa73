"""Audit finding domain model.

Findings belong to an audit request and are reported by the reviewer when
results are submitted. Once the request is Completed, findings are
append-only: new findings may be added, existing ones are never rewritten.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID

from auditmarket.domain.models.common import utc_now


class Severity(Enum):
    """Finding severity, ordered from least to most severe."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class VulnerabilityCategory(Enum):
    """Fixed vulnerability taxonomy for findings."""

    REENTRANCY = "reentrancy"
    INTEGER_OVERFLOW = "integer_overflow"
    ACCESS_CONTROL = "access_control"
    FRONTRUNNING = "frontrunning"
    UNCHECKED_CALLS = "unchecked_calls"
    INSECURE_RANDOMNESS = "insecure_randomness"
    TIMESTAMP_DEPENDENCE = "timestamp_dependence"
    UNPROTECTED_SELFDESTRUCT = "unprotected_selfdestruct"
    GAS_LIMIT = "gas_limit"
    ORACLE_MANIPULATION = "oracle_manipulation"
    OTHER = "other"


class FindingStatus(Enum):
    """Remediation status of a finding."""

    OPEN = "open"
    ACKNOWLEDGED = "acknowledged"
    RESOLVED = "resolved"


@dataclass(frozen=True, eq=True)
class Finding:
    """A single issue reported by a reviewer.

    Attributes:
        id: Finding identifier.
        request_id: Owning audit request.
        severity: Severity class.
        category: Vulnerability category from the fixed taxonomy.
        title: Short title.
        description: Full description.
        file_name: Source file the finding points at.
        line_number: 1-based line in file_name.
        status: Remediation status.
        recommendation: Suggested fix.
        created_at: When the finding was recorded.
    """

    id: UUID
    request_id: UUID
    severity: Severity
    category: VulnerabilityCategory
    title: str
    description: str
    file_name: str | None = None
    line_number: int | None = None
    status: FindingStatus = FindingStatus.OPEN
    recommendation: str | None = None
    created_at: datetime = field(default_factory=utc_now)

    MAX_TITLE_LENGTH: int = 300

    def __post_init__(self) -> None:
        """Validate finding fields."""
        if not self.title or not self.title.strip():
            raise ValueError("Finding title is required")
        if len(self.title) > self.MAX_TITLE_LENGTH:
            raise ValueError(f"Finding title exceeds {self.MAX_TITLE_LENGTH} characters")
        if not self.description or not self.description.strip():
            raise ValueError("Finding description is required")
        if self.line_number is not None and self.line_number < 1:
            raise ValueError("line_number must be >= 1")


def severity_breakdown(findings: list[Finding]) -> dict[str, int]:
    """Count findings per severity, including zero counts."""
    counts = {severity.value: 0 for severity in Severity}
    for finding in findings:
        counts[finding.severity.value] += 1
    return counts
