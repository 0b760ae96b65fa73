"""Project tag generation for audit requests.

Tags are derived from the estimate and the optional repository analysis,
then merged with the submitter's own tags. Generation is deterministic so
the request evidence document (which lists the tags) stays canonical.
"""

from __future__ import annotations

from collections.abc import Iterable

from auditmarket.domain.models.estimation import (
    Complexity,
    EstimationReport,
    RepositoryAnalysis,
)

MAX_TAG_LENGTH = 50
MAX_TAGS = 20


def _normalize_tag(tag: str) -> str:
    return "-".join(tag.strip().lower().split())[:MAX_TAG_LENGTH]


def generate_project_tags(
    estimation: EstimationReport,
    analysis: RepositoryAnalysis | None = None,
    user_tags: Iterable[str] = (),
) -> frozenset[str]:
    """Build the tag set for a request.

    Args:
        estimation: The estimate captured for the request.
        analysis: Optional repository analysis driving size tags.
        user_tags: Tags supplied by the submitter.

    Returns:
        Frozen set of normalized tags, at most MAX_TAGS of them.
    """
    tags = {f"complexity-{estimation.complexity.value.lower()}"}

    if analysis is not None:
        if analysis.solidity_file_count > 10:
            tags.add("large-codebase")
        elif analysis.solidity_file_count > 5:
            tags.add("medium-codebase")
        else:
            tags.add("small-codebase")

        if analysis.total_lines > 5000:
            tags.add("extensive-code")
        elif analysis.total_lines > 1000:
            tags.add("moderate-code")

    if estimation.complexity in (Complexity.HIGH, Complexity.CRITICAL):
        tags.add("high-risk")

    if estimation.duration_days > 14:
        tags.add("long-term")
    elif estimation.duration_days > 7:
        tags.add("medium-term")
    else:
        tags.add("short-term")

    # Generated tags are never dropped; user tags are trimmed alphabetically
    extra = sorted({_normalize_tag(t) for t in user_tags} - tags - {""})
    return frozenset(tags | set(extra[: max(MAX_TAGS - len(tags), 0)]))


_DERIVED_TAGS = frozenset(
    {
        "small-codebase",
        "medium-codebase",
        "large-codebase",
        "moderate-code",
        "extensive-code",
        "high-risk",
        "short-term",
        "medium-term",
        "long-term",
    }
)


def is_generated_tag(tag: str) -> bool:
    """True for tags generate_project_tags derives rather than copies from the submitter."""
    return tag.startswith("complexity-") or tag in _DERIVED_TAGS
