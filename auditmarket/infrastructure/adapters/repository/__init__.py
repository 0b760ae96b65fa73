"""Repository source adapters."""

from auditmarket.infrastructure.adapters.repository.github_repository_source import (
    GitHubRepositorySource,
    parse_github_url,
)

__all__ = ["GitHubRepositorySource", "parse_github_url"]
