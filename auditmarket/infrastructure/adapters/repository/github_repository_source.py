"""GitHub repository source.

Fetches the recursive tree of a repository at a branch (the default
branch unless the URL names one) and downloads up to max_files Solidity
files through the contents API. Files are taken in tree order, which
GitHub sorts by path, so the snapshot and its fingerprint are stable for
an unchanged revision.
"""

from __future__ import annotations

import base64
import binascii
import re
from typing import Any

import httpx
import structlog

from auditmarket.config.marketplace_config import RepositorySourceConfig
from auditmarket.domain.errors import ExternalServiceError, ValidationError
from auditmarket.domain.models.repository import RepositoryFile, RepositorySnapshot

log = structlog.get_logger()

SERVICE = "repository_source"

_GITHUB_REPO_PATTERN = re.compile(
    r"^(?:https?://)?(?:www\.)?github\.com/([^/\s]+)/([^/\s?#]+?)(?:\.git)?"
    r"(?:/tree/([^?#\s]+))?/?(?:[?#].*)?$",
    re.IGNORECASE,
)
# owner/repo shorthand; GitHub owners never contain dots, so hosts do not match
_SHORTHAND_PATTERN = re.compile(r"^([A-Za-z0-9][A-Za-z0-9-]*)/([A-Za-z0-9._-]+?)(?:\.git)?/?$")


def parse_github_url(source_url: str) -> tuple[str, str, str | None]:
    """Split a GitHub URL or "owner/repo" into (owner, repository, branch or None).

    Raises:
        ValidationError: If the value names no GitHub repository.
    """
    text = (source_url or "").strip()
    match = _GITHUB_REPO_PATTERN.match(text)
    if match is not None:
        return match.group(1), match.group(2), match.group(3)
    shorthand = _SHORTHAND_PATTERN.match(text)
    if shorthand is not None:
        return shorthand.group(1), shorthand.group(2), None
    raise ValidationError("source_url", "must be a GitHub repository URL or owner/repo")


class GitHubRepositorySource:
    """RepositorySourceProtocol implementation over the GitHub REST API.

    Args:
        config: Repository source configuration.
        transport: Optional httpx transport (tests pass httpx.MockTransport).
    """

    def __init__(
        self,
        config: RepositorySourceConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self._config.token:
            headers["Authorization"] = f"Bearer {self._config.token}"
        return headers

    async def _get_json(self, client: httpx.AsyncClient, url: str, step: str) -> Any:
        try:
            response = await client.get(url, headers=self._headers())
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            raise ExternalServiceError(
                step=step,
                service=SERVICE,
                reason=f"HTTP {exc.response.status_code} for {url}",
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise ExternalServiceError(
                step=step, service=SERVICE, reason=str(exc) or type(exc).__name__
            ) from exc

    async def fetch_snapshot(self, source_url: str) -> RepositorySnapshot:
        owner, repo, branch = parse_github_url(source_url)
        base = f"{self._config.api_url.rstrip('/')}/repos/{owner}/{repo}"

        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=self._config.timeout_seconds,
        ) as client:
            if branch is None:
                info = await self._get_json(client, base, "fetch_repository")
                branch = info.get("default_branch") or "main"

            tree = await self._get_json(
                client, f"{base}/git/trees/{branch}?recursive=1", "fetch_tree"
            )
            entries = tree.get("tree", [])
            solidity = [
                e for e in entries if e.get("type") == "blob" and e.get("path", "").endswith(".sol")
            ]

            files = []
            for entry in solidity[: self._config.max_files]:
                data = await self._get_json(
                    client,
                    f"{base}/contents/{entry['path']}?ref={branch}",
                    "fetch_file",
                )
                try:
                    content = base64.b64decode(data.get("content", "")).decode("utf-8")
                except (binascii.Error, UnicodeDecodeError) as exc:
                    raise ExternalServiceError(
                        step="fetch_file",
                        service=SERVICE,
                        reason=f"undecodable content for {entry['path']}",
                    ) from exc
                files.append(RepositoryFile(path=entry["path"], content=content))

        log.info(
            "repository_snapshot_fetched",
            repository=f"{owner}/{repo}",
            branch=branch,
            total_files=len(entries),
            solidity_files=len(solidity),
            fetched=len(files),
        )
        return RepositorySnapshot(
            source_url=source_url,
            files=tuple(files),
            total_file_count=len(entries),
            revision=branch,
        )
