"""Unit tests for the GitHub repository source (httpx.MockTransport)."""

import base64

import httpx
import pytest

from auditmarket.config.marketplace_config import RepositorySourceConfig
from auditmarket.domain.errors import ExternalServiceError, ValidationError
from auditmarket.infrastructure.adapters.repository.github_repository_source import (
    GitHubRepositorySource,
    parse_github_url,
)

TREE = {
    "tree": [
        {"path": "README.md", "type": "blob"},
        {"path": "contracts", "type": "tree"},
        {"path": "contracts/Token.sol", "type": "blob"},
        {"path": "contracts/Vault.sol", "type": "blob"},
    ]
}
SOURCES = {
    "contracts/Token.sol": "contract Token {}\n",
    "contracts/Vault.sol": "contract Vault {\n}\n",
}


def _github(request: httpx.Request, failing_path: str | None = None) -> httpx.Response:
    path = request.url.path
    if path == "/repos/acme/vault":
        return httpx.Response(200, json={"default_branch": "develop"})
    if path == "/repos/acme/vault/git/trees/develop" or path == "/repos/acme/vault/git/trees/v2":
        return httpx.Response(200, json=TREE)
    prefix = "/repos/acme/vault/contents/"
    if path.startswith(prefix):
        file_path = path[len(prefix):]
        if file_path == failing_path:
            return httpx.Response(500)
        encoded = base64.b64encode(SOURCES[file_path].encode()).decode()
        return httpx.Response(200, json={"content": encoded, "encoding": "base64"})
    return httpx.Response(404)


def _source(handler=_github, **config) -> GitHubRepositorySource:
    return GitHubRepositorySource(
        RepositorySourceConfig(**config), transport=httpx.MockTransport(handler)
    )


class TestParseGithubUrl:
    """Tests for parse_github_url."""

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://github.com/acme/vault", ("acme", "vault", None)),
            ("github.com/acme/vault.git", ("acme", "vault", None)),
            ("https://www.github.com/acme/vault/", ("acme", "vault", None)),
            ("https://github.com/acme/vault/tree/release/v2", ("acme", "vault", "release/v2")),
            ("acme/vault", ("acme", "vault", None)),
            ("example/defi-bridge-v2", ("example", "defi-bridge-v2", None)),
            ("acme/vault.git/", ("acme", "vault", None)),
        ],
    )
    def test_parses(self, url: str, expected: tuple) -> None:
        """Common URL shapes are accepted."""
        assert parse_github_url(url) == expected

    @pytest.mark.parametrize(
        "url",
        ["", "https://gitlab.com/acme/vault", "gitlab.com/vault", "acme/vault/contracts", "vault"],
    )
    def test_rejects(self, url: str) -> None:
        """Anything else is a validation error on source_url."""
        with pytest.raises(ValidationError) as exc_info:
            parse_github_url(url)
        assert exc_info.value.field == "source_url"


class TestFetchSnapshot:
    """Tests for GitHubRepositorySource.fetch_snapshot."""

    @pytest.mark.asyncio
    async def test_fetches_solidity_files_on_default_branch(self) -> None:
        """Only .sol blobs are downloaded, at the default branch."""
        snapshot = await _source().fetch_snapshot("https://github.com/acme/vault")

        assert snapshot.revision == "develop"
        assert [f.path for f in snapshot.files] == ["contracts/Token.sol", "contracts/Vault.sol"]
        assert snapshot.files[1].content == SOURCES["contracts/Vault.sol"]
        assert snapshot.total_file_count == 4

    @pytest.mark.asyncio
    async def test_owner_repo_shorthand(self) -> None:
        """The owner/repo shorthand fetches the default branch like a full URL."""
        snapshot = await _source().fetch_snapshot("acme/vault")

        assert snapshot.revision == "develop"
        assert len(snapshot.files) == 2

    @pytest.mark.asyncio
    async def test_branch_from_url(self) -> None:
        """A /tree/<branch> URL skips the repository lookup."""
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(request.url.path)
            return _github(request)

        snapshot = await _source(handler).fetch_snapshot("https://github.com/acme/vault/tree/v2")

        assert snapshot.revision == "v2"
        assert "/repos/acme/vault" not in requested

    @pytest.mark.asyncio
    async def test_max_files(self) -> None:
        """Downloads stop at max_files."""
        snapshot = await _source(max_files=1).fetch_snapshot("https://github.com/acme/vault")
        assert len(snapshot.files) == 1

    @pytest.mark.asyncio
    async def test_token_sent(self) -> None:
        """A configured token is sent as a bearer credential."""
        headers: list[str | None] = []

        def handler(request: httpx.Request) -> httpx.Response:
            headers.append(request.headers.get("Authorization"))
            return _github(request)

        await _source(handler, token="ghp_test").fetch_snapshot("https://github.com/acme/vault")
        assert set(headers) == {"Bearer ghp_test"}

    @pytest.mark.asyncio
    async def test_file_failure_is_loud(self) -> None:
        """A single failed file fails the whole snapshot."""
        source = _source(lambda request: _github(request, failing_path="contracts/Vault.sol"))
        with pytest.raises(ExternalServiceError) as exc_info:
            await source.fetch_snapshot("https://github.com/acme/vault")
        assert exc_info.value.step == "fetch_file"
        assert exc_info.value.service == "repository_source"

    @pytest.mark.asyncio
    async def test_unknown_repository(self) -> None:
        """A missing repository is an external service error."""
        with pytest.raises(ExternalServiceError) as exc_info:
            await _source().fetch_snapshot("https://github.com/acme/missing")
        assert exc_info.value.step == "fetch_repository"
