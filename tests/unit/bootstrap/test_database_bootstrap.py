"""Unit tests for database URL handling."""

import pytest

from auditmarket.bootstrap.database import get_database_url, mask_database_url


class TestGetDatabaseUrl:
    """Tests for get_database_url."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("postgresql://u:p@db:5432/audits", "postgresql+asyncpg://u:p@db:5432/audits"),
            ("postgres://u:p@db/audits", "postgresql+asyncpg://u:p@db/audits"),
            ("postgresql+asyncpg://u@db/audits", "postgresql+asyncpg://u@db/audits"),
            ("u:p@db/audits", "postgresql+asyncpg://u:p@db/audits"),
        ],
    )
    def test_normalizes_to_asyncpg(
        self, monkeypatch: pytest.MonkeyPatch, raw: str, expected: str
    ) -> None:
        """Every accepted form is converted to the asyncpg dialect."""
        monkeypatch.setenv("DATABASE_URL", raw)
        assert get_database_url() == expected

    def test_missing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """An unset URL is a configuration error."""
        monkeypatch.delenv("DATABASE_URL", raising=False)
        with pytest.raises(ValueError, match="DATABASE_URL"):
            get_database_url()


class TestMaskDatabaseUrl:
    """Tests for mask_database_url."""

    def test_hides_password(self) -> None:
        """Passwords are replaced, user and host kept."""
        assert (
            mask_database_url("postgresql+asyncpg://audit:s3cret@db:5432/audits")
            == "postgresql+asyncpg://audit:***@db:5432/audits"
        )

    @pytest.mark.parametrize(
        "url", ["postgresql+asyncpg://db/audits", "postgresql+asyncpg://audit@db/audits"]
    )
    def test_without_password_unchanged(self, url: str) -> None:
        """URLs without a password are returned as-is."""
        assert mask_database_url(url) == url
