"""Record store engine bootstrap (PostgreSQL via SQLAlchemy async).

Only the production backend reaches this module; the memory backend
never loads a database driver.

Environment Variables:
- DATABASE_URL: PostgreSQL connection string (required for production)
  Accepted schemes: postgresql://, postgres://, postgresql+asyncpg://,
  or a bare user:password@host/database
- SQLALCHEMY_ECHO: "1"/"true"/"yes" to log every statement

Usage:
    from auditmarket.bootstrap.database import get_session_factory

    async with get_session_factory()() as session:
        rows = await session.execute(text("SELECT 1"))
"""

from __future__ import annotations

import os

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from structlog import get_logger

logger = get_logger()

ASYNC_SCHEME = "postgresql+asyncpg://"
_SCHEME_ALIASES = ("postgresql://", "postgres://")

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_database_url() -> str:
    """Read DATABASE_URL and rewrite it for the asyncpg driver.

    Raises:
        ValueError: If DATABASE_URL is not set.
    """
    url = os.environ.get("DATABASE_URL", "").strip()
    if not url:
        raise ValueError(
            "DATABASE_URL environment variable not set; "
            "the production record store needs a PostgreSQL database."
        )
    if url.startswith(ASYNC_SCHEME):
        return url
    for alias in _SCHEME_ALIASES:
        if url.startswith(alias):
            return ASYNC_SCHEME + url[len(alias):]
    return ASYNC_SCHEME + url


def mask_database_url(url: str) -> str:
    """Render a connection URL with its password hidden."""
    return make_url(url).render_as_string(hide_password=True)


def _echo_enabled() -> bool:
    return os.environ.get("SQLALCHEMY_ECHO", "").lower() in ("1", "true", "yes")


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory for the record store, created on first use.

    Raises:
        ValueError: If DATABASE_URL is not configured.
    """
    global _engine, _session_factory

    if _session_factory is None:
        url = get_database_url()
        log = logger.bind(component="database_bootstrap", url=mask_database_url(url))
        _engine = create_async_engine(url, echo=_echo_enabled(), pool_pre_ping=True)
        _session_factory = async_sessionmaker(_engine, expire_on_commit=False)
        log.info("record_store_engine_created")

    return _session_factory


def reset_database_bootstrap() -> None:
    """Forget the engine without disposing it (tests)."""
    global _engine, _session_factory
    _engine = None
    _session_factory = None


async def close_database_engine() -> None:
    """Dispose of the pooled connections on shutdown."""
    global _engine, _session_factory
    if _engine is None:
        return
    await _engine.dispose()
    logger.info("record_store_engine_disposed")
    _engine = None
    _session_factory = None
