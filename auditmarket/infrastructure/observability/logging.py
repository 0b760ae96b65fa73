"""Structured logging configuration with structlog.

Production renders one JSON object per line; any other environment gets
colored console output. Every entry carries an ISO timestamp, the level
and the correlation id of the current request:

    {
        "timestamp": "2026-01-01T00:00:00.000000Z",
        "level": "info",
        "event": "certificate_minted",
        "correlation_id": "uuid",
        "service": "CertificateMinter",
        "record_id": 7
    }

Credentials never reach the output: values under secret-looking keys
(Pinata JWT, estimation API key, ledger private keys) are masked.
Third-party libraries that log through the standard library (httpx,
web3, SQLAlchemy) are held at WARNING unless LOG_LEVEL is DEBUG.
"""

import logging
import os
from typing import Any, cast

import structlog
from structlog.typing import Processor

from auditmarket.infrastructure.observability.correlation import (
    correlation_id_processor,
)

LOG_LEVEL_ENV = "LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"
REDACTED = "***"

SECRET_KEYS = frozenset(
    {"api_key", "authorization", "jwt", "password", "private_key", "private_keys", "token"}
)
CHATTY_LIBRARIES = ("httpx", "httpcore", "web3", "sqlalchemy.engine", "asyncio")


def _get_log_level() -> int:
    level_name = os.getenv(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).upper()
    return getattr(logging, level_name, logging.INFO)


def redact_secrets(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Structlog processor masking values bound under secret-looking keys."""
    for key in event_dict.keys() & SECRET_KEYS:
        if event_dict[key]:
            event_dict[key] = REDACTED
    return event_dict


def configure_structlog(environment: str = "production") -> None:
    """Configure structlog and stdlib logging once at startup.

    Args:
        environment: 'production' for JSON output, anything else for console.
    """
    level = _get_log_level()
    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if environment == "production"
        else structlog.dev.ConsoleRenderer(colors=True)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            cast(Processor, correlation_id_processor),
            cast(Processor, redact_secrets),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=level, format="%(levelname)s %(name)s %(message)s")
    library_level = level if level <= logging.DEBUG else logging.WARNING
    for name in CHATTY_LIBRARIES:
        logging.getLogger(name).setLevel(library_level)
