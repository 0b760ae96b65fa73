"""Correlation ids for tracing one API call through the pipeline.

A submission touches the estimation backend, the content store, the
ledger and the record store; every log line it produces carries the same
correlation id. The id lives in a ContextVar, so concurrent requests
never see each other's id across await points.
"""

from contextvars import ContextVar, Token
from typing import Any
from uuid import uuid4

MAX_CORRELATION_ID_LENGTH = 128

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def generate_correlation_id() -> str:
    return str(uuid4())


def accept_correlation_id(candidate: str | None) -> str:
    """Use a caller-supplied id when it is printable and short, else a new one."""
    if candidate and len(candidate) <= MAX_CORRELATION_ID_LENGTH and candidate.isprintable():
        return candidate
    return generate_correlation_id()


def get_correlation_id() -> str:
    """Current correlation id, empty outside a request."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> Token[str]:
    """Set the id for the current context; the token undoes it."""
    return _correlation_id.set(correlation_id)


def reset_correlation_id(token: Token[str]) -> None:
    _correlation_id.reset(token)


def correlation_id_processor(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor: add the current id unless the entry has one bound."""
    correlation_id = get_correlation_id()
    if correlation_id:
        event_dict.setdefault("correlation_id", correlation_id)
    return event_dict
