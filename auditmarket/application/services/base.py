"""Service logging convention.

Each service owns a logger bound to its class name and pipeline
component. Every public operation derives a child logger carrying the
operation name, the request's correlation id and its own identifiers:

    class CertificateMinter(LoggingMixin):
        def __init__(self, ledger: LedgerProtocol) -> None:
            self._ledger = ledger
            self._init_logger(component="certification")

        async def mint(self, recipient: str, cid: str) -> MintReceipt:
            log = self._log_operation("mint", recipient=recipient, cid=cid)
            log.info("mint_started")
"""

from uuid import UUID

import structlog

from auditmarket.infrastructure.observability.correlation import get_correlation_id


def _loggable(value: object) -> object:
    # Request and checkpoint ids are logged as plain strings
    return str(value) if isinstance(value, UUID) else value


class LoggingMixin:
    """Structured logging for application services.

    Attributes:
        _log: Logger bound with service and component.
    """

    _log: structlog.BoundLogger

    def _init_logger(self, component: str = "pipeline") -> None:
        """Bind the service logger; call once from __init__."""
        self._log = structlog.get_logger().bind(
            service=type(self).__name__,
            component=component,
        )

    def _log_operation(self, operation: str, **context: object) -> structlog.BoundLogger:
        """Child logger for one operation.

        Args:
            operation: Operation name, e.g. "submit" or "accept".
            **context: Identifiers of the records the operation touches.

        Returns:
            BoundLogger carrying operation, correlation_id and context.
        """
        return self._log.bind(
            operation=operation,
            correlation_id=get_correlation_id(),
            **{key: _loggable(value) for key, value in context.items()},
        )
