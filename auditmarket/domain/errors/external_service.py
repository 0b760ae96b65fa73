"""External service failure raised by pipeline steps.

The record store, content store and ledger all fail through this error.
The step name is part of the contract because recovery differs per step:
a failed packaging step is safe to redo from scratch, while a failed mint
must be retried with the content identifier that was already produced.
"""

from __future__ import annotations

from auditmarket.domain.exceptions import AuditMarketError


class ExternalServiceError(AuditMarketError):
    """Raised when a store, ledger or storage network is unreachable or rejects a call.

    Attributes:
        step: Pipeline step that failed (e.g. "package_evidence").
        service: External system involved ("content_store", "ledger", ...).
        reason: Description of the underlying failure.
        cid: Content identifier already produced before the failure, if any.
        checkpoint_id: Identifier to resume the pipeline from, if any.
    """

    def __init__(
        self,
        step: str,
        service: str,
        reason: str,
        cid: str | None = None,
        checkpoint_id: str | None = None,
    ) -> None:
        """Initialize external service error.

        Args:
            step: Pipeline step that failed.
            service: External system involved.
            reason: Underlying failure description.
            cid: Content identifier produced before the failure.
            checkpoint_id: Identifier to resume from.
        """
        self.step = step
        self.service = service
        self.reason = reason
        self.cid = cid
        self.checkpoint_id = checkpoint_id
        message = f"{service} failed during {step}: {reason}"
        if cid:
            message += f" (content identifier {cid} already published)"
        super().__init__(message)

    @property
    def resumable(self) -> bool:
        """True when a durable artifact exists and the step can be resumed."""
        return self.cid is not None

    def with_context(
        self,
        step: str,
        cid: str | None = None,
        checkpoint_id: str | None = None,
    ) -> ExternalServiceError:
        """Return a copy of this error re-labelled for an outer pipeline step.

        Args:
            step: Outer pipeline step name.
            cid: Content identifier to report (keeps the current one if None).
            checkpoint_id: Resume identifier (keeps the current one if None).

        Returns:
            New ExternalServiceError with the same service and reason.
        """
        return ExternalServiceError(
            step=step,
            service=self.service,
            reason=self.reason,
            cid=cid if cid is not None else self.cid,
            checkpoint_id=checkpoint_id if checkpoint_id is not None else self.checkpoint_id,
        )
