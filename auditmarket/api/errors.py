"""Domain error to HTTP translation (RFC 7807).

Routes catch AuditMarketError and re-raise problem(exc, request) from
None, so every endpoint answers the taxonomy the same way:

    ValidationError              400
    AuthorizationError           403
    AuditRequestNotFoundError    404
    PendingSubmissionNotFoundError 404
    ConflictError                409 (InvalidStateTransitionError included)
    ExternalServiceError         502 (step, service, cid, checkpoint_id)
"""

from typing import Any

from fastapi import HTTPException, Request

from auditmarket.domain.errors import (
    AuditRequestNotFoundError,
    AuthorizationError,
    ConflictError,
    ExternalServiceError,
    InvalidStateTransitionError,
    PendingSubmissionNotFoundError,
    ValidationError,
)
from auditmarket.domain.exceptions import AuditMarketError

ERROR_TYPE_BASE = "urn:auditmarket:error"


def _detail(
    request: Request,
    status: int,
    slug: str,
    title: str,
    exc: Exception,
    **extensions: Any,
) -> dict[str, Any]:
    return {
        "type": f"{ERROR_TYPE_BASE}:{slug}",
        "title": title,
        "status": status,
        "detail": str(exc),
        "instance": str(request.url),
        **extensions,
    }


def problem(exc: AuditMarketError, request: Request) -> HTTPException:
    """Build the HTTPException for a domain error."""
    if isinstance(exc, ValidationError):
        return HTTPException(
            status_code=400,
            detail=_detail(request, 400, "validation", "Invalid Request", exc, field=exc.field),
        )
    if isinstance(exc, AuthorizationError):
        return HTTPException(
            status_code=403,
            detail=_detail(
                request,
                403,
                "unauthorized-signer",
                "Not Authorized",
                exc,
                action=exc.action,
                expected_address=exc.expected_address,
            ),
        )
    if isinstance(exc, (AuditRequestNotFoundError, PendingSubmissionNotFoundError)):
        return HTTPException(
            status_code=404,
            detail=_detail(request, 404, "not-found", "Not Found", exc),
        )
    if isinstance(exc, InvalidStateTransitionError):
        return HTTPException(
            status_code=409,
            detail=_detail(
                request,
                409,
                "invalid-transition",
                "Invalid State Transition",
                exc,
                current_status=exc.from_status.value,
                allowed_transitions=[s.value for s in exc.allowed_transitions],
            ),
        )
    if isinstance(exc, ConflictError):
        return HTTPException(
            status_code=409,
            detail=_detail(
                request,
                409,
                "conflict",
                "Conflict",
                exc,
                operation=exc.operation,
                current_status=exc.actual_status.value if exc.actual_status else None,
            ),
        )
    if isinstance(exc, ExternalServiceError):
        return HTTPException(
            status_code=502,
            detail=_detail(
                request,
                502,
                "external-service",
                "External Service Failure",
                exc,
                step=exc.step,
                service=exc.service,
                cid=exc.cid,
                checkpoint_id=exc.checkpoint_id,
                resumable=exc.resumable,
            ),
        )
    return HTTPException(
        status_code=500,
        detail=_detail(request, 500, "internal", "Internal Error", exc),
    )
