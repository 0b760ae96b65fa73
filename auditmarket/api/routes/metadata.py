"""Metadata resolver route.

Accepts a bare CID, an ipfs:// URI or a gateway URL in the path.
"""

from fastapi import APIRouter, Depends, Request

from auditmarket.api.dependencies.marketplace import get_metadata_resolver
from auditmarket.api.errors import problem
from auditmarket.api.models.common import ProblemDetail
from auditmarket.api.models.metadata import MetadataResponse
from auditmarket.application.services.metadata_resolver import MetadataResolver
from auditmarket.domain.exceptions import AuditMarketError

router = APIRouter(prefix="/v1", tags=["metadata"])


@router.get(
    "/metadata/{reference:path}",
    response_model=MetadataResponse,
    responses={
        400: {"model": ProblemDetail, "description": "Malformed content identifier"},
        502: {"model": ProblemDetail, "description": "Document could not be fetched"},
    },
    summary="Resolve evidence metadata",
)
async def resolve_metadata(
    reference: str,
    request: Request,
    resolver: MetadataResolver = Depends(get_metadata_resolver),
) -> MetadataResponse:
    try:
        resolved = await resolver.resolve(reference)
    except AuditMarketError as e:
        raise problem(e, request) from None
    return MetadataResponse(
        cid=resolved.cid,
        kind=resolved.kind,
        gateway_url=resolved.gateway_url,
        summary=resolved.summary,
        document=resolved.document,
    )
