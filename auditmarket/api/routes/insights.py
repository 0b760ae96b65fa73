"""Reviewer profile and marketplace statistics routes."""

from fastapi import APIRouter, Depends, Request

from auditmarket.api.converters import profile_to_model, stats_to_model
from auditmarket.api.dependencies.marketplace import get_insights_service
from auditmarket.api.errors import problem
from auditmarket.api.models.common import ProblemDetail
from auditmarket.api.models.insights import (
    MarketplaceStatsResponse,
    ReviewerProfileResponse,
)
from auditmarket.application.services.marketplace_insights import (
    MarketplaceInsightsService,
)
from auditmarket.domain.exceptions import AuditMarketError

router = APIRouter(prefix="/v1", tags=["insights"])

_INVALID = {"model": ProblemDetail, "description": "Malformed reviewer address"}
_UPSTREAM = {"model": ProblemDetail, "description": "Record or content store failure"}


@router.get(
    "/reviewers/{reviewer_address}/profile",
    response_model=ReviewerProfileResponse,
    responses={400: _INVALID, 502: _UPSTREAM},
    summary="Reviewer profile",
)
async def get_reviewer_profile(
    reviewer_address: str,
    request: Request,
    service: MarketplaceInsightsService = Depends(get_insights_service),
) -> ReviewerProfileResponse:
    """Audits, findings and earnings of one reviewer; empty for a newcomer."""
    try:
        profile = await service.reviewer_profile(reviewer_address)
    except AuditMarketError as e:
        raise problem(e, request) from None
    return profile_to_model(profile)


@router.post(
    "/reviewers/{reviewer_address}/profile",
    status_code=201,
    response_model=ReviewerProfileResponse,
    responses={400: _INVALID, 502: _UPSTREAM},
    summary="Publish reviewer profile evidence",
)
async def publish_reviewer_profile(
    reviewer_address: str,
    request: Request,
    service: MarketplaceInsightsService = Depends(get_insights_service),
) -> ReviewerProfileResponse:
    try:
        profile = await service.publish_reviewer_profile(reviewer_address)
    except AuditMarketError as e:
        raise problem(e, request) from None
    return profile_to_model(profile)


@router.get(
    "/stats",
    response_model=MarketplaceStatsResponse,
    responses={502: _UPSTREAM},
    summary="Marketplace statistics",
)
async def get_marketplace_stats(
    request: Request,
    service: MarketplaceInsightsService = Depends(get_insights_service),
) -> MarketplaceStatsResponse:
    try:
        stats = await service.marketplace_stats()
    except AuditMarketError as e:
        raise problem(e, request) from None
    return stats_to_model(stats)
