"""Estimate and pricing routes.

Neither endpoint persists anything. The estimate endpoint never fails
because of the reasoning backend: the engine falls back to the
deterministic classifier.
"""

from fastapi import APIRouter, Depends, Request

from auditmarket.api.converters import estimation_to_model, payment_to_model
from auditmarket.api.dependencies.marketplace import get_lifecycle_service
from auditmarket.api.errors import problem
from auditmarket.api.models.common import PaymentBreakdownModel, ProblemDetail
from auditmarket.api.models.estimate import (
    EstimateRequest,
    EstimateResponse,
    PricingRequest,
)
from auditmarket.application.services.audit_lifecycle_service import (
    AuditLifecycleService,
)
from auditmarket.application.services.pricing_calculator import calculate_payment
from auditmarket.domain.exceptions import AuditMarketError
from auditmarket.domain.models.estimation import RepositoryAnalysis

router = APIRouter(prefix="/v1", tags=["estimates"])


@router.post(
    "/estimates",
    response_model=EstimateResponse,
    responses={400: {"model": ProblemDetail, "description": "Invalid request"}},
    summary="Estimate an audit",
    description="Complexity, duration and price for a repository, with the payment breakdown.",
)
async def create_estimate(
    body: EstimateRequest,
    request: Request,
    service: AuditLifecycleService = Depends(get_lifecycle_service),
) -> EstimateResponse:
    analysis = (
        RepositoryAnalysis(**body.analysis.model_dump()) if body.analysis is not None else None
    )
    try:
        quote = await service.quote(
            body.source_url,
            analysis=analysis,
            reviewer_count=body.reviewer_count,
            fast=body.fast,
        )
    except AuditMarketError as e:
        raise problem(e, request) from None

    return EstimateResponse(
        estimation=estimation_to_model(quote.estimation),
        duration=quote.estimation.duration_label,
        payment=payment_to_model(quote.payment),
    )


@router.post(
    "/pricing",
    response_model=PaymentBreakdownModel,
    responses={400: {"model": ProblemDetail, "description": "Invalid price or reviewer count"}},
    summary="Price an audit",
)
async def calculate_pricing(body: PricingRequest, request: Request) -> PaymentBreakdownModel:
    """Settlement breakdown for a base price and reviewer count."""
    try:
        payment = calculate_payment(body.base_price, body.reviewer_count)
    except AuditMarketError as e:
        raise problem(e, request) from None
    return payment_to_model(payment)
