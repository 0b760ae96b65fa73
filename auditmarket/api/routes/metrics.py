"""Metrics endpoint for Prometheus scraping."""

from fastapi import APIRouter, Depends, Response

from auditmarket.api.dependencies.marketplace import get_metrics
from auditmarket.infrastructure.monitoring.metrics import (
    METRICS_CONTENT_TYPE,
    PipelineMetrics,
)

router = APIRouter(prefix="/v1", tags=["metrics"])


@router.get(
    "/metrics",
    summary="Prometheus metrics endpoint",
    description="Returns pipeline and HTTP metrics in Prometheus exposition format.",
    response_class=Response,
    responses={
        200: {
            "description": "Metrics in Prometheus format",
            "content": {"text/plain": {}},
        }
    },
)
async def get_metrics_endpoint(
    metrics: PipelineMetrics = Depends(get_metrics),
) -> Response:
    """Get pipeline metrics in Prometheus format.

    Series:
        - estimations_total{source}
        - evidence_published_total{kind}
        - certificates_minted_total{kind}
        - audit_transitions_total{status}
        - audit_conflicts_total{operation}
        - pipeline_failures_total{step}
        - http_requests_total, http_request_duration_seconds
    """
    return Response(content=metrics.generate(), media_type=METRICS_CONTENT_TYPE)
