"""Prometheus metrics for the audit pipeline.

Counters cover each durable step so operators can see where submissions
stall: estimations by source, evidence documents published, certificates
minted, lifecycle transitions, conflicts and failures by pipeline step.
HTTP request counters and a latency histogram are fed by MetricsMiddleware.

Labels: service, environment on every series.
"""

import os
import threading

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

METRICS_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"

_collector_lock = threading.Lock()


class PipelineMetrics:
    """Collects audit pipeline counters in a dedicated registry.

    Attributes:
        estimations_total: Estimates produced, by source (ai, fallback, captured).
        evidence_published_total: Evidence documents published, by kind.
        certificates_minted_total: Certificates minted, by kind.
        transitions_total: Lifecycle transitions, by target status.
        conflicts_total: Conditional updates that lost a race, by operation.
        pipeline_failures_total: External failures, by pipeline step.
        http_requests_total: HTTP requests, by method, route and status.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize counters.

        Args:
            registry: Optional custom registry for test isolation.
        """
        self._registry = registry or CollectorRegistry()
        self._environment = os.environ.get("ENVIRONMENT", "development")
        self._service = os.environ.get("SERVICE_NAME", "auditmarket-api")

        self.estimations_total = Counter(
            name="estimations_total",
            documentation="Audit estimates produced",
            labelnames=["service", "environment", "source"],
            registry=self._registry,
        )
        self.evidence_published_total = Counter(
            name="evidence_published_total",
            documentation="Evidence documents published to content storage",
            labelnames=["service", "environment", "kind"],
            registry=self._registry,
        )
        self.certificates_minted_total = Counter(
            name="certificates_minted_total",
            documentation="Certificates minted on the ledger",
            labelnames=["service", "environment", "kind"],
            registry=self._registry,
        )
        self.transitions_total = Counter(
            name="audit_transitions_total",
            documentation="Audit lifecycle transitions applied",
            labelnames=["service", "environment", "status"],
            registry=self._registry,
        )
        self.conflicts_total = Counter(
            name="audit_conflicts_total",
            documentation="Conditional updates rejected because the status changed",
            labelnames=["service", "environment", "operation"],
            registry=self._registry,
        )
        self.http_request_duration_seconds = Histogram(
            name="http_request_duration_seconds",
            documentation="HTTP request latency",
            labelnames=["service", "environment", "method", "endpoint"],
            buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
            registry=self._registry,
        )
        self.http_requests_total = Counter(
            name="http_requests_total",
            documentation="HTTP requests handled",
            labelnames=["service", "environment", "method", "endpoint", "status"],
            registry=self._registry,
        )
        self.http_requests_failed_total = Counter(
            name="http_requests_failed_total",
            documentation="HTTP requests answered with 4xx or 5xx",
            labelnames=["service", "environment", "method", "endpoint", "status", "error_type"],
            registry=self._registry,
        )
        self.pipeline_failures_total = Counter(
            name="pipeline_failures_total",
            documentation="External service failures by pipeline step",
            labelnames=["service", "environment", "step"],
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def _labels(self) -> dict[str, str]:
        return {"service": self._service, "environment": self._environment}

    def record_estimation(self, source: str) -> None:
        self.estimations_total.labels(**self._labels(), source=source).inc()

    def record_evidence_published(self, kind: str) -> None:
        self.evidence_published_total.labels(**self._labels(), kind=kind).inc()

    def record_certificate_minted(self, kind: str) -> None:
        self.certificates_minted_total.labels(**self._labels(), kind=kind).inc()

    def record_transition(self, status: str) -> None:
        self.transitions_total.labels(**self._labels(), status=status).inc()

    def record_conflict(self, operation: str) -> None:
        self.conflicts_total.labels(**self._labels(), operation=operation).inc()

    def record_pipeline_failure(self, step: str) -> None:
        self.pipeline_failures_total.labels(**self._labels(), step=step).inc()

    def observe_request(
        self,
        method: str,
        endpoint: str,
        status: int,
        duration: float,
        error_type: str | None = None,
    ) -> None:
        """Record one HTTP request (endpoint is the route template)."""
        labels = {**self._labels(), "method": method, "endpoint": endpoint}
        self.http_request_duration_seconds.labels(**labels).observe(duration)
        self.http_requests_total.labels(**labels, status=str(status)).inc()
        if error_type is not None:
            self.http_requests_failed_total.labels(
                **labels, status=str(status), error_type=error_type
            ).inc()

    def generate(self) -> bytes:
        """Render the registry in Prometheus exposition format."""
        return generate_latest(self._registry)


_metrics: PipelineMetrics | None = None


def get_pipeline_metrics() -> PipelineMetrics:
    """Get the process-wide metrics collector (thread-safe singleton)."""
    global _metrics
    if _metrics is None:
        with _collector_lock:
            if _metrics is None:
                _metrics = PipelineMetrics()
    return _metrics


def reset_pipeline_metrics() -> None:
    """Reset the singleton (testing cleanup)."""
    global _metrics
    with _collector_lock:
        _metrics = None
