"""API test fixtures: a memory marketplace behind a TestClient."""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry

from auditmarket.api.main import create_app
from auditmarket.bootstrap.marketplace import (
    Marketplace,
    build_memory_marketplace,
    reset_marketplace,
    set_marketplace,
)
from auditmarket.infrastructure.monitoring.metrics import (
    PipelineMetrics,
    reset_pipeline_metrics,
)


@pytest.fixture
def marketplace() -> Iterator[Marketplace]:
    """Install a fresh memory marketplace for the duration of a test."""
    reset_pipeline_metrics()
    marketplace = build_memory_marketplace(metrics=PipelineMetrics(CollectorRegistry()))
    set_marketplace(marketplace)
    yield marketplace
    reset_marketplace()
    reset_pipeline_metrics()


@pytest.fixture
def client(marketplace: Marketplace) -> TestClient:
    return TestClient(create_app())
