"""
Pytest configuration and shared fixtures.
"""

from collections.abc import AsyncGenerator
from typing import Any

import fakeredis
import pytest
import pytest_asyncio
from prometheus_client import CollectorRegistry

from enqueuer.config import Settings
from enqueuer.engine import Enqueuer
from enqueuer.observability.metrics import MetricsCollector

TEST_NAMESPACE = "prod:"


@pytest.fixture
def redis_server() -> fakeredis.FakeServer:
    """In-memory Redis server shared by every client of a test."""
    return fakeredis.FakeServer()


@pytest_asyncio.fixture
async def redis_client(redis_server: fakeredis.FakeServer) -> AsyncGenerator[fakeredis.FakeAsyncRedis]:
    """Create an async Redis client backed by the fake server."""
    client = fakeredis.FakeAsyncRedis(server=redis_server)
    yield client
    await client.aclose()


@pytest.fixture
def metrics_registry() -> CollectorRegistry:
    """Isolated Prometheus registry so tests do not share counters."""
    return CollectorRegistry()


@pytest.fixture
def metrics(metrics_registry: CollectorRegistry) -> MetricsCollector:
    """Create a metrics collector on the isolated registry."""
    return MetricsCollector(registry=metrics_registry)


@pytest.fixture
def enqueuer(redis_client: fakeredis.FakeAsyncRedis, metrics: MetricsCollector) -> Enqueuer:
    """Create an enqueuer writing under the test namespace."""
    return Enqueuer(redis_client, namespace=TEST_NAMESPACE, metrics=metrics)


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return Settings(
        redis_url="redis://localhost:6379/15",
        redis_namespace=TEST_NAMESPACE,
        log_level="DEBUG",
        log_format="console",
    )


@pytest.fixture
def sample_args() -> dict[str, Any]:
    """Create sample job arguments."""
    return {"to": "a@b.com", "subject": "Hello"}
