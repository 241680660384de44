"""Tests for health check endpoint."""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from vecsearch.core.exceptions import StoreUnavailable
from vecsearch.dependencies import get_embedding_gateway, get_redis_service
from vecsearch.main import app

client = TestClient(app)


@pytest.fixture(autouse=True)
def overrides(fake_redis, embedding_gateway) -> Iterator[None]:
    app.dependency_overrides[get_redis_service] = lambda: fake_redis
    app.dependency_overrides[get_embedding_gateway] = lambda: embedding_gateway
    yield
    app.dependency_overrides.clear()


def test_health_check():
    """Test the health endpoint."""
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["store"] == "ok"
    assert data["embedding_model_loaded"] is False
    assert "version" in data
    assert "environment" in data


def test_health_check_returns_correct_version():
    """Test that health check returns the correct version."""
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json()["version"] == "0.1.0"


def test_health_check_degraded_when_store_is_down(fake_redis, monkeypatch: pytest.MonkeyPatch):
    async def failing_ping() -> None:
        raise StoreUnavailable("Redis ping failed: connection refused")

    monkeypatch.setattr(fake_redis, "ping", failing_ping)

    response = client.get("/api/v1/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "degraded"
    assert data["store"] == "unavailable"
