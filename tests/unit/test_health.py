"""
Tests for health check endpoints.
"""

from unittest.mock import patch

from fastapi.testclient import TestClient

from priority_engine.main import app

client = TestClient(app)


def test_healthz_endpoint():
    """Test the basic health check endpoint."""
    response = client.get("/healthz")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"


def test_readyz_endpoint_all_services_healthy():
    """Test readiness endpoint when Redis and configuration are healthy."""
    with (
        patch("priority_engine.routes.health.redis_ping", return_value=True),
        patch("priority_engine.routes.health.settings.AUTH_JWKS_URL", "https://auth.test/jwks"),
    ):
        response = client.get("/readyz")

        assert response.status_code == 200
        data = response.json()
        assert data["overall_ok"] is True
        assert data["scoring_ok"] is True
        checks = data["checks"]
        assert checks["redis"]["ok"] is True
        assert checks["configuration"]["ok"] is True
        assert checks["scoring"]["ok"] is True


def test_readyz_endpoint_redis_unhealthy():
    """Scoring still works without Redis, but the service is not fully ready."""
    with (
        patch("priority_engine.routes.health.redis_ping", return_value=False),
        patch("priority_engine.routes.health.settings.AUTH_JWKS_URL", "https://auth.test/jwks"),
    ):
        response = client.get("/readyz")

        assert response.status_code == 200
        data = response.json()
        assert data["overall_ok"] is False
        assert data["scoring_ok"] is True
        assert data["checks"]["redis"]["ok"] is False


def test_readyz_endpoint_missing_jwks_url():
    with (
        patch("priority_engine.routes.health.redis_ping", return_value=True),
        patch("priority_engine.routes.health.settings.AUTH_JWKS_URL", None),
    ):
        response = client.get("/readyz")

        data = response.json()
        assert data["overall_ok"] is False
        assert "AUTH_JWKS_URL not set" in data["checks"]["configuration"]["issues"]


def test_readyz_includes_latency_metrics():
    with (
        patch("priority_engine.routes.health.redis_ping", return_value=True),
        patch("priority_engine.routes.health.settings.AUTH_JWKS_URL", "https://auth.test/jwks"),
    ):
        response = client.get("/readyz")

        checks = response.json()["checks"]
        assert isinstance(checks["redis"]["latency_ms"], (int, float))
