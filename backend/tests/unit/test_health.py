from __future__ import annotations

from unittest.mock import AsyncMock, patch


def test_health_returns_status_and_services(client):
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] in ("healthy", "degraded")
    assert "version" in data
    assert "cosmos_db" in data["services"]
    assert "azure_openai" in data["services"]


def test_health_not_configured_is_healthy(client):
    response = client.get("/api/v1/health")
    data = response.json()
    assert data["status"] == "healthy"
    assert data["services"]["cosmos_db"] == "not_configured"
    assert data["services"]["azure_openai"] == "not_configured"


def test_health_degraded_when_cosmos_fails(client):
    with patch("app.api.v1.endpoints.health.record_store") as mock_store:
        mock_store.initialized = True
        mock_store.check_connection = AsyncMock(return_value=False)
        response = client.get("/api/v1/health")

    data = response.json()
    assert data["status"] == "degraded"
    assert data["services"]["cosmos_db"] == "error"


def test_readiness_probe(client):
    response = client.get("/api/v1/health/ready")
    assert response.status_code == 200
    assert response.json()["ready"] is True
