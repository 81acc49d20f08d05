"""Tests for the health endpoints."""
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from apps.api.main import app

client = TestClient(app)


def test_health_returns_200():
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_ready_when_store_answers(monkeypatch):
    supabase = MagicMock()
    supabase.table.return_value.select.return_value.limit.return_value.execute.return_value = (
        MagicMock(data=[])
    )
    monkeypatch.setattr("apps.api.routers.health.get_service_client", lambda: supabase)

    data = client.get("/api/v1/health/ready").json()

    assert data["status"] == "healthy"
    assert data["services"] == {"api": "up", "store": "up"}


def test_degraded_when_store_is_unreachable(monkeypatch):
    def unconfigured():
        raise RuntimeError("SUPABASE_SERVICE_KEY is not configured")

    monkeypatch.setattr("apps.api.routers.health.get_service_client", unconfigured)

    data = client.get("/api/v1/health/ready").json()

    assert data["status"] == "degraded"
    assert data["services"]["store"] == "down"


def test_routes_are_mounted():
    paths = {route.path for route in app.routes}
    assert "/api/v1/statements/parse" in paths
    assert "/api/v1/batches" in paths
    assert "/api/v1/mappings/import" in paths
