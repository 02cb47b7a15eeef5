"""Tests for health check endpoints"""
from fastapi.testclient import TestClient


def test_health(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["service"] == "portfolio-admin"


def test_liveness(client: TestClient):
    response = client.get("/health/live")
    assert response.status_code == 200
    assert response.json()["status"] == "alive"


def test_readiness(client: TestClient):
    response = client.get("/health/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["checks"]["database"] is True


def test_stats_counts_active_sessions(client: TestClient, login, clock):
    login()
    login()
    assert client.get("/health/stats").json()["sessions"]["active"] == 2

    clock.advance(minutes=16)
    assert client.get("/health/stats").json()["sessions"]["active"] == 0


def test_root(client: TestClient):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "operational"


def test_response_headers(client: TestClient):
    response = client.get("/health")
    assert "x-request-id" in response.headers
    assert "x-response-time" in response.headers
