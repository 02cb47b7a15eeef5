"""Tests for bearer session validation on protected endpoints"""
from datetime import timedelta

from fastapi.testclient import TestClient

from portfolio_admin.models.admin_session import AdminSession


def test_missing_token_rejected(client: TestClient):
    response = client.get("/admin/session")
    assert response.status_code == 401
    assert response.json() == {"error": "Authentication required"}
    assert response.headers["www-authenticate"] == "Bearer"


def test_unknown_token_rejected(client: TestClient):
    response = client.get("/admin/session", headers={"Authorization": "Bearer pas_not-a-session"})
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid or expired session"}


def test_non_bearer_scheme_rejected(client: TestClient, login):
    token = login()["token"]
    response = client.get("/admin/session", headers={"Authorization": f"Basic {token}"})
    assert response.status_code == 401


def test_validation_bumps_last_activity_not_expiry(client: TestClient, auth_headers, db, clock):
    """Using a session updates lastActivity but never moves expiresAt"""
    session = db.query(AdminSession).one()
    issued_at = session.issued_at
    expires_at = session.expires_at

    clock.advance(minutes=7)
    response = client.get("/admin/session", headers=auth_headers)
    assert response.status_code == 200

    db.refresh(session)
    assert session.last_activity == issued_at + timedelta(minutes=7)
    assert session.expires_at == expires_at

    data = response.json()
    assert data["secondsLeft"] == 8 * 60
    assert data["lastActivity"].startswith("2026-03-01T12:07:00")


def test_token_valid_at_exact_expiry(client: TestClient, auth_headers, clock):
    clock.advance(minutes=15)
    assert client.get("/admin/session", headers=auth_headers).status_code == 200


def test_lazy_expiry_flips_inactive(client: TestClient, auth_headers, db, clock):
    """An untouched session past expiresAt is rejected and deactivated on next use"""
    clock.advance(minutes=15, seconds=1)

    session = db.query(AdminSession).one()
    assert session.is_active is True

    response = client.get("/admin/session", headers=auth_headers)
    assert response.status_code == 401
    assert response.json() == {"error": "Session expired"}

    db.refresh(session)
    assert session.is_active is False
    assert session.end_reason == "expired"

    # Stays rejected, now as an inactive session
    response = client.get("/admin/session", headers=auth_headers)
    assert response.json() == {"error": "Invalid or expired session"}


def test_session_info(client: TestClient, login):
    issued = login()
    response = client.get("/admin/session", headers={"Authorization": f"Bearer {issued['token']}"})
    assert response.status_code == 200

    data = response.json()
    assert data["expiresAt"] == issued["expiresAt"]
    assert data["issuedAt"].startswith("2026-03-01T12:00:00")
    assert data["secondsLeft"] == 900
