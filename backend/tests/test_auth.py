"""Tests for admin login, refresh and logout"""
from datetime import datetime, timedelta

from fastapi.testclient import TestClient

from portfolio_admin.config import settings
from portfolio_admin.models.admin_session import AdminSession
from portfolio_admin.models.audit_log import AuditLog
from portfolio_admin.utils.auth import hash_token

ADMIN_PASSWORD = settings.ADMIN_PASSWORD


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


# ===== Login =====

def test_login_success(client: TestClient, db, clock, notifier):
    """Correct password with no bot check configured issues a 15-minute token"""
    response = client.post("/admin/login", json={"password": ADMIN_PASSWORD})
    assert response.status_code == 200

    data = response.json()
    assert data["token"].startswith("pas_")
    assert data["expiresIn"] == 900
    assert data["expiresAt"].endswith("Z")
    expires_at = datetime.fromisoformat(data["expiresAt"].replace("Z", "+00:00")).replace(tzinfo=None)
    assert expires_at == clock.now + timedelta(minutes=15)

    session = db.query(AdminSession).one()
    assert session.is_active is True
    assert session.token_hash == hash_token(data["token"])
    assert session.token_hash != data["token"]

    log = db.query(AuditLog).one()
    assert log.action == "login"
    assert log.success is True
    assert log.ip_address == "testclient"

    assert notifier.events == [("login_succeeded", "testclient")]


def test_login_wrong_password(client: TestClient, db, notifier):
    response = client.post("/admin/login", json={"password": "nope"})
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid password"}
    assert response.headers["www-authenticate"] == "Bearer"

    assert db.query(AdminSession).count() == 0
    log = db.query(AuditLog).one()
    assert log.success is False
    assert log.reason == "wrong_password"
    assert notifier.events == [("login_failed", "testclient")]


def test_login_requires_password_field(client: TestClient, db):
    response = client.post("/admin/login", json={})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid password"}
    assert db.query(AuditLog).count() == 0


def test_login_malformed_body(client: TestClient):
    response = client.post("/admin/login", content="not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request body"}


def test_login_not_configured(client: TestClient, monkeypatch, db):
    monkeypatch.setattr(settings, "ADMIN_PASSWORD", None)
    response = client.post("/admin/login", json={"password": "anything"})
    assert response.status_code == 500
    assert response.json() == {"error": "Admin login is not configured"}

    log = db.query(AuditLog).one()
    assert log.success is False
    assert log.reason == "not_configured"


def test_login_rate_limited_after_five_attempts(client: TestClient, db, clock):
    """Five attempts are admitted; the sixth inside 15 minutes gets 429 with resetTime"""
    for _ in range(5):
        response = client.post("/admin/login", json={"password": "wrong"})
        assert response.status_code == 401

    clock.advance(minutes=3)
    response = client.post("/admin/login", json={"password": ADMIN_PASSWORD})
    assert response.status_code == 429

    data = response.json()
    assert data["error"] == "Too many login attempts. Please try again later."
    reset_time = datetime.fromisoformat(data["resetTime"].replace("Z", "+00:00")).replace(tzinfo=None)
    assert clock.now < reset_time <= clock.now + timedelta(minutes=15)

    assert db.query(AdminSession).count() == 0
    rate_limited = db.query(AuditLog).filter(AuditLog.reason == "rate_limited").all()
    assert len(rate_limited) == 1


def test_login_rate_limit_resets_after_window(client: TestClient, clock):
    for _ in range(5):
        client.post("/admin/login", json={"password": "wrong"})
    assert client.post("/admin/login", json={"password": ADMIN_PASSWORD}).status_code == 429

    clock.advance(minutes=15)
    response = client.post("/admin/login", json={"password": ADMIN_PASSWORD})
    assert response.status_code == 200


def test_successful_logins_count_towards_limit(client: TestClient):
    for _ in range(5):
        assert client.post("/admin/login", json={"password": ADMIN_PASSWORD}).status_code == 200
    assert client.post("/admin/login", json={"password": ADMIN_PASSWORD}).status_code == 429


def test_login_bot_check_failure_issues_no_session(client: TestClient, db, bot_verifier):
    """Correct password but a failing bot check never creates a session"""
    bot_verifier.enabled = True
    bot_verifier.passed = False
    bot_verifier.score = 0.1

    response = client.post(
        "/admin/login",
        json={"password": ADMIN_PASSWORD, "recaptchaToken": "bot-token"},
    )
    assert response.status_code == 400
    assert response.json() == {"error": "reCAPTCHA verification failed"}
    assert bot_verifier.calls == ["bot-token"]

    assert db.query(AdminSession).count() == 0
    log = db.query(AuditLog).one()
    assert log.success is False
    assert log.reason == "invalid_captcha"


def test_login_bot_check_pass(client: TestClient, bot_verifier):
    bot_verifier.enabled = True
    response = client.post(
        "/admin/login",
        json={"password": ADMIN_PASSWORD, "recaptchaToken": "human-token"},
    )
    assert response.status_code == 200
    assert bot_verifier.calls == ["human-token"]


def test_login_without_bot_token_skips_check(client: TestClient, bot_verifier):
    """A configured bot check is only consulted when the client supplies a token"""
    bot_verifier.enabled = True
    bot_verifier.passed = False

    response = client.post("/admin/login", json={"password": ADMIN_PASSWORD})
    assert response.status_code == 200
    assert bot_verifier.calls == []


def test_login_bot_check_required(client: TestClient, bot_verifier, monkeypatch):
    monkeypatch.setattr(settings, "RECAPTCHA_REQUIRED", True)
    bot_verifier.enabled = True
    bot_verifier.passed = False

    response = client.post("/admin/login", json={"password": ADMIN_PASSWORD})
    assert response.status_code == 400
    assert bot_verifier.calls == [""]


# ===== Refresh =====

def test_refresh_rotates_token(client: TestClient, login, db, clock):
    """Refresh at T+11 issues a new token; the old one is rejected at T+12"""
    first = login()

    clock.advance(minutes=11)
    response = client.post("/admin/refresh-token", headers=_bearer(first["token"]))
    assert response.status_code == 200
    second = response.json()
    assert second["token"] != first["token"]
    assert second["expiresIn"] == 900

    clock.advance(minutes=1)
    assert client.get("/admin/session", headers=_bearer(first["token"])).status_code == 401
    assert client.get("/admin/session", headers=_bearer(second["token"])).status_code == 200

    old = db.query(AdminSession).filter(AdminSession.token_hash == hash_token(first["token"])).one()
    new = db.query(AdminSession).filter(AdminSession.token_hash == hash_token(second["token"])).one()
    assert old.is_active is False
    assert old.end_reason == "rotated"
    assert new.rotated_from_id == old.id
    assert new.expires_at == clock.now - timedelta(minutes=1) + timedelta(minutes=15)

    refresh_logs = db.query(AuditLog).filter(AuditLog.action == "refresh").all()
    assert len(refresh_logs) == 1
    assert refresh_logs[0].success is True


def test_refresh_with_old_token_fails(client: TestClient, login):
    token = login()["token"]
    assert client.post("/admin/refresh-token", headers=_bearer(token)).status_code == 200

    response = client.post("/admin/refresh-token", headers=_bearer(token))
    assert response.status_code == 401


def test_refresh_requires_token(client: TestClient, db):
    response = client.post("/admin/refresh-token")
    assert response.status_code == 401
    assert response.json() == {"error": "Authentication required"}

    log = db.query(AuditLog).one()
    assert log.action == "refresh"
    assert log.success is False
    assert log.reason == "invalid_session"


def test_refresh_expired_session(client: TestClient, login, clock):
    token = login()["token"]
    clock.advance(minutes=16)
    response = client.post("/admin/refresh-token", headers=_bearer(token))
    assert response.status_code == 401
    assert response.json() == {"error": "Session expired"}


# ===== Logout =====

def test_logout_is_idempotent(client: TestClient, login, db):
    token = login()["token"]

    first = client.post("/admin/logout", headers=_bearer(token))
    assert first.status_code == 200
    assert first.json() == {"ok": True}

    second = client.post("/admin/logout", headers=_bearer(token))
    assert second.status_code == 200
    assert second.json() == {"ok": True}

    session = db.query(AdminSession).one()
    assert session.is_active is False
    assert session.end_reason == "logout"

    logout_logs = db.query(AuditLog).filter(AuditLog.action == "logout").order_by(AuditLog.id).all()
    assert [log.details["already_inactive"] for log in logout_logs] == [False, True]


def test_logout_invalidates_token(client: TestClient, login):
    token = login()["token"]
    client.post("/admin/logout", headers=_bearer(token))
    assert client.get("/admin/session", headers=_bearer(token)).status_code == 401


def test_logout_unknown_token(client: TestClient):
    response = client.post("/admin/logout", headers=_bearer("pas_unknown"))
    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_logout_requires_token(client: TestClient):
    response = client.post("/admin/logout")
    assert response.status_code == 401
