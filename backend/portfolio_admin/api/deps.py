"""API dependencies: service wiring and the session guard.

Every protected endpoint uses exactly one scheme, ``Authorization: Bearer
<session token>``. Tokens are opaque and checked against the session store
on each request (see :meth:`AuthService.validate_session`).

Collaborators (clock, bot verifier, notifier, login limiter, audit session
factory) are separate dependencies so tests can override each one.
"""
from datetime import datetime, timedelta
from typing import Callable, NamedTuple, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session, sessionmaker

from portfolio_admin.config import settings
from portfolio_admin.database import get_db, get_session_factory
from portfolio_admin.services.audit import AuditLogger
from portfolio_admin.services.auth import AuthService
from portfolio_admin.services.bot_check import RecaptchaVerifier
from portfolio_admin.services.notifier import EmailNotifier
from portfolio_admin.services.rate_limiter import LoginRateLimiter

_bearer_scheme = HTTPBearer(auto_error=False)


class SessionContext(NamedTuple):
    """Resolved admin session, populated by :func:`require_session`."""
    session_id: int
    issued_at: datetime
    expires_at: datetime
    last_activity: datetime
    client_ip: Optional[str]


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------

def get_clock() -> Callable[[], datetime]:
    """Naive-UTC clock shared by every time-based check in a request."""
    return datetime.utcnow


def get_login_limiter(request: Request) -> LoginRateLimiter:
    """The process-wide login limiter owned by the application."""
    return request.app.state.login_limiter


def get_bot_verifier() -> RecaptchaVerifier:
    return RecaptchaVerifier.from_settings()


def get_notifier() -> EmailNotifier:
    return EmailNotifier.from_settings()


def get_audit_logger(
    session_factory: sessionmaker = Depends(get_session_factory),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> AuditLogger:
    return AuditLogger(session_factory, clock=clock)


def get_auth_service(
    db: Session = Depends(get_db),
    limiter: LoginRateLimiter = Depends(get_login_limiter),
    verifier: RecaptchaVerifier = Depends(get_bot_verifier),
    audit: AuditLogger = Depends(get_audit_logger),
    notifier: EmailNotifier = Depends(get_notifier),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> AuthService:
    return AuthService(
        db=db,
        limiter=limiter,
        verifier=verifier,
        audit=audit,
        notifier=notifier,
        admin_password=settings.ADMIN_PASSWORD,
        clock=clock,
        session_ttl=timedelta(minutes=settings.SESSION_TTL_MINUTES),
        max_attempts=settings.LOGIN_MAX_ATTEMPTS,
        attempt_window=timedelta(minutes=settings.LOGIN_WINDOW_MINUTES),
        captcha_required=settings.RECAPTCHA_REQUIRED,
    )


# ---------------------------------------------------------------------------
# Session guard
# ---------------------------------------------------------------------------

def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> Optional[str]:
    """Raw bearer token from the Authorization header, or None."""
    return credentials.credentials if credentials else None


def require_session(
    request: Request,
    token: Optional[str] = Depends(get_bearer_token),
    auth: AuthService = Depends(get_auth_service),
) -> SessionContext:
    """Require a valid admin session.

    Raises 401 when the token is missing, unknown, inactive or past its
    expiry (flipping the row inactive in the last case). On success the
    session's last activity is bumped; its expiry is never extended.
    """
    session = auth.validate_session(token)
    ctx = SessionContext(
        session_id=session.id,
        issued_at=session.issued_at,
        expires_at=session.expires_at,
        last_activity=session.last_activity,
        client_ip=session.client_ip,
    )
    request.state.admin_session = ctx
    return ctx
