"""Admin login, token refresh, logout and session introspection endpoints"""
from datetime import datetime
from typing import Callable, Optional

from fastapi import APIRouter, Depends, Request

from portfolio_admin.api.deps import (
    SessionContext,
    get_auth_service,
    get_bearer_token,
    get_clock,
    require_session,
)
from portfolio_admin.exceptions import Unauthorized
from portfolio_admin.schemas.auth import LoginRequest, LogoutResponse, SessionInfoResponse, TokenResponse
from portfolio_admin.services.auth import AuthService, IssuedToken
from portfolio_admin.utils.auth import as_utc, get_client_ip

router = APIRouter(prefix="/admin", tags=["authentication"])


def _token_response(issued: IssuedToken) -> TokenResponse:
    return TokenResponse(
        token=issued.token,
        expires_in=issued.expires_in,
        expires_at=as_utc(issued.expires_at),
    )


# ---------------------------------------------------------------------------
# POST /admin/login
# ---------------------------------------------------------------------------

@router.post("/login", response_model=TokenResponse)
def login(
    body: LoginRequest,
    request: Request,
    auth: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """Exchange the admin password for a 15-minute session token.

    Checks run in order and each failure ends the call:

    1. **Rate limit** - 5 attempts per client IP per 15 minutes, counted
       whether or not the password is right. Exceeded: `429` with
       `resetTime`.
    2. **reCAPTCHA** - when configured and a `recaptchaToken` is supplied,
       the token must verify with a score of at least 0.5. Failed: `400`.
    3. **Password** - exact match against `ADMIN_PASSWORD`. Wrong: `401`.

    Every attempt is written to the audit log.
    """
    issued = auth.login(
        password=body.password,
        bot_token=body.recaptcha_token,
        client_ip=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return _token_response(issued)


# ---------------------------------------------------------------------------
# POST /admin/refresh-token
# ---------------------------------------------------------------------------

@router.post("/refresh-token", response_model=TokenResponse)
def refresh_token(
    request: Request,
    token: Optional[str] = Depends(get_bearer_token),
    auth: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """Rotate the current session token.

    Requires a valid `Authorization: Bearer <token>`. The presented token is
    deactivated and a new token with a fresh 15-minute window is returned;
    any later request carrying the old token gets `401`.
    """
    issued = auth.refresh(
        token,
        client_ip=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return _token_response(issued)


# ---------------------------------------------------------------------------
# POST /admin/logout
# ---------------------------------------------------------------------------

@router.post("/logout", response_model=LogoutResponse)
def logout(
    request: Request,
    token: Optional[str] = Depends(get_bearer_token),
    auth: AuthService = Depends(get_auth_service),
) -> LogoutResponse:
    """End the current session.

    Idempotent: logging out a token that is already inactive or expired
    still returns `{"ok": true}`. Only a missing bearer token is rejected.
    """
    if not token:
        raise Unauthorized("Authentication required")
    auth.logout(token, client_ip=get_client_ip(request))
    return LogoutResponse(ok=True)


# ---------------------------------------------------------------------------
# GET /admin/session
# ---------------------------------------------------------------------------

@router.get("/session", response_model=SessionInfoResponse)
def session_info(
    ctx: SessionContext = Depends(require_session),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> SessionInfoResponse:
    """Timing of the caller's session, for re-syncing a client-side expiry timer."""
    seconds_left = max(0, int((ctx.expires_at - clock()).total_seconds()))
    return SessionInfoResponse(
        issued_at=as_utc(ctx.issued_at),
        expires_at=as_utc(ctx.expires_at),
        last_activity=as_utc(ctx.last_activity),
        seconds_left=seconds_left,
    )
