"""Admin authentication and session lifecycle.

login:    rate limit -> bot check -> password -> new session
refresh:  valid session -> deactivate it -> new session
logout:   deactivate (idempotent)
validate: the per-request gate used by protected endpoints
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from portfolio_admin.exceptions import (
    NotConfigured,
    RateLimited,
    Unauthorized,
    UpstreamError,
    ValidationFailed,
)
from portfolio_admin.middleware.monitoring import (
    record_login_attempt,
    record_session_refresh,
    record_validation_failure,
)
from portfolio_admin.models.admin_session import AdminSession
from portfolio_admin.services.audit import AuditLogger
from portfolio_admin.services.bot_check import RecaptchaVerifier
from portfolio_admin.services.notifier import EmailNotifier
from portfolio_admin.services.rate_limiter import LoginRateLimiter
from portfolio_admin.services.session_store import SessionStore
from portfolio_admin.utils.auth import passwords_match
from portfolio_admin.utils.logger import logger


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expires_in: int  # seconds
    expires_at: datetime
    session_id: int


class AuthService:
    def __init__(
        self,
        db: Session,
        limiter: LoginRateLimiter,
        verifier: RecaptchaVerifier,
        audit: AuditLogger,
        notifier: EmailNotifier,
        admin_password: Optional[str],
        clock: Callable[[], datetime] = datetime.utcnow,
        session_ttl: timedelta = timedelta(minutes=15),
        max_attempts: int = 5,
        attempt_window: timedelta = timedelta(minutes=15),
        captcha_required: bool = False,
    ):
        self.db = db
        self.store = SessionStore(db, session_ttl)
        self.limiter = limiter
        self.verifier = verifier
        self.audit = audit
        self.notifier = notifier
        self.admin_password = admin_password
        self.clock = clock
        self.session_ttl = session_ttl
        self.max_attempts = max_attempts
        self.attempt_window = attempt_window
        self.captcha_required = captcha_required

    # ------------------------------------------------------------------
    # login
    # ------------------------------------------------------------------

    def login(
        self,
        password: Optional[str],
        bot_token: Optional[str],
        client_ip: str,
        user_agent: Optional[str],
    ) -> IssuedToken:
        now = self.clock()
        details = {"user_agent": user_agent}

        limit = self.limiter.check(client_ip, self.max_attempts, self.attempt_window, now=now)
        if not limit.allowed:
            self._login_failed("rate_limited", details, client_ip)
            raise RateLimited("Too many login attempts. Please try again later.", reset_at=limit.reset_at)

        if self.verifier.enabled and (bot_token or self.captcha_required):
            result = self.verifier.verify(bot_token or "", remote_ip=client_ip)
            if not result.passed:
                self._login_failed("invalid_captcha", {**details, "score": result.score}, client_ip)
                raise ValidationFailed("reCAPTCHA verification failed")

        if not self.admin_password:
            self._login_failed("not_configured", details, client_ip)
            logger.error("ADMIN_PASSWORD is not configured; refusing login", extra={"client_ip": client_ip})
            raise NotConfigured("Admin login is not configured")

        if not passwords_match(password, self.admin_password):
            self._login_failed("wrong_password", details, client_ip)
            self.notifier.login_failed(client_ip, user_agent, now)
            raise Unauthorized("Invalid password")

        session, token = self.store.create(now, client_ip, user_agent)
        self._commit()

        self.audit.record("login", {**details, "session_id": session.id}, client_ip, success=True)
        record_login_attempt("success")
        logger.info("Admin login succeeded", extra={"client_ip": client_ip, "session_id": session.id})
        self.notifier.login_succeeded(client_ip, user_agent, now)

        return self._issued(session, token)

    def _login_failed(self, reason: str, details: dict, client_ip: str) -> None:
        self.audit.record("login", details, client_ip, success=False, reason=reason)
        record_login_attempt(reason)
        logger.warning("Admin login rejected", extra={"client_ip": client_ip, "reason": reason})

    # ------------------------------------------------------------------
    # session validation
    # ------------------------------------------------------------------

    def validate_session(self, token: Optional[str]) -> AdminSession:
        """Return the active session for ``token`` and bump its activity.

        A token is valid iff its row is active and now <= expires_at. An
        active row found past its deadline is deactivated here (lazy expiry);
        there is no background sweep. Validation never extends expires_at.
        """
        if not token:
            record_validation_failure("missing")
            raise Unauthorized("Authentication required")

        now = self.clock()
        session = self.store.find(token)
        if session is None or not session.is_active:
            record_validation_failure("invalid")
            raise Unauthorized("Invalid or expired session")

        if now > session.expires_at:
            self.store.deactivate(session, "expired", now)
            self._commit()
            record_validation_failure("expired")
            logger.info("Session expired", extra={"session_id": session.id})
            raise Unauthorized("Session expired")

        self.store.touch(session, now)
        self._commit()
        return session

    # ------------------------------------------------------------------
    # refresh / logout
    # ------------------------------------------------------------------

    def refresh(self, token: Optional[str], client_ip: str, user_agent: Optional[str]) -> IssuedToken:
        """Rotate a valid session: the old token stops working immediately."""
        try:
            current = self.validate_session(token)
        except Unauthorized:
            self.audit.record("refresh", {"user_agent": user_agent}, client_ip, success=False, reason="invalid_session")
            record_session_refresh("rejected")
            raise

        now = self.clock()
        self.store.deactivate(current, "rotated", now)
        session, new_token = self.store.create(now, client_ip, user_agent, rotated_from=current)
        self._commit()

        self.audit.record(
            "refresh",
            {"user_agent": user_agent, "session_id": session.id, "rotated_from": current.id},
            client_ip,
            success=True,
        )
        record_session_refresh("success")
        logger.info("Session refreshed", extra={"client_ip": client_ip, "session_id": session.id})

        return self._issued(session, new_token)

    def logout(self, token: str, client_ip: str) -> bool:
        """Deactivate the session behind ``token``.

        Unknown, expired and already-inactive tokens are not errors. Returns
        True if this call ended an active session.
        """
        now = self.clock()
        session = self.store.find(token)
        ended = False
        if session is not None:
            ended = self.store.deactivate(session, "logout", now)
            self._commit()

        self.audit.record(
            "logout",
            {"session_id": session.id if session else None, "already_inactive": not ended},
            client_ip,
            success=True,
        )
        logger.info("Admin logout", extra={"client_ip": client_ip, "session_id": session.id if session else None})
        return ended

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _issued(self, session: AdminSession, token: str) -> IssuedToken:
        return IssuedToken(
            token=token,
            expires_in=int(self.session_ttl.total_seconds()),
            expires_at=session.expires_at,
            session_id=session.id,
        )

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Session store write failed", exc_info=True)
            raise UpstreamError("Session store unavailable") from exc
