"""Client-side admin session controller.

Tracks one admin session on the client: logs in, keeps the token in a
credential store, refreshes it once when it enters the last five minutes,
and logs out locally when it runs out. The server is never asked whether
the token has expired; the controller trusts ``expiresAt``.
"""
import json
import logging
import os
import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional

import requests

from portfolio_admin_client.client import (
    AdminAPIError,
    PortfolioAdminClient,
    RateLimitedError,
    parse_timestamp,
)

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 10.0

# Refresh fires once when minutes_left enters (REFRESH_BAND_LOW, REFRESH_BAND_HIGH]
REFRESH_BAND_LOW = 4.0
REFRESH_BAND_HIGH = 5.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionState(str, Enum):
    LOGGED_OUT = "logged_out"
    LOGGING_IN = "logging_in"
    AUTHENTICATED = "authenticated"
    REFRESHING = "refreshing"


class LoginError(Exception):
    """Login failed. ``str(exc)`` is the message to show the user."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class Credentials:
    """A session token and when it expires."""

    def __init__(self, token: str, expires_at: datetime):
        self.token = token
        self.expires_at = expires_at

    def to_dict(self) -> Dict[str, str]:
        return {"token": self.token, "expiresAt": self.expires_at.isoformat()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Credentials":
        return cls(token=data["token"], expires_at=parse_timestamp(data["expiresAt"]))


# ---------------------------------------------------------------------------
# Credential stores
# ---------------------------------------------------------------------------

class MemoryCredentialStore:
    """Keeps credentials for the life of the process."""

    def __init__(self):
        self._credentials: Optional[Credentials] = None

    def load(self) -> Optional[Credentials]:
        return self._credentials

    def save(self, credentials: Credentials) -> None:
        self._credentials = credentials

    def clear(self) -> None:
        self._credentials = None


class FileCredentialStore:
    """Keeps credentials in a small JSON file so a restarted client can resume its session."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> Optional[Credentials]:
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                return Credentials.from_dict(json.load(fh))
        except FileNotFoundError:
            return None
        except (ValueError, KeyError, TypeError):
            logger.warning("Ignoring unreadable credential file %s", self.path)
            return None

    def save(self, credentials: Credentials) -> None:
        with open(self.path, "w", encoding="utf-8") as fh:
            json.dump(credentials.to_dict(), fh)

    def clear(self) -> None:
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------

class SessionController:
    """State machine for one admin session.

    States: LOGGED_OUT -> LOGGING_IN -> AUTHENTICATED <-> REFRESHING.

    ``tick()`` does one expiry check; ``start()`` runs it every 10 seconds on
    a daemon thread. Any refresh failure logs out silently without retrying.
    ``touch()`` only records local activity and never extends the server
    session.
    """

    def __init__(
        self,
        client: PortfolioAdminClient,
        store=None,
        clock: Callable[[], datetime] = _utcnow,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        auto_poll: bool = True,
        on_state_change: Optional[Callable[[SessionState], None]] = None,
    ):
        self.client = client
        self.store = store if store is not None else MemoryCredentialStore()
        self.clock = clock
        self.poll_interval = poll_interval
        self.auto_poll = auto_poll
        self.on_state_change = on_state_change

        self._lock = threading.RLock()
        self._state = SessionState.LOGGED_OUT
        self._credentials: Optional[Credentials] = None
        self._refresh_in_flight = False
        self._refresh_fired = False
        self.last_seen: Optional[datetime] = None

        self._stop_event = threading.Event()
        self._poller: Optional[threading.Thread] = None

        self._restore()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def token(self) -> Optional[str]:
        return self._credentials.token if self._credentials else None

    @property
    def expires_at(self) -> Optional[datetime]:
        return self._credentials.expires_at if self._credentials else None

    @property
    def is_authenticated(self) -> bool:
        return self._state in (SessionState.AUTHENTICATED, SessionState.REFRESHING)

    def minutes_left(self, now: Optional[datetime] = None) -> Optional[float]:
        if self._credentials is None:
            return None
        now = now or self.clock()
        return (self._credentials.expires_at - now).total_seconds() / 60.0

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def login(self, password: str, recaptcha_token: Optional[str] = None) -> None:
        """Log in. Raises :class:`LoginError` with a user-facing message on failure."""
        with self._lock:
            if self._state == SessionState.LOGGING_IN:
                raise LoginError("Login already in progress")
            self._set_state(SessionState.LOGGING_IN)

        try:
            data = self.client.login(password, recaptcha_token)
        except RateLimitedError as exc:
            self._abort_login()
            raise LoginError(_rate_limited_message(exc.reset_time), exc.status_code) from exc
        except AdminAPIError as exc:
            self._abort_login()
            raise LoginError(exc.message or "Login failed", exc.status_code) from exc
        except requests.RequestException as exc:
            self._abort_login()
            raise LoginError("Login failed") from exc

        self._authenticate(Credentials(data["token"], parse_timestamp(data["expiresAt"])))

    def refresh(self) -> bool:
        """Rotate the session token. Returns False (and logs out) on any failure.

        A call while another refresh is in flight, or while not
        authenticated, is a no-op returning False.
        """
        with self._lock:
            if self._state != SessionState.AUTHENTICATED or self._refresh_in_flight:
                return False
            self._refresh_in_flight = True
            self._set_state(SessionState.REFRESHING)

        try:
            data = self.client.refresh_token()
        except (AdminAPIError, requests.RequestException):
            logger.info("Session refresh failed; logging out")
            with self._lock:
                self._refresh_in_flight = False
                if self._state == SessionState.REFRESHING:
                    self._clear()
            return False

        with self._lock:
            self._refresh_in_flight = False
            if self._state != SessionState.REFRESHING:
                # Logged out while the refresh was pending
                return False
            self._authenticate(Credentials(data["token"], parse_timestamp(data["expiresAt"])))
        return True

    def logout(self) -> None:
        """End the session on the server (best effort) and clear local credentials."""
        if self._credentials is not None:
            try:
                self.client.logout()
            except (AdminAPIError, requests.RequestException):
                logger.warning("Server logout failed; clearing local session anyway", exc_info=True)

        with self._lock:
            self._clear()

    def touch(self) -> None:
        """Record local user activity. Does not touch the server session."""
        self.last_seen = self.clock()

    def tick(self) -> SessionState:
        """One expiry check: log out at zero, refresh once inside the refresh band."""
        should_refresh = False
        with self._lock:
            minutes_left = self.minutes_left()
            if minutes_left is None or not self.is_authenticated:
                return self._state

            if minutes_left <= 0:
                logger.info("Session expired locally; logging out")
                self._clear()
                return self._state

            if minutes_left > REFRESH_BAND_HIGH:
                self._refresh_fired = False
            elif minutes_left > REFRESH_BAND_LOW and not self._refresh_fired:
                self._refresh_fired = True
                should_refresh = True

        if should_refresh:
            self.refresh()
        return self._state

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the background expiry poller (idempotent)."""
        with self._lock:
            if self._poller is not None and self._poller.is_alive():
                return
            self._stop_event = threading.Event()
            self._poller = threading.Thread(
                target=self._poll, args=(self._stop_event,), name="admin-session-poller", daemon=True
            )
            self._poller.start()

    def stop(self) -> None:
        """Stop the poller. Safe to call from the poller thread itself."""
        with self._lock:
            poller = self._poller
            self._stop_event.set()
            self._poller = None
        if poller is not None and poller is not threading.current_thread():
            poller.join(timeout=self.poll_interval + 1)

    def close(self) -> None:
        self.stop()

    def _poll(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.poll_interval):
            self.tick()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _restore(self) -> None:
        credentials = self.store.load()
        if credentials is None:
            return
        if credentials.expires_at <= self.clock():
            self.store.clear()
            return
        self.client.token = credentials.token
        self._authenticate(credentials)

    def _authenticate(self, credentials: Credentials) -> None:
        with self._lock:
            self._credentials = credentials
            self._refresh_fired = False
            self.client.token = credentials.token
            self.store.save(credentials)
            self._set_state(SessionState.AUTHENTICATED)
        if self.auto_poll:
            self.start()

    def _abort_login(self) -> None:
        with self._lock:
            self._clear()

    def _clear(self) -> None:
        self._credentials = None
        self.client.token = None
        self._refresh_fired = False
        self.store.clear()
        self._set_state(SessionState.LOGGED_OUT)
        self._stop_event.set()
        self._poller = None

    def _set_state(self, state: SessionState) -> None:
        if state == self._state:
            return
        self._state = state
        if self.on_state_change is not None:
            self.on_state_change(state)


def _rate_limited_message(reset_time: Optional[datetime]) -> str:
    if reset_time is None:
        return "Too many attempts. Try again later."
    return f"Too many attempts. Try again at {reset_time.astimezone().strftime('%H:%M:%S')}"
