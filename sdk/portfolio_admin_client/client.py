"""Portfolio admin API client implementation"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp from the API into an aware UTC datetime."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class AdminAPIError(Exception):
    """Non-2xx response from the admin API.

    ``payload`` is the decoded JSON body (``{}`` when the body was not JSON);
    the server puts its public message under ``"error"``.
    """

    def __init__(self, status_code: int, payload: Optional[Dict[str, Any]] = None):
        self.status_code = status_code
        self.payload = payload or {}
        super().__init__(f"{status_code}: {self.message or 'request failed'}")

    @property
    def message(self) -> Optional[str]:
        error = self.payload.get("error")
        return error if isinstance(error, str) else None


class RateLimitedError(AdminAPIError):
    """Login rejected with 429. ``reset_time`` is when the window reopens (UTC), if the server sent it."""

    @property
    def reset_time(self) -> Optional[datetime]:
        value = self.payload.get("resetTime")
        if not value:
            return None
        try:
            return parse_timestamp(value)
        except ValueError:
            return None


class PortfolioAdminClient:
    """Client for the portfolio admin API.

    Session handling:
    - ``login()`` exchanges the admin password for a 15-minute session token
      and keeps it on the client.
    - ``refresh_token()`` rotates it; the previous token stops working.
    - ``logout()`` ends the session and forgets the token.
    - Every protected call sends ``Authorization: Bearer <token>``.

    The client never refreshes on its own; :class:`SessionController`
    decides when to refresh.
    """

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: float = 10.0):
        """
        Initialize the client.

        Args:
            base_url: Base URL of the admin backend (e.g. ``http://localhost:4001``).
            token:    Previously issued session token, if any.
            timeout:  Per-request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.session = requests.Session()

    # ---------------------------------------------------------------------------
    # Internal request handling
    # ---------------------------------------------------------------------------

    def _request(
        self,
        method: str,
        endpoint: str,
        authenticated: bool = True,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        """Make an HTTP request and return the decoded JSON body.

        Raises:
            RateLimitedError: On 429.
            AdminAPIError:    On any other non-2xx response.
            requests.RequestException: On transport failures.
        """
        url = f"{self.base_url}{endpoint}"
        headers = kwargs.pop("headers", {})
        if authenticated and self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        response = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.status_code == 429:
            raise RateLimitedError(response.status_code, payload)
        if response.status_code >= 400:
            raise AdminAPIError(response.status_code, payload)
        return payload

    # ========== Session Methods ==========

    def login(self, password: str, recaptcha_token: Optional[str] = None) -> Dict[str, Any]:
        """
        Log in with the admin password.

        Returns:
            ``{"token", "expiresIn", "expiresAt"}``; the token is also stored
            on the client.
        """
        body: Dict[str, Any] = {"password": password}
        if recaptcha_token:
            body["recaptchaToken"] = recaptcha_token
        data = self._request("POST", "/admin/login", authenticated=False, json=body)
        self.token = data["token"]
        return data

    def refresh_token(self) -> Dict[str, Any]:
        """Rotate the current session token. Same response shape as ``login()``."""
        data = self._request("POST", "/admin/refresh-token")
        self.token = data["token"]
        return data

    def logout(self) -> Dict[str, Any]:
        """End the current session. The local token is dropped even if the call fails."""
        try:
            return self._request("POST", "/admin/logout")
        finally:
            self.token = None

    def get_session(self) -> Dict[str, Any]:
        """Timing of the current session: issuedAt, expiresAt, lastActivity, secondsLeft."""
        return self._request("GET", "/admin/session")

    # ========== Admin Methods ==========

    def get_logs(self, log_type: str = "audit", days: int = 7) -> Dict[str, Any]:
        """
        Query audit or analytics logs.

        Args:
            log_type: ``"audit"`` or ``"analytics"``.
            days:     Look-back window, 1 to 90.
        """
        return self._request("GET", "/admin/logs", params={"type": log_type, "days": days})

    def get_settings(self) -> Dict[str, Any]:
        return self._request("GET", "/admin/settings")

    def update_settings(self, **changes: Any) -> Dict[str, Any]:
        """Update portfolio settings (github_username, repo_filter, max_repos, bio_override)."""
        return self._request("PUT", "/admin/settings", json=changes)

    # ========== Public Methods ==========

    def post_event(
        self,
        event_type: str,
        event_data: Optional[Dict[str, Any]] = None,
        error_message: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Record a public analytics event (no auth)."""
        return self._request(
            "POST",
            "/admin/logs",
            authenticated=False,
            json={"event_type": event_type, "event_data": event_data, "error_message": error_message},
        )
