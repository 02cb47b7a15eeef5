"""Fire-and-forget e-mail notifications for admin login events (Resend API)"""
import html
import threading
from datetime import datetime
from typing import Any, Dict, Optional

import requests

from portfolio_admin.config import settings
from portfolio_admin.utils.logger import logger


def _deliver(url: str, payload: Dict[str, Any], headers: Dict[str, str]) -> None:
    """Deliver one e-mail in a daemon background thread (fire-and-forget)."""
    try:
        resp = requests.post(url, json=payload, headers=headers, timeout=5)
        resp.raise_for_status()
        logger.debug("Notification delivered", extra={"event_type": payload.get("subject")})
    except Exception as exc:
        logger.warning(
            "Notification delivery failed",
            extra={"event_type": payload.get("subject"), "reason": str(exc)},
        )


def _login_html(title: str, colour: str, ip: Optional[str], user_agent: Optional[str], when: datetime) -> str:
    return f"""
    <html>
    <body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
        <h2 style="color: {colour};">{html.escape(title)}</h2>
        <table style="width: 100%; border-collapse: collapse;">
            <tr><td style="padding: 6px; color: #6b7280;">Time</td><td style="padding: 6px;">{when.strftime("%Y-%m-%d %H:%M:%S UTC")}</td></tr>
            <tr><td style="padding: 6px; color: #6b7280;">IP address</td><td style="padding: 6px;">{html.escape(ip or "unknown")}</td></tr>
            <tr><td style="padding: 6px; color: #6b7280;">User agent</td><td style="padding: 6px;">{html.escape(user_agent or "unknown")}</td></tr>
        </table>
        <p style="margin-top: 24px; color: #6b7280; font-size: 12px;">
            If this wasn't you, change ADMIN_PASSWORD and review the audit log.
        </p>
    </body>
    </html>
    """


class EmailNotifier:
    """Sends admin security e-mails without blocking the request.

    Disabled (every call is a no-op) unless an API key, sender and recipient
    are all configured. ``send`` returns immediately; delivery and its
    failures happen on a daemon thread.
    """

    def __init__(
        self,
        api_key: Optional[str],
        sender: Optional[str],
        recipient: Optional[str],
        api_url: str = "https://api.resend.com/emails",
    ):
        self.api_key = api_key
        self.sender = sender
        self.recipient = recipient
        self.api_url = api_url

    @classmethod
    def from_settings(cls) -> "EmailNotifier":
        return cls(
            api_key=settings.RESEND_API_KEY,
            sender=settings.EMAIL_FROM,
            recipient=settings.ADMIN_NOTIFY_EMAIL,
            api_url=settings.RESEND_API_URL,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.api_key and self.sender and self.recipient)

    def send(self, subject: str, html_content: str) -> None:
        if not self.enabled:
            logger.debug("Email notifications not configured, skipping", extra={"event_type": subject})
            return

        payload = {
            "from": self.sender,
            "to": [self.recipient],
            "subject": subject,
            "html": html_content,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        threading.Thread(target=_deliver, args=(self.api_url, payload, headers), daemon=True).start()

    def login_succeeded(self, ip: Optional[str], user_agent: Optional[str], when: datetime) -> None:
        self.send(
            "Portfolio admin: successful login",
            _login_html("Successful admin login", "#16a34a", ip, user_agent, when),
        )

    def login_failed(self, ip: Optional[str], user_agent: Optional[str], when: datetime) -> None:
        self.send(
            "Portfolio admin: failed login attempt",
            _login_html("Failed admin login attempt", "#dc2626", ip, user_agent, when),
        )
