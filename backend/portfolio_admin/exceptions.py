"""Service-level errors, rendered to JSON by the handler registered in main.py"""
from datetime import datetime
from typing import Any, Dict, Optional


class PortfolioAdminError(Exception):
    """Base error. ``message`` is safe to show to the caller."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return None


class ValidationFailed(PortfolioAdminError):
    """Bad captcha, malformed analytics event, unknown log type."""

    status_code = 400


class Unauthorized(PortfolioAdminError):
    """Wrong password, missing/expired/invalid session token."""

    status_code = 401

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class RateLimited(PortfolioAdminError):
    """Too many login attempts from one client identity."""

    status_code = 429

    def __init__(self, message: str, reset_at: datetime):
        super().__init__(message)
        self.reset_at = reset_at

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "resetTime": self.reset_at.isoformat() + "Z"}

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return {"X-RateLimit-Remaining": "0"}


class UpstreamError(PortfolioAdminError):
    """Record store or other collaborator failure."""

    status_code = 500


class NotConfigured(PortfolioAdminError):
    """A required setting (e.g. ADMIN_PASSWORD) is missing."""

    status_code = 500
