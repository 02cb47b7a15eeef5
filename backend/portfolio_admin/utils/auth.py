"""Authentication utilities"""
import hashlib
import secrets
from datetime import datetime, timezone
from typing import Optional

from fastapi import Request

from portfolio_admin.config import settings

SESSION_TOKEN_PREFIX = "pas_"


def generate_session_token() -> str:
    """Generate a fresh opaque bearer token"""
    return f"{SESSION_TOKEN_PREFIX}{secrets.token_urlsafe(32)}"


def hash_token(token: str) -> str:
    """Hash a session token using SHA256 (only the digest is persisted)"""
    return hashlib.sha256(token.encode()).hexdigest()


def passwords_match(supplied: Optional[str], expected: str) -> bool:
    """Exact-match comparison that does not leak timing information"""
    if supplied is None:
        return False
    return secrets.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


def get_client_ip(request: Request) -> str:
    """Best-effort client IP; X-Forwarded-For is honoured only behind a trusted proxy"""
    if settings.TRUST_PROXY_HEADERS:
        xff = request.headers.get("x-forwarded-for")
        if xff:
            return xff.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


def as_utc(value: datetime) -> datetime:
    """Attach UTC to a naive timestamp read from the store (serialises with a Z suffix)"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
