"""Global request throttling for API protection (slowapi).

This guards every endpoint against floods. Login attempts are additionally
counted by :class:`portfolio_admin.services.rate_limiter.LoginRateLimiter`,
which implements the stricter per-IP login budget.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request
from portfolio_admin.config import settings
from portfolio_admin.utils.auth import hash_token


def get_identifier(request: Request) -> str:
    """
    Get identifier for rate limiting

    Priority:
    1. Session token (authenticated admin calls)
    2. IP address (everything else)
    """
    authorization = request.headers.get("authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token:
        return f"session:{hash_token(token)[:16]}"

    if settings.TRUST_PROXY_HEADERS:
        xff = request.headers.get("x-forwarded-for")
        if xff:
            return xff.split(",")[0].strip()

    # Fall back to IP address for unauthenticated requests
    return get_remote_address(request)


# Create limiter instance
limiter = Limiter(
    key_func=get_identifier,
    default_limits=settings.RATE_LIMIT_DEFAULT,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)
