"""Python client for the portfolio admin API"""
from portfolio_admin_client.client import AdminAPIError, PortfolioAdminClient, RateLimitedError
from portfolio_admin_client.session import (
    FileCredentialStore,
    LoginError,
    MemoryCredentialStore,
    SessionController,
    SessionState,
)

__version__ = "0.1.0"
__all__ = [
    "AdminAPIError",
    "PortfolioAdminClient",
    "RateLimitedError",
    "FileCredentialStore",
    "LoginError",
    "MemoryCredentialStore",
    "SessionController",
    "SessionState",
]
