"""Middleware modules for production-ready features"""
from portfolio_admin.middleware.monitoring import (
    MonitoringMiddleware,
    record_login_attempt,
    record_session_refresh,
    record_validation_failure,
)
from portfolio_admin.middleware.rate_limit import get_identifier, limiter

__all__ = [
    "MonitoringMiddleware",
    "record_login_attempt",
    "record_session_refresh",
    "record_validation_failure",
    "get_identifier",
    "limiter",
]
