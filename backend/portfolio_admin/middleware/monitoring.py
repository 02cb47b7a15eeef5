"""Monitoring and observability middleware"""
import time
import uuid
from typing import Callable
from fastapi import Request, Response
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from portfolio_admin.utils.logger import logger


# ===== Prometheus Metrics =====

# Request metrics
http_requests_total = Counter(
    "portfolio_admin_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

http_request_duration_seconds = Histogram(
    "portfolio_admin_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"]
)

# Error metrics
http_errors_total = Counter(
    "portfolio_admin_http_errors_total",
    "Total HTTP errors",
    ["method", "endpoint", "status"]
)

# Session lifecycle metrics
login_attempts_total = Counter(
    "portfolio_admin_login_attempts_total",
    "Admin login attempts",
    ["outcome"]  # success, wrong_password, invalid_captcha, rate_limited, not_configured
)

session_refresh_total = Counter(
    "portfolio_admin_session_refresh_total",
    "Session token refreshes",
    ["outcome"]  # success, rejected
)

session_validation_failures_total = Counter(
    "portfolio_admin_session_validation_failures_total",
    "Rejected bearer tokens on protected endpoints",
    ["reason"]  # missing, invalid, expired
)


SLOW_REQUEST_SECONDS = 1.0


def _route_label(request: Request) -> str:
    """Templated route path when matched; raw path otherwise"""
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class MonitoringMiddleware(BaseHTTPMiddleware):
    """Per-request metrics, request IDs and slow-request logging"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or f"req_{uuid.uuid4().hex[:16]}"
        request.state.request_id = request_id
        method = request.method
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            http_errors_total.labels(method=method, endpoint=_route_label(request), status=500).inc()
            logger.error(
                f"Request failed: {method} {request.url.path}",
                extra={"request_id": request_id, "method": method, "path": request.url.path},
                exc_info=True,
            )
            raise

        duration = time.perf_counter() - started
        endpoint = _route_label(request)
        status = response.status_code

        http_requests_total.labels(method=method, endpoint=endpoint, status=status).inc()
        http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)
        if status >= 400:
            http_errors_total.labels(method=method, endpoint=endpoint, status=status).inc()

        if duration > SLOW_REQUEST_SECONDS:
            logger.warning(
                f"Slow request: {method} {request.url.path} took {duration:.2f}s",
                extra={"request_id": request_id, "method": method, "path": request.url.path},
            )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration:.3f}s"
        return response


def record_login_attempt(outcome: str):
    """Record admin login outcome"""
    login_attempts_total.labels(outcome=outcome).inc()


def record_session_refresh(outcome: str):
    """Record session refresh outcome"""
    session_refresh_total.labels(outcome=outcome).inc()


def record_validation_failure(reason: str):
    """Record a rejected bearer token"""
    session_validation_failures_total.labels(reason=reason).inc()
