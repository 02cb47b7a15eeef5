"""FastAPI application entry point"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from portfolio_admin import models  # noqa: F401  (registers tables on Base.metadata)
from portfolio_admin.api import admin, auth, health, logs
from portfolio_admin.config import settings
from portfolio_admin.database import Base, engine
from portfolio_admin.exceptions import PortfolioAdminError, ValidationFailed
from portfolio_admin.middleware.monitoring import MonitoringMiddleware
from portfolio_admin.middleware.rate_limit import limiter
from portfolio_admin.services.rate_limiter import LoginRateLimiter
from portfolio_admin.utils.logger import logger, setup_logging

# Setup logging
setup_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    # Startup
    Base.metadata.create_all(bind=engine)
    logger.info("Portfolio admin backend starting up", extra={
        "version": health.VERSION,
        "environment": settings.HOST,
        "log_level": settings.LOG_LEVEL,
        "rate_limiting": settings.RATE_LIMIT_ENABLED,
        "monitoring": settings.METRICS_ENABLED,
        "captcha": settings.captcha_enabled,
        "notifications": settings.notifications_enabled,
    })
    if not settings.ADMIN_PASSWORD:
        logger.warning("ADMIN_PASSWORD is not set; admin login is disabled")
    yield
    # Shutdown
    logger.info("Portfolio admin backend shutting down")


# Create FastAPI app
app = FastAPI(
    title="Portfolio Admin",
    description="Admin authentication, session lifecycle and audit logging for the portfolio site",
    version=health.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Login attempt counters live for the life of the process
app.state.login_limiter = LoginRateLimiter()

# ===== Middleware Setup =====

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Monitoring middleware
if settings.METRICS_ENABLED:
    app.add_middleware(MonitoringMiddleware)

    # Prometheus metrics
    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        should_respect_env_var=False,
        should_instrument_requests_inprogress=True,
        excluded_handlers=["/metrics", "/health", "/health/ready", "/health/live"],
        inprogress_name="portfolio_admin_requests_inprogress",
        inprogress_labels=True
    )
    instrumentator.instrument(app)
    instrumentator.expose(app, endpoint=settings.METRICS_PATH, include_in_schema=False)

# Global request throttle
if settings.RATE_LIMIT_ENABLED:
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        """Handle global rate limit exceeded errors"""
        logger.warning(
            "Rate limit exceeded",
            extra={
                "path": request.url.path,
                "method": request.method,
                "client_ip": request.client.host if request.client else "unknown"
            }
        )
        return JSONResponse(
            status_code=429,
            content={
                "error": "Too many requests. Please try again later.",
                "detail": str(exc.detail)
            }
        )

# ===== Route Setup =====

# Include routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(logs.router)
app.include_router(admin.router)


@app.get("/")
def root():
    """Root endpoint"""
    return {
        "service": health.SERVICE_NAME,
        "version": health.VERSION,
        "status": "operational",
        "docs": "/docs",
        "health": "/health",
        "metrics": settings.METRICS_PATH if settings.METRICS_ENABLED else None
    }


# ===== Error Handlers =====

_REQUEST_LOCATIONS = ("body", "query", "path", "header")


@app.exception_handler(PortfolioAdminError)
async def portfolio_admin_error_handler(request: Request, exc: PortfolioAdminError):
    """Render service errors as ``{"error": ...}`` with their status code"""
    if exc.status_code >= 500:
        logger.error(
            f"Request failed: {exc.message}",
            extra={"path": request.url.path, "method": request.method}
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Render malformed requests as 400 ``{"error": "Invalid <field>"}``"""
    fields = []
    for detail in exc.errors()[:1]:
        fields = [part for part in detail.get("loc", ()) if isinstance(part, str) and part not in _REQUEST_LOCATIONS]
    error = ValidationFailed(f"Invalid {fields[-1]}" if fields else "Invalid request body")
    logger.info(
        "Request validation failed",
        extra={"path": request.url.path, "method": request.method, "reason": error.message}
    )
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for uncaught errors"""
    logger.error(
        f"Unhandled exception: {str(exc)}",
        extra={
            "path": request.url.path,
            "method": request.method
        },
        exc_info=True
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "An unexpected error occurred."
        }
    )
