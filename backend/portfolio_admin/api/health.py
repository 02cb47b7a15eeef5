"""Health check endpoints"""
import time
from datetime import datetime, timedelta
from typing import Any, Callable, Dict

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from portfolio_admin.api.deps import get_clock
from portfolio_admin.config import settings
from portfolio_admin.database import get_db
from portfolio_admin.services.session_store import SessionStore

router = APIRouter(prefix="/health", tags=["health"])

SERVICE_NAME = "portfolio-admin"
VERSION = "0.1.0"

# Track startup time
STARTUP_TIME = time.time()


@router.get("")
def health_check():
    """
    Basic health check endpoint

    Returns 200 if service is running
    """
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": VERSION,
        "timestamp": datetime.utcnow().isoformat()
    }


@router.get("/ready")
def readiness_check(db: Session = Depends(get_db)):
    """
    Readiness check - verifies the session store is reachable

    Returns 200 if ready to serve traffic, 503 if not ready
    """
    checks = {
        "database": False,
        "database_latency_ms": None
    }

    try:
        start = time.time()
        db.execute(text("SELECT 1"))
        latency_ms = (time.time() - start) * 1000
        checks["database"] = True
        checks["database_latency_ms"] = round(latency_ms, 2)
    except SQLAlchemyError as e:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "unhealthy",
                "checks": checks,
                "message": f"Database check failed: {e.__class__.__name__}"
            },
        )

    if latency_ms > 1000:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "degraded",
                "checks": checks,
                "message": "Database latency is high"
            },
        )

    return {
        "status": "ready",
        "checks": checks,
        "timestamp": datetime.utcnow().isoformat()
    }


@router.get("/live")
def liveness_check():
    """
    Liveness check - verifies service is alive

    Returns 200 if process is alive
    """
    return {
        "status": "alive",
        "uptime_seconds": round(time.time() - STARTUP_TIME, 2),
        "timestamp": datetime.utcnow().isoformat()
    }


@router.get("/stats")
def health_stats(
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> Dict[str, Any]:
    """
    Session and process statistics

    Active session count excludes rows already past their expiry, even if
    they have not been flipped inactive yet.
    """
    store = SessionStore(db, timedelta(minutes=settings.SESSION_TTL_MINUTES))
    return {
        "status": "healthy",
        "sessions": {
            "active": store.count_active(clock())
        },
        "system": {
            "uptime_seconds": round(time.time() - STARTUP_TIME, 2),
            "captcha_enabled": settings.captcha_enabled,
            "notifications_enabled": settings.notifications_enabled,
        },
        "timestamp": datetime.utcnow().isoformat()
    }
