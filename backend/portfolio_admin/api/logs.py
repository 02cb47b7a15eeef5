"""Audit and analytics log endpoints"""
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Callable, Dict

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from portfolio_admin.api.deps import SessionContext, get_clock, require_session
from portfolio_admin.config import settings
from portfolio_admin.database import get_db
from portfolio_admin.exceptions import UpstreamError, ValidationFailed
from portfolio_admin.models.activity_log import ActivityLog
from portfolio_admin.models.audit_log import AuditLog
from portfolio_admin.schemas.audit_log import ActivityLogCreate, ActivityLogResponse, AuditLogResponse
from portfolio_admin.utils.logger import logger

router = APIRouter(prefix="/admin/logs", tags=["logs"])

LOG_TYPES = ("audit", "analytics")
MAX_ROWS = 100


def _audit_logs(db: Session, cutoff: datetime) -> Dict[str, Any]:
    rows = (
        db.query(AuditLog)
        .filter(AuditLog.timestamp >= cutoff)
        .order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
        .all()
    )
    successful = sum(1 for row in rows if row.success)
    return {
        "logs": [AuditLogResponse.model_validate(row).model_dump(mode="json") for row in rows[:MAX_ROWS]],
        "total": len(rows),
        "successful": successful,
        "failed": len(rows) - successful,
        "byAction": dict(Counter(row.action for row in rows)),
        "byReason": dict(Counter(row.reason for row in rows if row.reason)),
    }


def _analytics_logs(db: Session, cutoff: datetime) -> Dict[str, Any]:
    rows = (
        db.query(ActivityLog)
        .filter(ActivityLog.created_at >= cutoff)
        .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        .all()
    )
    by_type = Counter(row.event_type for row in rows)
    return {
        "logs": [ActivityLogResponse.model_validate(row).model_dump(mode="json") for row in rows[:MAX_ROWS]],
        "total": len(rows),
        "errors": by_type.get("error", 0),
        "byEventType": dict(by_type),
    }


@router.get("")
def query_logs(
    type: str = Query("audit", description="audit | analytics"),
    days: int = Query(7, ge=1, le=90, description="Look-back window in days"),
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
    _: SessionContext = Depends(require_session),
):
    """
    Query security audit or site analytics logs (session auth).

    Returns the newest 100 rows within the window plus summary counts over
    the whole window:
      - audit: total, successful, failed, byAction, byReason
      - analytics: total, errors, byEventType
    """
    if type not in LOG_TYPES:
        raise ValidationFailed(f"Invalid log type '{type}'. Use one of: {', '.join(LOG_TYPES)}")

    cutoff = clock() - timedelta(days=days)
    try:
        body = _audit_logs(db, cutoff) if type == "audit" else _analytics_logs(db, cutoff)
    except SQLAlchemyError as exc:
        logger.error("Log query failed", extra={"event_type": type}, exc_info=True)
        raise UpstreamError(f"Failed to load {type} logs: {exc.__class__.__name__}") from exc

    return {"type": type, "days": days, **body}


@router.post("")
def create_activity_log(
    event: ActivityLogCreate,
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """
    Record a public analytics event (no auth).

    Only the event types in ``ANALYTICS_EVENT_TYPES`` are accepted; anything
    else is rejected with 400 so this endpoint cannot be used to forge
    security events.
    """
    if event.event_type not in settings.ANALYTICS_EVENT_TYPES:
        raise ValidationFailed("Invalid event_type")

    db.add(ActivityLog(
        event_type=event.event_type,
        event_data=event.event_data,
        error_message=event.error_message,
        created_at=clock(),
    ))
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to store analytics event", extra={"event_type": event.event_type}, exc_info=True)
        raise UpstreamError("Failed to store event") from exc

    return {"ok": True}
