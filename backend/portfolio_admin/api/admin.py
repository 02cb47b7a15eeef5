"""Portfolio settings endpoints (session auth)"""
from datetime import datetime
from typing import Callable

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from portfolio_admin.api.deps import SessionContext, get_clock, require_session
from portfolio_admin.database import get_db
from portfolio_admin.exceptions import UpstreamError
from portfolio_admin.models.activity_log import ActivityLog
from portfolio_admin.models.admin_settings import SETTINGS_ROW_ID, AdminSettings
from portfolio_admin.schemas.admin_settings import AdminSettingsResponse, AdminSettingsUpdate
from portfolio_admin.utils.logger import logger

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/settings")
def get_settings_row(
    db: Session = Depends(get_db),
    _: SessionContext = Depends(require_session),
):
    """Current portfolio settings, or ``{}`` if none were saved yet."""
    row = db.query(AdminSettings).filter(AdminSettings.id == SETTINGS_ROW_ID).first()
    if row is None:
        return {}
    return AdminSettingsResponse.model_validate(row)


@router.put("/settings", response_model=AdminSettingsResponse)
def update_settings(
    data: AdminSettingsUpdate,
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
    ctx: SessionContext = Depends(require_session),
):
    """
    Create or update the portfolio settings row.

    Only fields present in the request body are written. Each update is also
    recorded as a ``settings_update`` analytics event.
    """
    changes = data.model_dump(exclude_unset=True)
    now = clock()

    row = db.query(AdminSettings).filter(AdminSettings.id == SETTINGS_ROW_ID).first()
    if row is None:
        row = AdminSettings(id=SETTINGS_ROW_ID)
        db.add(row)

    for field, value in changes.items():
        setattr(row, field, value)
    row.updated_at = now

    db.add(ActivityLog(
        event_type="settings_update",
        event_data={
            "github_username": changes.get("github_username"),
            "repo_filter": changes.get("repo_filter"),
            "max_repos": changes.get("max_repos"),
            "bio_override": bool(changes.get("bio_override")),
        },
        created_at=now,
    ))

    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Settings update failed", extra={"session_id": ctx.session_id}, exc_info=True)
        raise UpstreamError("Failed to save settings") from exc

    db.refresh(row)
    logger.info("Portfolio settings updated", extra={"session_id": ctx.session_id})
    return row
