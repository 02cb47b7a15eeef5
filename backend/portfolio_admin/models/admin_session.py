"""AdminSession model - one row per issued admin session token"""
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String

from portfolio_admin.database import Base


class AdminSession(Base):
    """An authenticated admin session.

    Rows are never deleted. Logout, lazy expiry and refresh flip ``is_active``
    to False and record why in ``end_reason``. The raw bearer token is never
    stored; ``token_hash`` holds its SHA-256 digest.
    """

    __tablename__ = "admin_sessions"
    __table_args__ = (
        Index("ix_admin_sessions_active_expires", "is_active", "expires_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    token_hash = Column(String(64), unique=True, nullable=False, index=True)
    issued_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    last_activity = Column(DateTime, default=datetime.utcnow, nullable=False)
    client_ip = Column(String(45), nullable=True)
    user_agent = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    rotated_from_id = Column(Integer, ForeignKey("admin_sessions.id", ondelete="SET NULL"), nullable=True)
    ended_at = Column(DateTime, nullable=True)
    end_reason = Column(String(20), nullable=True)  # logout, expired, rotated
