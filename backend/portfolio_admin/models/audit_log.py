"""Audit log model"""
import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, String

from portfolio_admin.database import Base


def generate_uuid_string():
    """Generate UUID as string for SQLite compatibility"""
    return str(uuid.uuid4())


class AuditLog(Base):
    """AuditLog model - append-only record of security events"""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    log_id = Column(String(36), default=generate_uuid_string, unique=True, nullable=False, index=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    action = Column(String(20), nullable=False, index=True)  # login, logout, refresh
    success = Column(Boolean, nullable=False, index=True)
    reason = Column(String(50), nullable=True, index=True)  # wrong_password, invalid_captcha, rate_limited, ...
    details = Column(JSON, nullable=True)
    ip_address = Column(String(45), nullable=True)
