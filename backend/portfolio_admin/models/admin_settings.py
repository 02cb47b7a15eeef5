"""AdminSettings model - single-row portfolio configuration"""
from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text

from portfolio_admin.database import Base

SETTINGS_ROW_ID = 1


class AdminSettings(Base):
    """Portfolio display settings edited from the admin dashboard.

    There is only ever one row (``id == SETTINGS_ROW_ID``); writes are upserts.
    """

    __tablename__ = "admin_settings"

    id = Column(Integer, primary_key=True)
    github_username = Column(String(100), nullable=True)
    repo_filter = Column(String(255), nullable=True)
    max_repos = Column(Integer, nullable=True)
    bio_override = Column(Text, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
