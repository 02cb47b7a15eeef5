"""ActivityLog model - analytics events posted by the portfolio site"""
from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, JSON, String, Text

from portfolio_admin.database import Base


class ActivityLog(Base):
    """Public analytics events (profile/repo fetches, client errors) and settings changes"""

    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, index=True)
    event_type = Column(String(50), nullable=False, index=True)
    event_data = Column(JSON, nullable=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
