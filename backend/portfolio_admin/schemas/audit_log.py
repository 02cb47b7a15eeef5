"""Audit and analytics log schemas"""
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class AuditLogResponse(BaseModel):
    """Schema for audit log response"""

    log_id: str
    timestamp: datetime
    action: str
    success: bool
    reason: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None

    class Config:
        from_attributes = True


class ActivityLogCreate(BaseModel):
    """Public analytics event posted by the portfolio site"""

    event_type: str = Field(..., max_length=50, description="One of ANALYTICS_EVENT_TYPES")
    event_data: Optional[Dict[str, Any]] = Field(None, description="Free-form event payload")
    error_message: Optional[str] = Field(None, max_length=2000)


class ActivityLogResponse(BaseModel):
    """Schema for analytics log response"""

    id: int
    event_type: str
    event_data: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
