"""Pydantic schemas for request/response validation"""
from portfolio_admin.schemas.admin_settings import AdminSettingsResponse, AdminSettingsUpdate
from portfolio_admin.schemas.audit_log import ActivityLogCreate, ActivityLogResponse, AuditLogResponse
from portfolio_admin.schemas.auth import LoginRequest, LogoutResponse, SessionInfoResponse, TokenResponse

__all__ = [
    "AdminSettingsResponse",
    "AdminSettingsUpdate",
    "ActivityLogCreate",
    "ActivityLogResponse",
    "AuditLogResponse",
    "LoginRequest",
    "LogoutResponse",
    "SessionInfoResponse",
    "TokenResponse",
]
