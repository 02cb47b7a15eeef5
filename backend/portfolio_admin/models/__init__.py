"""Database models"""
from portfolio_admin.models.activity_log import ActivityLog
from portfolio_admin.models.admin_session import AdminSession
from portfolio_admin.models.admin_settings import AdminSettings
from portfolio_admin.models.audit_log import AuditLog

__all__ = ["ActivityLog", "AdminSession", "AdminSettings", "AuditLog"]
