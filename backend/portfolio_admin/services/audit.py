"""Best-effort audit logging of security events"""
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import sessionmaker

from portfolio_admin.models.audit_log import AuditLog
from portfolio_admin.utils.logger import logger

AUDIT_ACTIONS = ("login", "logout", "refresh")


class AuditLogger:
    """Appends :class:`AuditLog` rows using a session of its own.

    Writes never share the caller's transaction, and a failed write is logged
    and dropped: the security-critical path being observed must not fail
    because its audit trail could not be stored.
    """

    def __init__(self, session_factory: sessionmaker, clock: Callable[[], datetime] = datetime.utcnow):
        self.session_factory = session_factory
        self.clock = clock

    def record(
        self,
        action: str,
        details: Optional[Dict[str, Any]],
        ip: Optional[str],
        success: bool,
        reason: Optional[str] = None,
    ) -> None:
        if action not in AUDIT_ACTIONS:
            raise ValueError(f"Unknown audit action: {action}")

        db = None
        try:
            db = self.session_factory()
            db.add(AuditLog(
                timestamp=self.clock(),
                action=action,
                success=success,
                reason=reason,
                details=details or {},
                ip_address=ip,
            ))
            db.commit()
        except Exception:
            if db is not None:
                db.rollback()
            logger.error(
                "Failed to write audit log entry",
                extra={"action": action, "reason": reason, "client_ip": ip},
                exc_info=True,
            )
        finally:
            if db is not None:
                db.close()
