"""Persistence for admin session rows"""
from datetime import datetime, timedelta
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from portfolio_admin.models.admin_session import AdminSession
from portfolio_admin.utils.auth import generate_session_token, hash_token


class SessionStore:
    """Creates, looks up and deactivates :class:`AdminSession` rows.

    Methods only flush; the caller owns the transaction and commits.
    """

    def __init__(self, db: Session, ttl: timedelta):
        self.db = db
        self.ttl = ttl

    def create(
        self,
        now: datetime,
        client_ip: Optional[str],
        user_agent: Optional[str],
        rotated_from: Optional[AdminSession] = None,
    ) -> Tuple[AdminSession, str]:
        """Mint a new token and persist its session row. Returns (row, raw token)."""
        token = generate_session_token()
        session = AdminSession(
            token_hash=hash_token(token),
            issued_at=now,
            expires_at=now + self.ttl,
            last_activity=now,
            client_ip=client_ip,
            user_agent=(user_agent or "")[:255] or None,
            is_active=True,
            rotated_from_id=rotated_from.id if rotated_from else None,
        )
        self.db.add(session)
        self.db.flush()
        return session, token

    def find(self, token: str) -> Optional[AdminSession]:
        return self.db.query(AdminSession).filter(
            AdminSession.token_hash == hash_token(token)
        ).first()

    def touch(self, session: AdminSession, now: datetime) -> None:
        """Record activity. Never moves ``expires_at``."""
        session.last_activity = now
        self.db.flush()

    def deactivate(self, session: AdminSession, reason: str, now: datetime) -> bool:
        """Mark a session inactive. Returns False if it already was."""
        if not session.is_active:
            return False
        session.is_active = False
        session.ended_at = now
        session.end_reason = reason
        self.db.flush()
        return True

    def count_active(self, now: datetime) -> int:
        return self.db.query(AdminSession).filter(
            AdminSession.is_active == True,  # noqa: E712
            AdminSession.expires_at >= now,
        ).count()
