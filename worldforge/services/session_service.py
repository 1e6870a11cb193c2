"""Session store: create, destroy and resolve cookie sessions.

A session is a row keyed by an opaque random id with an absolute expiry.
States: active (now < expires_at) -> expired (invisible to lookups) ->
deleted (row removed at logout). There is no sliding renewal.

``resolve_session_user`` is the only way the rest of the system learns who
is calling. It returns ``None`` for every failure along the chain so callers
treat absence uniformly as "not authenticated".
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

from ..core.security import new_session_id
from ..models.user import User, UserRole, UserSession
from .permission_service import pick_primary_role

logger = logging.getLogger(__name__)

SESSION_TTL_DAYS = 14


@dataclass(frozen=True)
class SessionUser:
    """The authenticated caller, as seen by every endpoint."""

    id: str
    username: str
    email: Optional[str]
    role: str

    def to_dict(self) -> dict:
        return {"id": self.id, "username": self.username, "email": self.email, "role": self.role}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_session(
    db: Session,
    user_id: str,
    ttl_days: int = SESSION_TTL_DAYS,
    now: Optional[datetime] = None,
) -> tuple[str, datetime]:
    """Persist a new session for *user_id*.

    Returns:
        ``(session_id, expires_at)``; the caller mirrors both into the cookie.
    """
    now = now or _utcnow()
    expires_at = now + timedelta(days=ttl_days)
    session_id = new_session_id()

    db.add(UserSession(
        id=session_id,
        user_id=user_id,
        created_at=now,
        expires_at=expires_at,
    ))
    db.commit()
    logger.info("Session created", extra={"user_id": user_id, "expires_at": expires_at.isoformat()})
    return session_id, expires_at


def destroy_session(db: Session, session_id: Optional[str]) -> bool:
    """Delete the session row. Returns True if a row was removed.

    Idempotent: an empty or unknown id is a no-op.
    """
    if not session_id:
        return False
    deleted = db.query(UserSession).filter(UserSession.id == session_id).delete()
    db.commit()
    return deleted > 0


def resolve_session_user(
    db: Session,
    session_id: Optional[str],
    now: Optional[datetime] = None,
) -> Optional[SessionUser]:
    """Resolve cookie value -> active session -> user -> primary role.

    Returns ``None`` when the id is missing, unknown or expired, or when the
    owning user no longer exists or has been deactivated.
    """
    if not session_id:
        return None

    now = now or _utcnow()
    session = (
        db.query(UserSession)
        .filter(UserSession.id == session_id, UserSession.expires_at > now)
        .first()
    )
    if session is None:
        return None

    user = db.query(User).filter(User.id == session.user_id).first()
    if user is None or not user.is_active:
        return None

    role_codes = [
        code for (code,) in
        db.query(UserRole.role_code).filter(UserRole.user_id == user.id).all()
    ]

    return SessionUser(
        id=user.id,
        username=user.username,
        email=user.email,
        role=pick_primary_role(role_codes),
    )


def purge_expired_sessions(db: Session, now: Optional[datetime] = None) -> int:
    """Delete sessions whose expiry has passed. Returns count of deleted rows."""
    now = now or _utcnow()
    count = db.query(UserSession).filter(UserSession.expires_at <= now).delete()
    db.commit()
    return count
