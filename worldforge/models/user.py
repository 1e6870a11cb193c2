"""User, Role, UserRole and UserSession models.

Users authenticate with username/password and receive an opaque session id
in a cookie. Roles are a fixed reference catalog; a user may hold several and
the highest-precedence one is their primary role.
"""

from sqlalchemy import Column, String, DateTime, Boolean, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class User(Base):
    """User account. Never hard-deleted; deactivate via ``is_active``."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    username = Column(String(50), unique=True, nullable=False)
    email = Column(String(255), unique=True, nullable=True)
    password_hash = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    roles = relationship(
        "UserRole",
        back_populates="user",
        cascade="all, delete-orphan",
    )


class Role(Base):
    """Static role catalog entry (admin, privileged, ..., free)."""

    __tablename__ = "roles"

    code = Column(String(50), primary_key=True)
    name = Column(String(100), nullable=False)
    description = Column(String(255), nullable=True)


class UserRole(Base):
    """Role assignment, unique per (user, role)."""

    __tablename__ = "user_roles"

    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    role_code = Column(
        String(50),
        ForeignKey("roles.code", ondelete="CASCADE"),
        primary_key=True,
    )
    granted_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="roles")


class UserSession(Base):
    """Login session. Active while ``expires_at`` is in the future."""

    __tablename__ = "sessions"
    __table_args__ = (
        Index("idx_sessions_user", "user_id"),
    )

    id = Column(String(40), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
