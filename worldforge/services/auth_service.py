"""Authentication service: registration, credential checks, role management.

Passwords are hashed with PBKDF2 via passlib (see ``core.security``) and are
never stored or logged in plaintext. The service layer owns user lifecycle;
endpoints are thin wrappers.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import DEFAULT_PASSWORD_HASH_ROUNDS
from ..core.security import dummy_verify, hash_password, verify_password
from ..exceptions import (
    ErrorCode,
    InvalidCredentialsError,
    UserNotFoundError,
    ValidationError,
)
from ..models.user import User, UserRole
from .permission_service import DEFAULT_ROLE, is_known_role, pick_primary_role
from .session_service import SessionUser

logger = logging.getLogger(__name__)

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6
# Column widths in models/user.py.
MAX_USERNAME_LENGTH = 50
MAX_EMAIL_LENGTH = 255


def register_user(
    db: Session,
    username: Optional[str],
    email: Optional[str],
    password: Optional[str],
    hash_rounds: int = DEFAULT_PASSWORD_HASH_ROUNDS,
) -> User:
    """Create a new account holding the ``free`` role.

    Raises ValidationError with MISSING_OR_INVALID_FIELDS for bad input and
    USERNAME_TAKEN when the username or email is already registered.
    """
    if (
        not isinstance(username, str)
        or not MIN_USERNAME_LENGTH <= len(username.strip()) <= MAX_USERNAME_LENGTH
        or not isinstance(email, str) or not email.strip() or len(email.strip()) > MAX_EMAIL_LENGTH
        or not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH
    ):
        raise ValidationError(
            "Username (3-50 chars), email and password (6+ chars) are required",
            error_code=ErrorCode.MISSING_OR_INVALID_FIELDS,
        )

    username = username.strip()
    email = email.strip()

    existing = (
        db.query(User.id)
        .filter(or_(User.username == username, User.email == email))
        .first()
    )
    if existing is not None:
        raise ValidationError(
            "Username or email already registered",
            field="username",
            error_code=ErrorCode.USERNAME_TAKEN,
        )

    user = User(
        id=str(uuid.uuid4()),
        username=username,
        email=email,
        password_hash=hash_password(password, rounds=hash_rounds),
        is_active=True,
    )
    db.add(user)
    db.add(UserRole(user_id=user.id, role_code=DEFAULT_ROLE))
    db.commit()
    db.refresh(user)

    logger.info("User registered", extra={"user_id": user.id})
    return user


def authenticate(
    db: Session,
    username: Optional[str],
    password: Optional[str],
    hash_rounds: int = DEFAULT_PASSWORD_HASH_ROUNDS,
) -> User:
    """Validate credentials and return the user.

    Unknown user, deactivated account and wrong password are reported
    identically so callers cannot tell which accounts exist.
    """
    if not username or not password:
        raise ValidationError("Username and password are required")

    user = db.query(User).filter(User.username == username).first()

    if user is None or not user.is_active:
        # Unknown and inactive accounts pay the same PBKDF2 cost as a wrong password.
        verified = dummy_verify(password, rounds=hash_rounds)
    else:
        verified = verify_password(password, user.password_hash)

    if not verified:
        logger.warning("Login failed", extra={"username": username})
        raise InvalidCredentialsError()

    return user


def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_role_codes(db: Session, user_id: str) -> list[str]:
    return [
        code for (code,) in
        db.query(UserRole.role_code).filter(UserRole.user_id == user_id).all()
    ]


def get_primary_role(db: Session, user_id: str) -> str:
    return pick_primary_role(get_role_codes(db, user_id))


def to_session_user(db: Session, user: User) -> SessionUser:
    return SessionUser(
        id=user.id,
        username=user.username,
        email=user.email,
        role=get_primary_role(db, user.id),
    )


def list_users(db: Session) -> list[User]:
    """All accounts, newest first."""
    return db.query(User).order_by(User.created_at.desc()).all()


def set_user_role(db: Session, actor: SessionUser, user_id: str, role: Optional[str]) -> User:
    """Replace all of a user's role rows with the single *role*.

    Runs as one transaction: either the old roles are gone and the new one is
    present, or nothing changed.
    """
    if not role:
        raise ValidationError("Role is required", field="role")
    role = role.strip().lower()
    if not is_known_role(role):
        raise ValidationError(
            f"Invalid role: {role}",
            field="role",
            error_code=ErrorCode.INVALID_ROLE,
        )

    if user_id == actor.id and role != "admin":
        raise ValidationError(
            "Administrators cannot demote themselves",
            field="role",
            error_code=ErrorCode.CANNOT_DEMOTE_SELF,
        )

    user = get_user_by_id(db, user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    try:
        db.query(UserRole).filter(UserRole.user_id == user_id).delete()
        db.add(UserRole(user_id=user_id, role_code=role))
        user.updated_at = func.now()
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(user)
    logger.info("User role changed", extra={"user_id": user_id, "role": role, "actor": actor.id})
    return user
