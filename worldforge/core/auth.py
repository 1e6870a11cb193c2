"""Authentication dependencies and session cookie helpers.

Public interface:
    ``get_session_user``      returns SessionUser or None, never raises.
    ``require_user``          returns SessionUser or raises 401.
    ``require_world_builder`` returns SessionUser, raises 403 without the
                                world-building capability.
    ``require_admin``         returns SessionUser, raises 403 if not admin.

Cookie helpers ``set_session_cookie`` / ``clear_session_cookie`` keep the
cookie attributes (HttpOnly, SameSite=Lax, Secure in production, path ``/``)
in one place.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session

from .config import Settings
from ..database import get_db
from ..exceptions import AuthenticationError, ForbiddenError
from ..services.permission_service import can_use_playground, get_role_capabilities
from ..services.session_service import SessionUser, resolve_session_user

logger = logging.getLogger(__name__)

__all__ = [
    "SessionUser",
    "get_settings",
    "get_session_user",
    "require_user",
    "require_world_builder",
    "require_admin",
    "set_session_cookie",
    "clear_session_cookie",
]


def get_settings(request: Request) -> Settings:
    """The Settings instance the running app was built with."""
    return request.app.state.settings


def read_session_cookie(request: Request, settings: Settings) -> Optional[str]:
    return request.cookies.get(settings.session_cookie_name) or None


def set_session_cookie(
    response: Response,
    settings: Settings,
    session_id: str,
    expires_at: datetime,
) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session_id,
        expires=expires_at,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )


def get_session_user(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Optional[SessionUser]:
    """Resolve the caller from the session cookie. ``None`` when anonymous."""
    return resolve_session_user(db, read_session_cookie(request, settings))


def require_user(
    user: Optional[SessionUser] = Depends(get_session_user),
) -> SessionUser:
    """Require an active session. Raises 401 otherwise."""
    if user is None:
        raise AuthenticationError()
    return user


def require_world_builder(
    user: SessionUser = Depends(require_user),
) -> SessionUser:
    """Require a role that may use the worldbuilder. Raises 403 otherwise."""
    if not can_use_playground(user.role):
        logger.info("Worldbuilder access denied", extra={"user_id": user.id, "role": user.role})
        raise ForbiddenError("World-building access required")
    return user


def require_admin(
    user: SessionUser = Depends(require_user),
) -> SessionUser:
    """Require the authenticated user to be an admin. Raises 403 otherwise."""
    if not get_role_capabilities(user.role).is_admin:
        raise ForbiddenError("Admin access required")
    return user
