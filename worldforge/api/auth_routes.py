"""Authentication and profile API endpoints.

Public endpoints:
    POST /api/auth/register  create account, start a session
    POST /api/auth/login     authenticate, start a session
    POST /api/auth/logout    end the current session (idempotent)

Session endpoints:
    GET  /api/profile/me     current user with primary role
"""

import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from ..core.auth import (
    SessionUser,
    clear_session_cookie,
    get_settings,
    read_session_cookie,
    require_user,
    set_session_cookie,
)
from ..core.config import Settings
from ..database import get_db
from ..schemas.auth import LoginRequest, OkResponse, RegisterRequest, UserEnvelope, UserResponse
from ..services import auth_service, session_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])
profile_router = APIRouter(prefix="/api/profile", tags=["Profile"])


def _start_session(db: Session, response: Response, settings: Settings, user_id: str) -> None:
    session_id, expires_at = session_service.create_session(
        db, user_id, ttl_days=settings.session_ttl_days
    )
    set_session_cookie(response, settings, session_id, expires_at)


@router.post(
    "/register",
    response_model=UserEnvelope,
    status_code=201,
    summary="Register a new user",
    description="Creates a free-tier account and logs it in.",
)
def register(
    body: RegisterRequest,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = auth_service.register_user(
        db, body.username, body.email, body.password,
        hash_rounds=settings.password_hash_rounds,
    )
    _start_session(db, response, settings, user.id)
    return UserEnvelope(user=UserResponse(**auth_service.to_session_user(db, user).to_dict()))


@router.post(
    "/login",
    response_model=UserEnvelope,
    summary="Authenticate and start a session",
)
def login(
    body: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = auth_service.authenticate(
        db, body.username, body.password,
        hash_rounds=settings.password_hash_rounds,
    )
    _start_session(db, response, settings, user.id)
    logger.info("Login succeeded", extra={"user_id": user.id})
    return UserEnvelope(user=UserResponse(**auth_service.to_session_user(db, user).to_dict()))


@router.post(
    "/logout",
    response_model=OkResponse,
    summary="End the current session",
)
def logout(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    session_id = read_session_cookie(request, settings)
    if session_id:
        session_service.destroy_session(db, session_id)
        clear_session_cookie(response, settings)
    return OkResponse()


@profile_router.get(
    "/me",
    response_model=UserEnvelope,
    summary="Get the current user",
)
def get_me(user: SessionUser = Depends(require_user)):
    return UserEnvelope(user=UserResponse(**user.to_dict()))
