"""Admin-only user management endpoints.

    GET   /api/admin/users             list all users with primary role
    PATCH /api/admin/users/{id}/role   replace a user's roles with one role
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import SessionUser, require_admin
from ..database import get_db
from ..models.user import User
from ..schemas.auth import AdminUserEnvelope, AdminUserList, AdminUserResponse, RoleRequest
from ..services import auth_service

router = APIRouter(prefix="/api/admin", tags=["Admin"])


def _to_response(db: Session, user: User) -> AdminUserResponse:
    return AdminUserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        role=auth_service.get_primary_role(db, user.id),
        is_active=user.is_active,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


@router.get("/users", response_model=AdminUserList, summary="List all users (admin only)")
def list_users(
    admin: SessionUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return AdminUserList(users=[_to_response(db, u) for u in auth_service.list_users(db)])


@router.patch("/users/{user_id}/role", response_model=AdminUserEnvelope, summary="Change a user's role (admin only)")
def update_role(
    user_id: str,
    body: RoleRequest,
    admin: SessionUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user = auth_service.set_user_role(db, admin, user_id, body.role)
    return AdminUserEnvelope(user=_to_response(db, user))
