"""Schemas for authentication, profile and admin endpoints."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .playground import CamelModel


class RegisterRequest(BaseModel):
    # Length rules live in auth_service so they map to MISSING_OR_INVALID_FIELDS.
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "examples": [{"username": "mira", "email": "mira@example.com", "password": "tidecaller"}]
        }
    }


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class RoleRequest(BaseModel):
    role: Optional[str] = Field(None, description="Role code, e.g. world_builder")


class UserResponse(BaseModel):
    """The session user contract: id, username, email, primary role."""
    id: str
    username: str
    email: Optional[str] = None
    role: str


class UserEnvelope(BaseModel):
    user: UserResponse


class AdminUserResponse(CamelModel):
    id: str
    username: str
    email: Optional[str] = None
    role: str
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AdminUserList(CamelModel):
    users: List[AdminUserResponse]


class OkResponse(BaseModel):
    ok: bool = True


class AdminUserEnvelope(CamelModel):
    user: AdminUserResponse
