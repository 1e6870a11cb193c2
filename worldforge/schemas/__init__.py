"""Pydantic schemas for API validation."""

from .auth import (
    AdminUserEnvelope,
    AdminUserList,
    AdminUserResponse,
    LoginRequest,
    RegisterRequest,
    RoleRequest,
    UserEnvelope,
    UserResponse,
)
from .playground import (
    NodeCreate,
    NodeEnvelope,
    NodeResponse,
    NodeUpdate,
    PlaygroundTree,
    ToolboxLinksEnvelope,
    ToolboxLinksUpdate,
    TreeNode,
)

__all__ = [
    "AdminUserEnvelope",
    "AdminUserList",
    "AdminUserResponse",
    "LoginRequest",
    "RegisterRequest",
    "RoleRequest",
    "UserEnvelope",
    "UserResponse",
    "NodeCreate",
    "NodeEnvelope",
    "NodeResponse",
    "NodeUpdate",
    "PlaygroundTree",
    "ToolboxLinksEnvelope",
    "ToolboxLinksUpdate",
    "TreeNode",
]
