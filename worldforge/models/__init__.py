"""Database models."""

from .user import User, Role, UserRole, UserSession
from .playground import PlaygroundNode, PlaygroundToolboxLink

__all__ = [
    "User", "Role", "UserRole", "UserSession",
    "PlaygroundNode", "PlaygroundToolboxLink",
]
