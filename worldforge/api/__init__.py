"""API routes."""

from .admin import router as admin_router
from .auth_routes import profile_router, router as auth_router
from .playground import router as playground_router

__all__ = [
    "admin_router",
    "auth_router",
    "playground_router",
    "profile_router",
]
