"""Role capability resolution: the single place where role rules live.

Every authorization decision in the system goes through this module:
endpoints ask for a ``RoleCapabilities`` record instead of comparing role
strings. Adopters who want a different access model replace these functions.

Design:
    - Roles form a fixed precedence list: admin > privileged >
      universe_creator > world_developer > world_builder > free
    - A user's primary role is the highest-precedence role they hold
    - Unknown or missing roles get the least-privileged capability set
    - Admins see and edit every owner's content; everyone else only their own
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Optional

if TYPE_CHECKING:
    from .session_service import SessionUser


class RoleCode(str, Enum):
    """Fixed role catalog."""
    ADMIN = "admin"
    PRIVILEGED = "privileged"
    UNIVERSE_CREATOR = "universe_creator"
    WORLD_DEVELOPER = "world_developer"
    WORLD_BUILDER = "world_builder"
    FREE = "free"


# Leftmost = highest precedence.
ROLE_PRECEDENCE: tuple[str, ...] = tuple(r.value for r in RoleCode)

DEFAULT_ROLE = RoleCode.FREE.value

# Display names and descriptions seeded into the roles table.
ROLE_CATALOG: dict[str, tuple[str, str]] = {
    "admin": ("Administrator", "Full system access and management capabilities"),
    "privileged": ("Privileged User", "Enhanced access with special privileges"),
    "universe_creator": ("Universe Creator", "Can create and manage multiple universes"),
    "world_developer": ("World Developer", "Can develop detailed worlds and content"),
    "world_builder": ("World Builder", "Can build and modify worlds"),
    "free": ("Free User", "Basic access with limited features"),
}


@dataclass(frozen=True)
class RoleCapabilities:
    """What a role is allowed to do. Immutable."""

    is_admin: bool = False
    can_batch_upload: bool = False
    can_see_all_content: bool = False
    can_world_build: bool = False
    can_publish: bool = False
    has_elevated_access: bool = False
    can_access_source_forge: bool = False
    can_see_admin: bool = False


_ADMIN = RoleCapabilities(
    is_admin=True,
    can_batch_upload=True,
    can_see_all_content=True,
    can_world_build=True,
    can_publish=True,
    has_elevated_access=True,
    can_access_source_forge=True,
    can_see_admin=True,
)

_LEAST_PRIVILEGED = RoleCapabilities()

_CAPABILITIES: dict[str, RoleCapabilities] = {
    "admin": _ADMIN,
    "privileged": RoleCapabilities(
        can_world_build=True,
        has_elevated_access=True,
        can_access_source_forge=True,
    ),
    "universe_creator": RoleCapabilities(can_world_build=True, can_publish=True),
    "world_developer": RoleCapabilities(can_world_build=True, can_publish=True),
    "world_builder": RoleCapabilities(can_world_build=True),
    "free": _LEAST_PRIVILEGED,
}


def is_known_role(code: Optional[str]) -> bool:
    return (code or "").strip().lower() in _CAPABILITIES


def pick_primary_role(role_codes: Iterable[str]) -> str:
    """Choose the highest-precedence role present in *role_codes*.

    Order of the input does not matter. Returns ``"free"`` when the input is
    empty or holds no catalog role.
    """
    held = {code.strip().lower() for code in role_codes if isinstance(code, str)}
    for code in ROLE_PRECEDENCE:
        if code in held:
            return code
    return DEFAULT_ROLE


def get_role_capabilities(role: Optional[str]) -> RoleCapabilities:
    """Map a role code to its capability record. Total over all inputs."""
    return _CAPABILITIES.get((role or "").strip().lower(), _LEAST_PRIVILEGED)


def can_use_playground(role: Optional[str]) -> bool:
    return get_role_capabilities(role).can_world_build


def visibility_owner(user: SessionUser) -> Optional[str]:
    """Owner filter for content queries.

    Returns ``None`` when the user may see every owner's content, otherwise
    the user's own id.
    """
    if get_role_capabilities(user.role).can_see_all_content:
        return None
    return user.id
