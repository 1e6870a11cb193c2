"""Tests for role precedence and capability resolution."""

import itertools
from dataclasses import FrozenInstanceError

import pytest

from worldforge.services.permission_service import (
    ROLE_PRECEDENCE,
    can_use_playground,
    get_role_capabilities,
    is_known_role,
    pick_primary_role,
    visibility_owner,
)
from worldforge.services.session_service import SessionUser


class TestPickPrimaryRole:

    def test_empty_defaults_to_free(self):
        assert pick_primary_role([]) == "free"

    def test_unknown_codes_default_to_free(self):
        assert pick_primary_role(["wizard", "", "root"]) == "free"

    def test_highest_precedence_wins(self):
        assert pick_primary_role(["free", "world_builder", "privileged"]) == "privileged"
        assert pick_primary_role(["world_developer", "universe_creator"]) == "universe_creator"
        assert pick_primary_role(["admin", "free"]) == "admin"

    def test_order_independent(self):
        roles = ["world_builder", "universe_creator", "free"]
        results = {pick_primary_role(p) for p in itertools.permutations(roles)}
        assert results == {"universe_creator"}

    @pytest.mark.parametrize("index", range(len(ROLE_PRECEDENCE)))
    def test_each_role_beats_everything_below_it(self, index):
        held = list(ROLE_PRECEDENCE[index:])
        assert pick_primary_role(reversed(held)) == ROLE_PRECEDENCE[index]


class TestCapabilities:

    def test_admin_has_everything(self):
        caps = get_role_capabilities("admin")
        assert caps.is_admin
        assert caps.can_see_all_content
        assert caps.can_world_build

    @pytest.mark.parametrize("role", ["privileged", "universe_creator", "world_developer", "world_builder"])
    def test_builder_roles_use_playground(self, role):
        assert can_use_playground(role) is True
        assert get_role_capabilities(role).is_admin is False

    @pytest.mark.parametrize("role", ["free", "unknown", "", None])
    def test_least_privileged_fallback(self, role):
        caps = get_role_capabilities(role)
        assert caps == get_role_capabilities("free")
        assert not caps.can_world_build

    def test_capabilities_are_immutable(self):
        caps = get_role_capabilities("world_builder")
        with pytest.raises(FrozenInstanceError):
            caps.is_admin = True

    def test_is_known_role(self):
        assert is_known_role("world_builder")
        assert is_known_role(" Admin ")
        assert not is_known_role("wizard")
        assert not is_known_role(None)


class TestVisibility:

    def test_admin_sees_all_owners(self):
        admin = SessionUser(id="u1", username="root", email=None, role="admin")
        assert visibility_owner(admin) is None

    def test_others_see_only_their_own(self):
        user = SessionUser(id="u2", username="mira", email=None, role="privileged")
        assert visibility_owner(user) == "u2"
