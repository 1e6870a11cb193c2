"""Tests for PlaygroundService: creation rules, visibility, updates, tree, links."""

import pytest
from sqlalchemy.exc import SQLAlchemyError

from worldforge.exceptions import (
    ErrorCode,
    InvalidParentChildError,
    NodeNotFoundError,
    NotASettingNodeError,
    ParentNotFoundError,
    ValidationError,
)
from worldforge.models.playground import PlaygroundNode, PlaygroundToolboxLink
from worldforge.services.playground_service import PlaygroundService


@pytest.fixture()
def service(service_db):
    return PlaygroundService(service_db)


@pytest.fixture()
def alice(make_service_user):
    return make_service_user("alice")


@pytest.fixture()
def bob(make_service_user):
    return make_service_user("bob")


def _build_chain(service, user):
    """cosmos > world > era > setting, returned in that order."""
    cosmos = service.create_node(user, "cosmos", "Aether")
    world = service.create_node(user, "world", "Ninth Spire", cosmos.id)
    era = service.create_node(user, "era", "Age of Tides", world.id)
    setting = service.create_node(user, "setting", "Harbor", era.id)
    return cosmos, world, era, setting


class TestCreateNode:

    def test_root_cosmos(self, service, alice):
        node = service.create_node(alice, "cosmos", "Aether")
        assert node.type == "cosmos"
        assert node.parent_id is None
        assert node.created_by == alice.id
        assert node.is_published is False
        assert node.tags == []
        assert node.markdown is None

    def test_page_gets_empty_body(self, service, alice):
        *_, setting = _build_chain(service, alice)
        page = service.create_node(alice, "page", "Docks", setting.id)
        assert page.markdown == ""

    def test_type_and_name_are_trimmed(self, service, alice):
        node = service.create_node(alice, "  Cosmos ", "  Aether  ")
        assert node.type == "cosmos"
        assert node.name == "Aether"

    def test_blank_parent_means_root(self, service, alice):
        node = service.create_node(alice, "cosmos", "Aether", "  ")
        assert node.parent_id is None

    def test_unknown_type_rejected(self, service, alice):
        with pytest.raises(ValidationError) as exc_info:
            service.create_node(alice, "galaxy", "Milky")
        assert exc_info.value.error_code == ErrorCode.BAD_REQUEST

    def test_blank_name_rejected(self, service, alice):
        with pytest.raises(ValidationError):
            service.create_node(alice, "cosmos", "   ")

    def test_name_length_limit(self, service, alice):
        assert service.create_node(alice, "cosmos", "n" * 255).name == "n" * 255
        with pytest.raises(ValidationError) as exc_info:
            service.create_node(alice, "cosmos", "n" * 256)
        assert exc_info.value.details == {"field": "name"}

    def test_world_cannot_be_root(self, service, alice):
        with pytest.raises(InvalidParentChildError):
            service.create_node(alice, "world", "Floating")

    def test_setting_directly_under_cosmos_rejected(self, service, alice):
        cosmos = service.create_node(alice, "cosmos", "Aether")
        service.create_node(alice, "world", "Ninth Spire", cosmos.id)
        with pytest.raises(InvalidParentChildError) as exc_info:
            service.create_node(alice, "setting", "Harbor", cosmos.id)
        assert exc_info.value.error_code == ErrorCode.INVALID_PARENT_CHILD_RELATIONSHIP

    def test_page_under_world_rejected(self, service, alice):
        _, world, _, _ = _build_chain(service, alice)
        with pytest.raises(InvalidParentChildError):
            service.create_node(alice, "page", "Notes", world.id)

    def test_nothing_written_on_rejection(self, service, service_db, alice):
        cosmos = service.create_node(alice, "cosmos", "Aether")
        with pytest.raises(InvalidParentChildError):
            service.create_node(alice, "page", "Notes", cosmos.id)
        assert service_db.query(PlaygroundNode).count() == 1

    def test_missing_parent(self, service, alice):
        with pytest.raises(ParentNotFoundError):
            service.create_node(alice, "world", "Ninth Spire", "no-such-node")

    def test_other_users_parent_is_not_found(self, service, alice, bob):
        cosmos = service.create_node(alice, "cosmos", "Aether")
        with pytest.raises(ParentNotFoundError):
            service.create_node(bob, "world", "Intruder", cosmos.id)

    def test_admin_may_use_any_parent(self, service, alice, make_service_user):
        admin = make_service_user("root", role="admin")
        cosmos = service.create_node(alice, "cosmos", "Aether")
        world = service.create_node(admin, "world", "Granted", cosmos.id)
        assert world.parent_id == cosmos.id


class TestSortOrder:

    def test_first_sibling_is_zero_then_increments(self, service, alice):
        cosmos = service.create_node(alice, "cosmos", "Aether")
        first = service.create_node(alice, "world", "A", cosmos.id)
        second = service.create_node(alice, "world", "B", cosmos.id)
        assert first.sort_order == 0
        assert second.sort_order == 1

    def test_exceeds_every_existing_sibling(self, service, alice):
        cosmos = service.create_node(alice, "cosmos", "Aether")
        first = service.create_node(alice, "world", "A", cosmos.id)
        service.update_node(alice, first.id, {"sort_order": 10})
        nxt = service.create_node(alice, "world", "B", cosmos.id)
        assert nxt.sort_order == 11

    def test_siblings_are_per_parent(self, service, alice):
        one = service.create_node(alice, "cosmos", "One")
        two = service.create_node(alice, "cosmos", "Two")
        service.create_node(alice, "world", "A", one.id)
        service.create_node(alice, "world", "B", one.id)
        assert service.create_node(alice, "world", "C", two.id).sort_order == 0


class TestVisibility:

    def test_owner_can_get(self, service, alice):
        cosmos = service.create_node(alice, "cosmos", "Aether")
        assert service.get_node(alice, cosmos.id).id == cosmos.id

    def test_other_user_gets_not_found(self, service, alice, bob):
        cosmos = service.create_node(alice, "cosmos", "Aether")
        with pytest.raises(NodeNotFoundError) as exc_info:
            service.get_node(bob, cosmos.id)
        assert exc_info.value.error_code == ErrorCode.NOT_FOUND

    def test_admin_sees_everything(self, service, alice, bob, make_service_user):
        admin = make_service_user("root", role="admin")
        service.create_node(alice, "cosmos", "Aether")
        service.create_node(bob, "cosmos", "Brine")
        assert {n.name for n in service.get_tree(admin).nodes} == {"Aether", "Brine"}
        assert {n.name for n in service.get_tree(bob).nodes} == {"Brine"}


class TestUpdateNode:

    def test_partial_update(self, service, alice):
        cosmos = service.create_node(alice, "cosmos", "Aether")
        updated = service.update_node(alice, cosmos.id, {
            "name": " Aether Prime ",
            "summary": "  ",
            "tags": "myth, sea, myth",
            "is_published": True,
        })
        assert updated.name == "Aether Prime"
        assert updated.summary is None
        assert updated.tags == ["myth", "sea"]
        assert updated.is_published is True
        assert updated.type == "cosmos"

    def test_null_markdown_becomes_empty(self, service, alice):
        cosmos = service.create_node(alice, "cosmos", "Aether")
        assert service.update_node(alice, cosmos.id, {"markdown": None}).markdown == ""

    def test_blank_name_rejected(self, service, alice):
        cosmos = service.create_node(alice, "cosmos", "Aether")
        with pytest.raises(ValidationError):
            service.update_node(alice, cosmos.id, {"name": ""})

    def test_name_over_limit_rejected(self, service, alice):
        cosmos = service.create_node(alice, "cosmos", "Aether")
        with pytest.raises(ValidationError):
            service.update_node(alice, cosmos.id, {"name": "n" * 256})
        assert service.get_node(alice, cosmos.id).name == "Aether"

    @pytest.mark.parametrize("value", [-1, None, "3", 1.5, True])
    def test_invalid_sort_order(self, service, alice, value):
        cosmos = service.create_node(alice, "cosmos", "Aether")
        with pytest.raises(ValidationError) as exc_info:
            service.update_node(alice, cosmos.id, {"sort_order": value})
        assert exc_info.value.error_code == ErrorCode.INVALID_SORT_ORDER

    def test_other_user_cannot_update(self, service, alice, bob):
        cosmos = service.create_node(alice, "cosmos", "Aether")
        with pytest.raises(NodeNotFoundError):
            service.update_node(bob, cosmos.id, {"name": "Mine"})


class TestDeleteNode:

    def test_delete_cascades_to_subtree_and_links(self, service, service_db, alice):
        cosmos, _, _, setting = _build_chain(service, alice)
        service.set_links(alice, setting.id, {"race": ["r1"]})

        service.delete_node(alice, cosmos.id)

        assert service_db.query(PlaygroundNode).count() == 0
        assert service_db.query(PlaygroundToolboxLink).count() == 0

    def test_other_user_cannot_delete(self, service, alice, bob):
        cosmos = service.create_node(alice, "cosmos", "Aether")
        with pytest.raises(NodeNotFoundError):
            service.delete_node(bob, cosmos.id)


class TestTree:

    def test_flat_and_nested(self, service, alice):
        cosmos, world, era, setting = _build_chain(service, alice)
        tree = service.get_tree(alice)

        assert len(tree.nodes) == 4
        assert [n.id for n in tree.tree] == [cosmos.id]
        assert tree.tree[0].children[0].id == world.id
        assert tree.tree[0].children[0].children[0].children[0].id == setting.id

    def test_siblings_ordered_by_sort_order_then_name(self, service, alice):
        cosmos = service.create_node(alice, "cosmos", "Aether")
        b = service.create_node(alice, "world", "Beta", cosmos.id)
        a = service.create_node(alice, "world", "Alpha", cosmos.id)
        service.update_node(alice, a.id, {"sort_order": 0})
        service.update_node(alice, b.id, {"sort_order": 0})

        children = service.get_tree(alice).tree[0].children
        assert [c.name for c in children] == ["Alpha", "Beta"]

    def test_links_by_node_only_for_linked_settings(self, service, alice):
        *_, setting = _build_chain(service, alice)
        service.set_links(alice, setting.id, {"npc": ["n1"]})

        links_by_node = service.get_tree(alice).links_by_node
        assert links_by_node == {
            setting.id: {"race": [], "creature": [], "npc": ["n1"], "calendar": []}
        }


class TestToolboxLinks:

    def test_empty_by_default(self, service, alice):
        *_, setting = _build_chain(service, alice)
        assert service.get_links(alice, setting.id) == {
            "race": [], "creature": [], "npc": [], "calendar": []
        }

    def test_set_then_get_returns_normalised(self, service, alice):
        *_, setting = _build_chain(service, alice)
        stored = service.set_links(alice, setting.id, {"race": ["r1", "r1", " ", "r2"]})
        expected = {"race": ["r1", "r2"], "creature": [], "npc": [], "calendar": []}
        assert stored == expected
        assert service.get_links(alice, setting.id) == expected

    def test_set_replaces_previous_links(self, service, alice):
        *_, setting = _build_chain(service, alice)
        service.set_links(alice, setting.id, {"race": ["r1", "r2"], "npc": ["n1"]})
        service.set_links(alice, setting.id, {"race": ["r2", "r3"]})
        assert service.get_links(alice, setting.id) == {
            "race": ["r2", "r3"], "creature": [], "npc": [], "calendar": []
        }

    def test_submitted_order_is_kept(self, service, alice):
        *_, setting = _build_chain(service, alice)
        service.set_links(alice, setting.id, {"creature": ["zeta", "alpha", "mu"]})
        assert service.get_links(alice, setting.id)["creature"] == ["zeta", "alpha", "mu"]

    def test_non_setting_node_rejected(self, service, alice):
        cosmos, *_ = _build_chain(service, alice)
        with pytest.raises(NotASettingNodeError):
            service.get_links(alice, cosmos.id)
        with pytest.raises(NotASettingNodeError):
            service.set_links(alice, cosmos.id, {"race": ["r1"]})

    def test_other_users_setting_not_found(self, service, alice, bob):
        *_, setting = _build_chain(service, alice)
        with pytest.raises(NodeNotFoundError):
            service.get_links(bob, setting.id)

    def test_toolbox_id_length_limit(self, service, alice):
        *_, setting = _build_chain(service, alice)
        service.set_links(alice, setting.id, {"npc": ["n" * 64]})
        with pytest.raises(ValidationError) as exc_info:
            service.set_links(alice, setting.id, {"npc": ["n" * 65]})
        assert exc_info.value.details == {"field": "links"}
        assert service.get_links(alice, setting.id)["npc"] == ["n" * 64]

    def test_failed_replace_keeps_previous_links(self, service, service_db, alice, monkeypatch):
        *_, setting = _build_chain(service, alice)
        service.set_links(alice, setting.id, {"race": ["r1"], "npc": ["n1"]})

        def _fail():
            raise SQLAlchemyError("disk full")

        with monkeypatch.context() as m:
            m.setattr(service_db, "flush", _fail)
            with pytest.raises(SQLAlchemyError):
                service.set_links(alice, setting.id, {"race": ["r2"]})

        assert service.get_links(alice, setting.id) == {
            "race": ["r1"], "creature": [], "npc": ["n1"], "calendar": []
        }
