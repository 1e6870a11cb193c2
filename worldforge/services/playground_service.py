"""Deep module for the playground: node lifecycle, tree assembly, toolbox links.

Callers pass the authenticated ``SessionUser``; visibility (admin sees all
owners, everyone else only their own nodes) is resolved here through
``permission_service`` and never by comparing role strings. A node the
requester cannot see is reported as missing, never as forbidden.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..exceptions import (
    ErrorCode,
    InvalidParentChildError,
    NotASettingNodeError,
    ParentNotFoundError,
    ValidationError,
)
from ..models.playground import PlaygroundNode
from ..repositories.node_repository import PlaygroundNodeRepository
from ..repositories.toolbox_link_repository import ToolboxLinkRepository
from ..schemas.playground import NodeResponse, PlaygroundTree
from . import playground_rules as rules
from .permission_service import visibility_owner
from .session_service import SessionUser

logger = logging.getLogger(__name__)


def _clean_name(value: Any) -> str:
    """Trimmed node name. Raises ValidationError when blank or too long."""
    name = value.strip() if isinstance(value, str) else ""
    if not name:
        raise ValidationError("Node name cannot be empty", field="name")
    if len(name) > rules.MAX_NAME_LENGTH:
        raise ValidationError(
            f"Node name is limited to {rules.MAX_NAME_LENGTH} characters", field="name"
        )
    return name


class PlaygroundService:
    """Business logic for the playground tree.

    Public methods:
        create_node  -- validate type/parent pairing, assign sibling order, persist
        get_node     -- single visible node
        update_node  -- partial update of content fields
        delete_node  -- remove a node with its subtree and links
        get_tree     -- flat list + nested forest + links per node
        get_links    -- toolbox links of a setting node
        set_links    -- atomically replace toolbox links of a setting node
    """

    def __init__(self, db: Session):
        self.db = db
        self.node_repo = PlaygroundNodeRepository(db)
        self.link_repo = ToolboxLinkRepository(db)

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def create_node(
        self,
        requester: SessionUser,
        node_type: Any,
        name: Any,
        parent_id: Optional[str] = None,
    ) -> PlaygroundNode:
        """Create a node after checking it fits under its parent.

        Raises:
            ValidationError: unknown type or blank name (BAD_REQUEST).
            ParentNotFoundError: parent missing or not visible.
            InvalidParentChildError: the type may not nest under the parent.
        """
        node_type = node_type.strip().lower() if isinstance(node_type, str) else node_type
        parent_id = parent_id.strip() if isinstance(parent_id, str) else None
        parent_id = parent_id or None

        if not rules.is_node_type(node_type):
            raise ValidationError(f"Unknown node type: {node_type}", field="type")
        name = _clean_name(name)

        parent_type: Optional[str] = None
        if parent_id is not None:
            parent = self.node_repo.get_by_id_optional(parent_id, visibility_owner(requester))
            if parent is None:
                raise ParentNotFoundError(parent_id)
            parent_type = parent.type

        if node_type not in rules.allowed_child_types(parent_type):
            raise InvalidParentChildError(parent_type, node_type)

        # Read-then-write without a lock; concurrent creates may tie, and the
        # name tie-break keeps the order stable.
        sort_order = rules.next_sort_order(self.node_repo.max_sibling_sort_order(parent_id))

        node = self.node_repo.create(
            created_by=requester.id,
            node_type=node_type,
            name=name,
            parent_id=parent_id,
            sort_order=sort_order,
            markdown=rules.default_markdown(node_type),
        )
        logger.info(
            "Node created",
            extra={"node_id": node.id, "node_type": node_type, "parent_id": parent_id, "user_id": requester.id},
        )
        return node

    def get_node(self, requester: SessionUser, node_id: str) -> PlaygroundNode:
        """Raises NodeNotFoundError when missing or owned by someone else."""
        return self.node_repo.get_by_id(node_id, visibility_owner(requester))

    def update_node(self, requester: SessionUser, node_id: str, changes: Dict[str, Any]) -> PlaygroundNode:
        """Apply a partial update. *changes* holds only the fields the client sent.

        Type and parent are not updatable.
        """
        node = self.get_node(requester, node_id)
        updates: Dict[str, Any] = {}

        if "name" in changes:
            updates["name"] = _clean_name(changes["name"])

        if "summary" in changes:
            summary = changes["summary"]
            updates["summary"] = (summary.strip() or None) if isinstance(summary, str) else None

        if "tags" in changes:
            updates["tags"] = rules.normalize_tags(changes["tags"])

        if "markdown" in changes:
            markdown = changes["markdown"]
            updates["markdown"] = markdown if isinstance(markdown, str) else ""

        if "sort_order" in changes:
            sort_order = changes["sort_order"]
            if isinstance(sort_order, bool) or not isinstance(sort_order, int) or sort_order < 0:
                raise ValidationError(
                    "sortOrder must be a non-negative integer",
                    field="sortOrder",
                    error_code=ErrorCode.INVALID_SORT_ORDER,
                )
            updates["sort_order"] = sort_order

        if "is_published" in changes:
            updates["is_published"] = bool(changes["is_published"])

        return self.node_repo.update(node, updates)

    def delete_node(self, requester: SessionUser, node_id: str) -> None:
        node = self.get_node(requester, node_id)
        self.node_repo.delete(node)
        logger.info("Node deleted", extra={"node_id": node_id, "user_id": requester.id})

    # ------------------------------------------------------------------
    # Tree
    # ------------------------------------------------------------------

    def get_tree(self, requester: SessionUser) -> PlaygroundTree:
        """Everything the requester can see, in both flat and nested shape."""
        rows = self.node_repo.list_visible(visibility_owner(requester))
        nodes = [NodeResponse.model_validate(row) for row in rows]
        # Database collations differ; order by plain string comparison like the tree.
        nodes.sort(key=lambda n: (n.sort_order, n.name))
        links = self.link_repo.list_for_nodes(node.id for node in nodes)

        return PlaygroundTree(
            nodes=nodes,
            tree=rules.build_tree(nodes),
            links_by_node=rules.group_links(links),
        )

    # ------------------------------------------------------------------
    # Toolbox links
    # ------------------------------------------------------------------

    def _get_setting_node(self, requester: SessionUser, node_id: str) -> PlaygroundNode:
        node = self.get_node(requester, node_id)
        if node.type != rules.LINKABLE_NODE_TYPE:
            raise NotASettingNodeError(node_id, node.type)
        return node

    def get_links(self, requester: SessionUser, node_id: str) -> Dict[str, List[str]]:
        """Links of a setting node, with every toolbox type present."""
        self._get_setting_node(requester, node_id)
        links = rules.empty_links()
        for row in self.link_repo.list_for_node(node_id):
            if row.toolbox_type in links:
                links[row.toolbox_type].append(row.toolbox_id)
        return links

    def set_links(self, requester: SessionUser, node_id: str, links: Any) -> Dict[str, List[str]]:
        """Replace all links of a setting node in one transaction.

        Returns the normalised links that were stored.
        """
        self._get_setting_node(requester, node_id)
        normalized = rules.normalize_toolbox_links(links)
        oversized = rules.oversized_toolbox_ids(normalized)
        if oversized:
            raise ValidationError(
                f"Toolbox ids are limited to {rules.MAX_TOOLBOX_ID_LENGTH} characters",
                field="links",
            )

        try:
            inserted = self.link_repo.replace_for_node(node_id, requester.id, normalized)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        logger.info(
            "Toolbox links replaced",
            extra={"node_id": node_id, "link_count": inserted, "user_id": requester.id},
        )
        return normalized
