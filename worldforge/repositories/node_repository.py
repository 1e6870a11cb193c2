"""Repository for playground node persistence.

Owns every node query. Ownership scoping comes from BaseRepository:
pass ``owner_id=None`` for the unrestricted (admin) view.
"""

import uuid
from typing import List, Optional

from sqlalchemy import func

from ..exceptions import NodeNotFoundError
from ..models.playground import PlaygroundNode
from .base import BaseRepository


class PlaygroundNodeRepository(BaseRepository[PlaygroundNode]):
    """CRUD for playground_nodes."""

    model_class = PlaygroundNode
    not_found_error = NodeNotFoundError

    def list_visible(self, owner_id: Optional[str] = None) -> List[PlaygroundNode]:
        """All nodes visible to the requester, ordered by (sort_order, name)."""
        return (
            self._base_query(owner_id)
            .order_by(PlaygroundNode.sort_order, PlaygroundNode.name)
            .all()
        )

    def max_sibling_sort_order(self, parent_id: Optional[str]) -> Optional[int]:
        """Highest sort_order among children of *parent_id* (root nodes when None).

        Returns None when there are no siblings.
        """
        query = self.db.query(func.max(PlaygroundNode.sort_order))
        if parent_id is None:
            query = query.filter(PlaygroundNode.parent_id.is_(None))
        else:
            query = query.filter(PlaygroundNode.parent_id == parent_id)
        return query.scalar()

    def create(
        self,
        created_by: str,
        node_type: str,
        name: str,
        parent_id: Optional[str],
        sort_order: int,
        markdown: Optional[str],
    ) -> PlaygroundNode:
        node = PlaygroundNode(
            id=str(uuid.uuid4()),
            created_by=created_by,
            type=node_type,
            parent_id=parent_id,
            sort_order=sort_order,
            name=name,
            summary=None,
            tags=[],
            markdown=markdown,
            meta=None,
            is_published=False,
        )
        self.db.add(node)
        self.db.commit()
        self.db.refresh(node)
        return node

    def update(self, node: PlaygroundNode, changes: dict) -> PlaygroundNode:
        """Apply already-validated column changes and bump updated_at."""
        for column, value in changes.items():
            setattr(node, column, value)
        node.updated_at = func.now()
        self.db.commit()
        self.db.refresh(node)
        return node

    def delete(self, node: PlaygroundNode) -> None:
        """Delete a node. Descendants and toolbox links go with it (FK cascade)."""
        self.db.delete(node)
        self.db.commit()
