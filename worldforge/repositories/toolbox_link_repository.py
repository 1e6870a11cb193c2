"""Repository for toolbox link persistence."""

from typing import Iterable, List

from sqlalchemy.orm import Session

from ..models.playground import PlaygroundToolboxLink


class ToolboxLinkRepository:
    """Data access for playground_toolbox_links.

    Writes never commit on their own; ``replace_for_node`` is meant to run
    inside the caller's transaction so the delete and the inserts land
    together.
    """

    def __init__(self, db: Session):
        self.db = db

    def list_for_node(self, node_id: str) -> List[PlaygroundToolboxLink]:
        return (
            self.db.query(PlaygroundToolboxLink)
            .filter(PlaygroundToolboxLink.node_id == node_id)
            .order_by(PlaygroundToolboxLink.toolbox_type, PlaygroundToolboxLink.position)
            .all()
        )

    def list_for_nodes(self, node_ids: Iterable[str]) -> List[PlaygroundToolboxLink]:
        node_ids = list(node_ids)
        if not node_ids:
            return []
        return (
            self.db.query(PlaygroundToolboxLink)
            .filter(PlaygroundToolboxLink.node_id.in_(node_ids))
            .order_by(PlaygroundToolboxLink.toolbox_type, PlaygroundToolboxLink.position)
            .all()
        )

    def replace_for_node(
        self,
        node_id: str,
        created_by: str,
        links: dict[str, list[str]],
    ) -> int:
        """Delete every link of *node_id* and insert *links* in its place.

        Returns the number of rows inserted. Does not commit.
        """
        self.db.query(PlaygroundToolboxLink).filter(
            PlaygroundToolboxLink.node_id == node_id
        ).delete()

        rows = [
            PlaygroundToolboxLink(
                node_id=node_id,
                toolbox_type=toolbox_type,
                toolbox_id=toolbox_id,
                position=position,
                created_by=created_by,
            )
            for toolbox_type, ids in links.items()
            for position, toolbox_id in enumerate(ids)
        ]
        self.db.add_all(rows)
        self.db.flush()
        return len(rows)
