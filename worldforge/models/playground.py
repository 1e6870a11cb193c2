"""Playground models: the typed content tree and its toolbox links."""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.sql import func
from ..database import Base


class PlaygroundNode(Base):
    """One node in a user's content hierarchy.

    ``type`` is one of cosmos, world, era, setting, folder, page; which types
    may nest under which is enforced by the service layer before any write.
    ``sort_order`` orders siblings (ties broken by name) and may have gaps.
    """

    __tablename__ = "playground_nodes"
    __table_args__ = (
        Index("ix_playground_nodes_created_by", "created_by"),
        Index("ix_playground_nodes_parent_id", "parent_id"),
    )

    id = Column(String(36), primary_key=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(20), nullable=False)
    parent_id = Column(String(36), ForeignKey("playground_nodes.id", ondelete="CASCADE"), nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    name = Column(String(255), nullable=False)
    summary = Column(Text, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    markdown = Column(Text, nullable=True)
    meta = Column(JSON, nullable=True)
    is_published = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class PlaygroundToolboxLink(Base):
    """Reference from a setting node to an external content record."""

    __tablename__ = "playground_toolbox_links"
    __table_args__ = (
        Index("ix_playground_links_node_id", "node_id"),
    )

    node_id = Column(
        String(36),
        ForeignKey("playground_nodes.id", ondelete="CASCADE"),
        primary_key=True,
    )
    toolbox_type = Column(String(20), primary_key=True)
    toolbox_id = Column(String(64), primary_key=True)
    # Preserves the order ids were submitted in, per toolbox type.
    position = Column(Integer, nullable=False, default=0)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
