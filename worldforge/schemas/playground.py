"""Schemas for the playground API.

The wire format is camelCase (``parentId``, ``sortOrder``); Python code uses
the snake_case field names. ``populate_by_name`` lets ORM rows and internal
callers use either.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# --- Requests ---

class NodeCreate(CamelModel):
    """Create a node under *parent_id* (or as a root when absent)."""
    parent_id: Optional[str] = None
    type: str
    name: str


class NodeUpdate(CamelModel):
    """Partial node update. Only fields present in the body are applied."""
    name: Optional[str] = None
    summary: Optional[str] = None
    tags: Any = None  # list of strings or a comma-separated string
    markdown: Optional[str] = None
    sort_order: Any = None  # checked by the service; strings and floats are rejected
    is_published: Optional[bool] = None


class ToolboxLinksUpdate(CamelModel):
    """Replacement link set. Unknown keys and junk entries are dropped server-side."""
    links: Any = None


# --- Responses ---

class NodeResponse(CamelModel):
    """A playground node as returned by the API."""
    id: str
    created_by: str
    type: str
    parent_id: Optional[str] = None
    sort_order: int
    name: str
    summary: Optional[str] = None
    tags: List[str] = []
    markdown: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None
    is_published: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TreeNode(NodeResponse):
    """A node with its children, recursively."""
    children: List['TreeNode'] = []


ToolboxLinks = Dict[str, List[str]]


class NodeEnvelope(CamelModel):
    node: NodeResponse


class ToolboxLinksEnvelope(CamelModel):
    links: ToolboxLinks


class PlaygroundTree(CamelModel):
    """Flat list, nested forest and link map in one response."""
    nodes: List[NodeResponse]
    tree: List[TreeNode]
    links_by_node: Dict[str, ToolboxLinks] = {}
