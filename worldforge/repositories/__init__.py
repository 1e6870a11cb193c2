"""Data access repositories."""

from .base import BaseRepository
from .node_repository import PlaygroundNodeRepository
from .toolbox_link_repository import ToolboxLinkRepository

__all__ = [
    "BaseRepository",
    "PlaygroundNodeRepository",
    "ToolboxLinkRepository",
]
