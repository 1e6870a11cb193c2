"""Pure playground rules: node type catalog, adjacency, normalisation, tree building.

No database access here. The service layer calls these before any write,
so the stored tree can never contain a pairing this module rejects.
"""

from typing import Any, Dict, Iterable, List, Optional

from ..schemas.playground import NodeResponse, TreeNode

# Ordered catalog, outermost first.
NODE_TYPES: tuple[str, ...] = ("cosmos", "world", "era", "setting", "folder", "page")

ROOT_NODE_TYPE = "cosmos"

# Which child types each type admits. Types not listed are leaves.
ALLOWED_CHILDREN: dict[str, tuple[str, ...]] = {
    "cosmos": ("world",),
    "world": ("era",),
    "era": ("setting",),
    "setting": ("folder", "page"),
    "folder": ("folder", "page"),
}

# Only setting nodes hold toolbox links.
LINKABLE_NODE_TYPE = "setting"

TOOLBOX_TYPES: tuple[str, ...] = ("race", "creature", "npc", "calendar")

# Column widths in models/playground.py.
MAX_NAME_LENGTH = 255
MAX_TOOLBOX_ID_LENGTH = 64


def is_node_type(value: Any) -> bool:
    return isinstance(value, str) and value in NODE_TYPES


def allowed_child_types(parent_type: Optional[str]) -> tuple[str, ...]:
    """Child types admitted under *parent_type*; ``None`` means the root level."""
    if not parent_type:
        return (ROOT_NODE_TYPE,)
    return ALLOWED_CHILDREN.get(parent_type, ())


def default_markdown(node_type: str) -> Optional[str]:
    """Pages start with an empty document body; other types have none."""
    return "" if node_type == "page" else None


def next_sort_order(current_max: Optional[int]) -> int:
    """Order for a new sibling: one past the current maximum, or 0."""
    return 0 if current_max is None else current_max + 1


def unique_strings(items: Iterable[str]) -> List[str]:
    """Deduplicate, keeping first occurrence order."""
    return list(dict.fromkeys(items))


def _clean_strings(items: Iterable[Any]) -> List[str]:
    return unique_strings(
        s for s in (item.strip() for item in items if isinstance(item, str)) if s
    )


def normalize_tags(value: Any) -> List[str]:
    """Tags from a list or a comma-separated string; anything else is empty."""
    if isinstance(value, list):
        return _clean_strings(value)
    if isinstance(value, str):
        return _clean_strings(value.split(","))
    return []


def empty_links() -> Dict[str, List[str]]:
    return {toolbox_type: [] for toolbox_type in TOOLBOX_TYPES}


def normalize_toolbox_links(value: Any) -> Dict[str, List[str]]:
    """Normalise a client-supplied link mapping.

    Every toolbox type is present in the result. Per type, non-string and
    blank ids are dropped, ids are trimmed and deduplicated. Unknown keys are
    ignored; a non-mapping input yields all-empty lists.
    """
    result = empty_links()
    if not isinstance(value, dict):
        return result

    for toolbox_type in TOOLBOX_TYPES:
        raw = value.get(toolbox_type)
        if isinstance(raw, list):
            result[toolbox_type] = _clean_strings(raw)
    return result


def group_links(rows: Iterable[Any]) -> Dict[str, Dict[str, List[str]]]:
    """Group link rows (``node_id``, ``toolbox_type``, ``toolbox_id``) per node.

    Only nodes with at least one link appear; each appears with every
    toolbox type. Rows of unknown toolbox types are skipped.
    """
    result: Dict[str, Dict[str, List[str]]] = {}
    for row in rows:
        if row.toolbox_type not in TOOLBOX_TYPES:
            continue
        result.setdefault(row.node_id, empty_links())[row.toolbox_type].append(row.toolbox_id)
    return result


def _sibling_key(node: TreeNode) -> tuple[int, str]:
    return (node.sort_order, node.name)


def build_tree(nodes: Iterable[NodeResponse]) -> List[TreeNode]:
    """Assemble a forest from a flat node list.

    A node whose parent is not in *nodes* is promoted to a root rather than
    dropped. Every level is ordered by ``(sort_order, name)``.
    """
    by_id: Dict[str, TreeNode] = {}
    for node in nodes:
        by_id[node.id] = TreeNode(**node.model_dump(exclude={"children"}), children=[])

    roots: List[TreeNode] = []
    for tree_node in by_id.values():
        parent = by_id.get(tree_node.parent_id) if tree_node.parent_id else None
        if parent is None:
            roots.append(tree_node)
        else:
            parent.children.append(tree_node)

    def sort_level(items: List[TreeNode]) -> None:
        items.sort(key=_sibling_key)
        for item in items:
            sort_level(item.children)

    sort_level(roots)
    return roots


def oversized_toolbox_ids(links: Dict[str, List[str]]) -> List[str]:
    """Ids in normalised *links* too long to store."""
    return [i for ids in links.values() for i in ids if len(i) > MAX_TOOLBOX_ID_LENGTH]
