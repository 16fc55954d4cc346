"""Parent and sibling lookups over the visible projection."""

from __future__ import annotations

from ..config import TreeConfig
from .projection import get_visible_nodes, line_for_node
from .types import Node


def _index_of(entries: list[Node], node: Node) -> int | None:
    for idx, entry in enumerate(entries):
        if entry is node or entry.match_path == node.match_path:
            return idx
    return None


def find_parent_entry(root_entries: list[Node], node: Node, config: TreeConfig) -> Node | None:
    """Return the visible row owning ``node``, or ``None`` for top-level nodes."""
    if _index_of(root_entries, node) is not None:
        return None
    _line, parent = line_for_node(root_entries, node, config, find_parent=True)
    return parent


def find_sibling(root_entries: list[Node], node: Node, direction: int, config: TreeConfig) -> Node:
    """Return the visible sibling ``direction`` steps away, clamped to the ends.

    Top-level nodes are siblings of each other. Unknown nodes are returned
    unchanged.
    """
    if direction == 0:
        return node
    visible_roots = get_visible_nodes(root_entries, config)
    if _index_of(visible_roots, node) is not None:
        siblings = visible_roots
    else:
        parent = find_parent_entry(root_entries, node, config)
        if parent is None:
            return node
        siblings = get_visible_nodes(parent.entries, config)

    index = _index_of(siblings, node)
    if index is None:
        return node
    target = max(0, min(len(siblings) - 1, index + direction))
    return siblings[target]


__all__ = ["find_parent_entry", "find_sibling"]
