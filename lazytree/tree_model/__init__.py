"""Node tree model: datatypes, population, projection, and navigation.

This package contains the non-UI tree primitives:
- node datatypes with owned children and group chains
- directory listing, lazy population and incremental reconciliation
- visible-line projection between nodes and 1-based display lines
- parent/sibling lookups over the visible projection
"""

from __future__ import annotations

from .navigation import find_parent_entry, find_sibling
from .populate import DirectoryChild, list_directory, make_node, populate, refresh_entries
from .projection import (
    TreeRow,
    VisibleEntries,
    get_visible_nodes,
    header_line_count,
    iter_visible_rows,
    line_for_node,
    node_at_line,
    visible_line_count,
)
from .types import (
    UP_NODE,
    Node,
    NodeKind,
    TreeInvariantError,
    UpNode,
    get_last_group_node,
    group_label,
    iter_group_chain,
)

__all__ = [
    "Node",
    "NodeKind",
    "UpNode",
    "UP_NODE",
    "TreeInvariantError",
    "iter_group_chain",
    "get_last_group_node",
    "group_label",
    "DirectoryChild",
    "list_directory",
    "make_node",
    "populate",
    "refresh_entries",
    "TreeRow",
    "VisibleEntries",
    "get_visible_nodes",
    "header_line_count",
    "node_at_line",
    "line_for_node",
    "visible_line_count",
    "iter_visible_rows",
    "find_parent_entry",
    "find_sibling",
]
