"""Domain datatypes for the lazily-populated file tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from ..paths import path_segments

if TYPE_CHECKING:
    from ..diagnostics import Severity
    from ..git_status import GitStatus


class TreeInvariantError(RuntimeError):
    """Raised when the node structure violates an internal invariant."""


class NodeKind(Enum):
    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK_FILE = "symlink_file"
    SYMLINK_DIRECTORY = "symlink_directory"

    @property
    def is_dir(self) -> bool:
        return self in (NodeKind.DIRECTORY, NodeKind.SYMLINK_DIRECTORY)

    @property
    def is_symlink(self) -> bool:
        return self in (NodeKind.SYMLINK_FILE, NodeKind.SYMLINK_DIRECTORY)


@dataclass(eq=False)
class Node:
    """One file, directory, or symlink in the tree.

    ``entries`` are owned exclusively by this node. ``group_next`` is a
    non-owning link used when a chain of single-directory parents is shown as
    one row; the chain tail's children are stored in the head's ``entries``.
    """

    name: str
    absolute_path: Path
    kind: NodeKind
    link_to: Path | None = None
    open: bool = False
    has_children: bool = False
    entries: list["Node"] = field(default_factory=list)
    ignore: bool = False
    status: "GitStatus | None" = None
    severity: "Severity | None" = None
    group_next: "Node | None" = None
    match_path: tuple[str, ...] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.match_path = path_segments(self.absolute_path)

    @property
    def is_dir(self) -> bool:
        return self.kind.is_dir

    @property
    def is_dotfile(self) -> bool:
        return self.name.startswith(".")


@dataclass(frozen=True)
class UpNode:
    """Synthetic ".." row shown above the entries when the root has a parent."""

    name: str = ".."


UP_NODE = UpNode()


def iter_group_chain(node: Node):
    """Yield ``node`` and every node reachable through ``group_next``.

    Raises ``TreeInvariantError`` if the chain revisits a node.
    """
    seen: set[int] = set()
    current: Node | None = node
    while current is not None:
        if id(current) in seen:
            raise TreeInvariantError(f"group_next cycle at {current.absolute_path}")
        seen.add(id(current))
        yield current
        current = current.group_next


def get_last_group_node(node: Node) -> Node:
    """Return the last node of a grouped chain, or ``node`` when ungrouped."""
    last = node
    for last in iter_group_chain(node):
        pass
    return last


def group_label(node: Node) -> str:
    """Return ``a/b/c`` for grouped chains, otherwise the node name."""
    if node.group_next is None:
        return node.name
    return "/".join(link.name for link in iter_group_chain(node))


__all__ = [
    "TreeInvariantError",
    "NodeKind",
    "Node",
    "UpNode",
    "UP_NODE",
    "iter_group_chain",
    "get_last_group_node",
    "group_label",
]
