"""Reconciliation passes that keep a populated tree in sync with disk.

``refresh_nodes`` re-lists only currently open directories, so its cost follows
the expanded-node count. ``reveal_path`` opens every ancestor of a target path
and reports the line the target lands on.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from .config import TreeConfig
from .tree_model.populate import IgnoreCheck, refresh_entries
from .tree_model.projection import get_visible_nodes, visible_line_count
from .tree_model.types import Node, get_last_group_node, iter_group_chain


def refresh_nodes(
    entries: list[Node],
    directory: Path,
    owner: Node | None,
    config: TreeConfig,
    ignore_check: IgnoreCheck | None = None,
) -> bool:
    """Refresh ``entries`` and, recursively, every open directory beneath them."""
    changed = refresh_entries(entries, directory, owner, config=config, ignore_check=ignore_check)
    for entry in entries:
        if entry.is_dir and entry.open:
            if refresh_nodes(entry.entries, entry.absolute_path, entry, config, ignore_check):
                changed = True
    return changed


def _contains(node: Node, target: tuple[str, ...]) -> bool:
    """Return whether ``target`` lies strictly beneath the chain tail of ``node``."""
    tail = get_last_group_node(node).match_path
    return len(target) > len(tail) and target[: len(tail)] == tail


def reveal_path(
    entries: list[Node],
    target: tuple[str, ...],
    line: int,
    config: TreeConfig,
    expand: Callable[[Node], None],
) -> tuple[int, Node | None]:
    """Open ancestors of ``target`` and return ``(line, row)`` where it shows.

    ``expand`` populates a directory that has never been listed. When the
    target is not visible the returned row is ``None`` and the line is the
    position just past ``entries``.
    """
    for entry in get_visible_nodes(entries, config):
        if any(link.match_path == target for link in iter_group_chain(entry)):
            return line, entry
        line += 1
        if entry.is_dir and _contains(entry, target):
            if not entry.entries:
                expand(entry)
            entry.open = True
            entry.has_children = False
            line, found = reveal_path(entry.entries, target, line, config, expand)
            if found is not None:
                return line, found
        elif entry.open:
            line += visible_line_count(entry.entries, config)
    return line, None


__all__ = ["refresh_nodes", "reveal_path"]
