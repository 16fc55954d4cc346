"""Visible-line projection: node <-> 1-based display line mapping.

The projection walks entries depth-first in pre-order, one line per visible
node, descending only into open directories. Line counters are threaded
through return values so each walk is a pure function of the tree state.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from ..config import TreeConfig
from ..paths import is_filesystem_root
from .types import Node, UpNode, group_label, iter_group_chain

if TYPE_CHECKING:
    from ..diagnostics import Severity
    from ..git_status import GitStatus


class VisibleEntries(list):
    """Entries already filtered for display, tagged with the filter flags."""

    __slots__ = ("flags",)

    def __init__(self, nodes: Iterable[Node], flags: tuple[bool, bool]) -> None:
        super().__init__(nodes)
        self.flags = flags


@dataclass(frozen=True)
class TreeRow:
    """One display row handed to the renderer."""

    depth: int
    label: str
    status: "GitStatus | None"
    severity: "Severity | None"
    is_open: bool
    is_directory: bool
    node: Node | UpNode
    ignored: bool = False


def _filter_flags(config: TreeConfig) -> tuple[bool, bool]:
    return (config.show_ignored, config.show_dotfiles)


def get_visible_nodes(entries: list[Node], config: TreeConfig) -> VisibleEntries:
    """Return ``entries`` minus ignored and dotfile nodes hidden by ``config``.

    A list previously returned for the same flags is returned unchanged.
    """
    flags = _filter_flags(config)
    if isinstance(entries, VisibleEntries) and entries.flags == flags:
        return entries
    show_ignored, show_dotfiles = flags
    return VisibleEntries(
        (
            node
            for node in entries
            if (show_ignored or not node.ignore) and (show_dotfiles or not node.is_dotfile)
        ),
        flags,
    )


def header_line_count(cwd: Path) -> int:
    """Return 1 for the ".." row, or 0 when ``cwd`` is the filesystem root."""
    return 0 if is_filesystem_root(cwd) else 1


def _walk_to_line(
    entries: list[Node],
    target: int,
    line: int,
    config: TreeConfig,
) -> tuple[int, Node | None]:
    for node in get_visible_nodes(entries, config):
        if line == target:
            return line, node
        line += 1
        if node.open:
            line, found = _walk_to_line(node.entries, target, line, config)
            if found is not None:
                return line, found
    return line, None


def node_at_line(
    entries: list[Node],
    line: int,
    config: TreeConfig,
    first_line: int = 1,
) -> Node | None:
    """Return the node displayed at ``line``, where entries start at ``first_line``."""
    if line < first_line:
        return None
    _line, found = _walk_to_line(entries, line, first_line, config)
    return found


def _matches(entry: Node, target: tuple[str, ...]) -> bool:
    return any(link.match_path == target for link in iter_group_chain(entry))


def _find_line(
    entries: list[Node],
    target: tuple[str, ...],
    line: int,
    config: TreeConfig,
    recursive: bool,
) -> tuple[int, Node | None]:
    for entry in get_visible_nodes(entries, config):
        if _matches(entry, target):
            return line, entry
        line += 1
        if recursive and entry.open:
            line, found = _find_line(entry.entries, target, line, config, recursive)
            if found is not None:
                return line, found
    return line, None


def line_for_node(
    entries: list[Node],
    node: Node,
    config: TreeConfig,
    *,
    find_parent: bool = False,
    recursive: bool = True,
    first_line: int = 1,
) -> tuple[int | None, Node | None]:
    """Return ``(line, entry)`` of the first visible row matching ``node``.

    With ``find_parent`` the row of ``node``'s parent directory is located
    instead. Matching is exact segment equality against every path in a
    grouped chain. ``recursive=False`` restricts the search to ``entries``
    themselves. Returns ``(None, None)`` when nothing matches.
    """
    target = node.match_path[:-1] if find_parent else node.match_path
    line, found = _find_line(entries, target, first_line, config, recursive)
    if found is None:
        return None, None
    return line, found


def visible_line_count(entries: list[Node], config: TreeConfig) -> int:
    """Return the number of rows the visible entries occupy."""
    count = 0
    for node in get_visible_nodes(entries, config):
        count += 1
        if node.open:
            count += visible_line_count(node.entries, config)
    return count


def iter_visible_rows(
    entries: list[Node],
    config: TreeConfig,
    depth: int = 0,
) -> Iterator[TreeRow]:
    """Yield renderer rows for the visible projection in display order."""
    for node in get_visible_nodes(entries, config):
        yield TreeRow(
            depth=depth,
            label=group_label(node),
            status=node.status,
            severity=node.severity,
            is_open=node.open,
            is_directory=node.is_dir,
            node=node,
            ignored=node.ignore,
        )
        if node.open:
            yield from iter_visible_rows(node.entries, config, depth + 1)


__all__ = [
    "VisibleEntries",
    "TreeRow",
    "get_visible_nodes",
    "header_line_count",
    "node_at_line",
    "line_for_node",
    "visible_line_count",
    "iter_visible_rows",
]
