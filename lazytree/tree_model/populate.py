"""Directory listing, node construction, and incremental reconciliation."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from ..config import TreeConfig
from ..paths import normalize_path
from .types import Node, NodeKind, get_last_group_node, iter_group_chain

logger = logging.getLogger(__name__)

IgnoreCheck = Callable[[Path], bool]


@dataclass(frozen=True)
class DirectoryChild:
    """One surviving directory entry as observed on disk."""

    name: str
    path: Path
    kind: NodeKind
    link_to: Path | None = None
    ignored: bool = False


def _resolve_kind(entry: os.DirEntry) -> tuple[NodeKind, Path | None]:
    """Classify ``entry``, following a symlink one level for its target kind."""
    if not entry.is_symlink():
        if entry.is_dir(follow_symlinks=False):
            return NodeKind.DIRECTORY, None
        return NodeKind.FILE, None

    target = os.readlink(entry.path)
    link_to = normalize_path(os.path.join(os.path.dirname(entry.path), target))
    try:
        points_to_dir = entry.is_dir(follow_symlinks=True)
    except OSError:
        points_to_dir = False
    if points_to_dir:
        return NodeKind.SYMLINK_DIRECTORY, link_to
    return NodeKind.SYMLINK_FILE, link_to


def _sort_key(config: TreeConfig) -> Callable[[DirectoryChild], tuple]:
    if config.dirs_first:
        return lambda child: (not child.kind.is_dir, child.name.lower(), child.name)
    return lambda child: (child.name.lower(), child.name)


def list_directory(
    directory: Path,
    config: TreeConfig,
    ignore_check: IgnoreCheck | None = None,
) -> list[DirectoryChild]:
    """List immediate children of ``directory`` in display order.

    Entries that fail to stat are skipped. An unreadable directory yields an
    empty list.
    """
    children: list[DirectoryChild] = []
    try:
        with os.scandir(directory) as entries:
            for entry in entries:
                name = entry.name
                if not config.show_dotfiles and name.startswith("."):
                    continue
                child_path = normalize_path(entry.path)
                try:
                    kind, link_to = _resolve_kind(entry)
                except OSError as exc:
                    logger.debug("skipping %s: %s", child_path, exc)
                    continue
                ignored = bool(ignore_check(child_path)) if ignore_check is not None else False
                children.append(
                    DirectoryChild(
                        name=name,
                        path=child_path,
                        kind=kind,
                        link_to=link_to,
                        ignored=ignored,
                    )
                )
    except OSError as exc:
        logger.debug("cannot list %s: %s", directory, exc)
        return []

    children.sort(key=_sort_key(config))
    return children


def _directory_has_entries(path: Path) -> bool:
    try:
        with os.scandir(path) as entries:
            return next(entries, None) is not None
    except OSError:
        return False


def make_node(child: DirectoryChild) -> Node:
    """Build a ``Node`` for ``child`` with a non-empty hint for directories."""
    has_children = False
    if child.kind.is_dir:
        has_children = _directory_has_entries(child.path)
    return Node(
        name=child.name,
        absolute_path=child.path,
        kind=child.kind,
        link_to=child.link_to,
        has_children=has_children,
        ignore=child.ignored,
    )


def _groupable(children: list[DirectoryChild]) -> bool:
    return len(children) == 1 and children[0].kind == NodeKind.DIRECTORY


def populate(
    target_entries: list[Node],
    directory: Path,
    parent: Node | None = None,
    *,
    config: TreeConfig,
    ignore_check: IgnoreCheck | None = None,
) -> None:
    """Append nodes for ``directory``'s children to ``target_entries``.

    With ``config.group_empty`` a parent whose only child is a directory gets
    that child as ``group_next`` and population continues into the child.
    """
    children = list_directory(directory, config, ignore_check)
    if parent is not None and config.group_empty and _groupable(children):
        child_node = make_node(children[0])
        parent.group_next = child_node
        populate(
            target_entries,
            child_node.absolute_path,
            child_node,
            config=config,
            ignore_check=ignore_check,
        )
        return

    target_entries.extend(make_node(child) for child in children)


def _group_chain_intact(head: Node, config: TreeConfig, ignore_check: IgnoreCheck | None) -> bool:
    links = list(iter_group_chain(head))
    for link, expected in zip(links, links[1:]):
        children = list_directory(link.absolute_path, config, ignore_check)
        if not _groupable(children) or children[0].path != expected.absolute_path:
            return False
    return True

def _merge_children(children: list[DirectoryChild], previous: list[Node]) -> tuple[list[Node], bool]:
    """Match a fresh listing against ``previous`` nodes by path."""
    existing = {node.absolute_path: node for node in previous}
    changed = False
    merged: list[Node] = []
    for child in children:
        node = existing.get(child.path)
        if node is None or node.kind != child.kind or node.link_to != child.link_to:
            merged.append(make_node(child))
            changed = True
            continue
        if node.ignore != child.ignored:
            node.ignore = child.ignored
            changed = True
        if node.is_dir and not node.entries:
            has_children = _directory_has_entries(node.absolute_path)
            if node.has_children != has_children and not node.open:
                node.has_children = has_children
                changed = True
        merged.append(node)

    if not changed:
        changed = [node.absolute_path for node in merged] != [node.absolute_path for node in previous]
    return merged, changed


def _reusable(previous: list[Node], child: DirectoryChild) -> Node | None:
    for node in previous:
        if node.absolute_path == child.path and node.kind == child.kind and node.link_to == child.link_to:
            return node
    return None


def _dissolve_group(
    target_entries: list[Node],
    head: Node,
    config: TreeConfig,
    ignore_check: IgnoreCheck | None,
) -> None:
    """Split a broken chain back into nested nodes, then regroup from ``head``.

    Former links become ordinary directories owning their real children, so
    their open state and populated entries carry over wherever they land.
    """
    links = list(iter_group_chain(head))
    tail_children = list(target_entries)
    for link, next_link in zip(links, links[1:]):
        link.group_next = None
        if link is not head:
            link.entries[:] = [next_link]
    if len(links) > 1:
        links[-1].entries[:] = tail_children
        for link in links[1:]:
            link.open = head.open
            link.has_children = False
        previous = [links[1]]
    else:
        previous = tail_children

    current = head
    children = list_directory(head.absolute_path, config, ignore_check)
    while config.group_empty and _groupable(children):
        node = _reusable(previous, children[0]) or make_node(children[0])
        current.group_next = node
        current = node
        previous = list(node.entries)
        node.entries.clear()
        children = list_directory(node.absolute_path, config, ignore_check)

    merged, _changed = _merge_children(children, previous)
    target_entries[:] = merged


def refresh_entries(
    target_entries: list[Node],
    directory: Path,
    parent: Node | None = None,
    *,
    config: TreeConfig,
    ignore_check: IgnoreCheck | None = None,
) -> bool:
    """Reconcile ``target_entries`` with a fresh listing of ``directory``.

    Surviving nodes are kept as the same objects so their ``open`` state and
    populated ``entries`` carry over. Returns whether anything changed.
    """
    if parent is not None and parent.group_next is not None:
        if not config.group_empty or not _group_chain_intact(parent, config, ignore_check):
            logger.debug("dissolving group chain at %s", parent.absolute_path)
            _dissolve_group(target_entries, parent, config, ignore_check)
            return True
        directory = get_last_group_node(parent).absolute_path

    merged, changed = _merge_children(list_directory(directory, config, ignore_check), target_entries)
    target_entries[:] = merged
    return changed


__all__ = [
    "DirectoryChild",
    "IgnoreCheck",
    "list_directory",
    "make_node",
    "populate",
    "refresh_entries",
]
