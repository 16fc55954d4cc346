"""Caller-owned file tree: lazy expansion, navigation, and refresh entry points.

``FileTree`` ties the populator, the projection and the status overlays
together for one root directory. Every operation runs to completion on the
caller's thread; routine filesystem flux is reported through ``None`` results
rather than exceptions.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Protocol

from .config import TreeConfig
from .diagnostics import Severity, aggregate_diagnostics, update_diagnostics
from .git_status import DEFAULT_STATUS_CACHE, GitStatusCache, update_status
from .paths import is_strict_descendant, normalize_path, path_segments
from .tree_model.navigation import find_parent_entry, find_sibling
from .tree_model.populate import IgnoreCheck, populate
from .tree_model.projection import (
    TreeRow,
    header_line_count,
    iter_visible_rows,
    line_for_node,
    node_at_line,
    visible_line_count,
)
from .tree_model.types import UP_NODE, Node, UpNode, get_last_group_node
from .tree_sync import refresh_nodes, reveal_path

logger = logging.getLogger(__name__)

DiagnosticsProvider = Callable[[], Mapping[Path, Severity]]


class TreeView(Protocol):
    """Renderer boundary consuming the flat row projection."""

    def is_displayed(self) -> bool: ...

    def draw(self, rows: list[TreeRow], reload: bool) -> None: ...


def safe_mtime_ns(path: Path) -> int | None:
    """Return ``st_mtime_ns`` for ``path`` or ``None`` on stat failure."""
    try:
        return int(path.stat().st_mtime_ns)
    except OSError:
        return None


class FileTree:
    """One lazily populated directory tree rooted at ``cwd``."""

    def __init__(
        self,
        cwd: Path | str,
        config: TreeConfig | None = None,
        *,
        view: TreeView | None = None,
        status_cache: GitStatusCache | None = None,
        diagnostics_provider: DiagnosticsProvider | None = None,
        on_ready: Callable[["FileTree"], None] | None = None,
    ) -> None:
        self.cwd = normalize_path(Path(cwd).expanduser().resolve())
        self.config = config if config is not None else TreeConfig()
        self.view = view
        self.status_cache = status_cache if status_cache is not None else DEFAULT_STATUS_CACHE
        self.diagnostics_provider = diagnostics_provider
        self.on_ready = on_ready
        self.entries: list[Node] = []
        self.last_modified: int | None = None
        self.loaded = False
        self._ready = False

    @property
    def header_lines(self) -> int:
        return header_line_count(self.cwd)

    @property
    def first_line(self) -> int:
        return self.header_lines + 1

    def _ignore_check(self) -> IgnoreCheck | None:
        if not self.config.git_status:
            return None
        return self.status_cache.is_ignored

    def _apply_overlays(self, entries: list[Node], directory: Path, owner: Node | None = None) -> None:
        if self.config.git_status:
            update_status(entries, directory, owner, cache=self.status_cache)
        self._apply_diagnostics(entries)

    def _apply_diagnostics(self, entries: list[Node]) -> None:
        if not self.config.diagnostics or self.diagnostics_provider is None:
            return
        update_diagnostics(entries, aggregate_diagnostics(self.diagnostics_provider(), self.cwd))

    def _expand(self, node: Node) -> None:
        """Populate a never-listed directory and overlay the new subtree."""
        populate(
            node.entries,
            node.absolute_path,
            node,
            config=self.config,
            ignore_check=self._ignore_check(),
        )
        self._apply_overlays(node.entries, get_last_group_node(node).absolute_path, owner=node)

    def load(self, draw: bool = False) -> None:
        """(Re)build root entries from disk.

        ``on_ready`` fires once, after the first completed load.
        """
        logger.debug("loading tree at %s", self.cwd)
        self.entries = []
        populate(self.entries, self.cwd, config=self.config, ignore_check=self._ignore_check())
        self.last_modified = safe_mtime_ns(self.cwd)
        self._apply_overlays(self.entries, self.cwd)
        if draw:
            self.draw(reload=True)
        if not self._ready:
            self._ready = True
            if self.on_ready is not None:
                self.on_ready(self)

    def draw(self, reload: bool = False) -> None:
        """Hand rows to the view, or mark the tree for a full rebuild when hidden."""
        if self.view is None or not self.view.is_displayed():
            self.loaded = False
            return
        self.view.draw(self.rows(), reload)
        self.loaded = True

    def rows(self) -> list[TreeRow]:
        rows: list[TreeRow] = []
        if self.header_lines:
            rows.append(
                TreeRow(
                    depth=0,
                    label=UP_NODE.name,
                    status=None,
                    severity=None,
                    is_open=False,
                    is_directory=True,
                    node=UP_NODE,
                )
            )
        rows.extend(iter_visible_rows(self.entries, self.config))
        return rows

    def line_count(self) -> int:
        return self.header_lines + visible_line_count(self.entries, self.config)

    def node_at_line(self, line: int) -> Node | UpNode | None:
        """Return the row object at 1-based ``line``; ``UP_NODE`` for the ".." row."""
        if self.header_lines and line == 1:
            return UP_NODE
        return node_at_line(self.entries, line, self.config, self.first_line)

    def line_for_node(self, node: Node, find_parent: bool = False) -> int | None:
        line, _entry = line_for_node(
            self.entries,
            node,
            self.config,
            find_parent=find_parent,
            first_line=self.first_line,
        )
        return line

    def unroll_dir(self, node: Node | UpNode) -> None:
        """Toggle a directory open/closed, populating it on first open."""
        if not isinstance(node, Node) or not node.is_dir:
            return
        node.open = not node.open
        node.has_children = False
        if node.open and not node.entries:
            self._expand(node)
        elif self.config.diagnostics:
            self._apply_diagnostics(node.entries)
        self.draw(reload=True)

    def open_node(self, node: Node | UpNode) -> None:
        if isinstance(node, Node) and node.is_dir and not node.open:
            self.unroll_dir(node)

    def parent_node(self, node: Node | UpNode, should_close: bool = False) -> int | None:
        """Return the cursor line after moving to ``node``'s parent.

        With ``should_close`` an open ``node`` is collapsed in place first;
        otherwise the parent row is targeted (and collapsed). Top-level nodes
        move to line 1. The ".." row is a no-op.
        """
        if not isinstance(node, Node):
            return None
        if node.open and should_close:
            node.open = False
            line = self.line_for_node(node)
        else:
            parent = find_parent_entry(self.entries, node, self.config)
            if parent is None:
                line = 1
            else:
                if should_close:
                    parent.open = False
                line = self.line_for_node(parent)
        self.draw(reload=True)
        return line

    def close_node(self, node: Node | UpNode) -> int | None:
        return self.parent_node(node, should_close=True)

    def sibling(self, node: Node | UpNode, direction: int) -> int | None:
        """Return the line of the visible sibling ``direction`` steps away."""
        if not isinstance(node, Node):
            return None
        target = find_sibling(self.entries, node, direction, self.config)
        line = self.line_for_node(target)
        self.draw(reload=True)
        return line

    def refresh_tree(self) -> bool:
        """Reconcile open directories with disk, then refresh overlays and redraw.

        Git status is reloaded first so ignore flags set during the structural
        pass come from the current repository state.
        """
        if self.config.git_status:
            self.status_cache.reload_roots()
        changed = refresh_nodes(self.entries, self.cwd, None, self.config, self._ignore_check())
        self.last_modified = safe_mtime_ns(self.cwd)
        if self.config.git_status:
            update_status(self.entries, self.cwd, cache=self.status_cache)
        self._apply_diagnostics(self.entries)
        logger.debug("refreshed %s (changed=%s)", self.cwd, changed)
        self.draw(reload=True)
        return changed

    def set_index_and_redraw(self, target: Path | str) -> int | None:
        """Expand every ancestor of ``target`` and return the line it lands on.

        Paths outside the root return ``None`` without touching any node.
        """
        target_path = normalize_path(target)
        if not is_strict_descendant(target_path, self.cwd):
            return None
        line, found = reveal_path(
            self.entries,
            path_segments(target_path),
            self.first_line,
            self.config,
            self._expand,
        )
        self.draw(reload=True)
        return line if found is not None else None

    def change_dir(self, directory: Path | str) -> None:
        """Re-root the tree at ``directory``; a no-op for the current root."""
        new_cwd = normalize_path(Path(directory).expanduser().resolve())
        if new_cwd == self.cwd:
            return
        self.cwd = new_cwd
        self.load(draw=True)

    def dir_up(self, node: Node | UpNode | None = None) -> int | None:
        """Re-root at the parent of ``cwd`` and reveal ``node`` when given."""
        parent = self.cwd.parent
        if parent == self.cwd:
            return None
        self.change_dir(parent)
        if isinstance(node, Node):
            return self.set_index_and_redraw(node.absolute_path)
        return None

    def set_config(self, **changes: bool) -> bool:
        """Replace config values and refresh so the tree reflects them."""
        self.config = self.config.with_changes(**changes)
        return self.refresh_tree()

    def toggle_ignored(self) -> bool:
        return self.set_config(show_ignored=not self.config.show_ignored)

    def toggle_dotfiles(self) -> bool:
        return self.set_config(show_dotfiles=not self.config.show_dotfiles)

    def is_stale(self) -> bool:
        """Return whether the root directory changed since the last load/refresh."""
        return safe_mtime_ns(self.cwd) != self.last_modified


__all__ = ["TreeView", "FileTree", "safe_mtime_ns"]
