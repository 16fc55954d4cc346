"""Path normalization and structural matching helpers.

Paths are compared as segment tuples, never as patterns, so names containing
glob/regex metacharacters need no escaping and ``foo`` never matches ``foobar``.
"""

from __future__ import annotations

import os
from pathlib import Path


def normalize_path(path: Path | str) -> Path:
    """Return an absolute, normalized path without resolving symlinks."""
    expanded = os.path.expanduser(os.fspath(path))
    return Path(os.path.normpath(os.path.abspath(expanded)))


def path_segments(path: Path) -> tuple[str, ...]:
    """Return the segment tuple used for structural path matching."""
    return Path(path).parts


def is_filesystem_root(path: Path) -> bool:
    """Return whether ``path`` is a filesystem root (``/`` or a drive root)."""
    return path.parent == path


def is_within(path: Path, root: Path) -> bool:
    """Return whether ``path`` is ``root`` or lies beneath it."""
    path_parts = path_segments(path)
    root_parts = path_segments(root)
    return path_parts[: len(root_parts)] == root_parts


def is_strict_descendant(path: Path, root: Path) -> bool:
    """Return whether ``path`` lies strictly beneath ``root``."""
    return is_within(path, root) and len(path_segments(path)) > len(path_segments(root))


def parent_path(path: Path) -> Path | None:
    """Return the parent directory, or ``None`` for a filesystem root."""
    parent = path.parent
    if parent == path:
        return None
    return parent


def iter_ancestors(path: Path, root: Path):
    """Yield strict ancestors of ``path`` from nearest up to and including ``root``."""
    if not is_strict_descendant(path, root):
        return
    current = path.parent
    while True:
        yield current
        if current == root or current.parent == current:
            break
        current = current.parent


__all__ = [
    "normalize_path",
    "path_segments",
    "is_filesystem_root",
    "is_within",
    "is_strict_descendant",
    "parent_path",
    "iter_ancestors",
]
