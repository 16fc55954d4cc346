"""Public package surface for lazytree.

Exports ``FileTree`` and ``TreeConfig`` plus ``main`` for programmatic CLI
invocation. Most implementation lives in submodules under ``lazytree``.
"""

from __future__ import annotations

from .config import TreeConfig
from .file_tree import FileTree, TreeView


def main(*args, **kwargs):
    """Lazily import CLI entrypoint to keep package imports lightweight."""
    from .cli import main as _main

    return _main(*args, **kwargs)


__all__ = ["FileTree", "TreeConfig", "TreeView", "main"]
