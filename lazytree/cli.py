"""Command-line front door for lazytree.

Builds a tree for the target directory, applies requested expansions, and
prints the visible projection once.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import TreeConfig, load_tree_config, save_tree_config
from .file_tree import FileTree
from .rendering import format_tree_row
from .tree_model.types import Node


def render_tree(tree: FileTree, colorize: bool) -> str:
    """Return every display row of ``tree`` as newline-terminated text."""
    return "".join(format_tree_row(row, colorize) + "\n" for row in tree.rows())


def _effective_config(args: argparse.Namespace) -> TreeConfig:
    changes: dict[str, bool] = {}
    if args.hidden:
        changes["show_dotfiles"] = True
    if args.ignored:
        changes["show_ignored"] = True
    if args.group_empty:
        changes["group_empty"] = True
    if args.name_sort:
        changes["dirs_first"] = False
    if args.no_git:
        changes["git_status"] = False
    return load_tree_config().with_changes(**changes)


def _open_directory(tree: FileTree, directory: Path) -> None:
    line = tree.set_index_and_redraw(directory)
    if line is None:
        return
    node = tree.node_at_line(line)
    if isinstance(node, Node):
        tree.open_node(node)


def main(argv: list[str] | None = None, default_path: Path | None = None) -> None:
    """Parse CLI arguments and print the tree for a directory.

    ``default_path`` is primarily for tests; when omitted the current working
    directory is used.
    """
    parser = argparse.ArgumentParser(description="Print a lazily expanded directory tree with git status.")
    parser.add_argument("path", nargs="?", default=None, help="Root directory. Defaults to current directory.")
    parser.add_argument("--hidden", action="store_true", help="Show dotfiles.")
    parser.add_argument("--ignored", action="store_true", help="Show git-ignored entries.")
    parser.add_argument("--group-empty", action="store_true", help="Collapse single-directory chains into one row.")
    parser.add_argument("--name-sort", action="store_true", help="Sort by name only instead of directories first.")
    parser.add_argument("--no-git", action="store_true", help="Disable git status and ignore detection.")
    parser.add_argument(
        "--open",
        metavar="DIR",
        action="append",
        default=[],
        help="Expand DIR (relative to the root); may be repeated.",
    )
    parser.add_argument("--reveal", metavar="PATH", help="Expand every ancestor of PATH.")
    parser.add_argument("--no-color", action="store_true", help="Disable color output even on TTY.")
    parser.add_argument("--save-config", action="store_true", help="Persist the effective display settings.")
    parser.add_argument("--verbose", action="store_true", help="Log debug details to stderr.")
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if default_path is None:
        default_path = Path.cwd()
    root = Path(args.path or default_path)
    if not root.is_dir():
        raise SystemExit(f"Not a directory: {root}")

    tree_config = _effective_config(args)
    if args.save_config:
        save_tree_config(tree_config)

    tree = FileTree(root, tree_config)
    tree.load()
    for raw_directory in args.open:
        _open_directory(tree, tree.cwd / raw_directory)
    if args.reveal:
        reveal = Path(args.reveal)
        tree.set_index_and_redraw(reveal if reveal.is_absolute() else tree.cwd / reveal)

    colorize = not args.no_color and sys.stdout.isatty()
    sys.stdout.write(render_tree(tree, colorize))


if __name__ == "__main__":
    main()
