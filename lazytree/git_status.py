"""Git status overlay for tree nodes.

Queries ``git status`` once per repository root, aggregates file statuses onto
ancestor directories, and annotates populated subtrees. Root lookups and status
maps are cached until ``reload_roots`` is called explicitly.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path

from .paths import is_within, iter_ancestors, normalize_path
from .tree_model.types import Node, get_last_group_node, iter_group_chain

logger = logging.getLogger(__name__)

GIT_TIMEOUT_SECONDS = 2.0


class GitStatus(IntEnum):
    """Per-path git state, ordered by display severity."""

    UNMODIFIED = 0
    IGNORED = 1
    UNTRACKED = 2
    RENAMED = 3
    ADDED = 4
    DELETED = 5
    MODIFIED = 6
    CONFLICTED = 7


_CONFLICT_CODES = frozenset({"DD", "AU", "UD", "UA", "DU", "AA", "UU"})


def status_from_porcelain(code: str) -> GitStatus:
    """Map a two-letter ``git status --porcelain`` XY code to ``GitStatus``."""
    if code == "??":
        return GitStatus.UNTRACKED
    if code == "!!":
        return GitStatus.IGNORED
    if code in _CONFLICT_CODES:
        return GitStatus.CONFLICTED
    if "R" in code or "C" in code:
        return GitStatus.RENAMED
    if "M" in code or "T" in code:
        return GitStatus.MODIFIED
    if "D" in code:
        return GitStatus.DELETED
    if "A" in code:
        return GitStatus.ADDED
    return GitStatus.UNMODIFIED


def _run_git(cwd: Path, args: list[str]) -> subprocess.CompletedProcess[str] | None:
    try:
        return subprocess.run(
            ["git", "-C", str(cwd), *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            timeout=GIT_TIMEOUT_SECONDS,
        )
    except Exception as exc:
        logger.debug("git %s failed in %s: %s", args[0], cwd, exc)
        return None


def resolve_repo_root(path: Path) -> Path | None:
    """Return the repository top-level containing ``path``, or ``None``."""
    proc = _run_git(path, ["rev-parse", "--show-toplevel"])
    if proc is None or proc.returncode != 0:
        return None
    top_level = proc.stdout.strip()
    if not top_level:
        return None
    return normalize_path(top_level)


def _iter_porcelain_records(output: str) -> list[tuple[str, str]]:
    records: list[tuple[str, str]] = []
    tokens = output.split("\0")
    index = 0
    while index < len(tokens):
        token = tokens[index]
        index += 1
        if len(token) < 4 or token[2] != " ":
            continue

        status = token[:2]
        records.append((status, token[3:]))

        # Renamed/copied records carry the source path as an extra token.
        if "R" in status or "C" in status:
            index += 1

    return records


def collect_git_status(repo_root: Path) -> dict[Path, GitStatus]:
    """Return raw per-path statuses reported by git for ``repo_root``."""
    proc = _run_git(
        repo_root,
        ["status", "--porcelain=v1", "-z", "--ignored=matching", "--untracked-files=normal"],
    )
    if proc is None or proc.returncode != 0:
        return {}

    statuses: dict[Path, GitStatus] = {}
    for code, rel_path in _iter_porcelain_records(proc.stdout):
        rel_path = rel_path.rstrip("/")
        if not rel_path:
            continue
        statuses[normalize_path(repo_root / rel_path)] = status_from_porcelain(code)
    return statuses


@dataclass
class RepoStatus:
    """Raw file statuses for one repository plus the aggregated overlay.

    ``overlay`` maps each reported path to its own status and each ancestor
    directory (up to ``root``) to the highest status beneath it. Ignored paths
    keep their own status but never raise an ancestor's.
    """

    root: Path
    files: dict[Path, GitStatus]
    overlay: dict[Path, GitStatus] = field(init=False)
    ignored_dirs: frozenset[Path] = field(init=False)

    def __post_init__(self) -> None:
        self.overlay = aggregate_statuses(self.files, self.root)
        self.ignored_dirs = frozenset(
            path for path, status in self.files.items() if status == GitStatus.IGNORED
        )

    def is_ignored(self, path: Path) -> bool:
        if self.files.get(path) == GitStatus.IGNORED:
            return True
        if not self.ignored_dirs:
            return False
        return any(ancestor in self.ignored_dirs for ancestor in iter_ancestors(path, self.root))

    def status_for(self, path: Path) -> GitStatus | None:
        status = self.overlay.get(path)
        if status is not None:
            return status
        if self.is_ignored(path):
            return GitStatus.IGNORED
        return None


def aggregate_statuses(files: Mapping[Path, GitStatus], root: Path) -> dict[Path, GitStatus]:
    """Propagate file statuses onto ancestor directories (max severity)."""
    overlay: dict[Path, GitStatus] = {}
    for path, status in files.items():
        if not is_within(path, root):
            continue
        overlay[path] = max(overlay.get(path, status), status)
        if status == GitStatus.IGNORED:
            continue
        for ancestor in iter_ancestors(path, root):
            current = overlay.get(ancestor)
            if current is not None and current >= status:
                continue
            overlay[ancestor] = status
    return overlay


StatusProvider = Callable[[Path], Mapping[Path, GitStatus]]
RootResolver = Callable[[Path], "Path | None"]


class GitStatusCache:
    """Repository-root and status cache keyed by root path.

    Entries never expire on their own; ``reload_roots`` is the only
    invalidation hook.
    """

    def __init__(
        self,
        provider: StatusProvider = collect_git_status,
        root_resolver: RootResolver = resolve_repo_root,
    ) -> None:
        self._provider = provider
        self._root_resolver = root_resolver
        self._roots_by_dir: dict[Path, Path | None] = {}
        self._status_by_root: dict[Path, RepoStatus] = {}

    def git_root(self, path: Path) -> Path | None:
        """Return the cached repository root for directory ``path``."""
        path = normalize_path(path)
        if path in self._roots_by_dir:
            return self._roots_by_dir[path]
        root = self._root_resolver(path)
        self._roots_by_dir[path] = root
        return root

    def status_for_root(self, root: Path) -> RepoStatus:
        cached = self._status_by_root.get(root)
        if cached is None:
            logger.debug("loading git status for %s", root)
            cached = RepoStatus(root=root, files=dict(self._provider(root)))
            self._status_by_root[root] = cached
        return cached

    def repo_for(self, path: Path) -> RepoStatus | None:
        root = self.git_root(path)
        if root is None:
            return None
        return self.status_for_root(root)

    def is_ignored(self, path: Path) -> bool:
        path = normalize_path(path)
        repo = self.repo_for(path.parent)
        return repo is not None and repo.is_ignored(path)

    def reload_roots(self) -> None:
        """Drop every cached root lookup and status map."""
        logger.debug("reloading git roots (%d cached)", len(self._status_by_root))
        self._roots_by_dir.clear()
        self._status_by_root.clear()


DEFAULT_STATUS_CACHE = GitStatusCache()


def reload_roots(cache: GitStatusCache = DEFAULT_STATUS_CACHE) -> None:
    cache.reload_roots()


def _assign_chain(node: Node, repo: RepoStatus | None) -> None:
    for link in iter_group_chain(node):
        link.status = repo.status_for(link.absolute_path) if repo is not None else None


def _assign_statuses(entries: Iterable[Node], directory: Path, cache: GitStatusCache) -> None:
    # Resolved per listed directory; repos may nest below a non-repo root.
    repo = cache.repo_for(directory)
    for node in entries:
        _assign_chain(node, repo)
        if node.entries:
            _assign_statuses(node.entries, get_last_group_node(node).absolute_path, cache)


def update_status(
    entries: list[Node],
    root_path: Path,
    owner: Node | None = None,
    cache: GitStatusCache = DEFAULT_STATUS_CACHE,
) -> None:
    """Annotate every populated node below ``root_path`` with its git status.

    Collapsed directories are included so a later expand shows correct state.
    ``owner`` is annotated too when given, using the repository of its own
    parent directory. Status maps are shared per repository root through
    ``cache``.
    """
    if owner is not None:
        _assign_chain(owner, cache.repo_for(owner.absolute_path.parent))
    _assign_statuses(entries, root_path, cache)


__all__ = [
    "GitStatus",
    "status_from_porcelain",
    "resolve_repo_root",
    "collect_git_status",
    "RepoStatus",
    "aggregate_statuses",
    "GitStatusCache",
    "DEFAULT_STATUS_CACHE",
    "reload_roots",
    "update_status",
]
