"""Diagnostics overlay: per-path severities aggregated onto directories."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import IntEnum
from pathlib import Path

from .paths import is_within, iter_ancestors, normalize_path
from .tree_model.types import Node, iter_group_chain


class Severity(IntEnum):
    HINT = 1
    INFO = 2
    WARNING = 3
    ERROR = 4


def aggregate_diagnostics(diagnostics: Mapping[Path, Severity], root: Path) -> dict[Path, Severity]:
    """Return per-path severities with each directory holding its descendants' max."""
    root = normalize_path(root)
    aggregated: dict[Path, Severity] = {}
    for raw_path, severity in diagnostics.items():
        path = normalize_path(raw_path)
        if not is_within(path, root):
            continue
        aggregated[path] = max(aggregated.get(path, severity), severity)
        for ancestor in iter_ancestors(path, root):
            current = aggregated.get(ancestor)
            if current is not None and current >= severity:
                continue
            aggregated[ancestor] = severity
    return aggregated


def update_diagnostics(entries: Iterable[Node], aggregated: Mapping[Path, Severity]) -> None:
    """Assign ``severity`` on every populated node, clearing stale values."""
    for node in entries:
        for link in iter_group_chain(node):
            link.severity = aggregated.get(link.absolute_path)
        if node.entries:
            update_diagnostics(node.entries, aggregated)


__all__ = ["Severity", "aggregate_diagnostics", "update_diagnostics"]
