"""ANSI formatting for tree rows and status badges."""

from __future__ import annotations

from dataclasses import dataclass

from .diagnostics import Severity
from .git_status import GitStatus
from .tree_model.projection import TreeRow
from .tree_model.types import UpNode


@dataclass(frozen=True)
class TreeTheme:
    """Semantic ANSI palette used by ``format_tree_row``."""

    reset: str = "\033[0m"
    marker: str = "\033[38;5;44m"
    directory: str = "\033[1;34m"
    file: str = "\033[38;5;252m"
    ignored: str = "\033[2;38;5;244m"
    up: str = "\033[2;38;5;250m"


DEFAULT_THEME = TreeTheme()

_STATUS_BADGES: dict[GitStatus, tuple[str, str]] = {
    GitStatus.MODIFIED: ("M", "\033[38;5;214m"),
    GitStatus.ADDED: ("A", "\033[38;5;42m"),
    GitStatus.DELETED: ("D", "\033[38;5;203m"),
    GitStatus.RENAMED: ("R", "\033[38;5;141m"),
    GitStatus.UNTRACKED: ("?", "\033[38;5;42m"),
    GitStatus.CONFLICTED: ("!", "\033[1;38;5;196m"),
}

_SEVERITY_BADGES: dict[Severity, tuple[str, str]] = {
    Severity.ERROR: ("E", "\033[38;5;196m"),
    Severity.WARNING: ("W", "\033[38;5;220m"),
    Severity.INFO: ("I", "\033[38;5;75m"),
    Severity.HINT: ("H", "\033[38;5;250m"),
}


def _badge(letter: str, color: str, colorize: bool, reset: str) -> str:
    if not colorize:
        return f"[{letter}]"
    return f"{color}[{letter}]{reset}"


def format_status_badges(row: TreeRow, colorize: bool = True, theme: TreeTheme | None = None) -> str:
    """Return `` [M][E]``-style badges for a row's git status and severity."""
    active_theme = theme or DEFAULT_THEME
    badges: list[str] = []
    if row.status in _STATUS_BADGES:
        letter, color = _STATUS_BADGES[row.status]
        badges.append(_badge(letter, color, colorize, active_theme.reset))
    if row.severity is not None:
        letter, color = _SEVERITY_BADGES[row.severity]
        badges.append(_badge(letter, color, colorize, active_theme.reset))
    if not badges:
        return ""
    return " " + "".join(badges)


def format_tree_row(row: TreeRow, colorize: bool = True, theme: TreeTheme | None = None) -> str:
    """Render one row as display text, ANSI-styled unless ``colorize`` is off."""
    active_theme = theme or DEFAULT_THEME
    reset = active_theme.reset if colorize else ""
    if isinstance(row.node, UpNode):
        up_color = active_theme.up if colorize else ""
        return f"{up_color}{row.label}{reset}"

    indent = "  " * row.depth
    badges = format_status_badges(row, colorize, active_theme)
    if row.is_directory:
        marker = "▾ " if row.is_open else "▸ "
        marker_color = active_theme.marker if colorize else ""
        name_color = active_theme.directory if colorize else ""
        if row.ignored and colorize:
            name_color = active_theme.ignored
        return f"{indent}{marker_color}{marker}{reset}{name_color}{row.label}/{reset}{badges}"

    # Align file names under the parent directory arrow column.
    name_color = active_theme.file if colorize else ""
    if row.ignored and colorize:
        name_color = active_theme.ignored
    return f"{indent}  {name_color}{row.label}{reset}{badges}"


__all__ = ["TreeTheme", "DEFAULT_THEME", "format_status_badges", "format_tree_row"]
