"""Tree display settings plus persistent JSON config helpers.

``TreeConfig`` is the immutable per-call settings value passed to the populator
and the projection. Persisted preferences live in a JSON object under the
platform user config directory; malformed or missing config falls back safely.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path

from platformdirs import user_config_dir

logger = logging.getLogger(__name__)

APP_NAME = "lazytree"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME


@dataclass(frozen=True)
class TreeConfig:
    """Display and overlay toggles for one tree instance."""

    show_ignored: bool = False
    show_dotfiles: bool = False
    dirs_first: bool = True
    group_empty: bool = False
    git_status: bool = True
    diagnostics: bool = False

    def with_changes(self, **changes: bool) -> "TreeConfig":
        return replace(self, **changes)


def load_config() -> dict[str, object]:
    """Read the saved lazytree settings file.

    Anything other than a readable JSON object yields ``{}`` so tree defaults
    apply.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.debug("ignoring unreadable config %s: %s", CONFIG_PATH, exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Write ``data`` to the lazytree settings file, creating its directory.

    A settings file that cannot be written leaves the tree usable; the
    failure is only logged.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except Exception as exc:
        logger.debug("cannot write %s: %s", CONFIG_PATH, exc)


def load_tree_config() -> TreeConfig:
    """Return persisted tree settings layered over defaults.

    Only explicit boolean values are accepted; other types keep the default.
    """
    data = load_config()
    values: dict[str, bool] = {}
    for setting in fields(TreeConfig):
        value = data.get(setting.name)
        if isinstance(value, bool):
            values[setting.name] = value
    return TreeConfig(**values)


def save_tree_config(tree_config: TreeConfig) -> None:
    """Persist every tree setting, preserving unrelated keys."""
    data = load_config()
    for setting in fields(TreeConfig):
        data[setting.name] = bool(getattr(tree_config, setting.name))
    save_config(data)


__all__ = [
    "APP_NAME",
    "CONFIG_PATH",
    "TreeConfig",
    "load_config",
    "save_config",
    "load_tree_config",
    "save_tree_config",
]
