"""Persistent JSON config helpers.

Stores the default cache directory, listing limit and highlight style.
Malformed or missing config falls back to built-in defaults.
"""

from __future__ import annotations

import json
from pathlib import Path

from platformdirs import user_cache_dir, user_config_dir

APP_NAME = "cacheview"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
DEFAULT_CACHE_DIR = Path(user_cache_dir(APP_NAME, appauthor=False))
DEFAULT_LIMIT = 100


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON."""
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def load_cache_dir() -> Path:
    """Return the configured cache directory, or the per-user cache dir."""
    value = load_config().get("cache_dir")
    if isinstance(value, str) and value.strip():
        return Path(value.strip()).expanduser()
    return DEFAULT_CACHE_DIR


def save_cache_dir(path: Path) -> None:
    config = load_config()
    config["cache_dir"] = str(path)
    save_config(config)


def load_default_limit() -> int:
    """Return the configured listing limit; booleans and non-positive values are ignored."""
    value = load_config().get("limit")
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        return DEFAULT_LIMIT
    return value


def load_style() -> str | None:
    """Load persisted highlight style name, returning ``None`` when unset/invalid."""
    value = load_config().get("style")
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped if stripped else None


__all__ = [
    "APP_NAME",
    "CONFIG_PATH",
    "DEFAULT_CACHE_DIR",
    "DEFAULT_LIMIT",
    "load_config",
    "save_config",
    "load_cache_dir",
    "save_cache_dir",
    "load_default_limit",
    "load_style",
]
