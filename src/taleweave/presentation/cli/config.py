"""Per-user settings for the console front end.

``config.json`` holds three optional keys:

* ``text_display_mode``: ``"instant"`` or ``"step"`` (wait for Enter after each line).
* ``content_dir``: directory of episode documents used when
  ``TALEWEAVE_CONTENT_DIR`` is not set.
* ``last_episode``: id of the episode picked most recently; offered first in
  the episode menu.
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Dict, Mapping

from taleweave.core.types import TextDisplayMode
from taleweave.data.paths import CONTENT_DIR_ENV

_DEFAULT_TEXT_MODE: TextDisplayMode = "instant"
_OPTIONAL_KEYS = ("content_dir", "last_episode")

Settings = Dict[str, str]


def get_user_data_dir() -> Path:
    """Return the per-user data directory."""
    if os.name == "nt":
        base = os.environ.get("APPDATA")
        if base:
            return Path(base) / "Taleweave"
        return Path.home() / "Taleweave"
    return Path.home() / ".config" / "taleweave"


def get_default_config_path() -> Path:
    return get_user_data_dir() / "config.json"


def get_save_dir() -> Path:
    return get_user_data_dir() / "saves"


def default_settings() -> Settings:
    return {"text_display_mode": _DEFAULT_TEXT_MODE}


def normalize_settings(raw: Mapping[str, object]) -> Settings:
    """Keep known keys only; unknown text modes fall back to ``instant``.

    Blank or non-string optional values are dropped.
    """
    settings = default_settings()
    if raw.get("text_display_mode") == "step":
        settings["text_display_mode"] = "step"
    for key in _OPTIONAL_KEYS:
        value = raw.get(key)
        if isinstance(value, str) and value.strip():
            settings[key] = value.strip()
    return settings


def text_mode(settings: Mapping[str, str]) -> TextDisplayMode:
    return "step" if settings.get("text_display_mode") == "step" else _DEFAULT_TEXT_MODE


def content_dir(settings: Mapping[str, str]) -> Path | None:
    """Return the configured episode directory, or None when the environment overrides it."""
    if os.environ.get(CONTENT_DIR_ENV):
        return None
    value = settings.get("content_dir")
    return Path(value).expanduser() if value else None


def load_config(path: Path | None = None) -> Settings:
    """Load settings from disk; a missing or unreadable file yields the defaults."""
    config_path = path or get_default_config_path()
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return default_settings()
    if not isinstance(raw, dict):
        return default_settings()
    return normalize_settings(raw)


def save_config(settings: Mapping[str, str], path: Path | None = None) -> None:
    config_path = path or get_default_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    payload = normalize_settings(settings)
    config_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
