"""File-system key/value store backing the save gateway."""
from __future__ import annotations

import re
from pathlib import Path

from taleweave.presentation.cli import config

_SAFE_KEY = re.compile(r"[A-Za-z0-9_.-]+")


class FileStore:
    """Stores each key as ``<key>.json`` under a directory, overwriting on write."""

    def __init__(self, base_dir: Path | str | None = None) -> None:
        self._base_dir = Path(base_dir) if base_dir is not None else config.get_save_dir()

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def get(self, key: str) -> str | None:
        """Return the stored text for ``key`` or None when nothing was written."""
        path = self._key_path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set(self, key: str, value: str) -> None:
        """Persist ``value`` under ``key``."""
        self._base_dir.mkdir(parents=True, exist_ok=True)
        self._key_path(key).write_text(value, encoding="utf-8")

    def _key_path(self, key: str) -> Path:
        if not _SAFE_KEY.fullmatch(key):
            raise ValueError(f"Invalid store key: {key!r}")
        return self._base_dir / f"{key}.json"
