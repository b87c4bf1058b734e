"""Helpers for resolving content file locations."""
from __future__ import annotations

import os
from pathlib import Path

CONTENT_DIR_ENV = "TALEWEAVE_CONTENT_DIR"


def get_repo_root() -> Path:
    """Return the repository root."""
    return Path(__file__).resolve().parents[3]


def get_content_path(base_path: Path | str | None = None) -> Path:
    """Return the directory containing episode JSON documents.

    An explicit ``base_path`` wins, then the ``TALEWEAVE_CONTENT_DIR``
    environment variable, then ``content/episodes`` under the repository root.
    """
    if base_path is not None:
        return Path(base_path)
    override = os.environ.get(CONTENT_DIR_ENV)
    if override:
        return Path(override)
    return get_repo_root() / "content" / "episodes"
