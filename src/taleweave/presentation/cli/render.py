"""Shared CLI rendering helpers."""
from __future__ import annotations

import os
import textwrap
from typing import Sequence

DEBUG_ENV = "TALEWEAVE_DEBUG"
LINE_WIDTH = 78


def debug_enabled() -> bool:
    """Return True only when TALEWEAVE_DEBUG is explicitly set to '1'."""
    return os.getenv(DEBUG_ENV) == "1"


def wrap_line(text: str, width: int = LINE_WIDTH) -> list[str]:
    """Wrap a story line on word boundaries, indenting continuation lines."""
    if not text or width <= 0:
        return [text]
    wrapped = textwrap.fill(
        text,
        width=width,
        subsequent_indent="  ",
        break_long_words=False,
        break_on_hyphens=False,
    )
    return wrapped.split("\n")


def render_heading(title: str) -> None:
    """Print a consistent section heading."""
    print(f"\n=== {title} ===")


def render_line(text: str) -> None:
    """Print a wrapped story line."""
    for line in wrap_line(text):
        print(line)


def render_stage_direction(text: str) -> None:
    """Print a bracketed note for non-text effects such as music or backgrounds."""
    print(f"[{text}]")


def render_menu(title: str, options: Sequence[str]) -> None:
    """Display a menu section with numbered options."""
    render_heading(title)
    for idx, label in enumerate(options, start=1):
        print(f"{idx}. {label}")
