"""Branching-narrative episode interpreter."""

__version__ = "0.1.0"
