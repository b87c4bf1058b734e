"""Data layer utilities for loading episode documents."""

from .errors import DataError, DataLoadError, DataValidationError
from .paths import get_content_path, get_repo_root

__all__ = [
    "DataError",
    "DataLoadError",
    "DataValidationError",
    "get_content_path",
    "get_repo_root",
]
