"""Base repository implementation for per-file JSON documents."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Generic, List, TypeVar

from taleweave.data import paths
from taleweave.data.errors import DataValidationError
from taleweave.data.json_loader import load_json

T = TypeVar("T")


class RepositoryBase(Generic[T]):
    """Common caching and loading behavior for one-document-per-file repositories."""

    def __init__(self, suffix: str = ".json", base_path: Path | str | None = None) -> None:
        self._suffix = suffix
        self._base_path = Path(base_path) if base_path is not None else None
        self._definitions: Dict[str, T] = {}

    def _get_directory(self) -> Path:
        return paths.get_content_path(self._base_path)

    def _get_file_path(self, def_id: str) -> Path:
        return self._get_directory() / f"{def_id}{self._suffix}"

    def _load_raw(self, def_id: str) -> dict[str, object]:
        file_path = self._get_file_path(def_id)
        raw = load_json(file_path)
        if not isinstance(raw, dict):
            raise DataValidationError(f"Expected top-level object in {file_path}")
        return raw

    def _build(self, def_id: str, raw: dict[str, object]) -> T:
        """Convert a raw document into a typed definition."""
        raise NotImplementedError

    def get(self, def_id: str) -> T:
        """Return a definition by id, loading it on first access."""
        if def_id not in self._definitions:
            raw = self._load_raw(def_id)
            self._definitions[def_id] = self._build(def_id, raw)
        return self._definitions[def_id]

    def list_ids(self) -> List[str]:
        """Return the ids of every document in the directory, sorted."""
        directory = self._get_directory()
        if not directory.is_dir():
            return []
        return sorted(path.stem for path in directory.glob(f"*{self._suffix}") if path.is_file())

    @staticmethod
    def _require_mapping(value: object, context: str) -> dict[str, object]:
        if not isinstance(value, dict):
            raise DataValidationError(f"{context} must be an object/dict.")
        return value

    @staticmethod
    def _require_str(value: object, context: str) -> str:
        if not isinstance(value, str):
            raise DataValidationError(f"{context} must be a string.")
        return value

    @staticmethod
    def _require_optional_str(value: object, context: str) -> str | None:
        if value is None:
            return None
        if not isinstance(value, str):
            raise DataValidationError(f"{context} must be a string if provided.")
        return value
