"""Serialization and auto-slot persistence of episode save records."""
from __future__ import annotations

import copy
import json
import logging
from typing import Any, Dict, Mapping, Protocol

from taleweave.core.types import ResourceValue
from taleweave.domain.save_record import SAVE_RECORD_VERSION, SaveRecord
from taleweave.services.errors import SaveLoadError

logger = logging.getLogger(__name__)

KEY_PREFIX = "taleweave-save-"
AUTO_SLOT = 0

SavePayload = Dict[str, Any]


class KeyValueStore(Protocol):
    """Minimal string store the gateway writes save payloads into."""

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class MemoryStore:
    """Dict-backed store, used for tests and hosts without disk access."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class SaveService:
    """Converts save records to/from a validated, versioned payload."""

    SAVE_VERSION = SAVE_RECORD_VERSION

    def serialize(self, record: SaveRecord) -> SavePayload:
        """Return a JSON-serializable payload for persistence."""
        return {
            "episodeId": record.episode_id,
            "nodeId": record.node_id,
            "resources": dict(record.resources),
            "version": record.version,
        }

    def deserialize(self, payload: Mapping[str, Any]) -> SaveRecord:
        """Rebuild a SaveRecord from a persisted payload."""
        if not isinstance(payload, Mapping):
            raise SaveLoadError("Save data must be a JSON object.")
        version = payload.get("version")
        if version != self.SAVE_VERSION:
            raise SaveLoadError(f"Unsupported save version: {version!r}.")
        episode_id = self._require_str(payload.get("episodeId"), "episodeId")
        node_id = self._require_str(payload.get("nodeId"), "nodeId")
        resources = self._coerce_resources(payload.get("resources"))
        return SaveRecord(episode_id=episode_id, node_id=node_id, resources=resources, version=version)

    @staticmethod
    def _require_str(value: object, context: str) -> str:
        if not isinstance(value, str):
            raise SaveLoadError(f"{context} must be a string.")
        return value

    @staticmethod
    def _coerce_resources(value: object) -> Dict[str, ResourceValue]:
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            raise SaveLoadError("resources must be an object.")
        resources: Dict[str, ResourceValue] = {}
        for key, amount in value.items():
            if not isinstance(key, str):
                raise SaveLoadError("resources keys must be strings.")
            if isinstance(amount, bool) or not isinstance(amount, (int, float, str)):
                raise SaveLoadError(f"resources.{key} must be a number or string.")
            resources[key] = amount
        return resources


class SaveGateway:
    """Writes the most recent record to the auto slot and remembers it as ``last_save``.

    Each ``save`` fully overwrites the slot; the last write wins. Store errors
    propagate to the caller.
    """

    def __init__(self, store: KeyValueStore, service: SaveService | None = None) -> None:
        self._store = store
        self._service = service or SaveService()
        self.last_save: SaveRecord | None = None

    def save(self, record: SaveRecord, slot: int = AUTO_SLOT) -> None:
        """Persist ``record`` into ``slot``, replacing whatever was there."""
        payload = self._service.serialize(record)
        self._store.set(self._slot_key(slot), json.dumps(payload, sort_keys=True))
        self.last_save = copy.deepcopy(record)
        logger.debug("Saved episode '%s' at node '%s' to slot %d.", record.episode_id, record.node_id, slot)

    def load(self, slot: int = AUTO_SLOT) -> SaveRecord | None:
        """Return the record stored in ``slot`` or None when the slot is empty."""
        raw = self._store.get(self._slot_key(slot))
        if raw is None:
            return None
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise SaveLoadError(f"Save slot {slot} does not contain valid JSON.") from exc
        record = self._service.deserialize(payload)
        logger.debug("Loaded episode '%s' at node '%s' from slot %d.", record.episode_id, record.node_id, slot)
        return record

    def load_for_episode(self, episode_id: str, slot: int = AUTO_SLOT) -> SaveRecord | None:
        """Return the stored record only when it belongs to ``episode_id``."""
        record = self.load(slot)
        if record is None:
            return None
        if record.episode_id != episode_id:
            logger.warning(
                "Ignoring save for episode '%s' while loading episode '%s'.", record.episode_id, episode_id
            )
            return None
        return record

    @staticmethod
    def _slot_key(slot: int) -> str:
        if slot < 0:
            raise ValueError("Slot index must be non-negative.")
        return f"{KEY_PREFIX}{slot}"
