from __future__ import annotations

import json
from pathlib import Path

import pytest

from taleweave.domain.save_record import SaveRecord
from taleweave.presentation.cli.save_slots import FileStore
from taleweave.services.errors import SaveLoadError
from taleweave.services.save_service import KEY_PREFIX, MemoryStore, SaveGateway, SaveService


def test_save_round_trip_preserves_record() -> None:
    gateway = SaveGateway(MemoryStore())
    record = SaveRecord(episode_id="ep1", node_id="market", resources={"gold": 10, "mood": "calm", "ratio": 0.5})

    gateway.save(record)
    restored = gateway.load()

    assert restored == record
    assert restored is not record


def test_serialized_payload_uses_document_keys() -> None:
    payload = SaveService().serialize(SaveRecord(episode_id="ep1", node_id="", resources={"gold": 1}))
    assert payload == {"episodeId": "ep1", "nodeId": "", "resources": {"gold": 1}, "version": 1}


def test_save_overwrites_single_slot() -> None:
    store = MemoryStore()
    gateway = SaveGateway(store)

    gateway.save(SaveRecord(episode_id="ep1", node_id="a"))
    gateway.save(SaveRecord(episode_id="ep1", node_id="b"))

    raw = store.get(f"{KEY_PREFIX}0")
    assert raw is not None
    assert json.loads(raw)["nodeId"] == "b"
    assert gateway.load().node_id == "b"


def test_last_save_is_detached_copy() -> None:
    gateway = SaveGateway(MemoryStore())
    resources = {"gold": 1}
    record = SaveRecord(episode_id="ep1", node_id="a", resources=resources)

    gateway.save(record)
    resources["gold"] = 99

    assert gateway.last_save is not None
    assert gateway.last_save.resources == {"gold": 1}


def test_gateways_keep_independent_last_save() -> None:
    first = SaveGateway(MemoryStore())
    second = SaveGateway(MemoryStore())

    first.save(SaveRecord(episode_id="ep1", node_id="a"))

    assert first.last_save is not None
    assert second.last_save is None


class _FailingStore(MemoryStore):
    def set(self, key: str, value: str) -> None:
        raise OSError("disk full")


def test_failed_write_leaves_last_save_untouched() -> None:
    gateway = SaveGateway(_FailingStore())

    with pytest.raises(OSError, match="disk full"):
        gateway.save(SaveRecord(episode_id="ep1", node_id="a"))

    assert gateway.last_save is None
    assert gateway.load() is None


def test_load_empty_slot_returns_none() -> None:
    gateway = SaveGateway(MemoryStore())
    assert gateway.load() is None
    assert gateway.load_for_episode("ep1") is None


def test_load_for_other_episode_does_not_resume() -> None:
    gateway = SaveGateway(MemoryStore())
    gateway.save(SaveRecord(episode_id="ep1", node_id="market", resources={"gold": 3}))

    assert gateway.load_for_episode("ep2") is None
    assert gateway.load_for_episode("ep1").node_id == "market"


def test_slots_are_addressed_independently() -> None:
    gateway = SaveGateway(MemoryStore())
    gateway.save(SaveRecord(episode_id="ep1", node_id="a"), slot=2)

    assert gateway.load() is None
    assert gateway.load(2).node_id == "a"
    with pytest.raises(ValueError):
        gateway.load(-1)


@pytest.mark.parametrize(
    "payload",
    [
        {"episodeId": "ep1", "nodeId": "a", "resources": {}, "version": 2},
        {"episodeId": "ep1", "nodeId": "a", "resources": {}},
        {"episodeId": 4, "nodeId": "a", "resources": {}, "version": 1},
        {"episodeId": "ep1", "nodeId": None, "resources": {}, "version": 1},
        {"episodeId": "ep1", "nodeId": "a", "resources": [], "version": 1},
        {"episodeId": "ep1", "nodeId": "a", "resources": {"flag": True}, "version": 1},
        {"episodeId": "ep1", "nodeId": "a", "resources": {"list": [1]}, "version": 1},
    ],
)
def test_deserialize_rejects_invalid_payloads(payload: dict) -> None:
    with pytest.raises(SaveLoadError):
        SaveService().deserialize(payload)


def test_deserialize_tolerates_missing_resources() -> None:
    record = SaveService().deserialize({"episodeId": "ep1", "nodeId": "a", "version": 1})
    assert record.resources == {}


def test_corrupt_slot_raises_save_load_error() -> None:
    store = MemoryStore()
    store.set(f"{KEY_PREFIX}0", "{oops")

    with pytest.raises(SaveLoadError):
        SaveGateway(store).load()


def test_file_store_round_trip(tmp_path: Path) -> None:
    store = FileStore(tmp_path / "saves")
    gateway = SaveGateway(store)
    record = SaveRecord(episode_id="ep1", node_id="reef_check", resources={"energy": 5})

    assert store.get(f"{KEY_PREFIX}0") is None
    gateway.save(record)

    assert (tmp_path / "saves" / f"{KEY_PREFIX}0.json").exists()
    assert SaveGateway(FileStore(tmp_path / "saves")).load() == record


def test_file_store_rejects_path_like_keys(tmp_path: Path) -> None:
    store = FileStore(tmp_path)
    with pytest.raises(ValueError):
        store.set("../escape", "{}")


def test_file_store_defaults_to_user_save_dir(monkeypatch, tmp_path: Path) -> None:
    from taleweave.presentation.cli import config

    monkeypatch.setattr(config, "get_save_dir", lambda: tmp_path / "default")
    assert FileStore().base_dir == tmp_path / "default"
