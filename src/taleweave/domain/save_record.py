"""Persisted position and resources of an episode run."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from taleweave.core.types import ResourceValue

SAVE_RECORD_VERSION = 1


@dataclass(slots=True)
class SaveRecord:
    """Episode identity, current node, resource snapshot and format version.

    An empty ``node_id`` marks a run that reached its end node.
    """

    episode_id: str
    node_id: str
    resources: Dict[str, ResourceValue] = field(default_factory=dict)
    version: int = SAVE_RECORD_VERSION

    @property
    def is_finished(self) -> bool:
        return not self.node_id
