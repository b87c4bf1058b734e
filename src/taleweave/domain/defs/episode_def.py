"""Episode graph structures used by the runtime."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Tuple

from taleweave.core.types import NumericMapping, ResourceMapping, SpritePosition


@dataclass(frozen=True, slots=True)
class ChoiceOptionDef:
    """Single selectable option on a choice node."""

    option_id: str
    label: str
    next_node_id: str
    gain: NumericMapping | None = None
    req: NumericMapping | None = None
    meta: str | None = None


@dataclass(frozen=True, slots=True)
class NodeDef:
    """Base class for every node variant."""

    id: str


@dataclass(frozen=True, slots=True)
class BackgroundNodeDef(NodeDef):
    bg: str
    next_node_id: str


@dataclass(frozen=True, slots=True)
class MusicNodeDef(NodeDef):
    music: str
    next_node_id: str


@dataclass(frozen=True, slots=True)
class SayNodeDef(NodeDef):
    who: str
    text: str
    next_node_id: str


@dataclass(frozen=True, slots=True)
class SetNodeDef(NodeDef):
    vars: ResourceMapping
    next_node_id: str


@dataclass(frozen=True, slots=True)
class SpriteNodeDef(NodeDef):
    who: str
    sprite: str
    pos: SpritePosition
    next_node_id: str


@dataclass(frozen=True, slots=True)
class ChoiceNodeDef(NodeDef):
    text: str
    options: Tuple[ChoiceOptionDef, ...]


@dataclass(frozen=True, slots=True)
class CheckNodeDef(NodeDef):
    req: NumericMapping | None
    on_pass: str
    on_fail: str


@dataclass(frozen=True, slots=True)
class SfxNodeDef(NodeDef):
    sfx: str
    next_node_id: str


@dataclass(frozen=True, slots=True)
class MinigameNodeDef(NodeDef):
    """External minigame hand-off; ``minigame_id`` is the ``id`` field of the document."""

    minigame_id: str
    rules: str
    on_win: str
    on_lose: str


@dataclass(frozen=True, slots=True)
class JumpNodeDef(NodeDef):
    to: str


@dataclass(frozen=True, slots=True)
class EndNodeDef(NodeDef):
    summary: str | None = None
    save: bool | None = None


@dataclass(frozen=True, slots=True)
class UnknownNodeDef(NodeDef):
    """Node whose ``type`` has no variant; rejected only when a run reaches it."""

    type_name: str


@dataclass(frozen=True, slots=True)
class EpisodeDef:
    """Fully parsed episode: metadata plus the node graph.

    References between nodes are resolved lazily through :meth:`get_node`.
    """

    episode_id: str
    title: str
    start: str
    nodes: Dict[str, NodeDef] = field(default_factory=dict)

    def get_node(self, node_id: str) -> NodeDef:
        """Return the node with ``node_id``; unknown ids raise KeyError."""
        try:
            return self.nodes[node_id]
        except KeyError as exc:
            raise KeyError(node_id) from exc
