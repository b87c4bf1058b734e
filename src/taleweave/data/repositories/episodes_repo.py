"""Repository for episode documents."""
from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, List

from taleweave.core.types import NumericMapping, ResourceMapping, SpritePosition
from taleweave.data.errors import DataValidationError
from taleweave.data.repositories.base import RepositoryBase
from taleweave.domain.defs import (
    BackgroundNodeDef,
    CheckNodeDef,
    ChoiceNodeDef,
    ChoiceOptionDef,
    EndNodeDef,
    EpisodeDef,
    JumpNodeDef,
    MinigameNodeDef,
    MusicNodeDef,
    NodeDef,
    SayNodeDef,
    SetNodeDef,
    SfxNodeDef,
    SpriteNodeDef,
    UnknownNodeDef,
)

_SPRITE_POSITIONS: tuple[SpritePosition, ...] = ("left", "right", "center")


class EpisodesRepository(RepositoryBase[EpisodeDef]):
    """Loads one episode per ``<episode_id>.json`` file and validates its structure.

    Only the shape of each node is checked here. Whether a referenced node id
    exists is decided by the runner when the id is reached.
    """

    def __init__(self, base_path: Path | str | None = None) -> None:
        super().__init__(".json", base_path)

    def _build(self, def_id: str, raw: dict[str, object]) -> EpisodeDef:
        return self._parse(raw, def_id)

    def _parse(self, raw: object, default_episode_id: str | None) -> EpisodeDef:
        document = self._require_mapping(raw, "episode")
        raw_id = document.get("episodeId", default_episode_id)
        episode_id = self._require_str(raw_id, "episode episodeId")
        ctx = f"episode '{episode_id}'"
        title = self._require_optional_str(document.get("title"), f"{ctx} title") or episode_id
        start = self._require_str(document.get("start"), f"{ctx} start")
        raw_nodes = self._require_mapping(document.get("nodes"), f"{ctx} nodes")
        nodes: Dict[str, NodeDef] = {}
        for node_id, node_payload in raw_nodes.items():
            node_ctx = f"{ctx} node '{node_id}'"
            node_data = self._require_mapping(node_payload, node_ctx)
            node_type = self._require_str(node_data.get("type"), f"{node_ctx} type")
            builder = self._builders().get(node_type)
            if builder is None:
                nodes[node_id] = UnknownNodeDef(id=node_id, type_name=node_type)
            else:
                nodes[node_id] = builder(node_id, node_data, node_ctx)
        return EpisodeDef(episode_id=episode_id, title=title, start=start, nodes=nodes)

    def _builders(self) -> Dict[str, Callable[[str, dict[str, object], str], NodeDef]]:
        return {
            "bg": self._build_bg,
            "music": self._build_music,
            "say": self._build_say,
            "set": self._build_set,
            "sprite": self._build_sprite,
            "choice": self._build_choice,
            "check": self._build_check,
            "sfx": self._build_sfx,
            "minigame": self._build_minigame,
            "jump": self._build_jump,
            "end": self._build_end,
        }

    def _build_bg(self, node_id: str, data: dict[str, object], ctx: str) -> NodeDef:
        return BackgroundNodeDef(
            id=node_id,
            bg=self._require_str(data.get("bg"), f"{ctx} bg"),
            next_node_id=self._next_node_id(data, ctx),
        )

    def _build_music(self, node_id: str, data: dict[str, object], ctx: str) -> NodeDef:
        return MusicNodeDef(
            id=node_id,
            music=self._require_str(data.get("music"), f"{ctx} music"),
            next_node_id=self._next_node_id(data, ctx),
        )

    def _build_say(self, node_id: str, data: dict[str, object], ctx: str) -> NodeDef:
        return SayNodeDef(
            id=node_id,
            who=self._require_str(data.get("who"), f"{ctx} who"),
            text=self._require_str(data.get("text"), f"{ctx} text"),
            next_node_id=self._next_node_id(data, ctx),
        )

    def _build_set(self, node_id: str, data: dict[str, object], ctx: str) -> NodeDef:
        raw_vars = self._require_mapping(data.get("vars"), f"{ctx} vars")
        values: ResourceMapping = {}
        for key, value in raw_vars.items():
            if isinstance(value, bool) or not isinstance(value, (int, float, str)):
                raise DataValidationError(f"{ctx} vars.{key} must be a string or number.")
            values[key] = value
        return SetNodeDef(id=node_id, vars=values, next_node_id=self._next_node_id(data, ctx))

    def _build_sprite(self, node_id: str, data: dict[str, object], ctx: str) -> NodeDef:
        pos = self._require_optional_str(data.get("pos"), f"{ctx} pos")
        return SpriteNodeDef(
            id=node_id,
            who=self._require_str(data.get("who"), f"{ctx} who"),
            sprite=self._require_str(data.get("sprite"), f"{ctx} sprite"),
            pos=pos if pos in _SPRITE_POSITIONS else "center",
            next_node_id=self._next_node_id(data, ctx),
        )

    def _build_choice(self, node_id: str, data: dict[str, object], ctx: str) -> NodeDef:
        raw_options = data.get("options")
        if not isinstance(raw_options, list):
            raise DataValidationError(f"{ctx} options must be a list.")
        options: List[ChoiceOptionDef] = []
        for index, entry in enumerate(raw_options):
            option_ctx = f"{ctx} options[{index}]"
            option = self._require_mapping(entry, option_ctx)
            raw_option_id = option.get("id", str(index))
            options.append(
                ChoiceOptionDef(
                    option_id=self._require_str(raw_option_id, f"{option_ctx} id"),
                    label=self._require_str(option.get("label"), f"{option_ctx} label"),
                    next_node_id=self._next_node_id(option, option_ctx),
                    gain=self._parse_numeric_mapping(option.get("gain"), f"{option_ctx} gain"),
                    req=self._parse_numeric_mapping(option.get("req"), f"{option_ctx} req"),
                    meta=self._require_optional_str(option.get("meta"), f"{option_ctx} meta"),
                )
            )
        return ChoiceNodeDef(
            id=node_id,
            text=self._require_optional_str(data.get("text"), f"{ctx} text") or "",
            options=tuple(options),
        )

    def _build_check(self, node_id: str, data: dict[str, object], ctx: str) -> NodeDef:
        return CheckNodeDef(
            id=node_id,
            req=self._parse_numeric_mapping(data.get("req"), f"{ctx} req"),
            on_pass=self._require_str(data.get("onPass"), f"{ctx} onPass"),
            on_fail=self._require_str(data.get("onFail"), f"{ctx} onFail"),
        )

    def _build_sfx(self, node_id: str, data: dict[str, object], ctx: str) -> NodeDef:
        return SfxNodeDef(
            id=node_id,
            sfx=self._require_str(data.get("sfx"), f"{ctx} sfx"),
            next_node_id=self._next_node_id(data, ctx),
        )

    def _build_minigame(self, node_id: str, data: dict[str, object], ctx: str) -> NodeDef:
        return MinigameNodeDef(
            id=node_id,
            minigame_id=self._require_str(data.get("id"), f"{ctx} id"),
            rules=self._require_optional_str(data.get("rules"), f"{ctx} rules") or "",
            on_win=self._require_str(data.get("onWin"), f"{ctx} onWin"),
            on_lose=self._require_str(data.get("onLose"), f"{ctx} onLose"),
        )

    def _build_jump(self, node_id: str, data: dict[str, object], ctx: str) -> NodeDef:
        return JumpNodeDef(id=node_id, to=self._require_str(data.get("to"), f"{ctx} to"))

    def _build_end(self, node_id: str, data: dict[str, object], ctx: str) -> NodeDef:
        save = data.get("save")
        if save is not None and not isinstance(save, bool):
            raise DataValidationError(f"{ctx} save must be a boolean if provided.")
        return EndNodeDef(
            id=node_id,
            summary=self._require_optional_str(data.get("summary"), f"{ctx} summary"),
            save=save,
        )

    def _next_node_id(self, data: dict[str, object], ctx: str) -> str:
        # An absent next ends the run at this node.
        return self._require_optional_str(data.get("next"), f"{ctx} next") or ""

    @staticmethod
    def _parse_numeric_mapping(value: object, context: str) -> NumericMapping | None:
        if value is None:
            return None
        if not isinstance(value, dict):
            raise DataValidationError(f"{context} must be an object if provided.")
        parsed: NumericMapping = {}
        for key, amount in value.items():
            if isinstance(amount, bool) or not isinstance(amount, (int, float)):
                raise DataValidationError(f"{context}.{key} must be a number.")
            parsed[key] = amount
        return parsed


def parse_episode(raw: object, *, default_episode_id: str | None = None) -> EpisodeDef:
    """Build an EpisodeDef from an already decoded episode document."""
    return EpisodesRepository()._parse(raw, default_episode_id)
