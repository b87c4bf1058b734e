"""Events emitted by the episode runner and the sink protocol that renders them."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping, Protocol, Sequence

from taleweave.core.types import NumericMapping, ResourceValue, SpritePosition
from taleweave.domain.defs import ChoiceOptionDef
from taleweave.domain.resources import format_value

_PREMIUM_PATTERN = re.compile(r"premium|iap", re.IGNORECASE)


@dataclass(slots=True)
class StoryEvent:
    """Base class for player-visible effects."""


@dataclass(slots=True)
class BackgroundChangedEvent(StoryEvent):
    bg: str


@dataclass(slots=True)
class MusicStartedEvent(StoryEvent):
    music: str
    loop: bool = True


@dataclass(slots=True)
class SoundEffectEvent(StoryEvent):
    sfx: str


@dataclass(slots=True)
class SpritePlacedEvent(StoryEvent):
    who: str
    sprite: str
    pos: SpritePosition


@dataclass(slots=True)
class DialogueLineEvent(StoryEvent):
    who: str
    text: str

    @property
    def line(self) -> str:
        return f"{self.who}: {self.text}"


@dataclass(slots=True)
class NarrationLineEvent(StoryEvent):
    """Plain text line: choice prompts, minigame notices, summaries and "The End"."""

    text: str


@dataclass(slots=True)
class MinigameStartedEvent(StoryEvent):
    minigame_id: str
    rules: str

    @property
    def line(self) -> str:
        return f"Minigame: {self.minigame_id} - {self.rules}"


@dataclass(slots=True)
class EpisodeEndedEvent(StoryEvent):
    summary: str | None
    save: bool | None = None


@dataclass(slots=True)
class ChoiceView:
    """One option as shown to the player."""

    option: ChoiceOptionDef
    selectable: bool
    cost_note: str = ""

    @property
    def option_id(self) -> str:
        return self.option.option_id

    @property
    def display_label(self) -> str:
        return self.option.label + self.cost_note


def describe_cost(gain: NumericMapping | None, meta: str | None) -> str:
    """Return the cost annotation appended to an option label, e.g. ``" (2 energy, premium)"``."""
    parts: list[str] = []
    if gain:
        energy = gain.get("energy")
        if isinstance(energy, (int, float)) and energy < 0:
            parts.append(f"{format_value(-energy)} energy")
        runes = gain.get("runes")
        if isinstance(runes, (int, float)) and runes < 0:
            parts.append(f"{format_value(-runes)} runes")
    if meta and _PREMIUM_PATTERN.search(meta):
        parts.append("premium")
    return f" ({', '.join(parts)})" if parts else ""


class PresentationSink(Protocol):
    """Host-side renderer for runner events.

    ``render`` may raise :class:`~taleweave.services.errors.PlaybackError` when a
    background, sprite or audio cue cannot be shown; the runner ignores it.
    ``present_choices`` blocks until the player picks an option and must never
    return one whose ``selectable`` flag is False.
    """

    def render(self, event: StoryEvent) -> None:
        ...

    def present_choices(
        self, choices: Sequence[ChoiceView], state: Mapping[str, ResourceValue]
    ) -> ChoiceOptionDef:
        ...
