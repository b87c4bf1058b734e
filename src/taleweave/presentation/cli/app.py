"""Console-driven UI loops for taleweave."""
from __future__ import annotations

import logging
from typing import List, Literal, Mapping, Sequence

from taleweave.core.types import ResourceValue, TextDisplayMode
from taleweave.data.errors import DataError
from taleweave.data.repositories import EpisodesRepository
from taleweave.domain.defs import ChoiceOptionDef, EpisodeDef
from taleweave.domain.save_record import SaveRecord
from taleweave.presentation.cli import config
from taleweave.presentation.cli.render import (
    debug_enabled,
    render_heading,
    render_line,
    render_menu,
    render_stage_direction,
)
from taleweave.presentation.cli.save_slots import FileStore
from taleweave.services import (
    ChoiceView,
    EpisodeRunError,
    SaveGateway,
    SaveLoadError,
    StoryEvent,
    run_episode,
)
from taleweave.services.presentation import (
    BackgroundChangedEvent,
    DialogueLineEvent,
    MinigameStartedEvent,
    MusicStartedEvent,
    NarrationLineEvent,
    SoundEffectEvent,
    SpritePlacedEvent,
)

MenuAction = Literal["new_game", "continue", "options", "quit"]

logger = logging.getLogger(__name__)


class ConsoleSink:
    """Presentation sink that prints events and reads choices from stdin."""

    def __init__(self, text_mode: TextDisplayMode = "instant") -> None:
        self._text_mode = text_mode

    def render(self, event: StoryEvent) -> None:
        if isinstance(event, DialogueLineEvent):
            self._show_text(event.line)
        elif isinstance(event, NarrationLineEvent):
            if event.text:
                self._show_text(event.text)
        elif isinstance(event, MinigameStartedEvent):
            self._show_text(event.line)
        elif isinstance(event, BackgroundChangedEvent):
            render_stage_direction(f"Background: {event.bg}")
        elif isinstance(event, MusicStartedEvent):
            render_stage_direction(f"Music: {event.music}")
        elif isinstance(event, SoundEffectEvent):
            render_stage_direction(f"Sound: {event.sfx}")
        elif isinstance(event, SpritePlacedEvent):
            render_stage_direction(f"{event.who} ({event.pos}): {event.sprite}")

    def present_choices(
        self, choices: Sequence[ChoiceView], state: Mapping[str, ResourceValue]
    ) -> ChoiceOptionDef:
        if debug_enabled():
            render_stage_direction(f"State: {dict(state)}")
        render_menu("Choices", [_choice_label(view) for view in choices])
        while True:
            index = _prompt_choice(len(choices))
            view = choices[index]
            if view.selectable:
                return view.option
            print("That option is locked.")

    def _show_text(self, text: str) -> None:
        render_line(text)
        if self._text_mode == "step":
            input("")


def _choice_label(view: ChoiceView) -> str:
    label = view.display_label
    return label if view.selectable else f"{label} (locked)"


def main() -> None:
    """Start the interactive CLI session."""
    logging.basicConfig(
        level=logging.DEBUG if debug_enabled() else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    settings = config.load_config()
    repo = EpisodesRepository(config.content_dir(settings))
    gateway = SaveGateway(FileStore())
    print("=== Taleweave ===")
    episode_ids = repo.list_ids()
    if not episode_ids:
        print("No episodes found.")
        return
    episode_id = _select_episode(episode_ids, settings.get("last_episode"))
    try:
        episode = repo.get(episode_id)
    except DataError as exc:
        print(f"Unable to load episode: {exc}")
        return
    settings = _remember_episode(settings, episode_id)
    running = True
    while running:
        saved = _load_resumable(gateway, episode)
        action = _main_menu_loop(episode, can_continue=saved is not None)
        if action == "quit":
            running = False
        elif action == "options":
            settings = _options_menu(settings)
        elif action == "continue" and saved is not None:
            _play(episode, gateway, settings, saved)
        else:
            _play(episode, gateway, settings, None)
    print("Goodbye!")


def _main_menu_loop(episode: EpisodeDef, *, can_continue: bool) -> MenuAction:
    options = _main_menu_options(can_continue=can_continue)
    render_menu(episode.title, [label for label, _ in options])
    return options[_prompt_choice(len(options))][1]


def _main_menu_options(*, can_continue: bool) -> List[tuple[str, MenuAction]]:
    options: List[tuple[str, MenuAction]] = [("New Game", "new_game")]
    if can_continue:
        options.append(("Continue", "continue"))
    options.append(("Options", "options"))
    options.append(("Quit", "quit"))
    return options


def _select_episode(episode_ids: Sequence[str], last_episode: str | None = None) -> str:
    if len(episode_ids) == 1:
        return episode_ids[0]
    ordered = sorted(episode_ids, key=lambda episode_id: episode_id != last_episode)
    labels = [f"{episode_id} (last played)" if episode_id == last_episode else episode_id for episode_id in ordered]
    render_menu("Episodes", labels)
    return ordered[_prompt_choice(len(ordered))]


def _remember_episode(settings: Mapping[str, str], episode_id: str) -> dict[str, str]:
    updated = dict(settings)
    if updated.get("last_episode") != episode_id:
        updated["last_episode"] = episode_id
        config.save_config(updated)
    return updated


def _load_resumable(gateway: SaveGateway, episode: EpisodeDef) -> SaveRecord | None:
    try:
        record = gateway.load_for_episode(episode.episode_id)
    except SaveLoadError as exc:
        logger.warning("Ignoring unreadable save: %s", exc)
        return None
    if record is None or record.is_finished:
        return None
    return record


def _play(
    episode: EpisodeDef,
    gateway: SaveGateway,
    settings: Mapping[str, str],
    saved: SaveRecord | None,
) -> None:
    sink = ConsoleSink(text_mode=config.text_mode(settings))
    render_heading(episode.title)
    try:
        if saved is None:
            run_episode(episode, sink, gateway)
        else:
            run_episode(episode, sink, gateway, start_node=saved.node_id, initial_state=saved.resources)
    except EpisodeRunError as exc:
        print(f"Episode aborted: {exc}")


def _options_menu(settings: Mapping[str, str]) -> dict[str, str]:
    current = config.text_mode(settings)
    render_menu("Options", [f"Text display: {current} (toggle)", "Back"])
    updated = dict(settings)
    if _prompt_choice(2) == 0:
        updated["text_display_mode"] = "instant" if current == "step" else "step"
        config.save_config(updated)
    return updated


def _prompt_choice(choice_count: int) -> int:
    while True:
        raw = input("Select an option: ").strip()
        try:
            index = int(raw) - 1
        except ValueError:
            print("Please enter a number.")
            continue
        if 0 <= index < choice_count:
            return index
        print(f"Please enter a value between 1 and {choice_count}.")
