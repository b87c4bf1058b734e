"""Episode interpreter: walks the node graph one transition at a time."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Mapping

from taleweave.core.types import ResourceValue, RunStatus
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
from taleweave.domain.resources import (
    ResourceState,
    ResourceTypeError,
    apply_gain,
    apply_set_vars,
    check_requirement,
    interpolate,
)
from taleweave.domain.save_record import SAVE_RECORD_VERSION, SaveRecord
from taleweave.services.errors import (
    ChoiceRejectedError,
    MissingNodeError,
    PlaybackError,
    ResourceUpdateError,
    RunStateError,
    UnknownNodeTypeError,
)
from taleweave.services.presentation import (
    BackgroundChangedEvent,
    ChoiceView,
    DialogueLineEvent,
    EpisodeEndedEvent,
    MinigameStartedEvent,
    MusicStartedEvent,
    NarrationLineEvent,
    PresentationSink,
    SoundEffectEvent,
    SpritePlacedEvent,
    StoryEvent,
    describe_cost,
)
from taleweave.services.save_service import SaveGateway

logger = logging.getLogger(__name__)

END_LINE = "The End"

MinigameResolver = Callable[[MinigameNodeDef, ResourceState], bool]


@dataclass(slots=True)
class StepResult:
    """Outcome of a single ``step`` or ``choose`` call."""

    node_id: str
    status: RunStatus
    next_node_id: str | None = None
    events: List[StoryEvent] = field(default_factory=list)
    choices: List[ChoiceView] = field(default_factory=list)


class EpisodeRunner:
    """State machine that executes an episode node by node.

    The host drives the run: ``step`` dispatches the current node and, for a
    choice node, leaves the runner in ``awaiting_choice`` until ``choose`` is
    called. Every completed transition is persisted through the gateway, the
    terminal transition to ``""`` included.
    """

    def __init__(
        self,
        episode: EpisodeDef,
        sink: PresentationSink,
        gateway: SaveGateway,
        start_node: str | None = None,
        initial_state: Mapping[str, ResourceValue] | None = None,
        *,
        minigame_resolver: MinigameResolver | None = None,
    ) -> None:
        self._episode = episode
        self._sink = sink
        self._gateway = gateway
        self._minigame_resolver = minigame_resolver
        self._current_node_id = episode.start if start_node is None else start_node
        self._state = ResourceState(initial_state)
        self._status: RunStatus = "running" if self._current_node_id else "terminated"
        self._pending_choices: List[ChoiceView] = []
        logger.info(
            "Starting episode '%s' at node '%s' with %d resources.",
            episode.episode_id,
            self._current_node_id,
            len(self._state),
        )

    @property
    def episode(self) -> EpisodeDef:
        return self._episode

    @property
    def state(self) -> ResourceState:
        return self._state

    @property
    def status(self) -> RunStatus:
        return self._status

    @property
    def current_node_id(self) -> str:
        return self._current_node_id

    @property
    def finished(self) -> bool:
        return self._status == "terminated"

    @property
    def pending_choices(self) -> List[ChoiceView]:
        return list(self._pending_choices)

    def step(self) -> StepResult:
        """Dispatch the current node and advance, or suspend on a choice."""
        if self._status == "terminated":
            raise RunStateError("The episode run has already terminated.")
        if self._status == "awaiting_choice":
            raise RunStateError(f"Node '{self._current_node_id}' is waiting for a choice.")
        node = self._resolve(self._current_node_id)
        events: List[StoryEvent] = []
        logger.debug("Dispatching node '%s' (%s).", node.id, type(node).__name__)

        if isinstance(node, BackgroundNodeDef):
            self._emit(BackgroundChangedEvent(bg=node.bg), events)
            next_node_id = node.next_node_id
        elif isinstance(node, MusicNodeDef):
            self._emit(MusicStartedEvent(music=node.music), events)
            next_node_id = node.next_node_id
        elif isinstance(node, SayNodeDef):
            self._emit(DialogueLineEvent(who=node.who, text=node.text), events)
            next_node_id = node.next_node_id
        elif isinstance(node, SetNodeDef):
            self._update_resources(apply_set_vars, node.vars, node.id)
            next_node_id = node.next_node_id
        elif isinstance(node, SpriteNodeDef):
            self._emit(SpritePlacedEvent(who=node.who, sprite=node.sprite, pos=node.pos), events)
            next_node_id = node.next_node_id
        elif isinstance(node, ChoiceNodeDef):
            self._emit(NarrationLineEvent(text=node.text), events)
            self._pending_choices = self._build_choice_views(node)
            self._status = "awaiting_choice"
            return StepResult(
                node_id=node.id,
                status=self._status,
                events=events,
                choices=list(self._pending_choices),
            )
        elif isinstance(node, CheckNodeDef):
            next_node_id = node.on_pass if check_requirement(node.req, self._state) else node.on_fail
        elif isinstance(node, SfxNodeDef):
            self._emit(SoundEffectEvent(sfx=node.sfx), events)
            next_node_id = node.next_node_id
        elif isinstance(node, MinigameNodeDef):
            self._emit(MinigameStartedEvent(minigame_id=node.minigame_id, rules=node.rules), events)
            next_node_id = node.on_win if self._resolve_minigame(node) else node.on_lose
        elif isinstance(node, JumpNodeDef):
            next_node_id = node.to
        elif isinstance(node, EndNodeDef):
            summary = interpolate(node.summary, self._state) if node.summary else None
            if summary is not None:
                self._emit(NarrationLineEvent(text=summary), events)
            self._emit(NarrationLineEvent(text=END_LINE), events)
            self._emit(EpisodeEndedEvent(summary=summary, save=node.save), events)
            next_node_id = ""
        else:
            type_name = node.type_name if isinstance(node, UnknownNodeDef) else type(node).__name__
            raise UnknownNodeTypeError(f"Unknown node type: {type_name} (node '{node.id}')")

        return self._transition(node.id, next_node_id, events)

    def choose(self, option_id: str) -> StepResult:
        """Accept the player's selection on the pending choice node."""
        if self._status != "awaiting_choice":
            raise RunStateError("No choice is pending.")
        option = self._find_pending_option(option_id)
        if option is None:
            raise ChoiceRejectedError(f"Option '{option_id}' is not offered at node '{self._current_node_id}'.")
        # Selectability is evaluated again against the live state.
        if not check_requirement(option.req, self._state):
            raise ChoiceRejectedError(f"Option '{option_id}' does not meet its requirement.")
        self._update_resources(apply_gain, option.gain, self._current_node_id)
        self._pending_choices = []
        return self._transition(self._current_node_id, option.next_node_id, [])

    def _transition(self, node_id: str, next_node_id: str, events: List[StoryEvent]) -> StepResult:
        self._gateway.save(
            SaveRecord(
                episode_id=self._episode.episode_id,
                node_id=next_node_id,
                resources=self._state.snapshot(),
                version=SAVE_RECORD_VERSION,
            )
        )
        self._current_node_id = next_node_id
        if next_node_id:
            self._status = "running"
        else:
            self._status = "terminated"
            logger.info("Episode '%s' finished at node '%s'.", self._episode.episode_id, node_id)
        return StepResult(node_id=node_id, status=self._status, next_node_id=next_node_id, events=events)

    def _update_resources(self, update: Callable[..., None], values: Mapping | None, node_id: str) -> None:
        try:
            update(values, self._state)
        except ResourceTypeError as exc:
            raise ResourceUpdateError(f"{exc} (node '{node_id}')") from exc

    def _resolve(self, node_id: str) -> NodeDef:
        try:
            return self._episode.get_node(node_id)
        except KeyError as exc:
            raise MissingNodeError(node_id) from exc

    def _emit(self, event: StoryEvent, events: List[StoryEvent]) -> None:
        events.append(event)
        try:
            self._sink.render(event)
        except PlaybackError as exc:
            logger.debug("Ignoring playback failure for %s: %s", type(event).__name__, exc)

    def _build_choice_views(self, node: ChoiceNodeDef) -> List[ChoiceView]:
        return [
            ChoiceView(
                option=option,
                selectable=check_requirement(option.req, self._state),
                cost_note=describe_cost(option.gain, option.meta),
            )
            for option in node.options
        ]

    def _find_pending_option(self, option_id: str) -> ChoiceOptionDef | None:
        for view in self._pending_choices:
            if view.option_id == option_id:
                return view.option
        return None

    def _resolve_minigame(self, node: MinigameNodeDef) -> bool:
        if self._minigame_resolver is None:
            return True
        return bool(self._minigame_resolver(node, self._state))


def run_episode(
    episode: EpisodeDef,
    sink: PresentationSink,
    gateway: SaveGateway,
    start_node: str | None = None,
    initial_state: Mapping[str, ResourceValue] | None = None,
    *,
    yield_step: Callable[[], None] | None = None,
    minigame_resolver: MinigameResolver | None = None,
) -> ResourceState:
    """Run ``episode`` to completion and return the final resource state.

    ``yield_step`` is called once after every non-terminal transition so the
    host can flush rendering before the next node. Rejected selections are
    logged and the choices are presented again.
    """
    runner = EpisodeRunner(
        episode,
        sink,
        gateway,
        start_node=start_node,
        initial_state=initial_state,
        minigame_resolver=minigame_resolver,
    )
    while not runner.finished:
        result = runner.step()
        while runner.status == "awaiting_choice":
            selection = sink.present_choices(result.choices, runner.state)
            try:
                runner.choose(selection.option_id)
            except ChoiceRejectedError as exc:
                logger.warning("Choice rejected at node '%s': %s", runner.current_node_id, exc)
                result.choices = runner.pending_choices
        if not runner.finished and yield_step is not None:
            yield_step()
    return runner.state
