"""Service layer exports."""

from .episode_runner import EpisodeRunner, StepResult, run_episode
from .errors import (
    ChoiceRejectedError,
    EpisodeRunError,
    MissingNodeError,
    PlaybackError,
    ResourceUpdateError,
    RunStateError,
    SaveLoadError,
    UnknownNodeTypeError,
)
from .presentation import ChoiceView, PresentationSink, StoryEvent, describe_cost
from .save_service import MemoryStore, SaveGateway, SaveService

__all__ = [
    "ChoiceRejectedError",
    "ChoiceView",
    "EpisodeRunError",
    "EpisodeRunner",
    "MemoryStore",
    "MissingNodeError",
    "PlaybackError",
    "PresentationSink",
    "ResourceUpdateError",
    "RunStateError",
    "SaveGateway",
    "SaveLoadError",
    "SaveService",
    "StepResult",
    "StoryEvent",
    "UnknownNodeTypeError",
    "describe_cost",
    "run_episode",
]
