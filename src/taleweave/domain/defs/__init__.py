"""Domain definition exports."""

from .episode_def import (
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

__all__ = [
    "BackgroundNodeDef",
    "CheckNodeDef",
    "ChoiceNodeDef",
    "ChoiceOptionDef",
    "EndNodeDef",
    "EpisodeDef",
    "JumpNodeDef",
    "MinigameNodeDef",
    "MusicNodeDef",
    "NodeDef",
    "SayNodeDef",
    "SetNodeDef",
    "SfxNodeDef",
    "SpriteNodeDef",
    "UnknownNodeDef",
]
