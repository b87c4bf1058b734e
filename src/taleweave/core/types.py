"""Shared type aliases for the core and domain layers."""
from typing import Dict, Literal, Union

ResourceValue = Union[int, float, str]
ResourceMapping = Dict[str, ResourceValue]
NumericMapping = Dict[str, Union[int, float]]
SpritePosition = Literal["left", "right", "center"]
RunStatus = Literal["running", "awaiting_choice", "terminated"]
TextDisplayMode = Literal["instant", "step"]

__all__ = [
    "NumericMapping",
    "ResourceMapping",
    "ResourceValue",
    "RunStatus",
    "SpritePosition",
    "TextDisplayMode",
]
