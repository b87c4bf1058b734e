"""Resource state plus the requirement, gain and ``set`` rules that touch it."""
from __future__ import annotations

import logging
import re
from typing import Dict, Iterator, Mapping, MutableMapping

from taleweave.core.types import ResourceValue

logger = logging.getLogger(__name__)

_DELTA_PATTERN = re.compile(r"[-+]?\d+", re.ASCII)


class ResourceTypeError(TypeError):
    """Raised when a numeric update targets a string resource."""


class ResourceState(MutableMapping[str, ResourceValue]):
    """Mutable key/value store of player resources for a single run."""

    def __init__(self, initial: Mapping[str, ResourceValue] | None = None) -> None:
        self._values: Dict[str, ResourceValue] = dict(initial or {})

    def __getitem__(self, key: str) -> ResourceValue:
        return self._values[key]

    def __setitem__(self, key: str, value: ResourceValue) -> None:
        self._values[key] = value

    def __delitem__(self, key: str) -> None:
        del self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ResourceState({self._values!r})"

    def get_or_default(self, key: str, default: ResourceValue = 0) -> ResourceValue:
        """Read a resource, falling back to ``default`` when it was never set."""
        return self._values.get(key, default)

    def snapshot(self) -> Dict[str, ResourceValue]:
        """Return a plain-dict copy suitable for persistence."""
        return dict(self._values)


def _added(key: str, current: ResourceValue, delta: int | float) -> ResourceValue:
    if isinstance(current, str):
        raise ResourceTypeError(f"Resource '{key}' holds text {current!r}; cannot add {delta}.")
    return current + delta


def check_requirement(req: Mapping[str, int | float] | None, state: ResourceState) -> bool:
    """Return True when every threshold in ``req`` is met by ``state``.

    A missing requirement always passes. A string value under a required key is a
    type mismatch and counts as "requirement not met".
    """
    if not req:
        return True
    for key, threshold in req.items():
        value = state.get_or_default(key, 0)
        if isinstance(value, str):
            logger.debug("Requirement on '%s' compared against text value %r; treating as unmet.", key, value)
            return False
        if value < threshold:
            return False
    return True


def apply_gain(gain: Mapping[str, int | float] | None, state: ResourceState) -> None:
    """Add every delta in ``gain`` into ``state``; spending is a negative gain.

    Nothing is written unless every key accepts its delta.
    """
    if not gain:
        return
    pending: Dict[str, ResourceValue] = {}
    for key, delta in gain.items():
        pending[key] = _added(key, state.get_or_default(key, 0), delta)
    state.update(pending)


def is_delta_literal(value: object) -> bool:
    """Return True for strings such as ``"+3"``, ``"-10"`` or ``"7"``."""
    return isinstance(value, str) and _DELTA_PATTERN.fullmatch(value) is not None


def apply_set_vars(values: Mapping[str, ResourceValue], state: ResourceState) -> None:
    """Apply a ``set`` node's vars.

    Signed-integer strings are deltas added to the current value; everything else
    (numbers and other strings) overwrites the current value. A delta that hits a
    text resource raises ResourceTypeError with ``state`` left as it was.
    """
    pending: Dict[str, ResourceValue] = {}
    for key, value in values.items():
        if is_delta_literal(value):
            pending[key] = _added(key, state.get_or_default(key, 0), int(value))
        else:
            pending[key] = value
    state.update(pending)


def format_value(value: ResourceValue) -> str:
    """Render a resource for display; integral floats drop the trailing ``.0``."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


_PLACEHOLDER_PATTERN = re.compile(r"\{(.*?)\}")


def interpolate(template: str, state: ResourceState) -> str:
    """Replace each ``{key}`` in ``template`` with the current resource value (default 0)."""
    return _PLACEHOLDER_PATTERN.sub(lambda match: format_value(state.get_or_default(match.group(1), 0)), template)
