"""Service-layer exceptions."""


class EpisodeRunError(Exception):
    """Base class for interpreter failures."""


class MissingNodeError(EpisodeRunError, KeyError):
    """Raised when the run reaches a node id that is not in the episode graph."""

    def __init__(self, node_id: str) -> None:
        super().__init__(node_id)
        self.node_id = node_id

    def __str__(self) -> str:
        return f"Node {self.node_id} not found"


class UnknownNodeTypeError(EpisodeRunError):
    """Raised when a node's variant has no handler in the runner."""


class ResourceUpdateError(EpisodeRunError, TypeError):
    """Raised when a node or option applies a numeric update to a text resource.

    The resource state is left exactly as it was before the update.
    """


class ChoiceRejectedError(EpisodeRunError, ValueError):
    """Raised when a selected option is unknown or fails its requirement."""


class RunStateError(EpisodeRunError):
    """Raised when a runner operation is invoked in the wrong run state."""


class PlaybackError(Exception):
    """Raised by presentation sinks when audio or rendering cannot start."""


class SaveLoadError(Exception):
    """Raised when save or load operations fail."""
