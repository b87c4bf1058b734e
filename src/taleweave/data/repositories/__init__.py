"""Repository exports."""

from .episodes_repo import EpisodesRepository, parse_episode

__all__ = [
    "EpisodesRepository",
    "parse_episode",
]
