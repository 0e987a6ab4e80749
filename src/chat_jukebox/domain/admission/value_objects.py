"""Value objects for the admission (rate limiting) bounded context."""

from __future__ import annotations

from enum import Enum


class CommandType(Enum):
    """Command types gated by the admission controller."""

    PLAY = "play"
    PLAYLIST = "playlist"

    def __str__(self) -> str:
        return self.value
