"""Port interface for the local audio output process."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from chat_jukebox.domain.shared.types import NonEmptyStr, NonNegativeInt

TrackEndCallback = Callable[[], Awaitable[None]]


class AudioOutput(ABC):
    """Interface for playing a downloaded file.

    Only one file plays at a time. ``stop()`` is an intentional stop and
    must not fire the track-end callback; a file reaching its end must.
    """

    @abstractmethod
    async def play(self, media_path: NonEmptyStr, *, start_ms: NonNegativeInt = 0) -> None:
        """Start playing *media_path*, replacing anything already playing."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop current playback."""
        ...

    @abstractmethod
    async def pause(self) -> bool:
        """Pause current playback."""
        ...

    @abstractmethod
    async def resume(self) -> bool:
        """Resume paused playback."""
        ...

    @abstractmethod
    async def seek(self, position_ms: NonNegativeInt) -> None:
        """Move the playhead of the current file."""
        ...

    @abstractmethod
    def is_active(self) -> bool:
        """Whether a file is loaded (playing or paused)."""
        ...

    @abstractmethod
    def set_on_track_end_callback(self, callback: TrackEndCallback) -> None:
        """Set callback for when a file plays to its end."""
        ...
