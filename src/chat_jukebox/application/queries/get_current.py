"""Query for retrieving the currently playing track."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel

from chat_jukebox.domain.queue.entities import TrackRequest
from chat_jukebox.domain.queue.value_objects import PlaybackState
from chat_jukebox.domain.shared.types import NonNegativeInt

if TYPE_CHECKING:
    from chat_jukebox.application.services.playback_machine import PlaybackStateMachine
    from chat_jukebox.application.services.queue_store import QueueStore


class CurrentTrackInfo(BaseModel):

    state: PlaybackState = PlaybackState.IDLE
    track: TrackRequest | None = None
    elapsed_ms: NonNegativeInt = 0
    queue_length: NonNegativeInt = 0

    @property
    def is_playing(self) -> bool:
        return self.state == PlaybackState.PLAYING

    @property
    def is_paused(self) -> bool:
        return self.state == PlaybackState.PAUSED


class GetCurrentTrackHandler:

    def __init__(self, *, playback: PlaybackStateMachine, queue_store: QueueStore) -> None:
        self._playback = playback
        self._queue_store = queue_store

    async def handle(self) -> CurrentTrackInfo:
        snapshot = self._playback.snapshot()
        return CurrentTrackInfo(
            state=snapshot.state,
            track=snapshot.track,
            elapsed_ms=snapshot.elapsed_ms,
            queue_length=len(self._queue_store),
        )
