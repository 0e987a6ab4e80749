"""Query for retrieving the pending queue."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from chat_jukebox.domain.queue.entities import TrackRequest
from chat_jukebox.domain.shared.types import NonNegativeInt

if TYPE_CHECKING:
    from chat_jukebox.application.services.queue_store import QueueStore


class QueueInfo(BaseModel):

    tracks: list[TrackRequest] = Field(default_factory=list)
    current_track: TrackRequest | None = None
    total_duration_ms: NonNegativeInt = 0

    @property
    def length(self) -> int:
        return len(self.tracks)

    @property
    def is_empty(self) -> bool:
        return len(self.tracks) == 0


class GetQueueHandler:

    def __init__(self, *, queue_store: QueueStore) -> None:
        self._queue_store = queue_store

    async def handle(self) -> QueueInfo:
        tracks = list(self._queue_store.get_queue())
        total_duration = sum(t.duration_ms for t in tracks if t.duration_ms is not None)
        return QueueInfo(
            tracks=tracks,
            current_track=self._queue_store.current,
            total_duration_ms=total_duration,
        )
