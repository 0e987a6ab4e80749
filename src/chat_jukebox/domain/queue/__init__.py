"""
Queue Bounded Context

Track requests, their prefetch lifecycle and the current playback session.
"""

from chat_jukebox.domain.queue.entities import PlaybackSession, TrackRequest
from chat_jukebox.domain.queue.repository import QueueRepository
from chat_jukebox.domain.queue.value_objects import (
    PlaybackState,
    SourceKind,
    TrackRequestId,
    TrackStatus,
    normalize_url,
)

__all__ = [
    # Entities
    "TrackRequest",
    "PlaybackSession",
    # Value Objects
    "TrackRequestId",
    "TrackStatus",
    "PlaybackState",
    "SourceKind",
    "normalize_url",
    # Repository
    "QueueRepository",
]
