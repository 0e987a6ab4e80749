"""Domain events and the pub/sub bus that delivers them."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from chat_jukebox.domain.queue.value_objects import PlaybackState, TrackStatus
from chat_jukebox.domain.shared.datetime_utils import utcnow
from chat_jukebox.domain.shared.messages import LogTemplates
from chat_jukebox.domain.shared.types import NonEmptyStr, NonNegativeInt, UtcDatetimeField

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="DomainEvent")
EventHandler = Callable[[T], Awaitable[None]]


class DomainEvent(BaseModel):
    """Base class for all domain events."""

    model_config = ConfigDict(frozen=True)

    event_id: NonEmptyStr = Field(default_factory=lambda: str(uuid4()))
    occurred_at: UtcDatetimeField = Field(default_factory=utcnow)


# === Queue Events ===


class TrackEnqueued(DomainEvent):
    track_id: str
    track_title: str = ""
    requester_id: str = ""
    queue_position: NonNegativeInt = 0


class TrackRemoved(DomainEvent):
    track_id: str
    track_title: str = ""
    queue_position: NonNegativeInt = 0
    local_media_path: str | None = None
    thumbnail_path: str | None = None


class QueueReordered(DomainEvent):
    track_id: str
    from_position: NonNegativeInt = 0
    to_position: NonNegativeInt = 0


class QueueCleared(DomainEvent):
    track_count: NonNegativeInt = 0


class TrackUpdated(DomainEvent):
    track_id: str
    status: TrackStatus


# === Prefetch Events ===


class TrackPrefetchStarted(DomainEvent):
    track_id: str


class TrackPrefetchCompleted(DomainEvent):
    track_id: str
    local_media_path: str


class TrackPrefetchFailed(DomainEvent):
    track_id: str
    reason: str = ""
    removed_from_queue: bool = False


# === Playback Events ===


class PlaybackStateChanged(DomainEvent):
    previous: PlaybackState
    current: PlaybackState
    track_id: str | None = None


class TrackStartedPlaying(DomainEvent):
    track_id: str
    track_title: str = ""
    requester_id: str = ""
    duration_ms: NonNegativeInt | None = None


class TrackFinishedPlaying(DomainEvent):
    track_id: str
    track_title: str = ""
    was_skipped: bool = False


class QueueExhausted(DomainEvent):
    last_track_id: str | None = None


class SessionReset(DomainEvent):
    cleared_count: NonNegativeInt = 0


# === Event Bus ===


class EventBus:
    """In-memory pub/sub event bus for domain events.

    Handlers are called concurrently. A handler that raises is retried up to
    ``delivery_attempts`` times, so subscribers see every event at least
    once and must tolerate duplicates. Failures never reach the publisher.
    """

    def __init__(self, delivery_attempts: int = 3) -> None:
        self._handlers: dict[type[DomainEvent], list[EventHandler[Any]]] = defaultdict(list)
        self._delivery_attempts = max(1, delivery_attempts)

    def subscribe(self, event_type: type[T], handler: EventHandler[T]) -> None:
        self._handlers[event_type].append(handler)
        logger.debug("Subscribed handler to: %s", event_type.__name__)

    def unsubscribe(self, event_type: type[T], handler: EventHandler[T]) -> None:
        handlers = self._handlers[event_type]
        if handler in handlers:
            handlers.remove(handler)
            logger.debug("Unsubscribed handler from %s", event_type.__name__)

    async def publish(self, event: DomainEvent) -> None:
        event_type = type(event)
        handlers = list(self._handlers.get(event_type, []))

        if not handlers:
            logger.debug("No handlers for %s", event_type.__name__)
            return

        logger.debug("Publishing %s to %d handlers", event_type.__name__, len(handlers))

        async def deliver(handler: EventHandler[Any]) -> None:
            for attempt in range(1, self._delivery_attempts + 1):
                try:
                    await handler(event)
                    return
                except Exception:
                    logger.warning(
                        LogTemplates.EVENT_HANDLER_FAILED,
                        event_type.__name__,
                        attempt,
                        self._delivery_attempts,
                        exc_info=True,
                    )
            logger.error(
                LogTemplates.EVENT_HANDLER_GAVE_UP, event_type.__name__, self._delivery_attempts
            )

        async with asyncio.TaskGroup() as tg:
            for handler in handlers:
                tg.create_task(deliver(handler))

    def clear(self) -> None:
        """Remove all handlers."""
        self._handlers.clear()
        logger.debug("Cleared all event handlers")
