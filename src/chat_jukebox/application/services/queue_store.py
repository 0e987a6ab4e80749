"""Queue store: ordered, deduplicated pending track requests.

All mutations go through one writer lock and are persisted before the call
returns. When persistence fails the in-memory change is rolled back and
``PersistenceFailure`` is raised, so callers never observe a mutation that
a restart would lose.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from chat_jukebox.domain.queue.entities import TrackRequest
from chat_jukebox.domain.queue.value_objects import TrackRequestId, TrackStatus, normalize_url
from chat_jukebox.domain.shared.events import (
    QueueCleared,
    QueueReordered,
    TrackEnqueued,
    TrackRemoved,
    TrackUpdated,
)
from chat_jukebox.domain.shared.exceptions import PersistenceFailure
from chat_jukebox.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from chat_jukebox.domain.queue.repository import QueueRepository
    from chat_jukebox.domain.shared.events import DomainEvent, EventBus

logger = logging.getLogger(__name__)


class DuplicateEnqueue(BaseModel):
    """Returned instead of inserting a track whose content is already held."""

    model_config = ConfigDict(frozen=True)

    existing: TrackRequest
    requested: TrackRequest

    @property
    def is_current(self) -> bool:
        return self.existing.status == TrackStatus.PLAYING


class QueueStore:
    def __init__(self, *, queue_repository: QueueRepository, event_bus: EventBus) -> None:
        self._repo = queue_repository
        self._event_bus = event_bus
        self._tracks: list[TrackRequest] = []
        self._current: TrackRequest | None = None
        self._lock = asyncio.Lock()
        self._changed = asyncio.Condition()

    # === Reads ===

    def get_queue(self) -> tuple[TrackRequest, ...]:
        """Ordered read-only snapshot of the pending queue."""
        return tuple(self._tracks)

    def __len__(self) -> int:
        return len(self._tracks)

    @property
    def current(self) -> TrackRequest | None:
        """The track that left the queue to become the playing track."""
        return self._current

    def peek(self) -> TrackRequest | None:
        return self._tracks[0] if self._tracks else None

    def get(self, track_id: TrackRequestId) -> TrackRequest | None:
        for track in self._tracks:
            if track.id == track_id:
                return track
        return None

    def index_of(self, track_id: TrackRequestId) -> int | None:
        for index, track in enumerate(self._tracks):
            if track.id == track_id:
                return index
        return None

    def contains_content(self, source: str) -> TrackRequest | None:
        """Find a queued or current track holding the same content as *source*."""
        return self._find_duplicate(normalize_url(source))

    def _find_duplicate(
        self, key: str, *, ignore: TrackRequestId | None = None
    ) -> TrackRequest | None:
        if self._current is not None and self._current.dedup_key == key:
            return self._current
        for track in self._tracks:
            if track.id != ignore and track.dedup_key == key:
                return track
        return None

    # === Mutations ===

    async def add(self, track: TrackRequest) -> TrackRequest | DuplicateEnqueue:
        """Append *track* unless its content is already queued or playing."""
        async with self._lock:
            existing = self._find_duplicate(track.dedup_key)
            if existing is not None:
                logger.info(
                    LogTemplates.QUEUE_DUPLICATE, existing.id, track.requester_id, track.dedup_key
                )
                return DuplicateEnqueue(existing=existing, requested=track)

            snapshot = list(self._tracks)
            position = len(self._tracks)
            self._tracks.append(track)
            await self._persist("add", track.id, snapshot)

        logger.info(
            LogTemplates.QUEUE_TRACK_ADDED, track.id, track.title, track.requester_id, position
        )
        await self._announce(
            TrackEnqueued(
                track_id=str(track.id),
                track_title=track.title,
                requester_id=track.requester_id,
                queue_position=position,
            )
        )
        return track

    async def remove(self, index: int) -> TrackRequest | None:
        """Remove the track at *index*; None when out of range."""
        async with self._lock:
            if not 0 <= index < len(self._tracks):
                return None
            snapshot = list(self._tracks)
            removed = self._tracks.pop(index)
            await self._persist("remove", removed.id, snapshot)

        await self._announce_removed(removed, index)
        return removed

    async def remove_by_id(self, track_id: TrackRequestId) -> TrackRequest | None:
        async with self._lock:
            index = self.index_of(track_id)
            if index is None:
                return None
            snapshot = list(self._tracks)
            removed = self._tracks.pop(index)
            await self._persist("remove", removed.id, snapshot)

        await self._announce_removed(removed, index)
        return removed

    async def reorder(self, from_index: int, to_index: int) -> bool:
        """Move a track; every other track keeps its relative order."""
        async with self._lock:
            if not (0 <= from_index < len(self._tracks) and 0 <= to_index < len(self._tracks)):
                return False
            if from_index == to_index:
                return True
            snapshot = list(self._tracks)
            track = self._tracks.pop(from_index)
            self._tracks.insert(to_index, track)
            await self._persist("reorder", track.id, snapshot)

        logger.info(LogTemplates.QUEUE_REORDERED, track.id, from_index, to_index)
        await self._announce(
            QueueReordered(track_id=str(track.id), from_position=from_index, to_position=to_index)
        )
        return True

    async def update(self, track: TrackRequest) -> TrackRequest | DuplicateEnqueue | None:
        """Replace the queued entry with the same id.

        Returns None if the track has left the queue, or ``DuplicateEnqueue``
        if its new content collides with another held track.
        """
        async with self._lock:
            index = self.index_of(track.id)
            if index is None:
                return None
            existing = self._find_duplicate(track.dedup_key, ignore=track.id)
            if existing is not None:
                return DuplicateEnqueue(existing=existing, requested=track)
            previous = self._tracks[index]
            if previous == track:
                return track
            snapshot = list(self._tracks)
            self._tracks[index] = track
            await self._persist("update", track.id, snapshot)

        if previous.status != track.status:
            await self._announce(TrackUpdated(track_id=str(track.id), status=track.status))
        else:
            await self._notify()
        return track

    async def clear(self) -> list[TrackRequest]:
        """Empty the queue, returning what was removed."""
        async with self._lock:
            removed = list(self._tracks)
            if not removed:
                return []
            self._tracks = []
            try:
                await self._repo.clear()
            except Exception as e:
                self._tracks = removed
                logger.exception(LogTemplates.QUEUE_PERSIST_FAILED, "clear", None)
                raise PersistenceFailure("clear") from e

        logger.info(LogTemplates.QUEUE_CLEARED, len(removed))
        await self._announce(QueueCleared(track_count=len(removed)))
        return removed

    async def promote_head(self, track_id: TrackRequestId) -> TrackRequest | None:
        """Dequeue the head into the current slot if it is still *track_id*."""
        async with self._lock:
            head = self.peek()
            if head is None or head.id != track_id:
                return None
            snapshot = list(self._tracks)
            self._tracks.pop(0)
            await self._persist("dequeue", head.id, snapshot)
            self._current = head.with_status(TrackStatus.PLAYING)

        await self._notify()
        return self._current

    def release_current(self) -> TrackRequest | None:
        """Clear the current slot, returning the track that held it."""
        previous, self._current = self._current, None
        return previous

    async def load(self) -> int:
        """Restore the persisted queue.

        Tracks interrupted mid-prefetch, and ready tracks whose file is gone,
        return to ``queued`` so prefetch picks them up again.

        Returns:
            Number of restored tracks.
        """
        async with self._lock:
            try:
                stored = await self._repo.load()
            except Exception as e:
                logger.exception(LogTemplates.QUEUE_PERSIST_FAILED, "load", None)
                raise PersistenceFailure("load") from e

            restored: list[TrackRequest] = []
            changed = False
            for track in stored:
                if track.status in (TrackStatus.RESOLVING, TrackStatus.PLAYING) or (
                    track.status == TrackStatus.READY
                    and not (track.local_media_path and Path(track.local_media_path).exists())
                ):
                    logger.info(LogTemplates.QUEUE_ENTRY_RESET, track.id, track.status.value)
                    track = track.reset_for_prefetch()
                    changed = True
                restored.append(track)

            snapshot = list(self._tracks)
            self._tracks = restored
            if changed:
                await self._persist("load", None, snapshot)

        logger.info(LogTemplates.QUEUE_RESTORED, len(restored))
        await self._notify()
        return len(restored)

    # === Change notification ===

    async def wait_for_change(self, timeout: float) -> bool:
        """Block until the next mutation or until *timeout* seconds pass.

        Returns:
            False if the timeout elapsed first.
        """
        async with self._changed:
            try:
                await asyncio.wait_for(self._changed.wait(), timeout)
            except TimeoutError:
                return False
        return True

    async def _notify(self) -> None:
        async with self._changed:
            self._changed.notify_all()

    async def _announce(self, event: DomainEvent) -> None:
        await self._notify()
        await self._event_bus.publish(event)

    async def _announce_removed(self, removed: TrackRequest, index: int) -> None:
        logger.info(LogTemplates.QUEUE_TRACK_REMOVED, removed.id, index)
        await self._announce(
            TrackRemoved(
                track_id=str(removed.id),
                track_title=removed.title,
                queue_position=index,
                local_media_path=removed.local_media_path,
                thumbnail_path=removed.thumbnail_path,
            )
        )

    async def _persist(
        self,
        operation: str,
        track_id: TrackRequestId | None,
        rollback: list[TrackRequest],
    ) -> None:
        try:
            await self._repo.save(list(self._tracks))
        except Exception as e:
            self._tracks = rollback
            logger.exception(LogTemplates.QUEUE_PERSIST_FAILED, operation, track_id)
            raise PersistenceFailure(operation) from e
