"""Prefetch pipeline: resolves and downloads upcoming tracks in the background.

Each track is handled by its own task. Tasks share a concurrency cap of
``prefetch_count`` (or ``max_concurrent_downloads`` when ``prefetch_count``
is 0, meaning the whole queue) so the number of resolver and downloader
processes stays bounded. A failed track is marked ``failed`` and left
alone; siblings keep going. When a task finishes it refills the lookahead
window.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from chat_jukebox.domain.queue.value_objects import (
    SourceKind,
    TrackRequestId,
    TrackStatus,
    parse_search_hint,
)
from chat_jukebox.domain.shared.events import (
    TrackPrefetchCompleted,
    TrackPrefetchFailed,
    TrackPrefetchStarted,
    TrackRemoved,
)
from chat_jukebox.domain.shared.exceptions import DownloadFailure, ResolutionFailure
from chat_jukebox.domain.shared.messages import LogTemplates
from chat_jukebox.domain.shared.types import NonNegativeInt, PositiveInt

from .queue_store import DuplicateEnqueue

if TYPE_CHECKING:
    from chat_jukebox.application.interfaces.media_downloader import MediaDownloader
    from chat_jukebox.application.interfaces.media_resolver import MediaResolver
    from chat_jukebox.domain.queue.entities import TrackRequest
    from chat_jukebox.domain.shared.events import EventBus

    from .media_cleanup import MediaCleanup
    from .queue_store import QueueStore
    from .runtime_config import RuntimeConfig

logger = logging.getLogger(__name__)


class PrefetchState(BaseModel):
    """Snapshot of the pipeline for dashboards."""

    model_config = ConfigDict(frozen=True)

    enabled: bool
    prefetch_count: NonNegativeInt
    concurrency_cap: PositiveInt
    in_flight: list[str]
    scheduled: list[str]


class PrefetchPipeline:
    def __init__(
        self,
        *,
        queue_store: QueueStore,
        resolver: MediaResolver,
        downloader: MediaDownloader,
        runtime_config: RuntimeConfig,
        media_cleanup: MediaCleanup,
        event_bus: EventBus,
        download_dir: Path,
        max_concurrent_downloads: int = 2,
    ) -> None:
        self._queue_store = queue_store
        self._resolver = resolver
        self._downloader = downloader
        self._runtime_config = runtime_config
        self._media_cleanup = media_cleanup
        self._event_bus = event_bus
        self._download_dir = download_dir
        self._max_concurrent = max(1, max_concurrent_downloads)

        self._tasks: dict[TrackRequestId, asyncio.Task[None]] = {}
        self._in_flight: set[TrackRequestId] = set()
        self._slots = asyncio.Condition()
        self._cap = self._max_concurrent
        self._peak_in_flight = 0
        self._subscribed = False

    # === Lifecycle ===

    def start(self) -> None:
        if self._subscribed:
            return
        self._download_dir.mkdir(parents=True, exist_ok=True)
        self._event_bus.subscribe(TrackRemoved, self._on_track_removed)
        self._subscribed = True

    async def stop(self) -> None:
        if self._subscribed:
            self._event_bus.unsubscribe(TrackRemoved, self._on_track_removed)
            self._subscribed = False
        await self.cancel_all()

    # === Triggers ===

    async def trigger(self) -> int:
        """Fill the lookahead window. Does nothing while prefetch is disabled.

        Returns:
            Number of newly scheduled tracks.
        """
        perf = await self._runtime_config.performance()
        if not perf.prefetch_next:
            logger.debug(LogTemplates.PREFETCH_DISABLED)
            return 0

        candidates = self._candidates()
        if perf.prefetch_count > 0:
            room = max(0, perf.prefetch_count - len(self._tasks))
            candidates = candidates[:room]
        return await self._schedule(candidates, perf.prefetch_count)

    async def prefetch_all(self) -> int:
        """Schedule every pending track in the queue, regardless of the lookahead."""
        perf = await self._runtime_config.performance()
        return await self._schedule(self._candidates(), perf.prefetch_count)

    async def ensure(self, track_id: TrackRequestId) -> bool:
        """Make sure *track_id* is being prefetched, even with prefetch disabled.

        Returns:
            True if the track is ready or has a task working on it.
        """
        track = self._queue_store.get(track_id)
        if track is None or track.status == TrackStatus.FAILED:
            return False
        if track.is_ready or track_id in self._tasks:
            return True
        perf = await self._runtime_config.performance()
        await self._schedule([track], perf.prefetch_count)
        return True

    def cancel(self, track_id: TrackRequestId) -> bool:
        """Cancel the task for one track; other tracks are untouched."""
        task = self._tasks.get(track_id)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    async def cancel_all(self) -> int:
        """Cancel every pending and in-flight prefetch and wait for them to unwind."""
        tasks = [t for t in self._tasks.values() if not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        return len(tasks)

    async def wait_idle(self) -> None:
        """Wait until no prefetch task is left, including refills they schedule."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    # === Introspection ===

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    @property
    def peak_in_flight(self) -> int:
        return self._peak_in_flight

    async def state(self) -> PrefetchState:
        perf = await self._runtime_config.performance()
        return PrefetchState(
            enabled=perf.prefetch_next,
            prefetch_count=perf.prefetch_count,
            concurrency_cap=self._cap_for(perf.prefetch_count),
            in_flight=sorted(str(t) for t in self._in_flight),
            scheduled=sorted(str(t) for t in self._tasks),
        )

    # === Scheduling ===

    def _candidates(self) -> list[TrackRequest]:
        return [
            track
            for track in self._queue_store.get_queue()
            if track.status == TrackStatus.QUEUED and track.id not in self._tasks
        ]

    def _cap_for(self, prefetch_count: int) -> int:
        if prefetch_count > 0:
            return min(prefetch_count, self._max_concurrent)
        return self._max_concurrent

    async def _schedule(self, tracks: list[TrackRequest], prefetch_count: int) -> int:
        cap = self._cap_for(prefetch_count)
        if cap != self._cap:
            async with self._slots:
                self._cap = cap
                self._slots.notify_all()

        scheduled = 0
        for track in tracks:
            if track.id in self._tasks:
                continue
            self._tasks[track.id] = asyncio.create_task(
                self._run(track.id), name=f"prefetch-{track.id}"
            )
            scheduled += 1

        if scheduled:
            logger.debug(LogTemplates.PREFETCH_SCHEDULED, scheduled, cap)
        return scheduled

    async def _acquire_slot(self, track_id: TrackRequestId) -> None:
        async with self._slots:
            await self._slots.wait_for(lambda: len(self._in_flight) < self._cap)
            self._in_flight.add(track_id)
            self._peak_in_flight = max(self._peak_in_flight, len(self._in_flight))

    async def _release_slot(self, track_id: TrackRequestId) -> None:
        self._in_flight.discard(track_id)
        async with self._slots:
            self._slots.notify_all()

    async def _run(self, track_id: TrackRequestId) -> None:
        try:
            await self._acquire_slot(track_id)
            try:
                await self._prefetch_track(track_id)
            finally:
                await self._release_slot(track_id)
        except asyncio.CancelledError:
            logger.info(LogTemplates.PREFETCH_CANCELLED, track_id)
            raise
        except Exception:
            # Left queued; the next external trigger retries it.
            logger.exception(LogTemplates.PREFETCH_UNEXPECTED_ERROR, track_id)
            return
        finally:
            if self._tasks.get(track_id) is asyncio.current_task():
                del self._tasks[track_id]

        await self.trigger()

    async def _on_track_removed(self, event: TrackRemoved) -> None:
        self.cancel(TrackRequestId(event.track_id))

    # === Per-track work ===

    async def _prefetch_track(self, track_id: TrackRequestId) -> None:
        track = self._queue_store.get(track_id)
        if track is None or track.status.is_terminal_for_prefetch:
            return

        resolving = await self._queue_store.update(track.with_status(TrackStatus.RESOLVING))
        if resolving is None or isinstance(resolving, DuplicateEnqueue):
            return
        track = resolving

        logger.info(LogTemplates.PREFETCH_STARTED, track.id, track.source_ref)
        await self._event_bus.publish(TrackPrefetchStarted(track_id=str(track.id)))

        try:
            track = await self._resolve(track)
        except ResolutionFailure as e:
            await self._fail(track, e.reason, remove=e.no_results)
            return

        stored = await self._queue_store.update(track)
        if stored is None:
            return
        if isinstance(stored, DuplicateEnqueue):
            logger.info(
                LogTemplates.QUEUE_DUPLICATE, stored.existing.id, track.requester_id, track.dedup_key
            )
            await self._queue_store.remove_by_id(track.id)
            return

        assert track.resolved_url is not None
        try:
            media = await self._downloader.download(
                track.resolved_url, self._download_dir / str(track.id)
            )
        except DownloadFailure as e:
            await self._fail(track, e.reason, remove=False)
            return

        ready = track.mark_ready(
            media.path, thumbnail_path=media.thumbnail_path, duration_ms=media.duration_ms
        )
        stored = await self._queue_store.update(ready)
        if stored is None or isinstance(stored, DuplicateEnqueue):
            logger.info(LogTemplates.PREFETCH_ORPHANED, track.id)
            self._media_cleanup.delete_paths([media.path, media.thumbnail_path])
            return

        logger.info(LogTemplates.PREFETCH_COMPLETED, track.id, media.path)
        await self._event_bus.publish(
            TrackPrefetchCompleted(track_id=str(track.id), local_media_path=media.path)
        )

    async def _resolve(self, track: TrackRequest) -> TrackRequest:
        if track.resolved_url is None:
            if self._resolver.classify(track.source_ref) == SourceKind.SEARCH:
                artist, title = parse_search_hint(track.source_ref)
                media = await self._resolver.resolve(
                    track.source_ref, expected_title=title, expected_artist=artist
                )
            else:
                media = await self._resolver.resolve(track.source_ref)
        elif track.duration_ms is None:
            media = await self._resolver.fetch_metadata(track.resolved_url)
        else:
            return track

        return track.with_resolution(
            url=media.url, title=media.title, artist=media.artist, duration_ms=media.duration_ms
        )

    async def _fail(self, track: TrackRequest, reason: str, *, remove: bool) -> None:
        logger.warning(LogTemplates.PREFETCH_FAILED, track.id, track.requester_id, reason)
        if remove:
            logger.info(LogTemplates.PREFETCH_NO_RESULTS, track.id)
            await self._queue_store.remove_by_id(track.id)
        else:
            latest = self._queue_store.get(track.id)
            if latest is not None:
                await self._queue_store.update(latest.mark_failed(reason))
        await self._event_bus.publish(
            TrackPrefetchFailed(track_id=str(track.id), reason=reason, removed_from_queue=remove)
        )
