"""Playback state machine: drives the current track through its lifecycle.

States run ``idle -> loading -> playing <-> paused`` and back to ``loading``
on skip or natural end. Leaving ``playing``/``paused`` for ``loading`` is the
act of claiming the current track: it happens without an intervening await,
so of two simultaneous triggers (a natural end racing a skip) exactly one
advances the queue. Dequeuing itself is serialized by ``_advance_lock``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Coroutine
from datetime import datetime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict

from chat_jukebox.domain.queue.entities import PlaybackSession, TrackRequest
from chat_jukebox.domain.queue.value_objects import PlaybackState, TrackStatus
from chat_jukebox.domain.shared.events import (
    PlaybackStateChanged,
    QueueExhausted,
    SessionReset,
    TrackFinishedPlaying,
    TrackStartedPlaying,
)
from chat_jukebox.domain.shared.exceptions import PermissionDenied
from chat_jukebox.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from chat_jukebox.application.interfaces.audio_output import AudioOutput
    from chat_jukebox.domain.queue.value_objects import TrackRequestId
    from chat_jukebox.domain.shared.events import EventBus

    from .media_cleanup import MediaCleanup
    from .prefetch_pipeline import PrefetchPipeline
    from .priority_service import PriorityService
    from .queue_store import QueueStore

logger = logging.getLogger(__name__)


class PlaybackSnapshot(BaseModel):
    """Read-only view of the current playback session."""

    model_config = ConfigDict(frozen=True)

    state: PlaybackState
    track: TrackRequest | None = None
    started_at: datetime | None = None
    elapsed_ms: int = 0


class PlaybackStateMachine:
    def __init__(
        self,
        *,
        queue_store: QueueStore,
        prefetch: PrefetchPipeline,
        audio_output: AudioOutput,
        priority_service: PriorityService,
        media_cleanup: MediaCleanup,
        event_bus: EventBus,
        transition_delay_ms: int = 100,
        cleanup_after_play: bool = True,
        head_ready_timeout_seconds: float = 120.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._queue_store = queue_store
        self._prefetch = prefetch
        self._audio = audio_output
        self._priority = priority_service
        self._media_cleanup = media_cleanup
        self._event_bus = event_bus
        self._transition_delay = transition_delay_ms / 1000
        self._cleanup_after_play = cleanup_after_play
        self._head_timeout = head_ready_timeout_seconds
        self._clock = clock

        self._session = PlaybackSession()
        self._advance_lock = asyncio.Lock()
        # Bumped by new_session so advances started before the reset give up.
        self._generation = 0
        self._last_track_id: str | None = None
        self._background: set[asyncio.Task[Any]] = set()

        self._audio.set_on_track_end_callback(self.handle_track_finished)

    # === Reads ===

    @property
    def state(self) -> PlaybackState:
        return self._session.state

    @property
    def current_track(self) -> TrackRequest | None:
        return self._session.track

    def elapsed_ms(self) -> int:
        return self._session.elapsed_ms(self._clock())

    def snapshot(self) -> PlaybackSnapshot:
        return PlaybackSnapshot(
            state=self._session.state,
            track=self._session.track,
            started_at=self._session.started_at,
            elapsed_ms=self.elapsed_ms(),
        )

    # === Play-next ===

    def start_if_idle(self) -> bool:
        """Kick off play-next in the background when nothing is playing."""
        if self._session.state != PlaybackState.IDLE or len(self._queue_store) == 0:
            return False
        self._spawn(self.play_next(), name="playback-start")
        return True

    async def play_next(self) -> TrackRequest | None:
        """Start the queue head, waiting for it to become ready.

        Returns:
            The track now playing, or None if the queue ran dry or a new
            session superseded this call.
        """
        async with self._advance_lock:
            try:
                return await self._advance()
            except Exception:
                logger.exception(LogTemplates.PLAYBACK_ADVANCE_FAILED)
                await self._go_idle()
                return None

    async def _advance(self) -> TrackRequest | None:
        generation = self._generation
        state = self._session.state
        if state.has_current_track:
            return self._session.track
        if state == PlaybackState.IDLE:
            self._session.transition_to(PlaybackState.LOADING)
            await self._publish_state(state)

        waiting_for: TrackRequestId | None = None
        deadline = 0.0
        while generation == self._generation:
            head = self._queue_store.peek()
            if head is None:
                await self._go_idle()
                return None

            if head.status == TrackStatus.FAILED:
                logger.warning(LogTemplates.PLAYBACK_HEAD_FAILED, head.id)
                await self._queue_store.remove_by_id(head.id)
                continue

            if head.is_ready:
                started = await self._start(head, generation)
                if started is not None:
                    return started
                continue

            if waiting_for != head.id:
                waiting_for = head.id
                deadline = self._clock() + self._head_timeout
                logger.info(LogTemplates.PLAYBACK_WAITING_FOR_HEAD, head.id, head.status.value)
                await self._prefetch.ensure(head.id)
                continue

            remaining = deadline - self._clock()
            if remaining <= 0:
                logger.warning(LogTemplates.PLAYBACK_HEAD_TIMEOUT, head.id, self._head_timeout)
                await self._queue_store.remove_by_id(head.id)
                continue

            await self._queue_store.wait_for_change(remaining)

        return None

    async def _start(self, head: TrackRequest, generation: int) -> TrackRequest | None:
        track = await self._queue_store.promote_head(head.id)
        if track is None:
            return None
        if generation != self._generation:
            self._queue_store.release_current()
            return None

        assert track.local_media_path is not None
        try:
            await self._audio.play(track.local_media_path)
        except Exception:
            logger.exception(LogTemplates.PLAYBACK_START_FAILED, track.id)
            self._queue_store.release_current()
            self._media_cleanup.delete_track_media(track)
            return None

        if generation != self._generation:
            # A new session started while the output was spawning.
            await self._audio.stop()
            self._queue_store.release_current()
            self._media_cleanup.delete_track_media(track)
            return None

        previous = self._session.state
        self._session.start(track, self._clock())
        logger.info(LogTemplates.PLAYBACK_STARTED, track.id, track.title)
        await self._publish_state(previous)
        await self._event_bus.publish(
            TrackStartedPlaying(
                track_id=str(track.id),
                track_title=track.title,
                requester_id=track.requester_id,
                duration_ms=track.duration_ms,
            )
        )
        await self._prefetch.trigger()
        return track

    async def _go_idle(self) -> None:
        previous = self._session.state
        self._session.reset()
        self._queue_store.release_current()
        if previous != PlaybackState.IDLE:
            logger.info(LogTemplates.PLAYBACK_QUEUE_EXHAUSTED)
            await self._publish_state(previous)
            await self._event_bus.publish(QueueExhausted(last_track_id=self._last_track_id))

    # === Leaving the current track ===

    async def skip(self, requester_id: str) -> TrackRequest | None:
        """Stop the current track and advance after the transition delay.

        Returns:
            The skipped track, or None if nothing was playing.

        Raises:
            PermissionDenied: If *requester_id* is neither a priority user nor
                the requester of the current track. Playback is untouched.
        """
        track = self._session.track
        if track is None or not self._session.state.has_current_track:
            return None

        if not track.was_requested_by(requester_id) and not await self._priority.is_priority(
            requester_id
        ):
            logger.info(LogTemplates.PLAYBACK_SKIP_DENIED, requester_id, track.id, track.requester_id)
            raise PermissionDenied(user_id=requester_id, operation="skip")

        previous = self._claim(track.id)
        if previous is None:
            return None

        await self._audio.stop()
        logger.info(LogTemplates.PLAYBACK_SKIPPED, track.id, requester_id)
        await self._retire(track, previous, was_skipped=True)
        self._spawn(self._advance_after_delay(self._generation), name="playback-skip")
        return track

    async def handle_track_finished(self) -> None:
        """Audio reached the end of the current file."""
        track = self._session.track
        previous = self._claim(track.id) if track is not None else None
        if track is None or previous is None:
            logger.debug(LogTemplates.PLAYBACK_IGNORED_END, track.id if track else None)
            return

        logger.info(LogTemplates.PLAYBACK_TRACK_FINISHED, track.id)
        await self._retire(track, previous, was_skipped=False)
        self._spawn(self._advance_after_delay(self._generation), name="playback-next")

    def _claim(self, track_id: TrackRequestId) -> PlaybackState | None:
        # No await allowed here: the state change is the ownership token.
        track = self._session.track
        previous = self._session.state
        if track is None or track.id != track_id or not previous.has_current_track:
            return None
        self._session.begin_loading()
        self._queue_store.release_current()
        return previous

    async def _retire(
        self, track: TrackRequest, previous: PlaybackState, *, was_skipped: bool
    ) -> None:
        await self._publish_state(previous, track_id=str(track.id))
        self._last_track_id = str(track.id)
        if self._cleanup_after_play:
            self._media_cleanup.delete_track_media(track)
        await self._event_bus.publish(
            TrackFinishedPlaying(
                track_id=str(track.id), track_title=track.title, was_skipped=was_skipped
            )
        )

    async def _advance_after_delay(self, generation: int) -> None:
        if self._transition_delay > 0:
            await asyncio.sleep(self._transition_delay)
        if generation == self._generation:
            await self.play_next()

    # === Controls ===

    async def pause(self) -> bool:
        if not self._session.is_playing:
            return False
        if not await self._audio.pause() or not self._session.is_playing:
            return False
        self._session.pause(self._clock())
        await self._publish_state(PlaybackState.PLAYING)
        return True

    async def resume(self) -> bool:
        if not self._session.is_paused:
            return False
        if not await self._audio.resume() or not self._session.is_paused:
            return False
        self._session.resume(self._clock())
        await self._publish_state(PlaybackState.PAUSED)
        return True

    async def seek(self, time_ms: int) -> int | None:
        """Move the playhead, clamped into ``[0, duration]``.

        Returns:
            The position actually sought to, or None without a current track.
        """
        track = self._session.track
        if track is None or not self._session.state.has_current_track:
            return None

        position = max(0, time_ms)
        if track.duration_ms is not None:
            position = min(position, track.duration_ms)

        await self._audio.seek(position)
        self._session.seek_to(position, self._clock())
        logger.info(LogTemplates.PLAYBACK_SEEK, track.id, position, time_ms)
        return position

    async def new_session(self) -> int:
        """Hard reset: stop audio, drop all prefetch work and empty the queue.

        Returns:
            Number of queued tracks discarded.
        """
        self._generation += 1
        previous = self._session.state
        current = self._session.reset()
        self._queue_store.release_current()

        await self._audio.stop()
        await self._prefetch.cancel_all()
        cleared = await self._queue_store.clear()

        for track in [*cleared, *([current] if current is not None else [])]:
            self._media_cleanup.delete_track_media(track)

        logger.info(LogTemplates.SESSION_RESET, len(cleared))
        await self._publish_state(previous)
        await self._event_bus.publish(SessionReset(cleared_count=len(cleared)))
        return len(cleared)

    # === Lifecycle ===

    async def drain(self) -> None:
        """Wait for background advances to settle."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def shutdown(self) -> None:
        self._generation += 1
        for task in list(self._background):
            task.cancel()
        await asyncio.gather(*list(self._background), return_exceptions=True)
        self._session.reset()
        self._queue_store.release_current()
        await self._audio.stop()

    # === Internals ===

    def _spawn(self, coro: Coroutine[Any, Any, Any], *, name: str) -> None:
        task = asyncio.create_task(coro, name=name)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _publish_state(
        self, previous: PlaybackState, *, track_id: str | None = None
    ) -> None:
        current = self._session.state
        if previous == current:
            return
        if track_id is None and self._session.track is not None:
            track_id = str(self._session.track.id)
        logger.debug(LogTemplates.PLAYBACK_STATE_CHANGED, previous.value, current.value, track_id)
        await self._event_bus.publish(
            PlaybackStateChanged(previous=previous, current=current, track_id=track_id)
        )
