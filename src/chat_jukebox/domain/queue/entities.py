"""Core domain entities for the queue and playback bounded context."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from chat_jukebox.domain.queue.value_objects import (
    PlaybackState,
    TrackRequestId,
    TrackRequestIdField,
    TrackStatus,
    normalize_url,
)
from chat_jukebox.domain.shared.datetime_utils import format_ms, utcnow
from chat_jukebox.domain.shared.exceptions import InvalidOperationError
from chat_jukebox.domain.shared.types import (
    DurationMs,
    HttpUrlStr,
    NonEmptyStr,
    NonNegativeFloat,
    NonNegativeInt,
    TrackTitleStr,
    UserIdStr,
    UtcDatetimeField,
)


class TrackRequest(BaseModel):
    """Immutable snapshot of one enqueued song and its prefetch progress."""

    model_config = ConfigDict(frozen=True, strict=True)

    id: TrackRequestIdField = Field(default_factory=TrackRequestId.generate)
    source_ref: NonEmptyStr
    resolved_url: HttpUrlStr | None = None
    title: TrackTitleStr
    artist: NonEmptyStr | None = None

    # Request metadata
    requester_id: UserIdStr
    requester_name: NonEmptyStr | None = None
    group_id: NonEmptyStr | None = None
    is_priority: bool = False
    added_at: UtcDatetimeField = Field(default_factory=utcnow)

    # Prefetch metadata
    status: TrackStatus = TrackStatus.QUEUED
    local_media_path: NonEmptyStr | None = None
    thumbnail_path: NonEmptyStr | None = None
    duration_ms: DurationMs | None = None
    error: str | None = None

    @property
    def dedup_key(self) -> str:
        """Key under which two requests count as the same content."""
        return normalize_url(self.resolved_url or self.source_ref)

    @property
    def is_ready(self) -> bool:
        return self.status == TrackStatus.READY and self.local_media_path is not None

    @property
    def duration_formatted(self) -> str:
        if self.duration_ms is None:
            return "Unknown"
        return format_ms(self.duration_ms)

    @property
    def display_title(self) -> str:
        """Title with artist and duration where known."""
        label = f"{self.artist} - {self.title}" if self.artist else self.title
        if self.duration_ms:
            return f"{label} [{self.duration_formatted}]"
        return label

    def was_requested_by(self, user_id: str) -> bool:
        return self.requester_id == user_id

    def with_status(self, status: TrackStatus) -> TrackRequest:
        return self.model_copy(update={"status": status})

    def with_resolution(
        self,
        *,
        url: str,
        title: str,
        artist: str | None,
        duration_ms: int | None,
    ) -> TrackRequest:
        """Copy with resolver output filled in; known values are kept."""
        return self.model_copy(
            update={
                "resolved_url": url,
                "title": title or self.title,
                "artist": artist or self.artist,
                "duration_ms": duration_ms if duration_ms is not None else self.duration_ms,
            }
        )

    def mark_ready(
        self,
        local_media_path: str,
        *,
        thumbnail_path: str | None = None,
        duration_ms: int | None = None,
    ) -> TrackRequest:
        return self.model_copy(
            update={
                "status": TrackStatus.READY,
                "local_media_path": local_media_path,
                "thumbnail_path": thumbnail_path,
                "duration_ms": duration_ms if duration_ms is not None else self.duration_ms,
                "error": None,
            }
        )

    def mark_failed(self, reason: str) -> TrackRequest:
        return self.model_copy(update={"status": TrackStatus.FAILED, "error": reason})

    def reset_for_prefetch(self) -> TrackRequest:
        """Copy that prefetch will pick up again from scratch."""
        return self.model_copy(
            update={
                "status": TrackStatus.QUEUED,
                "local_media_path": None,
                "thumbnail_path": None,
            }
        )


class PlaybackSession(BaseModel):
    """Mutable state of the current track.

    Elapsed time is tracked against a monotonic clock supplied by the caller:
    ``position_offset_ms`` holds the position reached before the last resume
    or seek, ``resumed_at`` the clock reading when audio last started moving.
    """

    model_config = ConfigDict(strict=True)

    track: TrackRequest | None = None
    state: PlaybackState = PlaybackState.IDLE
    started_at: UtcDatetimeField | None = None
    position_offset_ms: NonNegativeInt = 0
    resumed_at: NonNegativeFloat | None = None

    @property
    def is_playing(self) -> bool:
        return self.state == PlaybackState.PLAYING

    @property
    def is_paused(self) -> bool:
        return self.state == PlaybackState.PAUSED

    def transition_to(self, target: PlaybackState) -> None:
        if not self.state.can_transition_to(target):
            raise InvalidOperationError(
                operation=f"transition to {target.value}",
                current_state=self.state.value,
            )
        self.state = target

    def begin_loading(self) -> TrackRequest | None:
        """Enter LOADING and release the previous track, returning it."""
        self.transition_to(PlaybackState.LOADING)
        previous = self.track
        self.track = None
        self.started_at = None
        self.position_offset_ms = 0
        self.resumed_at = None
        return previous

    def start(self, track: TrackRequest, now: float) -> None:
        self.transition_to(PlaybackState.PLAYING)
        self.track = track.with_status(TrackStatus.PLAYING)
        self.started_at = utcnow()
        self.position_offset_ms = 0
        self.resumed_at = now

    def pause(self, now: float) -> None:
        self.position_offset_ms = self.elapsed_ms(now)
        self.resumed_at = None
        self.transition_to(PlaybackState.PAUSED)

    def resume(self, now: float) -> None:
        self.transition_to(PlaybackState.PLAYING)
        self.resumed_at = now

    def seek_to(self, position_ms: int, now: float) -> None:
        self.position_offset_ms = position_ms
        if self.state == PlaybackState.PLAYING:
            self.resumed_at = now

    def elapsed_ms(self, now: float) -> int:
        elapsed = self.position_offset_ms
        if self.resumed_at is not None:
            elapsed += int((now - self.resumed_at) * 1000)
        if self.track is not None and self.track.duration_ms is not None:
            elapsed = min(elapsed, self.track.duration_ms)
        return max(0, elapsed)

    def reset(self) -> TrackRequest | None:
        """Return to IDLE, releasing the current track."""
        previous = self.track
        self.state = PlaybackState.IDLE
        self.track = None
        self.started_at = None
        self.position_offset_ms = 0
        self.resumed_at = None
        return previous
