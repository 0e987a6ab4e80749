"""Command and handler for adding every entry of a playlist to the queue."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from chat_jukebox.application.services.queue_store import DuplicateEnqueue
from chat_jukebox.domain.admission.value_objects import CommandType
from chat_jukebox.domain.queue.entities import TrackRequest
from chat_jukebox.domain.shared.exceptions import (
    AdmissionDenied,
    PersistenceFailure,
    ResolutionFailure,
)
from chat_jukebox.domain.shared.messages import LogTemplates, UserMessages
from chat_jukebox.domain.shared.types import HttpUrlStr, NonEmptyStr, NonNegativeInt, UserIdStr

from .enqueue_track import EnqueueResult

if TYPE_CHECKING:
    from chat_jukebox.application.interfaces.media_resolver import MediaResolver
    from chat_jukebox.application.services.admission_service import AdmissionController
    from chat_jukebox.application.services.playback_machine import PlaybackStateMachine
    from chat_jukebox.application.services.prefetch_pipeline import PrefetchPipeline
    from chat_jukebox.application.services.priority_service import PriorityService
    from chat_jukebox.application.services.queue_store import QueueStore

logger = logging.getLogger(__name__)


class PlaylistStatus(Enum):
    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"
    NOT_FOUND = "not_found"
    STORAGE_ERROR = "storage_error"


class EnqueuePlaylistCommand(BaseModel):
    model_config = ConfigDict(frozen=True, strict=True)

    playlist_url: HttpUrlStr
    requester_id: UserIdStr
    requester_name: NonEmptyStr | None = None
    group_id: NonEmptyStr | None = None


class PlaylistResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: PlaylistStatus
    message: str
    added: list[TrackRequest] = Field(default_factory=list)
    duplicates: NonNegativeInt = 0
    failed: NonNegativeInt = 0
    wait_seconds: float | None = None

    @property
    def is_success(self) -> bool:
        return self.status == PlaylistStatus.SUCCESS


class EnqueuePlaylistHandler:
    """Expands a playlist and queues its entries in playlist order.

    Every entry goes through the regular dedup check, so repeats inside the
    same playlist are skipped just like tracks that were already queued.
    The whole playlist counts as one ``playlist`` command for rate limiting.
    """

    def __init__(
        self,
        *,
        admission: AdmissionController,
        resolver: MediaResolver,
        queue_store: QueueStore,
        priority_service: PriorityService,
        prefetch: PrefetchPipeline,
        playback: PlaybackStateMachine,
    ) -> None:
        self._admission = admission
        self._resolver = resolver
        self._queue_store = queue_store
        self._priority = priority_service
        self._prefetch = prefetch
        self._playback = playback

    async def handle(self, command: EnqueuePlaylistCommand) -> PlaylistResult:
        added: list[TrackRequest] = []
        duplicates = 0
        failed = 0
        try:
            async with self._admission.admit(command.requester_id, CommandType.PLAYLIST):
                entries = await self._resolver.extract_playlist(command.playlist_url)
                is_priority = await self._priority.is_priority(command.requester_id)
                for entry in entries:
                    track = TrackRequest(
                        source_ref=entry.url,
                        resolved_url=entry.url,
                        title=entry.title,
                        artist=entry.artist,
                        duration_ms=entry.duration_ms,
                        requester_id=command.requester_id,
                        requester_name=command.requester_name,
                        group_id=command.group_id,
                        is_priority=is_priority,
                    )
                    try:
                        result = await self._queue_store.add(track)
                    except PersistenceFailure:
                        failed += 1
                        continue
                    if isinstance(result, DuplicateEnqueue):
                        duplicates += 1
                    else:
                        added.append(result)
        except AdmissionDenied as e:
            limited = EnqueueResult.rate_limited(e.wait_seconds)
            return PlaylistResult(
                status=PlaylistStatus.RATE_LIMITED,
                message=limited.message,
                wait_seconds=e.wait_seconds,
            )
        except ResolutionFailure as e:
            logger.info(
                LogTemplates.COMMAND_FAILED,
                "playlist",
                command.requester_id,
                command.playlist_url,
                e,
            )
            return PlaylistResult(
                status=PlaylistStatus.NOT_FOUND,
                message=UserMessages.NOT_FOUND.format(query=e.source_ref),
            )

        if failed and not added and not duplicates:
            logger.error(
                LogTemplates.COMMAND_FAILED,
                "playlist",
                command.requester_id,
                command.playlist_url,
                f"{failed} tracks not stored",
            )
            return PlaylistResult(
                status=PlaylistStatus.STORAGE_ERROR,
                message=UserMessages.STORAGE_UNAVAILABLE,
                failed=failed,
            )

        if added:
            await self._prefetch.trigger()
            self._playback.start_if_idle()

        return PlaylistResult(
            status=PlaylistStatus.SUCCESS,
            message=UserMessages.PLAYLIST_ENQUEUED.format(
                added=len(added), duplicates=duplicates, failed=failed
            ),
            added=added,
            duplicates=duplicates,
            failed=failed,
        )
