"""Command and handler for adding a single track to the queue."""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, field_validator

from chat_jukebox.application.services.queue_store import DuplicateEnqueue
from chat_jukebox.domain.admission.value_objects import CommandType
from chat_jukebox.domain.queue.entities import TrackRequest
from chat_jukebox.domain.queue.value_objects import SourceKind, parse_search_hint
from chat_jukebox.domain.shared.exceptions import (
    AdmissionDenied,
    PersistenceFailure,
    ResolutionFailure,
)
from chat_jukebox.domain.shared.messages import LogTemplates, UserMessages
from chat_jukebox.domain.shared.types import NonEmptyStr, NonNegativeInt, UserIdStr

if TYPE_CHECKING:
    from chat_jukebox.application.interfaces.media_resolver import MediaResolver, ResolvedMedia
    from chat_jukebox.application.services.admission_service import AdmissionController
    from chat_jukebox.application.services.playback_machine import PlaybackStateMachine
    from chat_jukebox.application.services.prefetch_pipeline import PrefetchPipeline
    from chat_jukebox.application.services.priority_service import PriorityService
    from chat_jukebox.application.services.queue_store import QueueStore

logger = logging.getLogger(__name__)


class EnqueueStatus(Enum):
    """Status codes for enqueue results."""

    QUEUED = "queued"
    DUPLICATE = "duplicate"
    RATE_LIMITED = "rate_limited"
    NOT_FOUND = "not_found"
    STORAGE_ERROR = "storage_error"


class EnqueueTrackCommand(BaseModel):
    """Request to resolve a URL or search query and queue it."""

    model_config = ConfigDict(frozen=True, strict=True)

    track_spec: NonEmptyStr
    requester_id: UserIdStr
    requester_name: NonEmptyStr | None = None
    group_id: NonEmptyStr | None = None

    @field_validator("track_spec", mode="before")
    @classmethod
    def _strip_spec(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip()
        return v


class EnqueueResult(BaseModel):
    """Result of an enqueue command."""

    model_config = ConfigDict(frozen=True)

    status: EnqueueStatus
    message: str
    track: TrackRequest | None = None
    queue_position: NonNegativeInt | None = None
    wait_seconds: float | None = None

    @property
    def is_success(self) -> bool:
        return self.status == EnqueueStatus.QUEUED

    @classmethod
    def queued(cls, track: TrackRequest, position: int) -> EnqueueResult:
        return cls(
            status=EnqueueStatus.QUEUED,
            message=UserMessages.ENQUEUED.format(title=track.display_title),
            track=track,
            queue_position=position,
        )

    @classmethod
    def duplicate(cls, existing: TrackRequest) -> EnqueueResult:
        return cls(
            status=EnqueueStatus.DUPLICATE,
            message=UserMessages.ALREADY_QUEUED.format(title=existing.title),
            track=existing,
        )

    @classmethod
    def rate_limited(cls, wait_seconds: float) -> EnqueueResult:
        return cls(
            status=EnqueueStatus.RATE_LIMITED,
            message=UserMessages.RATE_LIMITED.format(seconds=math.ceil(wait_seconds)),
            wait_seconds=wait_seconds,
        )

    @classmethod
    def error(cls, status: EnqueueStatus, message: str) -> EnqueueResult:
        return cls(status=status, message=message)


class EnqueueTrackHandler:
    """Admits, resolves and queues one track, then nudges prefetch and playback.

    Resolution happens before the track enters the queue, so a spec that
    cannot be resolved never becomes a queue entry. The request counts
    against the rate limit only once the enqueue attempt has completed.
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

    async def handle(self, command: EnqueueTrackCommand) -> EnqueueResult:
        try:
            async with self._admission.admit(command.requester_id, CommandType.PLAY):
                if self._resolver.classify(command.track_spec) != SourceKind.SEARCH:
                    existing = self._queue_store.contains_content(command.track_spec)
                    if existing is not None:
                        return EnqueueResult.duplicate(existing)
                media = await self._resolve(command.track_spec)
                track = TrackRequest(
                    source_ref=command.track_spec,
                    resolved_url=media.url,
                    title=media.title,
                    artist=media.artist,
                    duration_ms=media.duration_ms,
                    requester_id=command.requester_id,
                    requester_name=command.requester_name,
                    group_id=command.group_id,
                    is_priority=await self._priority.is_priority(command.requester_id),
                )
                added = await self._queue_store.add(track)
        except AdmissionDenied as e:
            return EnqueueResult.rate_limited(e.wait_seconds)
        except ResolutionFailure as e:
            logger.info(
                LogTemplates.COMMAND_FAILED, "enqueue", command.requester_id, command.track_spec, e
            )
            return EnqueueResult.error(
                EnqueueStatus.NOT_FOUND,
                UserMessages.NOT_FOUND.format(query=e.source_ref),
            )
        except PersistenceFailure as e:
            logger.error(
                LogTemplates.COMMAND_FAILED, "enqueue", command.requester_id, command.track_spec, e
            )
            return EnqueueResult.error(EnqueueStatus.STORAGE_ERROR, UserMessages.STORAGE_UNAVAILABLE)

        if isinstance(added, DuplicateEnqueue):
            return EnqueueResult.duplicate(added.existing)

        await self._prefetch.trigger()
        self._playback.start_if_idle()
        position = self._queue_store.index_of(added.id)
        return EnqueueResult.queued(added, position if position is not None else 0)

    async def _resolve(self, spec: str) -> ResolvedMedia:
        if self._resolver.classify(spec) == SourceKind.SEARCH:
            artist, title = parse_search_hint(spec)
            return await self._resolver.resolve(spec, expected_title=title, expected_artist=artist)
        return await self._resolver.resolve(spec)
