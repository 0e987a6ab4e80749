"""
Skip Track Command

Command and handler for skipping the current track.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from chat_jukebox.domain.shared.exceptions import PermissionDenied
from chat_jukebox.domain.shared.messages import UserMessages

if TYPE_CHECKING:
    from chat_jukebox.application.services.playback_machine import PlaybackStateMachine
    from chat_jukebox.domain.queue.entities import TrackRequest


class SkipStatus(Enum):
    """Status codes for skip results."""

    SUCCESS = "success"
    NOTHING_PLAYING = "nothing_playing"
    PERMISSION_DENIED = "permission_denied"


@dataclass
class SkipTrackCommand:
    """Command to skip the current track.

    Only a priority user or the user who requested the current track may skip.
    """

    requester_id: str

    def __post_init__(self) -> None:
        if not self.requester_id or not self.requester_id.strip():
            raise ValueError("Requester ID cannot be empty")


@dataclass
class SkipResult:
    """Result of a skip track command."""

    status: SkipStatus
    message: str
    skipped_track: TrackRequest | None = None

    @property
    def is_success(self) -> bool:
        return self.status == SkipStatus.SUCCESS

    @classmethod
    def success(cls, skipped_track: TrackRequest) -> SkipResult:
        return cls(
            status=SkipStatus.SUCCESS,
            message=UserMessages.SKIPPED.format(title=skipped_track.title),
            skipped_track=skipped_track,
        )

    @classmethod
    def error(cls, status: SkipStatus, message: str) -> SkipResult:
        return cls(status=status, message=message)


class SkipTrackHandler:
    def __init__(self, *, playback: PlaybackStateMachine) -> None:
        self._playback = playback

    async def handle(self, command: SkipTrackCommand) -> SkipResult:
        try:
            skipped = await self._playback.skip(command.requester_id)
        except PermissionDenied:
            return SkipResult.error(SkipStatus.PERMISSION_DENIED, UserMessages.SKIP_NOT_ALLOWED)

        if skipped is None:
            return SkipResult.error(SkipStatus.NOTHING_PLAYING, UserMessages.NOTHING_PLAYING)
        return SkipResult.success(skipped)
