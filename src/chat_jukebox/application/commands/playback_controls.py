"""Commands for pause, resume and seek on the current track."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from chat_jukebox.domain.shared.datetime_utils import format_ms
from chat_jukebox.domain.shared.messages import UserMessages

if TYPE_CHECKING:
    from chat_jukebox.application.services.playback_machine import PlaybackStateMachine


class ControlStatus(Enum):
    SUCCESS = "success"
    NOT_APPLICABLE = "not_applicable"


@dataclass
class SeekCommand:
    """Seek to ``time_ms``; out-of-range positions are clamped, not rejected."""

    time_ms: int


@dataclass
class ControlResult:
    status: ControlStatus
    message: str
    position_ms: int | None = None

    @property
    def is_success(self) -> bool:
        return self.status == ControlStatus.SUCCESS


class PlaybackControlsHandler:
    """Pause, resume and seek. None of these ever touch the queue."""

    def __init__(self, *, playback: PlaybackStateMachine) -> None:
        self._playback = playback

    async def pause(self) -> ControlResult:
        if await self._playback.pause():
            return ControlResult(ControlStatus.SUCCESS, UserMessages.PAUSED)
        return ControlResult(ControlStatus.NOT_APPLICABLE, UserMessages.CANNOT_PAUSE)

    async def resume(self) -> ControlResult:
        if await self._playback.resume():
            return ControlResult(ControlStatus.SUCCESS, UserMessages.RESUMED)
        return ControlResult(ControlStatus.NOT_APPLICABLE, UserMessages.CANNOT_RESUME)

    async def seek(self, command: SeekCommand) -> ControlResult:
        position = await self._playback.seek(command.time_ms)
        if position is None:
            return ControlResult(ControlStatus.NOT_APPLICABLE, UserMessages.NOTHING_PLAYING)
        return ControlResult(
            ControlStatus.SUCCESS,
            UserMessages.SEEKED.format(position=format_ms(position)),
            position_ms=position,
        )
