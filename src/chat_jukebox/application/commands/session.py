"""Session-wide commands: start a new session and prefetch the whole queue."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from chat_jukebox.domain.shared.exceptions import PersistenceFailure
from chat_jukebox.domain.shared.messages import LogTemplates, UserMessages

if TYPE_CHECKING:
    from chat_jukebox.application.services.playback_machine import PlaybackStateMachine
    from chat_jukebox.application.services.prefetch_pipeline import PrefetchPipeline

logger = logging.getLogger(__name__)


@dataclass
class SessionResult:
    success: bool
    message: str
    count: int = 0


class NewSessionHandler:
    def __init__(self, *, playback: PlaybackStateMachine) -> None:
        self._playback = playback

    async def handle(self) -> SessionResult:
        try:
            cleared = await self._playback.new_session()
        except PersistenceFailure as e:
            logger.error(LogTemplates.COMMAND_FAILED, "newsession", None, None, e)
            return SessionResult(False, UserMessages.STORAGE_UNAVAILABLE)
        return SessionResult(True, UserMessages.SESSION_RESET, cleared)


class PrefetchAllHandler:
    def __init__(self, *, prefetch: PrefetchPipeline) -> None:
        self._prefetch = prefetch

    async def handle(self) -> SessionResult:
        scheduled = await self._prefetch.prefetch_all()
        return SessionResult(True, UserMessages.PREFETCH_STARTED.format(count=scheduled), scheduled)
