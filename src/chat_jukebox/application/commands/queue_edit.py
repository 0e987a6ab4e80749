"""Commands for removing and reordering queued tracks."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from chat_jukebox.domain.shared.exceptions import PersistenceFailure
from chat_jukebox.domain.shared.messages import LogTemplates, UserMessages

if TYPE_CHECKING:
    from chat_jukebox.application.services.queue_store import QueueStore
    from chat_jukebox.domain.queue.entities import TrackRequest

logger = logging.getLogger(__name__)


class QueueEditStatus(Enum):
    SUCCESS = "success"
    INVALID_INDEX = "invalid_index"
    STORAGE_ERROR = "storage_error"


@dataclass
class RemoveTrackCommand:
    """Remove the track at a zero-based queue index."""

    index: int


@dataclass
class ReorderTrackCommand:
    """Move the track at ``from_index`` to ``to_index`` (both zero-based)."""

    from_index: int
    to_index: int


@dataclass
class QueueEditResult:
    status: QueueEditStatus
    message: str
    track: TrackRequest | None = None

    @property
    def is_success(self) -> bool:
        return self.status == QueueEditStatus.SUCCESS


class QueueEditHandler:
    def __init__(self, *, queue_store: QueueStore) -> None:
        self._queue_store = queue_store

    async def remove(self, command: RemoveTrackCommand) -> QueueEditResult:
        try:
            removed = await self._queue_store.remove(command.index)
        except PersistenceFailure as e:
            logger.error(LogTemplates.COMMAND_FAILED, "remove", None, command.index, e)
            return QueueEditResult(QueueEditStatus.STORAGE_ERROR, UserMessages.STORAGE_UNAVAILABLE)

        if removed is None:
            return QueueEditResult(QueueEditStatus.INVALID_INDEX, UserMessages.INVALID_INDEX)
        return QueueEditResult(
            QueueEditStatus.SUCCESS, UserMessages.REMOVED.format(title=removed.title), removed
        )

    async def reorder(self, command: ReorderTrackCommand) -> QueueEditResult:
        try:
            moved = await self._queue_store.reorder(command.from_index, command.to_index)
        except PersistenceFailure as e:
            logger.error(
                LogTemplates.COMMAND_FAILED,
                "reorder",
                None,
                f"{command.from_index}->{command.to_index}",
                e,
            )
            return QueueEditResult(QueueEditStatus.STORAGE_ERROR, UserMessages.STORAGE_UNAVAILABLE)

        if not moved:
            return QueueEditResult(QueueEditStatus.INVALID_INDEX, UserMessages.INVALID_INDEX)
        return QueueEditResult(
            QueueEditStatus.SUCCESS,
            UserMessages.REORDERED.format(
                from_pos=command.from_index + 1, to_pos=command.to_index + 1
            ),
        )
