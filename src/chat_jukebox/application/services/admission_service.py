"""Admission controller: sliding-window rate limiting with a priority bypass."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from chat_jukebox.domain.admission.entities import RateLimitDecision, evaluate_window
from chat_jukebox.domain.admission.value_objects import CommandType
from chat_jukebox.domain.shared.exceptions import AdmissionDenied
from chat_jukebox.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from chat_jukebox.domain.admission.repository import RateLimitRepository

    from .priority_service import PriorityService
    from .runtime_config import RuntimeConfig

logger = logging.getLogger(__name__)


class AdmissionController:
    """Gates commands per (user, command type) over a trailing time window.

    Storage errors during a check fail open and errors while recording are
    logged and dropped; neither ever blocks a user. ``admit()`` makes the
    check and the record one atomic unit per (user, command type).
    """

    def __init__(
        self,
        *,
        rate_limit_repository: RateLimitRepository,
        priority_service: PriorityService,
        runtime_config: RuntimeConfig,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._repo = rate_limit_repository
        self._priority = priority_service
        self._runtime_config = runtime_config
        self._clock = clock
        self._locks: dict[tuple[str, CommandType], asyncio.Lock] = {}

    async def check_rate_limit(self, user_id: str, command: CommandType) -> RateLimitDecision:
        """Evaluate whether *user_id* may run *command* now, without recording it."""
        try:
            if await self._priority.is_priority(user_id):
                return RateLimitDecision.unlimited()

            config = await self._runtime_config.rate_limit()
            if not config.enabled:
                return RateLimitDecision.unlimited()

            now = self._clock()
            timestamps = await self._repo.timestamps_since(
                user_id, command.value, now - config.window_seconds
            )
            return evaluate_window(timestamps, config, now)
        except Exception:
            logger.exception(LogTemplates.ADMISSION_CHECK_FAILED, user_id, command.value)
            return RateLimitDecision.unlimited()

    async def record_request(self, user_id: str, command: CommandType) -> None:
        """Append a usage record; priority users are never recorded."""
        try:
            if await self._priority.is_priority(user_id):
                return
            await self._repo.record(user_id, command.value, self._clock())
        except Exception as e:
            logger.error(LogTemplates.ADMISSION_RECORD_FAILED, user_id, command.value, e)

    @asynccontextmanager
    async def admit(self, user_id: str, command: CommandType) -> AsyncIterator[RateLimitDecision]:
        """Hold the (user, command) slot while the guarded body runs.

        Raises:
            AdmissionDenied: If the window is full. Nothing is recorded.

        The request is recorded only if the body completes without raising.
        """
        lock = self._locks.setdefault((user_id, command), asyncio.Lock())
        async with lock:
            decision = await self.check_rate_limit(user_id, command)
            if not decision.allowed:
                logger.info(
                    LogTemplates.ADMISSION_DENIED, user_id, command.value, decision.wait_seconds
                )
                raise AdmissionDenied(
                    user_id=user_id,
                    command=command.value,
                    wait_seconds=decision.wait_seconds,
                    reset_at=decision.reset_at,
                )
            yield decision
            await self.record_request(user_id, command)

    async def purge_expired(self) -> int:
        """Delete records older than twice the current window.

        Returns:
            Number of records deleted.
        """
        config = await self._runtime_config.rate_limit()
        cutoff = self._clock() - config.retention_seconds
        deleted = await self._repo.purge_older_than(cutoff)
        self._prune_idle_locks()
        return deleted

    def _prune_idle_locks(self) -> None:
        for key in [k for k, lock in self._locks.items() if not lock.locked()]:
            del self._locks[key]
