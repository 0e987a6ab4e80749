"""Periodic purge of expired rate-limit records."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel

from chat_jukebox.domain.shared.messages import LogTemplates
from chat_jukebox.domain.shared.types import NonNegativeInt

if TYPE_CHECKING:
    from chat_jukebox.application.services.admission_service import AdmissionController

logger = logging.getLogger(__name__)


class RateLimitSweepJob:
    """Runs on a fixed interval, so storage stays bounded regardless of traffic."""

    def __init__(self, *, admission: AdmissionController, interval_seconds: float) -> None:
        self._admission = admission
        self._interval_seconds = interval_seconds
        self._running = False
        self._task: asyncio.Task | None = None

    def start(self) -> None:
        if self._running:
            logger.warning(LogTemplates.SWEEP_ALREADY_RUNNING)
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info(LogTemplates.SWEEP_STARTED)

    async def stop(self) -> None:
        self._running = False

        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info(LogTemplates.SWEEP_STOPPED)

    async def _run_loop(self) -> None:
        while self._running:
            try:
                await self.run_sweep()
            except Exception:
                logger.exception(LogTemplates.SWEEP_LOOP_ERROR)

            try:
                await asyncio.sleep(self._interval_seconds)
            except asyncio.CancelledError:
                break

    async def run_sweep(self) -> SweepStats:
        stats = SweepStats()
        logger.debug(LogTemplates.SWEEP_CYCLE_RUNNING)

        try:
            stats.records_purged = await self._admission.purge_expired()
        except Exception as e:
            logger.error(LogTemplates.SWEEP_FAILED, e)

        if stats.records_purged > 0:
            logger.info(LogTemplates.SWEEP_COMPLETED, stats.records_purged)
        return stats

    @property
    def is_running(self) -> bool:
        return self._running


class SweepStats(BaseModel):
    records_purged: NonNegativeInt = 0
