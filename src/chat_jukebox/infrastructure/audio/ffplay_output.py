"""
FFplay Audio Output

Plays downloaded files through an ``ffplay`` child process. Pause and
resume suspend the process with job-control signals; seeking restarts the
process at the new offset.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from enum import Enum

from chat_jukebox.application.interfaces.audio_output import AudioOutput, TrackEndCallback
from chat_jukebox.config.settings import PlaybackSettings
from chat_jukebox.domain.shared.constants import AudioConstants
from chat_jukebox.domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)


class PlayerState(Enum):
    """States for the ffplay process."""

    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"


class FfplayOutput(AudioOutput):
    def __init__(self, settings: PlaybackSettings | None = None) -> None:
        self._settings = settings or PlaybackSettings()
        self._process: asyncio.subprocess.Process | None = None
        self._watcher: asyncio.Task[None] | None = None
        self._media_path: str | None = None
        self._state = PlayerState.IDLE
        self._on_track_end: TrackEndCallback | None = None

    @property
    def state(self) -> PlayerState:
        return self._state

    def set_on_track_end_callback(self, callback: TrackEndCallback) -> None:
        self._on_track_end = callback

    def is_active(self) -> bool:
        return self._process is not None and self._process.returncode is None

    def _build_args(self, media_path: str, start_ms: int) -> list[str]:
        args = [self._settings.player_binary, *AudioConstants.FFPLAY_BASE_ARGS]
        if start_ms > 0:
            args += ["-ss", f"{start_ms / 1000:.3f}"]
        args.append(media_path)
        return args

    async def play(self, media_path: str, *, start_ms: int = 0) -> None:
        await self._terminate()

        process = await asyncio.create_subprocess_exec(
            *self._build_args(media_path, start_ms),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
        logger.info(
            LogTemplates.PLAYER_SPAWNED, self._settings.player_binary, process.pid, media_path, start_ms
        )
        self._process = process
        self._media_path = media_path
        self._state = PlayerState.PLAYING
        self._watcher = asyncio.create_task(self._watch(process), name="ffplay-watch")

    async def stop(self) -> None:
        await self._terminate()
        self._media_path = None

    async def pause(self) -> bool:
        if self._state != PlayerState.PLAYING or not self.is_active():
            return False
        assert self._process is not None
        self._process.send_signal(signal.SIGSTOP)
        self._state = PlayerState.PAUSED
        return True

    async def resume(self) -> bool:
        if self._state != PlayerState.PAUSED or not self.is_active():
            return False
        assert self._process is not None
        self._process.send_signal(signal.SIGCONT)
        self._state = PlayerState.PLAYING
        return True

    async def seek(self, position_ms: int) -> None:
        if self._media_path is None:
            return
        was_paused = self._state == PlayerState.PAUSED
        await self.play(self._media_path, start_ms=position_ms)
        if was_paused:
            await self.pause()

    async def _watch(self, process: asyncio.subprocess.Process) -> None:
        _, stderr = await process.communicate()
        logger.debug(LogTemplates.PLAYER_EXITED, process.returncode)
        if stderr and process.returncode:
            logger.warning(stderr.decode(errors="replace")[:500])

        # Replaced or stopped on purpose: not a natural end.
        if process is not self._process:
            return

        self._process = None
        self._watcher = None
        self._media_path = None
        self._state = PlayerState.IDLE
        if self._on_track_end is not None:
            try:
                await self._on_track_end()
            except Exception:
                logger.exception(LogTemplates.PLAYER_CALLBACK_FAILED)

    async def _terminate(self) -> None:
        process, self._process = self._process, None
        watcher, self._watcher = self._watcher, None
        paused = self._state == PlayerState.PAUSED
        self._state = PlayerState.IDLE

        if process is not None and process.returncode is None:
            try:
                if paused:
                    process.send_signal(signal.SIGCONT)
                process.terminate()
                await asyncio.wait_for(
                    process.wait(), timeout=AudioConstants.PLAYER_STOP_TIMEOUT_SECONDS
                )
            except ProcessLookupError:
                pass
            except TimeoutError:
                process.kill()
                await process.wait()

        if watcher is not None and watcher is not asyncio.current_task():
            await asyncio.gather(watcher, return_exceptions=True)
