"""
Unit Tests for FfplayOutput

Tests for the ffplay subprocess adapter:
- Argument building
- Pause / resume via job-control signals
- Intentional stop vs natural end
- Seek restarts at an offset
"""

import asyncio
import signal
from unittest.mock import patch

import pytest

from chat_jukebox.config.settings import PlaybackSettings
from chat_jukebox.infrastructure.audio.ffplay_output import FfplayOutput, PlayerState


class FakeProcess:
    """Stand-in for ``asyncio.subprocess.Process``."""

    _next_pid = 1000

    def __init__(self, *args):
        FakeProcess._next_pid += 1
        self.pid = FakeProcess._next_pid
        self.args = args
        self.returncode = None
        self.signals = []
        self._exited = asyncio.Event()

    def exit(self, code=0):
        self.returncode = code
        self._exited.set()

    async def communicate(self):
        await self._exited.wait()
        return b"", b""

    async def wait(self):
        await self._exited.wait()
        return self.returncode

    def send_signal(self, sig):
        self.signals.append(sig)

    def terminate(self):
        self.exit(-15)

    def kill(self):
        self.exit(-9)


@pytest.fixture
def spawned():
    processes = []

    async def fake_exec(*args, **kwargs):
        process = FakeProcess(*args)
        processes.append(process)
        return process

    with patch(
        "chat_jukebox.infrastructure.audio.ffplay_output.asyncio.create_subprocess_exec",
        side_effect=fake_exec,
    ):
        yield processes


@pytest.fixture
def output(spawned):
    return FfplayOutput(PlaybackSettings(player_binary="ffplay"))


class TestBuildArgs:
    def test_from_start(self, output):
        args = output._build_args("/media/a.opus", 0)

        assert args[0] == "ffplay"
        assert "-nodisp" in args and "-autoexit" in args
        assert "-ss" not in args
        assert args[-1] == "/media/a.opus"

    def test_with_offset(self, output):
        args = output._build_args("/media/a.opus", 61_500)

        assert args[args.index("-ss") + 1] == "61.500"


class TestPlayback:
    async def test_play_spawns_process(self, output, spawned):
        await output.play("/media/a.opus")

        assert len(spawned) == 1
        assert spawned[0].args[-1] == "/media/a.opus"
        assert output.is_active()
        assert output.state == PlayerState.PLAYING
        await output.stop()

    async def test_pause_and_resume_send_signals(self, output, spawned):
        await output.play("/media/a.opus")

        assert await output.pause()
        assert not await output.pause()
        assert await output.resume()
        assert not await output.resume()

        assert spawned[0].signals == [signal.SIGSTOP, signal.SIGCONT]
        await output.stop()

    async def test_pause_when_idle(self, output):
        assert await output.pause() is False

    async def test_natural_end_fires_callback(self, output, spawned):
        finished = asyncio.Event()

        async def on_end():
            finished.set()

        output.set_on_track_end_callback(on_end)
        await output.play("/media/a.opus")

        spawned[0].exit(0)
        await asyncio.wait_for(finished.wait(), timeout=1)

        assert not output.is_active()
        assert output.state == PlayerState.IDLE

    async def test_stop_does_not_fire_callback(self, output, spawned):
        calls = []

        async def on_end():
            calls.append(True)

        output.set_on_track_end_callback(on_end)
        await output.play("/media/a.opus")
        await output.stop()
        await asyncio.sleep(0)

        assert calls == []
        assert spawned[0].returncode == -15

    async def test_stop_of_paused_process_continues_it_first(self, output, spawned):
        await output.play("/media/a.opus")
        await output.pause()

        await output.stop()

        assert spawned[0].signals == [signal.SIGSTOP, signal.SIGCONT]

    async def test_play_replaces_current(self, output, spawned):
        calls = []

        async def on_end():
            calls.append(True)

        output.set_on_track_end_callback(on_end)
        await output.play("/media/a.opus")
        await output.play("/media/b.opus")

        assert spawned[0].returncode is not None
        assert output.is_active()
        assert calls == []
        await output.stop()

    async def test_callback_errors_are_contained(self, output, spawned):
        async def on_end():
            raise RuntimeError("boom")

        output.set_on_track_end_callback(on_end)
        await output.play("/media/a.opus")
        watcher = output._watcher

        spawned[0].exit(0)
        await watcher

        assert output.state == PlayerState.IDLE


class TestSeek:
    async def test_seek_restarts_at_offset(self, output, spawned):
        await output.play("/media/a.opus")

        await output.seek(30_000)

        assert len(spawned) == 2
        assert spawned[1].args[-1] == "/media/a.opus"
        assert "30.000" in spawned[1].args
        await output.stop()

    async def test_seek_keeps_pause(self, output, spawned):
        await output.play("/media/a.opus")
        await output.pause()

        await output.seek(5_000)

        assert output.state == PlayerState.PAUSED
        assert spawned[1].signals == [signal.SIGSTOP]
        await output.stop()

    async def test_seek_without_media(self, output, spawned):
        await output.seek(1000)
        assert spawned == []
