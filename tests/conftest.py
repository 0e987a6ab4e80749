import asyncio
import re
from pathlib import Path

import pytest
import pytest_asyncio

from chat_jukebox.application.interfaces.audio_output import AudioOutput
from chat_jukebox.application.interfaces.media_downloader import DownloadedMedia, MediaDownloader
from chat_jukebox.application.interfaces.media_resolver import MediaResolver, ResolvedMedia
from chat_jukebox.domain.queue.value_objects import SourceKind
from chat_jukebox.domain.shared.exceptions import DownloadFailure, ResolutionFailure

# ============================================================================
# Test Doubles
# ============================================================================


class FakeClock:
    """Manually advanced clock for rate limiting and playback timing."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeResolver(MediaResolver):
    """Resolver that answers from a lookup table without touching the network.

    Unknown URLs resolve to themselves; unknown search queries resolve to a
    URL derived from the query text.
    """

    def __init__(self) -> None:
        self.responses: dict[str, ResolvedMedia | Exception] = {}
        self.playlists: dict[str, list[ResolvedMedia] | Exception] = {}
        self.calls: list[tuple[str, str | None, str | None]] = []
        self.metadata_calls: list[str] = []
        self.gate: asyncio.Event | None = None

    def classify(self, spec: str) -> SourceKind:
        if not re.match(r"^https?://", spec):
            return SourceKind.SEARCH
        if "list=" in spec:
            return SourceKind.PLAYLIST
        return SourceKind.URL

    async def resolve(self, spec, *, expected_title=None, expected_artist=None):
        self.calls.append((spec, expected_title, expected_artist))
        if self.gate is not None:
            await self.gate.wait()
        answer = self.responses.get(spec)
        if isinstance(answer, Exception):
            raise answer
        if answer is not None:
            return answer
        if self.classify(spec) == SourceKind.SEARCH:
            slug = re.sub(r"[^a-z0-9]+", "-", spec.lower()).strip("-")
            return ResolvedMedia(url=f"https://media.example/{slug}", title=spec)
        return ResolvedMedia(url=spec, title=f"Title of {spec.rsplit('/', 1)[-1]}")

    async def fetch_metadata(self, url):
        self.metadata_calls.append(url)
        answer = self.responses.get(url)
        if isinstance(answer, Exception):
            raise answer
        return answer or ResolvedMedia(url=url, title="Fetched", duration_ms=180_000)

    async def extract_playlist(self, url):
        answer = self.playlists.get(url)
        if isinstance(answer, Exception):
            raise answer
        if answer is None:
            raise ResolutionFailure(url, "empty playlist", no_results=True)
        return answer


class FakeDownloader(MediaDownloader):
    """Downloader that writes a small file and tracks its own concurrency."""

    def __init__(self) -> None:
        self.fail_urls: set[str] = set()
        self.gate: asyncio.Event | None = None
        self.started: list[str] = []
        self.active = 0
        self.peak = 0

    async def download(self, url: str, destination: Path) -> DownloadedMedia:
        self.started.append(url)
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            if self.gate is not None:
                await self.gate.wait()
            else:
                await asyncio.sleep(0)
            if url in self.fail_urls:
                raise DownloadFailure(url, "simulated failure")
            destination.parent.mkdir(parents=True, exist_ok=True)
            path = destination.with_name(f"{destination.name}.opus")
            path.write_bytes(b"audio")
            return DownloadedMedia(path=str(path), duration_ms=200_000)
        finally:
            self.active -= 1


class FakeAudioOutput(AudioOutput):
    """Audio output that records calls; ``finish()`` simulates a natural end."""

    def __init__(self) -> None:
        self.played: list[tuple[str, int]] = []
        self.stopped = 0
        self.seeks: list[int] = []
        self.paused = False
        self.playing: str | None = None
        self.fail_next_play = False
        self._callback = None

    async def play(self, media_path, *, start_ms=0):
        if self.fail_next_play:
            self.fail_next_play = False
            raise OSError("device unavailable")
        self.played.append((media_path, start_ms))
        self.playing = media_path
        self.paused = False

    async def stop(self):
        self.stopped += 1
        self.playing = None
        self.paused = False

    async def pause(self):
        if self.playing is None or self.paused:
            return False
        self.paused = True
        return True

    async def resume(self):
        if self.playing is None or not self.paused:
            return False
        self.paused = False
        return True

    async def seek(self, position_ms):
        self.seeks.append(position_ms)

    def is_active(self):
        return self.playing is not None

    def set_on_track_end_callback(self, callback):
        self._callback = callback

    async def finish(self):
        self.playing = None
        if self._callback is not None:
            await self._callback()


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def in_memory_database():
    """Create an in-memory SQLite database for testing."""
    from chat_jukebox.infrastructure.persistence.database import Database

    db = Database(":memory:")
    await db.initialize()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def queue_repository(in_memory_database):
    from chat_jukebox.infrastructure.persistence.repositories.queue_repository import (
        SQLiteQueueRepository,
    )

    return SQLiteQueueRepository(in_memory_database)


@pytest_asyncio.fixture
async def rate_limit_repository(in_memory_database):
    from chat_jukebox.infrastructure.persistence.repositories.rate_limit_repository import (
        SQLiteRateLimitRepository,
    )

    return SQLiteRateLimitRepository(in_memory_database)


@pytest_asyncio.fixture
async def settings_repository(in_memory_database):
    from chat_jukebox.infrastructure.persistence.repositories.settings_repository import (
        SQLiteSettingsRepository,
    )

    return SQLiteSettingsRepository(in_memory_database)


@pytest_asyncio.fixture
async def priority_repository(in_memory_database):
    from chat_jukebox.infrastructure.persistence.repositories.priority_repository import (
        SQLitePriorityUserRepository,
    )

    return SQLitePriorityUserRepository(in_memory_database)


# ============================================================================
# Service Fixtures
# ============================================================================


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def event_bus():
    from chat_jukebox.domain.shared.events import EventBus

    return EventBus()


@pytest.fixture
def runtime_config(settings_repository):
    from chat_jukebox.application.services.runtime_config import RuntimeConfig
    from chat_jukebox.config.settings import PerformanceSettings, RateLimitSettings

    return RuntimeConfig(
        settings_repository=settings_repository,
        rate_limit_defaults=RateLimitSettings(),
        performance_defaults=PerformanceSettings(),
    )


@pytest.fixture
def priority_service(priority_repository):
    from chat_jukebox.application.services.priority_service import PriorityService

    return PriorityService(priority_repository=priority_repository)


@pytest.fixture
def admission(rate_limit_repository, priority_service, runtime_config, clock):
    from chat_jukebox.application.services.admission_service import AdmissionController

    return AdmissionController(
        rate_limit_repository=rate_limit_repository,
        priority_service=priority_service,
        runtime_config=runtime_config,
        clock=clock,
    )


@pytest.fixture
def queue_store(queue_repository, event_bus):
    from chat_jukebox.application.services.queue_store import QueueStore

    return QueueStore(queue_repository=queue_repository, event_bus=event_bus)


@pytest.fixture
def download_dir(tmp_path):
    return tmp_path / "media"


@pytest.fixture
def media_cleanup(queue_store, event_bus, download_dir):
    from chat_jukebox.application.services.media_cleanup import MediaCleanup

    cleanup = MediaCleanup(queue_store=queue_store, event_bus=event_bus, download_dir=download_dir)
    cleanup.start()
    yield cleanup
    cleanup.stop()


@pytest.fixture
def resolver():
    return FakeResolver()


@pytest.fixture
def downloader():
    return FakeDownloader()


@pytest.fixture
def audio_output():
    return FakeAudioOutput()


@pytest_asyncio.fixture
async def prefetch(queue_store, resolver, downloader, runtime_config, media_cleanup, event_bus, download_dir):
    from chat_jukebox.application.services.prefetch_pipeline import PrefetchPipeline

    pipeline = PrefetchPipeline(
        queue_store=queue_store,
        resolver=resolver,
        downloader=downloader,
        runtime_config=runtime_config,
        media_cleanup=media_cleanup,
        event_bus=event_bus,
        download_dir=download_dir,
        max_concurrent_downloads=2,
    )
    pipeline.start()
    yield pipeline
    await pipeline.stop()


@pytest_asyncio.fixture
async def playback(
    queue_store, prefetch, audio_output, priority_service, media_cleanup, event_bus, clock
):
    from chat_jukebox.application.services.playback_machine import PlaybackStateMachine

    machine = PlaybackStateMachine(
        queue_store=queue_store,
        prefetch=prefetch,
        audio_output=audio_output,
        priority_service=priority_service,
        media_cleanup=media_cleanup,
        event_bus=event_bus,
        transition_delay_ms=0,
        head_ready_timeout_seconds=5.0,
        clock=clock,
    )
    yield machine
    await machine.shutdown()


# ============================================================================
# Domain Entity Fixtures
# ============================================================================


@pytest.fixture
def make_track():
    """Factory for track requests with sensible defaults."""
    from chat_jukebox.domain.queue.entities import TrackRequest

    counter = iter(range(1, 10_000))

    def _make(**overrides):
        n = next(counter)
        values = {
            "source_ref": f"https://youtube.com/watch?v=track{n:06d}",
            "resolved_url": f"https://youtube.com/watch?v=track{n:06d}",
            "title": f"Track {n}",
            "requester_id": "user-1",
            "duration_ms": 180_000,
        }
        values.update(overrides)
        return TrackRequest(**values)

    return _make


@pytest.fixture
def ready_track(make_track, download_dir):
    """Factory for tracks that are already downloaded."""

    def _make(**overrides):
        track = make_track(**overrides)
        download_dir.mkdir(parents=True, exist_ok=True)
        path = download_dir / f"{track.id}.opus"
        path.write_bytes(b"audio")
        return track.mark_ready(str(path))

    return _make


@pytest.fixture
def sample_track(make_track):
    return make_track(title="Test Track", artist="Test Artist")
