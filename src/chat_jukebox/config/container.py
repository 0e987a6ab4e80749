"""Dependency Injection Container

Manages the application's dependency graph, providing lazy initialization
and lifecycle management for services, repositories, adapters, and handlers.
Components are created on demand and cached, so each exists once per
container and is passed by reference to whoever needs it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from ..application.commands.enqueue_playlist import EnqueuePlaylistHandler
    from ..application.commands.enqueue_track import EnqueueTrackHandler
    from ..application.commands.playback_controls import PlaybackControlsHandler
    from ..application.commands.queue_edit import QueueEditHandler
    from ..application.commands.session import NewSessionHandler, PrefetchAllHandler
    from ..application.commands.skip_track import SkipTrackHandler
    from ..application.interfaces.audio_output import AudioOutput
    from ..application.interfaces.media_downloader import MediaDownloader
    from ..application.interfaces.media_resolver import MediaResolver
    from ..application.queries.get_current import GetCurrentTrackHandler
    from ..application.queries.get_queue import GetQueueHandler
    from ..application.services.admission_service import AdmissionController
    from ..application.services.media_cleanup import MediaCleanup
    from ..application.services.playback_machine import PlaybackStateMachine
    from ..application.services.prefetch_pipeline import PrefetchPipeline
    from ..application.services.priority_service import PriorityService
    from ..application.services.queue_store import QueueStore
    from ..application.services.runtime_config import RuntimeConfig
    from ..domain.admission.repository import PriorityUserRepository, RateLimitRepository
    from ..domain.queue.repository import QueueRepository
    from ..domain.shared.events import EventBus
    from ..domain.shared.repository import SettingsRepository
    from ..infrastructure.persistence.database import Database
    from ..infrastructure.persistence.sweep import RateLimitSweepJob
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Adapters (resolver, downloader, audio output) may be supplied up front,
    which is how tests swap in doubles; anything not supplied is built from
    settings on first access.
    """

    settings: Settings

    # Persistence layer
    _database: Database | None = None
    _queue_repository: QueueRepository | None = None
    _rate_limit_repository: RateLimitRepository | None = None
    _settings_repository: SettingsRepository | None = None
    _priority_repository: PriorityUserRepository | None = None

    # Infrastructure adapters
    _resolver: MediaResolver | None = None
    _downloader: MediaDownloader | None = None
    _audio_output: AudioOutput | None = None

    # Application services
    _event_bus: EventBus | None = None
    _runtime_config: RuntimeConfig | None = None
    _priority_service: PriorityService | None = None
    _admission: AdmissionController | None = None
    _queue_store: QueueStore | None = None
    _media_cleanup: MediaCleanup | None = None
    _prefetch: PrefetchPipeline | None = None
    _playback: PlaybackStateMachine | None = None

    # Command handlers
    _enqueue_track_handler: EnqueueTrackHandler | None = None
    _enqueue_playlist_handler: EnqueuePlaylistHandler | None = None
    _skip_track_handler: SkipTrackHandler | None = None
    _playback_controls_handler: PlaybackControlsHandler | None = None
    _queue_edit_handler: QueueEditHandler | None = None
    _new_session_handler: NewSessionHandler | None = None
    _prefetch_all_handler: PrefetchAllHandler | None = None

    # Query handlers
    _get_queue_handler: GetQueueHandler | None = None
    _get_current_handler: GetCurrentTrackHandler | None = None

    # Background jobs
    _sweep_job: RateLimitSweepJob | None = None

    @property
    def download_dir(self) -> Path:
        return Path(self.settings.downloads.directory)

    # === Database ===

    @property
    def database(self) -> Database:
        if self._database is None:
            from ..infrastructure.persistence.database import Database

            self._database = Database(self.settings.database.url, settings=self.settings.database)
        return self._database

    # === Repositories ===

    @property
    def queue_repository(self) -> QueueRepository:
        if self._queue_repository is None:
            from ..infrastructure.persistence.repositories.queue_repository import (
                SQLiteQueueRepository,
            )

            self._queue_repository = SQLiteQueueRepository(self.database)
        return self._queue_repository

    @property
    def rate_limit_repository(self) -> RateLimitRepository:
        if self._rate_limit_repository is None:
            from ..infrastructure.persistence.repositories.rate_limit_repository import (
                SQLiteRateLimitRepository,
            )

            self._rate_limit_repository = SQLiteRateLimitRepository(self.database)
        return self._rate_limit_repository

    @property
    def settings_repository(self) -> SettingsRepository:
        if self._settings_repository is None:
            from ..infrastructure.persistence.repositories.settings_repository import (
                SQLiteSettingsRepository,
            )

            self._settings_repository = SQLiteSettingsRepository(self.database)
        return self._settings_repository

    @property
    def priority_repository(self) -> PriorityUserRepository:
        if self._priority_repository is None:
            from ..infrastructure.persistence.repositories.priority_repository import (
                SQLitePriorityUserRepository,
            )

            self._priority_repository = SQLitePriorityUserRepository(self.database)
        return self._priority_repository

    # === Infrastructure adapters ===

    @property
    def resolver(self) -> MediaResolver:
        if self._resolver is None:
            from ..infrastructure.audio.ytdlp_resolver import YtDlpResolver

            self._resolver = YtDlpResolver(self.settings.downloads)
        return self._resolver

    @property
    def downloader(self) -> MediaDownloader:
        if self._downloader is None:
            from ..infrastructure.audio.ytdlp_downloader import YtDlpDownloader

            self._downloader = YtDlpDownloader(self.settings.downloads)
        return self._downloader

    @property
    def audio_output(self) -> AudioOutput:
        if self._audio_output is None:
            from ..infrastructure.audio.ffplay_output import FfplayOutput

            self._audio_output = FfplayOutput(self.settings.playback)
        return self._audio_output

    # === Application services ===

    @property
    def event_bus(self) -> EventBus:
        if self._event_bus is None:
            from ..domain.shared.events import EventBus

            self._event_bus = EventBus()
        return self._event_bus

    @property
    def runtime_config(self) -> RuntimeConfig:
        if self._runtime_config is None:
            from ..application.services.runtime_config import RuntimeConfig

            self._runtime_config = RuntimeConfig(
                settings_repository=self.settings_repository,
                rate_limit_defaults=self.settings.rate_limit,
                performance_defaults=self.settings.performance,
            )
        return self._runtime_config

    @property
    def priority_service(self) -> PriorityService:
        if self._priority_service is None:
            from ..application.services.priority_service import PriorityService

            self._priority_service = PriorityService(priority_repository=self.priority_repository)
        return self._priority_service

    @property
    def admission(self) -> AdmissionController:
        if self._admission is None:
            from ..application.services.admission_service import AdmissionController

            self._admission = AdmissionController(
                rate_limit_repository=self.rate_limit_repository,
                priority_service=self.priority_service,
                runtime_config=self.runtime_config,
            )
        return self._admission

    @property
    def queue_store(self) -> QueueStore:
        if self._queue_store is None:
            from ..application.services.queue_store import QueueStore

            self._queue_store = QueueStore(
                queue_repository=self.queue_repository, event_bus=self.event_bus
            )
        return self._queue_store

    @property
    def media_cleanup(self) -> MediaCleanup:
        if self._media_cleanup is None:
            from ..application.services.media_cleanup import MediaCleanup

            self._media_cleanup = MediaCleanup(
                queue_store=self.queue_store,
                event_bus=self.event_bus,
                download_dir=self.download_dir,
            )
        return self._media_cleanup

    @property
    def prefetch(self) -> PrefetchPipeline:
        if self._prefetch is None:
            from ..application.services.prefetch_pipeline import PrefetchPipeline

            self._prefetch = PrefetchPipeline(
                queue_store=self.queue_store,
                resolver=self.resolver,
                downloader=self.downloader,
                runtime_config=self.runtime_config,
                media_cleanup=self.media_cleanup,
                event_bus=self.event_bus,
                download_dir=self.download_dir,
                max_concurrent_downloads=self.settings.performance.max_concurrent_downloads,
            )
        return self._prefetch

    @property
    def playback(self) -> PlaybackStateMachine:
        if self._playback is None:
            from ..application.services.playback_machine import PlaybackStateMachine

            self._playback = PlaybackStateMachine(
                queue_store=self.queue_store,
                prefetch=self.prefetch,
                audio_output=self.audio_output,
                priority_service=self.priority_service,
                media_cleanup=self.media_cleanup,
                event_bus=self.event_bus,
                transition_delay_ms=self.settings.playback.transition_delay_ms,
                cleanup_after_play=self.settings.playback.cleanup_after_play,
                head_ready_timeout_seconds=self.settings.performance.head_ready_timeout_seconds,
            )
        return self._playback

    # === Command Handlers ===

    @property
    def enqueue_track_handler(self) -> EnqueueTrackHandler:
        if self._enqueue_track_handler is None:
            from ..application.commands.enqueue_track import EnqueueTrackHandler

            self._enqueue_track_handler = EnqueueTrackHandler(
                admission=self.admission,
                resolver=self.resolver,
                queue_store=self.queue_store,
                priority_service=self.priority_service,
                prefetch=self.prefetch,
                playback=self.playback,
            )
        return self._enqueue_track_handler

    @property
    def enqueue_playlist_handler(self) -> EnqueuePlaylistHandler:
        if self._enqueue_playlist_handler is None:
            from ..application.commands.enqueue_playlist import EnqueuePlaylistHandler

            self._enqueue_playlist_handler = EnqueuePlaylistHandler(
                admission=self.admission,
                resolver=self.resolver,
                queue_store=self.queue_store,
                priority_service=self.priority_service,
                prefetch=self.prefetch,
                playback=self.playback,
            )
        return self._enqueue_playlist_handler

    @property
    def skip_track_handler(self) -> SkipTrackHandler:
        if self._skip_track_handler is None:
            from ..application.commands.skip_track import SkipTrackHandler

            self._skip_track_handler = SkipTrackHandler(playback=self.playback)
        return self._skip_track_handler

    @property
    def playback_controls_handler(self) -> PlaybackControlsHandler:
        if self._playback_controls_handler is None:
            from ..application.commands.playback_controls import PlaybackControlsHandler

            self._playback_controls_handler = PlaybackControlsHandler(playback=self.playback)
        return self._playback_controls_handler

    @property
    def queue_edit_handler(self) -> QueueEditHandler:
        if self._queue_edit_handler is None:
            from ..application.commands.queue_edit import QueueEditHandler

            self._queue_edit_handler = QueueEditHandler(queue_store=self.queue_store)
        return self._queue_edit_handler

    @property
    def new_session_handler(self) -> NewSessionHandler:
        if self._new_session_handler is None:
            from ..application.commands.session import NewSessionHandler

            self._new_session_handler = NewSessionHandler(playback=self.playback)
        return self._new_session_handler

    @property
    def prefetch_all_handler(self) -> PrefetchAllHandler:
        if self._prefetch_all_handler is None:
            from ..application.commands.session import PrefetchAllHandler

            self._prefetch_all_handler = PrefetchAllHandler(prefetch=self.prefetch)
        return self._prefetch_all_handler

    # === Query Handlers ===

    @property
    def get_queue_handler(self) -> GetQueueHandler:
        if self._get_queue_handler is None:
            from ..application.queries.get_queue import GetQueueHandler

            self._get_queue_handler = GetQueueHandler(queue_store=self.queue_store)
        return self._get_queue_handler

    @property
    def get_current_handler(self) -> GetCurrentTrackHandler:
        if self._get_current_handler is None:
            from ..application.queries.get_current import GetCurrentTrackHandler

            self._get_current_handler = GetCurrentTrackHandler(
                playback=self.playback, queue_store=self.queue_store
            )
        return self._get_current_handler

    # === Background Jobs ===

    @property
    def sweep_job(self) -> RateLimitSweepJob:
        if self._sweep_job is None:
            from ..infrastructure.persistence.sweep import RateLimitSweepJob

            self._sweep_job = RateLimitSweepJob(
                admission=self.admission,
                interval_seconds=self.settings.rate_limit.sweep_interval_seconds,
            )
        return self._sweep_job

    # === Lifecycle ===

    async def initialize(self) -> None:
        """Open storage, restore the queue and start background work."""
        await self.database.initialize()
        await self.priority_service.seed(self.settings.priority.user_ids)
        await self.queue_store.load()

        # Constructing the state machine registers the audio end callback.
        _ = self.playback
        self.media_cleanup.start()
        self.prefetch.start()
        self.media_cleanup.sweep_orphans()

        await self.prefetch.trigger()
        self.playback.start_if_idle()
        self.sweep_job.start()

    async def shutdown(self) -> None:
        """Stop background work and release resources."""
        if self._sweep_job is not None:
            await self._sweep_job.stop()

        try:
            if self._playback is not None:
                await self._playback.shutdown()
        except Exception as exc:
            logger.warning("Failed stopping playback: %r", exc)

        try:
            if self._prefetch is not None:
                await self._prefetch.stop()
        except Exception as exc:
            logger.warning("Failed stopping prefetch pipeline: %r", exc)

        if self._media_cleanup is not None:
            self._media_cleanup.stop()

        if self._database is not None:
            await self._database.close()


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)
