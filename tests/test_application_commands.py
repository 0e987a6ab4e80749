"""
Unit Tests for Application Layer Commands

Tests for:
- EnqueueTrackCommand / EnqueueTrackHandler
- EnqueuePlaylistCommand / EnqueuePlaylistHandler
- SkipTrackCommand / SkipTrackHandler
- PlaybackControlsHandler
- QueueEditHandler
- NewSessionHandler / PrefetchAllHandler
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError

from chat_jukebox.application.commands.enqueue_playlist import (
    EnqueuePlaylistCommand,
    EnqueuePlaylistHandler,
    PlaylistStatus,
)
from chat_jukebox.application.commands.enqueue_track import (
    EnqueueResult,
    EnqueueStatus,
    EnqueueTrackCommand,
    EnqueueTrackHandler,
)
from chat_jukebox.application.commands.playback_controls import (
    ControlStatus,
    PlaybackControlsHandler,
    SeekCommand,
)
from chat_jukebox.application.commands.queue_edit import (
    QueueEditHandler,
    QueueEditStatus,
    RemoveTrackCommand,
    ReorderTrackCommand,
)
from chat_jukebox.application.commands.session import NewSessionHandler, PrefetchAllHandler
from chat_jukebox.application.commands.skip_track import (
    SkipStatus,
    SkipTrackCommand,
    SkipTrackHandler,
)
from chat_jukebox.application.interfaces.media_resolver import ResolvedMedia
from chat_jukebox.domain.shared.exceptions import PermissionDenied, PersistenceFailure, ResolutionFailure


@pytest.fixture
def enqueue_handler(admission, resolver, queue_store, priority_service, prefetch, playback):
    return EnqueueTrackHandler(
        admission=admission,
        resolver=resolver,
        queue_store=queue_store,
        priority_service=priority_service,
        prefetch=prefetch,
        playback=playback,
    )


@pytest.fixture
def playlist_handler(admission, resolver, queue_store, priority_service, prefetch, playback):
    return EnqueuePlaylistHandler(
        admission=admission,
        resolver=resolver,
        queue_store=queue_store,
        priority_service=priority_service,
        prefetch=prefetch,
        playback=playback,
    )


# =============================================================================
# EnqueueTrack Tests
# =============================================================================


class TestEnqueueTrackCommand:
    def test_strips_whitespace(self):
        cmd = EnqueueTrackCommand(track_spec="  some song  ", requester_id="u1")
        assert cmd.track_spec == "some song"

    def test_empty_spec_rejected(self):
        with pytest.raises(ValidationError):
            EnqueueTrackCommand(track_spec="   ", requester_id="u1")

    def test_empty_requester_rejected(self):
        with pytest.raises(ValidationError):
            EnqueueTrackCommand(track_spec="song", requester_id="")

    def test_rate_limited_message_rounds_up(self):
        result = EnqueueResult.rate_limited(12.2)
        assert "13s" in result.message


class TestEnqueueTrackHandler:
    async def test_enqueue_url(self, enqueue_handler, queue_store, playback):
        result = await enqueue_handler.handle(
            EnqueueTrackCommand(
                track_spec="https://youtu.be/dQw4w9WgXcQ", requester_id="u1", requester_name="Ann"
            )
        )
        await playback.drain()

        assert result.status == EnqueueStatus.QUEUED
        assert result.is_success
        assert result.queue_position == 0
        assert result.track.requester_name == "Ann"

    async def test_enqueue_search_uses_hints(self, enqueue_handler, resolver):
        await enqueue_handler.handle(
            EnqueueTrackCommand(track_spec="Queen - Bohemian Rhapsody", requester_id="u1")
        )

        assert resolver.calls[0] == ("Queen - Bohemian Rhapsody", "Bohemian Rhapsody", "Queen")

    async def test_duplicate(self, enqueue_handler, playback, prefetch, resolver):
        playback.start_if_idle = MagicMock(return_value=False)
        prefetch.trigger = AsyncMock(return_value=0)
        first = await enqueue_handler.handle(
            EnqueueTrackCommand(track_spec="https://youtu.be/dQw4w9WgXcQ", requester_id="u1")
        )
        second = await enqueue_handler.handle(
            EnqueueTrackCommand(
                track_spec="https://www.youtube.com/watch?v=dQw4w9WgXcQ&si=x", requester_id="u2"
            )
        )

        assert first.status == EnqueueStatus.QUEUED
        assert second.status == EnqueueStatus.DUPLICATE
        assert second.track.id == first.track.id
        assert "already in queue" in second.message
        assert len(resolver.calls) == 1

    async def test_rate_limited_on_fourth_request(self, enqueue_handler, playback, prefetch):
        playback.start_if_idle = MagicMock(return_value=False)
        prefetch.trigger = AsyncMock(return_value=0)
        for n in range(3):
            result = await enqueue_handler.handle(
                EnqueueTrackCommand(track_spec=f"song number {n}", requester_id="u1")
            )
            assert result.status == EnqueueStatus.QUEUED

        limited = await enqueue_handler.handle(
            EnqueueTrackCommand(track_spec="song number 4", requester_id="u1")
        )

        assert limited.status == EnqueueStatus.RATE_LIMITED
        assert limited.wait_seconds > 0

    async def test_priority_user_is_queued_at_the_tail(
        self, enqueue_handler, priority_service, queue_store, playback, prefetch
    ):
        playback.start_if_idle = MagicMock(return_value=False)
        prefetch.trigger = AsyncMock(return_value=0)
        await priority_service.add("vip")
        await enqueue_handler.handle(EnqueueTrackCommand(track_spec="regular", requester_id="u1"))

        result = await enqueue_handler.handle(
            EnqueueTrackCommand(track_spec="vip song", requester_id="vip")
        )

        assert result.queue_position == 1
        assert result.track.is_priority

    async def test_not_found(self, enqueue_handler, resolver, queue_store, rate_limit_repository):
        resolver.responses["nothing"] = ResolutionFailure("nothing", "No results", no_results=True)

        result = await enqueue_handler.handle(
            EnqueueTrackCommand(track_spec="nothing", requester_id="u1")
        )

        assert result.status == EnqueueStatus.NOT_FOUND
        assert len(queue_store) == 0
        assert await rate_limit_repository.count() == 0

    async def test_storage_error(self, enqueue_handler, queue_store, caplog):
        queue_store.add = AsyncMock(side_effect=PersistenceFailure("add"))

        result = await enqueue_handler.handle(
            EnqueueTrackCommand(track_spec="song", requester_id="u1")
        )

        assert result.status == EnqueueStatus.STORAGE_ERROR
        assert "Command enqueue failed for user=u1 target=song" in caplog.text

    async def test_not_found_log_names_the_request(self, enqueue_handler, resolver, caplog):
        caplog.set_level("INFO", logger="chat_jukebox")
        resolver.responses["lost song"] = ResolutionFailure("lost song", "No results")

        await enqueue_handler.handle(EnqueueTrackCommand(track_spec="lost song", requester_id="u7"))

        assert "Command enqueue failed for user=u7 target=lost song" in caplog.text

    async def test_triggers_prefetch_and_playback(self, enqueue_handler, playback, prefetch):
        playback.start_if_idle = MagicMock(return_value=True)
        prefetch.trigger = AsyncMock(return_value=1)

        await enqueue_handler.handle(EnqueueTrackCommand(track_spec="song", requester_id="u1"))

        prefetch.trigger.assert_awaited_once()
        playback.start_if_idle.assert_called_once()


# =============================================================================
# EnqueuePlaylist Tests
# =============================================================================


class TestEnqueuePlaylistHandler:
    URL = "https://youtube.com/playlist?list=PL123"

    @pytest.fixture(autouse=True)
    def quiet(self, playback, prefetch):
        playback.start_if_idle = MagicMock(return_value=False)
        prefetch.trigger = AsyncMock(return_value=0)

    async def test_adds_entries_in_order(self, playlist_handler, resolver, queue_store):
        resolver.playlists[self.URL] = [
            ResolvedMedia(url=f"https://example.com/{n}", title=f"Song {n}") for n in range(3)
        ]

        result = await playlist_handler.handle(
            EnqueuePlaylistCommand(playlist_url=self.URL, requester_id="u1")
        )

        assert result.status == PlaylistStatus.SUCCESS
        assert len(result.added) == 3
        assert [t.title for t in queue_store.get_queue()] == ["Song 0", "Song 1", "Song 2"]

    async def test_skips_duplicates_inside_and_outside_playlist(
        self, playlist_handler, resolver, queue_store, make_track
    ):
        await queue_store.add(make_track(resolved_url="https://example.com/0"))
        resolver.playlists[self.URL] = [
            ResolvedMedia(url="https://example.com/0", title="Already queued"),
            ResolvedMedia(url="https://example.com/1", title="New"),
            ResolvedMedia(url="https://example.com/1?utm_source=x", title="Repeat"),
        ]

        result = await playlist_handler.handle(
            EnqueuePlaylistCommand(playlist_url=self.URL, requester_id="u1")
        )

        assert len(result.added) == 1
        assert result.duplicates == 2

    async def test_counts_as_one_playlist_request(
        self, playlist_handler, resolver, rate_limit_repository
    ):
        resolver.playlists[self.URL] = [
            ResolvedMedia(url=f"https://example.com/{n}", title=f"Song {n}") for n in range(5)
        ]

        await playlist_handler.handle(EnqueuePlaylistCommand(playlist_url=self.URL, requester_id="u1"))

        assert await rate_limit_repository.count() == 1

    async def test_empty_playlist(self, playlist_handler):
        result = await playlist_handler.handle(
            EnqueuePlaylistCommand(playlist_url=self.URL, requester_id="u1")
        )
        assert result.status == PlaylistStatus.NOT_FOUND

    async def test_all_writes_failing(self, playlist_handler, resolver, queue_store):
        resolver.playlists[self.URL] = [ResolvedMedia(url="https://example.com/0", title="Song")]
        queue_store.add = AsyncMock(side_effect=PersistenceFailure("add"))

        result = await playlist_handler.handle(
            EnqueuePlaylistCommand(playlist_url=self.URL, requester_id="u1")
        )

        assert result.status == PlaylistStatus.STORAGE_ERROR
        assert result.failed == 1

    def test_rejects_non_url(self):
        with pytest.raises(ValidationError):
            EnqueuePlaylistCommand(playlist_url="not a url", requester_id="u1")


# =============================================================================
# SkipTrack Tests
# =============================================================================


class TestSkipTrackCommand:
    def test_empty_requester_rejected(self):
        with pytest.raises(ValueError, match="Requester ID cannot be empty"):
            SkipTrackCommand(requester_id="  ")


class TestSkipTrackHandler:
    @pytest.fixture
    def mock_playback(self):
        return MagicMock()

    @pytest.fixture
    def handler(self, mock_playback):
        return SkipTrackHandler(playback=mock_playback)

    async def test_success(self, handler, mock_playback, sample_track):
        mock_playback.skip = AsyncMock(return_value=sample_track)

        result = await handler.handle(SkipTrackCommand(requester_id="user-1"))

        assert result.is_success
        assert result.skipped_track == sample_track
        assert "Test Track" in result.message

    async def test_nothing_playing(self, handler, mock_playback):
        mock_playback.skip = AsyncMock(return_value=None)

        result = await handler.handle(SkipTrackCommand(requester_id="user-1"))

        assert result.status == SkipStatus.NOTHING_PLAYING

    async def test_permission_denied(self, handler, mock_playback):
        mock_playback.skip = AsyncMock(side_effect=PermissionDenied("user-2", "skip"))

        result = await handler.handle(SkipTrackCommand(requester_id="user-2"))

        assert result.status == SkipStatus.PERMISSION_DENIED
        assert not result.is_success


# =============================================================================
# Playback Controls Tests
# =============================================================================


class TestPlaybackControlsHandler:
    @pytest.fixture
    def mock_playback(self):
        return MagicMock()

    @pytest.fixture
    def handler(self, mock_playback):
        return PlaybackControlsHandler(playback=mock_playback)

    async def test_pause(self, handler, mock_playback):
        mock_playback.pause = AsyncMock(return_value=True)
        assert (await handler.pause()).is_success

    async def test_pause_not_applicable(self, handler, mock_playback):
        mock_playback.pause = AsyncMock(return_value=False)
        assert (await handler.pause()).status == ControlStatus.NOT_APPLICABLE

    async def test_resume(self, handler, mock_playback):
        mock_playback.resume = AsyncMock(return_value=True)
        assert (await handler.resume()).is_success

    async def test_seek_reports_clamped_position(self, handler, mock_playback):
        mock_playback.seek = AsyncMock(return_value=180_000)

        result = await handler.seek(SeekCommand(time_ms=999_999))

        assert result.position_ms == 180_000
        assert "3:00" in result.message

    async def test_seek_without_track(self, handler, mock_playback):
        mock_playback.seek = AsyncMock(return_value=None)

        result = await handler.seek(SeekCommand(time_ms=1000))

        assert result.status == ControlStatus.NOT_APPLICABLE


# =============================================================================
# Queue Edit Tests
# =============================================================================


class TestQueueEditHandler:
    @pytest.fixture
    def handler(self, queue_store):
        return QueueEditHandler(queue_store=queue_store)

    async def test_remove(self, handler, queue_store, make_track):
        track = make_track(title="Doomed")
        await queue_store.add(track)

        result = await handler.remove(RemoveTrackCommand(index=0))

        assert result.is_success
        assert result.track.id == track.id
        assert "Doomed" in result.message

    async def test_remove_invalid_index(self, handler):
        result = await handler.remove(RemoveTrackCommand(index=5))
        assert result.status == QueueEditStatus.INVALID_INDEX

    async def test_reorder(self, handler, queue_store, make_track):
        for _ in range(3):
            await queue_store.add(make_track())

        result = await handler.reorder(ReorderTrackCommand(from_index=2, to_index=0))

        assert result.is_success
        assert result.message == "Moved track from position 3 to 1"

    async def test_reorder_invalid(self, handler, queue_store, make_track):
        await queue_store.add(make_track())
        result = await handler.reorder(ReorderTrackCommand(from_index=0, to_index=3))
        assert result.status == QueueEditStatus.INVALID_INDEX

    async def test_storage_error(self, handler, queue_store):
        queue_store.remove = AsyncMock(side_effect=PersistenceFailure("remove"))
        result = await handler.remove(RemoveTrackCommand(index=0))
        assert result.status == QueueEditStatus.STORAGE_ERROR


# =============================================================================
# Session Tests
# =============================================================================


class TestSessionHandlers:
    async def test_new_session(self):
        playback = MagicMock()
        playback.new_session = AsyncMock(return_value=4)

        result = await NewSessionHandler(playback=playback).handle()

        assert result.success
        assert result.count == 4

    async def test_new_session_storage_error(self):
        playback = MagicMock()
        playback.new_session = AsyncMock(side_effect=PersistenceFailure("clear"))

        result = await NewSessionHandler(playback=playback).handle()

        assert not result.success

    async def test_prefetch_all(self):
        prefetch = MagicMock()
        prefetch.prefetch_all = AsyncMock(return_value=7)

        result = await PrefetchAllHandler(prefetch=prefetch).handle()

        assert result.count == 7
        assert "7" in result.message
