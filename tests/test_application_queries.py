"""
Unit Tests for Application Layer Queries

Tests for:
- GetQueueHandler
- GetCurrentTrackHandler
"""

from chat_jukebox.application.queries.get_current import GetCurrentTrackHandler
from chat_jukebox.application.queries.get_queue import GetQueueHandler
from chat_jukebox.domain.queue.value_objects import PlaybackState


class TestGetQueueHandler:
    async def test_empty_queue(self, queue_store):
        info = await GetQueueHandler(queue_store=queue_store).handle()

        assert info.is_empty
        assert info.current_track is None
        assert info.total_duration_ms == 0

    async def test_lists_tracks_and_total_duration(self, queue_store, make_track):
        await queue_store.add(make_track(duration_ms=60_000))
        await queue_store.add(make_track(duration_ms=None))
        await queue_store.add(make_track(duration_ms=30_000))

        info = await GetQueueHandler(queue_store=queue_store).handle()

        assert info.length == 3
        assert info.total_duration_ms == 90_000

    async def test_serializes_for_dashboard(self, queue_store, make_track):
        track = make_track()
        await queue_store.add(track)

        payload = (await GetQueueHandler(queue_store=queue_store).handle()).model_dump(mode="json")

        assert payload["tracks"][0]["id"] == str(track.id)
        assert payload["tracks"][0]["status"] == "queued"


class TestGetCurrentTrackHandler:
    async def test_idle(self, playback, queue_store):
        info = await GetCurrentTrackHandler(playback=playback, queue_store=queue_store).handle()

        assert info.state == PlaybackState.IDLE
        assert info.track is None
        assert not info.is_playing

    async def test_playing(self, playback, queue_store, clock, ready_track):
        track = ready_track()
        await queue_store.add(track)
        await queue_store.add(ready_track())
        await playback.play_next()
        clock.advance(2)

        info = await GetCurrentTrackHandler(playback=playback, queue_store=queue_store).handle()

        assert info.is_playing
        assert info.track.id == track.id
        assert info.elapsed_ms == 2000
        assert info.queue_length == 1
