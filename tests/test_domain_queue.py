"""
Unit Tests for the Queue Domain

Tests for:
- URL normalization used for duplicate detection
- Search hint parsing
- TrackRequest value transitions
- PlaybackState and PlaybackSession transitions
"""

import pytest

from chat_jukebox.domain.queue.entities import PlaybackSession, TrackRequest
from chat_jukebox.domain.queue.value_objects import (
    PlaybackState,
    TrackRequestId,
    TrackStatus,
    normalize_url,
    parse_search_hint,
)
from chat_jukebox.domain.shared.exceptions import InvalidOperationError

# =============================================================================
# normalize_url Tests
# =============================================================================


class TestNormalizeUrl:
    """Two references normalize to the same key iff they are the same media."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            "http://youtube.com/watch?v=dQw4w9WgXcQ&t=42s",
            "https://youtu.be/dQw4w9WgXcQ?si=abcdef",
            "https://m.youtube.com/watch?feature=share&v=dQw4w9WgXcQ",
            "https://music.youtube.com/watch?v=dQw4w9WgXcQ&list=RDAMVM",
            "https://www.youtube.com/shorts/dQw4w9WgXcQ",
            "www.youtube.com/watch?v=dQw4w9WgXcQ",
        ],
    )
    def test_youtube_variants_collapse(self, url):
        assert normalize_url(url) == "https://youtube.com/watch?v=dQw4w9WgXcQ"

    def test_different_videos_differ(self):
        assert normalize_url("https://youtu.be/dQw4w9WgXcQ") != normalize_url(
            "https://youtu.be/9bZkp7q19f0"
        )

    def test_generic_url_drops_tracking_and_sorts_query(self):
        a = normalize_url("https://Example.com/track/1/?b=2&a=1&utm_source=x#frag")
        b = normalize_url("http://www.example.com/track/1?a=1&b=2")
        assert a == b == "https://example.com/track/1?a=1&b=2"

    def test_meaningful_params_are_kept(self):
        assert normalize_url("https://example.com/play?id=1") != normalize_url(
            "https://example.com/play?id=2"
        )

    def test_search_queries_fold_case_and_spaces(self):
        assert normalize_url("  Daft   Punk - One More Time ") == normalize_url(
            "daft punk - one more time"
        )

    def test_search_never_equals_url(self):
        assert normalize_url("example.com") != normalize_url("https://example.com")


class TestParseSearchHint:
    def test_artist_title_split(self):
        assert parse_search_hint("Daft Punk - One More Time") == ("Daft Punk", "One More Time")

    def test_no_separator(self):
        assert parse_search_hint("one more time") == (None, None)

    def test_hyphenated_words_are_not_separators(self):
        assert parse_search_hint("a-ha take on me") == (None, None)

    def test_only_first_separator_splits(self):
        assert parse_search_hint("A - B - C") == ("A", "B - C")


# =============================================================================
# TrackRequest Tests
# =============================================================================


class TestTrackRequest:
    def test_generated_ids_are_unique(self, make_track):
        assert make_track().id != make_track().id

    def test_empty_id_rejected(self):
        with pytest.raises(ValueError):
            TrackRequestId("  ")

    def test_is_frozen(self, sample_track):
        with pytest.raises(Exception):
            sample_track.title = "Other"  # type: ignore[misc]

    def test_dedup_key_prefers_resolved_url(self, make_track):
        track = make_track(source_ref="never gonna give you up", resolved_url="https://youtu.be/dQw4w9WgXcQ")
        assert track.dedup_key == "https://youtube.com/watch?v=dQw4w9WgXcQ"

    def test_dedup_key_falls_back_to_source(self, make_track):
        track = make_track(source_ref="Some Song", resolved_url=None)
        assert track.dedup_key == "search:some song"

    def test_display_title(self, make_track):
        track = make_track(title="Song", artist="Band", duration_ms=65_000)
        assert track.display_title == "Band - Song [1:05]"

    def test_display_title_without_duration(self, make_track):
        track = make_track(title="Song", duration_ms=None)
        assert track.display_title == "Song"
        assert track.duration_formatted == "Unknown"

    def test_mark_ready_and_failed(self, make_track):
        track = make_track()
        ready = track.mark_ready("/tmp/x.opus", duration_ms=1000)
        assert ready.is_ready
        assert ready.duration_ms == 1000
        assert track.status == TrackStatus.QUEUED

        failed = ready.mark_failed("boom")
        assert failed.status == TrackStatus.FAILED
        assert failed.error == "boom"
        assert not failed.is_ready

    def test_with_resolution_keeps_known_values(self, make_track):
        track = make_track(title="Queued Title", artist="Known", duration_ms=5000)
        resolved = track.with_resolution(
            url="https://example.com/a", title="Resolved", artist=None, duration_ms=None
        )
        assert resolved.resolved_url == "https://example.com/a"
        assert resolved.title == "Resolved"
        assert resolved.artist == "Known"
        assert resolved.duration_ms == 5000

    def test_reset_for_prefetch(self, make_track):
        ready = make_track().mark_ready("/tmp/x.opus", thumbnail_path="/tmp/x.jpg")
        reset = ready.reset_for_prefetch()
        assert reset.status == TrackStatus.QUEUED
        assert reset.local_media_path is None
        assert reset.thumbnail_path is None

    def test_was_requested_by(self, make_track):
        track = make_track(requester_id="alice")
        assert track.was_requested_by("alice")
        assert not track.was_requested_by("bob")

    def test_duration_upper_bound(self):
        with pytest.raises(Exception):
            TrackRequest(
                source_ref="x", title="x", requester_id="u", duration_ms=86_400_001
            )

    def test_terminal_statuses(self):
        assert TrackStatus.READY.is_terminal_for_prefetch
        assert TrackStatus.FAILED.is_terminal_for_prefetch
        assert not TrackStatus.QUEUED.is_terminal_for_prefetch
        assert not TrackStatus.RESOLVING.is_terminal_for_prefetch


# =============================================================================
# Playback State Tests
# =============================================================================


class TestPlaybackState:
    @pytest.mark.parametrize(
        "source,target",
        [
            (PlaybackState.IDLE, PlaybackState.LOADING),
            (PlaybackState.LOADING, PlaybackState.PLAYING),
            (PlaybackState.PLAYING, PlaybackState.PAUSED),
            (PlaybackState.PAUSED, PlaybackState.PLAYING),
            (PlaybackState.PLAYING, PlaybackState.LOADING),
            (PlaybackState.PAUSED, PlaybackState.LOADING),
            (PlaybackState.PLAYING, PlaybackState.IDLE),
        ],
    )
    def test_valid_transitions(self, source, target):
        assert source.can_transition_to(target)

    @pytest.mark.parametrize(
        "source,target",
        [
            (PlaybackState.IDLE, PlaybackState.PLAYING),
            (PlaybackState.IDLE, PlaybackState.PAUSED),
            (PlaybackState.LOADING, PlaybackState.PAUSED),
            (PlaybackState.LOADING, PlaybackState.LOADING),
        ],
    )
    def test_invalid_transitions(self, source, target):
        assert not source.can_transition_to(target)


class TestPlaybackSession:
    def test_start_requires_loading(self, sample_track):
        session = PlaybackSession()
        with pytest.raises(InvalidOperationError):
            session.start(sample_track, now=0.0)

    def test_elapsed_tracks_clock_and_pause(self, make_track):
        session = PlaybackSession()
        session.transition_to(PlaybackState.LOADING)
        session.start(make_track(duration_ms=60_000), now=100.0)

        assert session.elapsed_ms(102.5) == 2500
        session.pause(103.0)
        assert session.elapsed_ms(200.0) == 3000
        session.resume(210.0)
        assert session.elapsed_ms(211.0) == 4000

    def test_elapsed_is_clamped_to_duration(self, make_track):
        session = PlaybackSession()
        session.transition_to(PlaybackState.LOADING)
        session.start(make_track(duration_ms=1000), now=0.0)
        assert session.elapsed_ms(50.0) == 1000

    def test_seek_while_paused_does_not_start_clock(self, make_track):
        session = PlaybackSession()
        session.transition_to(PlaybackState.LOADING)
        session.start(make_track(duration_ms=60_000), now=0.0)
        session.pause(1.0)
        session.seek_to(30_000, now=5.0)
        assert session.elapsed_ms(100.0) == 30_000

    def test_begin_loading_releases_track(self, sample_track):
        session = PlaybackSession()
        session.transition_to(PlaybackState.LOADING)
        session.start(sample_track, now=0.0)

        previous = session.begin_loading()

        assert previous is not None and previous.id == sample_track.id
        assert session.state == PlaybackState.LOADING
        assert session.track is None

    def test_started_track_is_marked_playing(self, sample_track):
        session = PlaybackSession()
        session.transition_to(PlaybackState.LOADING)
        session.start(sample_track, now=0.0)
        assert session.track.status == TrackStatus.PLAYING

    def test_reset_from_any_state(self, sample_track):
        session = PlaybackSession()
        session.transition_to(PlaybackState.LOADING)
        session.start(sample_track, now=0.0)
        session.pause(1.0)

        previous = session.reset()

        assert previous is not None
        assert session.state == PlaybackState.IDLE
        assert session.elapsed_ms(10.0) == 0
