"""Immutable value objects for the queue and playback bounded context."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Final
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit
from uuid import uuid4

from pydantic import PlainSerializer, PlainValidator

from chat_jukebox.domain.shared.messages import ErrorMessages


@dataclass(frozen=True)
class TrackRequestId:
    """Opaque identifier of a single enqueued request."""

    value: str

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise ValueError(ErrorMessages.EMPTY_TRACK_ID)

    def __str__(self) -> str:
        return self.value

    def __hash__(self) -> int:
        return hash(self.value)

    @classmethod
    def generate(cls) -> TrackRequestId:
        return cls(uuid4().hex[:16])


# Serializes as plain string in JSON, stores as TrackRequestId in the model.
TrackRequestIdField = Annotated[
    TrackRequestId,
    PlainValidator(lambda v: TrackRequestId(v) if isinstance(v, str) else v),
    PlainSerializer(lambda v: v.value, return_type=str),
]


class TrackStatus(Enum):
    """Lifecycle of a track request from enqueue to playback."""

    QUEUED = "queued"
    RESOLVING = "resolving"
    READY = "ready"
    PLAYING = "playing"
    FAILED = "failed"

    @property
    def is_terminal_for_prefetch(self) -> bool:
        """Prefetch has nothing left to do for this track."""
        return self in (TrackStatus.READY, TrackStatus.PLAYING, TrackStatus.FAILED)


class PlaybackState(Enum):
    """Playback state with enforced transitions.

    State transitions:
    - IDLE -> LOADING (play-next)
    - LOADING -> PLAYING (head ready and audio started)
    - LOADING -> IDLE (queue exhausted)
    - PLAYING <-> PAUSED
    - PLAYING/PAUSED -> LOADING (skip or natural end)
    - Any -> IDLE (new session)
    """

    IDLE = "idle"
    LOADING = "loading"
    PLAYING = "playing"
    PAUSED = "paused"

    def can_transition_to(self, target: PlaybackState) -> bool:
        """Check if transition to target state is valid."""
        if target == PlaybackState.IDLE:
            return True
        valid_transitions = {
            PlaybackState.IDLE: {PlaybackState.LOADING},
            PlaybackState.LOADING: {PlaybackState.PLAYING},
            PlaybackState.PLAYING: {PlaybackState.PAUSED, PlaybackState.LOADING},
            PlaybackState.PAUSED: {PlaybackState.PLAYING, PlaybackState.LOADING},
        }
        return target in valid_transitions.get(self, set())

    @property
    def has_current_track(self) -> bool:
        return self in (PlaybackState.PLAYING, PlaybackState.PAUSED)


class SourceKind(Enum):
    """How a user-supplied track spec should be resolved."""

    URL = "url"
    PLAYLIST = "playlist"
    SEARCH = "search"


# ── URL normalization ──────────────────────────────────────────────

YOUTUBE_HOSTS: Final[frozenset[str]] = frozenset(
    {"youtube.com", "m.youtube.com", "music.youtube.com", "youtube-nocookie.com"}
)

YOUTUBE_ID_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[a-zA-Z0-9_-]{11}$")

_YOUTUBE_PATH_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^/(?:shorts|embed|live|v)/([a-zA-Z0-9_-]{11})"
)

# Query parameters that never change which media a URL points at.
_IGNORED_PARAMS: Final[frozenset[str]] = frozenset(
    {"si", "feature", "pp", "t", "start", "list", "index", "ab_channel", "fbclid", "gclid"}
)

_WHITESPACE: Final[re.Pattern[str]] = re.compile(r"\s+")


def _youtube_video_id(host: str, path: str, query: dict[str, str]) -> str | None:
    if host == "youtu.be":
        candidate = path.lstrip("/").split("/", 1)[0]
        return candidate if YOUTUBE_ID_PATTERN.match(candidate) else None

    if host not in YOUTUBE_HOSTS:
        return None

    if path == "/watch":
        candidate = query.get("v", "")
        return candidate if YOUTUBE_ID_PATTERN.match(candidate) else None

    match = _YOUTUBE_PATH_PATTERN.match(path)
    return match.group(1) if match else None


def parse_search_hint(query: str) -> tuple[str | None, str | None]:
    """Split an ``"Artist - Title"`` query into (artist, title) hints."""
    if " - " not in query:
        return None, None
    artist, _, title = query.partition(" - ")
    return artist.strip() or None, title.strip() or None


def normalize_url(value: str) -> str:
    """Return the key two references share iff they point at the same media.

    URLs lose their scheme distinction, ``www.`` prefix, fragment, trailing
    slash and tracking parameters; remaining query parameters are sorted.
    YouTube links of every shape collapse onto ``watch?v=<id>``. Anything
    that is not a URL is treated as a search query and case/space folded.
    """
    raw = value.strip()
    if not re.match(r"^https?://", raw, re.IGNORECASE):
        if raw.lower().startswith("www."):
            raw = "https://" + raw
        else:
            return "search:" + _WHITESPACE.sub(" ", raw).casefold()

    parts = urlsplit(raw)
    host = (parts.hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    query = dict(parse_qsl(parts.query, keep_blank_values=False))

    video_id = _youtube_video_id(host, parts.path, query)
    if video_id is not None:
        return f"https://youtube.com/watch?v={video_id}"

    kept = sorted(
        (k, v)
        for k, v in query.items()
        if k.lower() not in _IGNORED_PARAMS and not k.lower().startswith("utm_")
    )
    netloc = host
    if parts.port and parts.port not in (80, 443):
        netloc = f"{host}:{parts.port}"
    path = parts.path.rstrip("/")
    return urlunsplit(("https", netloc, path, urlencode(kept), ""))
