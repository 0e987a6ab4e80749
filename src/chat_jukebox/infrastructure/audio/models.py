"""Pydantic models for yt-dlp data transformation and configuration.

These are infrastructure-specific models for parsing external yt-dlp data,
caching extraction results, and configuring yt-dlp options.
"""

from __future__ import annotations

from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

from chat_jukebox.domain.shared.types import (
    HttpUrlStr,
    NonEmptyStr,
    NonNegativeFloat,
    NonNegativeInt,
    PositiveInt,
)

CACHE_TTL: Final[int] = 3600
CACHE_MAX_SIZE: Final[int] = 500
DEFAULT_RETRIES: Final[int] = 3
DEFAULT_SOCKET_TIMEOUT: Final[int] = 10
HINT_SEARCH_LIMIT: Final[int] = 5
LOG_URL_TRUNCATE: Final[int] = 60
MAX_DURATION_MS: Final[int] = 86_400_000


class YtDlpTrackInfo(BaseModel):
    """Trimmed yt-dlp extraction result.

    Extra fields from yt-dlp are silently ignored. Before-validators coerce
    garbage from external yt-dlp data to None instead of failing.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    webpage_url: HttpUrlStr | None = None
    url: NonEmptyStr | None = None
    title: NonEmptyStr = "Unknown Title"
    duration: NonNegativeFloat | None = None
    thumbnail: HttpUrlStr | None = None
    artist: NonEmptyStr | None = None
    creator: NonEmptyStr | None = None
    uploader: NonEmptyStr | None = None
    channel: NonEmptyStr | None = None

    @field_validator(
        "webpage_url", "url", "thumbnail",
        "artist", "creator", "uploader", "channel",
        mode="before",
    )
    @classmethod
    def _coerce_empty_to_none(cls, v: Any) -> str | None:
        if not isinstance(v, str) or not v.strip():
            return None
        return v

    @field_validator("webpage_url", "thumbnail", mode="before")
    @classmethod
    def _require_http(cls, v: Any) -> str | None:
        if isinstance(v, str) and not v.startswith(("http://", "https://")):
            return None
        return v

    @field_validator("title", mode="before")
    @classmethod
    def _coerce_title(cls, v: Any) -> str:
        if not isinstance(v, str) or not v.strip():
            return "Unknown Title"
        return v

    @field_validator("duration", mode="before")
    @classmethod
    def _coerce_duration(cls, v: Any) -> float | None:
        if v is None:
            return None
        try:
            val = float(v)
            return val if val >= 0 else None
        except (TypeError, ValueError):
            return None

    @property
    def page_url(self) -> str | None:
        """URL that identifies the media, as opposed to a direct stream URL."""
        if self.webpage_url:
            return self.webpage_url
        if self.url and self.url.startswith(("http://", "https://")):
            return self.url
        return None

    @property
    def duration_ms(self) -> int | None:
        if self.duration is None:
            return None
        ms = int(self.duration * 1000)
        return ms if ms <= MAX_DURATION_MS else None

    @property
    def performer(self) -> str | None:
        return self.artist or self.creator or self.uploader or self.channel


class CacheEntry(BaseModel):
    """Cached yt-dlp extraction result with its insertion time."""

    model_config = ConfigDict(frozen=True)

    info: YtDlpTrackInfo | None = None
    cached_at: NonNegativeFloat


class YtDlpOpts(BaseModel):
    """Typed yt-dlp configuration options passed to YoutubeDL."""

    model_config = ConfigDict(frozen=True)

    quiet: bool = True
    no_warnings: bool = True
    noprogress: bool = True
    noplaylist: bool = True
    forceipv4: bool = True
    retries: PositiveInt = DEFAULT_RETRIES
    socket_timeout: PositiveInt = DEFAULT_SOCKET_TIMEOUT
    format: NonEmptyStr | None = None
    skip_download: bool = True
    extract_flat: NonEmptyStr | bool = False
    outtmpl: NonEmptyStr | None = None
    writethumbnail: bool = False
    postprocessors: list[dict[str, Any]] = Field(default_factory=list)
    playlistend: NonNegativeInt | None = None

    def to_params(self) -> dict[str, Any]:
        """Options as a YoutubeDL params dict, omitting unset values."""
        return self.model_dump(exclude_none=True)
