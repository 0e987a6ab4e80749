"""Centralized constants for settings keys, SQLite pragmas, and other shared values."""

from __future__ import annotations


class SettingsKeys:
    """Keys of the persisted runtime settings store.

    These are the names the dashboard and chat layer use when changing
    behaviour at runtime; defaults come from the pydantic settings.
    """

    RATE_LIMIT_ENABLED = "rateLimit.enabled"
    RATE_LIMIT_MAX_REQUESTS = "rateLimit.maxRequests"
    RATE_LIMIT_WINDOW_SECONDS = "rateLimit.windowSeconds"
    PREFETCH_NEXT = "performance.prefetchNext"
    PREFETCH_COUNT = "performance.prefetchCount"


class SQLPragmas:
    """SQLite PRAGMA statements applied to each connection."""

    JOURNAL_MODE_WAL = "PRAGMA journal_mode=WAL"
    FOREIGN_KEYS_ON = "PRAGMA foreign_keys=ON"
    BUSY_TIMEOUT = "PRAGMA busy_timeout={timeout}"


class DatabaseURLSchemes:
    """Valid database URL schemes for validation."""

    SQLITE = "sqlite://"
    MEMORY = ":memory:"
    MEMORY_SHARED_URI = "file:chat-jukebox?mode=memory&cache=shared"


class AudioConstants:
    """Audio download and playback constants."""

    YTDLP_FORMAT_DEFAULT = "bestaudio/best"
    AUDIO_CODEC_DEFAULT = "mp3"
    FFPLAY_BASE_ARGS = ("-nodisp", "-autoexit", "-loglevel", "error")
    PLAYER_STOP_TIMEOUT_SECONDS = 3.0


class LogLevels:
    """Valid logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    ALL = frozenset({DEBUG, INFO, WARNING, ERROR, CRITICAL})
