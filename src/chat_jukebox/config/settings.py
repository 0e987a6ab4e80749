"""Application Settings and Configuration

Pydantic-based settings management using environment variables.
Settings are loaded from environment variables with support for .env files,
type validation, and sensible defaults. All settings are frozen and immutable
after initialization; values that may change at runtime (rate limit and
prefetch knobs) are only defaults for the persisted settings store.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.constants import AudioConstants, DatabaseURLSchemes, LogLevels
from ..domain.shared.messages import ErrorMessages


class DatabaseSettings(BaseModel):
    """Database configuration."""

    model_config = SettingsConfigDict(frozen=True, strict=True, populate_by_name=True)

    url: str = Field(
        default="sqlite:///data/jukebox.db",
        validation_alias=AliasChoices("url", "database_url", "db_url"),
    )
    busy_timeout_ms: int = Field(
        default=5000,
        ge=1000,
        le=30000,
        validation_alias=AliasChoices("busy_timeout_ms", "busy_timeout"),
    )
    connection_timeout_s: int = Field(
        default=10,
        ge=1,
        le=60,
        validation_alias=AliasChoices("connection_timeout_s", "connection_timeout"),
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate database URL format."""
        if v != DatabaseURLSchemes.MEMORY and not v.startswith(DatabaseURLSchemes.SQLITE):
            raise ValueError(ErrorMessages.INVALID_DATABASE_URL)
        return v


class RateLimitSettings(BaseModel):
    """Default admission control configuration."""

    model_config = SettingsConfigDict(frozen=True, strict=True, populate_by_name=True)

    enabled: bool = True
    max_requests: int = Field(
        default=3, ge=1, le=1000, validation_alias=AliasChoices("max_requests", "max")
    )
    window_seconds: int = Field(
        default=60, ge=1, le=86_400, validation_alias=AliasChoices("window_seconds", "window")
    )
    sweep_interval_seconds: int = Field(default=300, ge=1)


class PerformanceSettings(BaseModel):
    """Prefetch pipeline configuration."""

    model_config = SettingsConfigDict(frozen=True, strict=True, populate_by_name=True)

    prefetch_next: bool = True
    prefetch_count: int = Field(default=0, ge=0, le=100)
    max_concurrent_downloads: int = Field(
        default=2,
        ge=1,
        le=16,
        validation_alias=AliasChoices("max_concurrent_downloads", "max_downloads"),
    )
    head_ready_timeout_seconds: float = Field(default=120.0, gt=0.0, le=3600.0)


class PlaybackSettings(BaseModel):
    """Playback state machine configuration."""

    model_config = SettingsConfigDict(frozen=True, strict=True, populate_by_name=True)

    transition_delay_ms: int = Field(
        default=100,
        ge=0,
        le=10_000,
        validation_alias=AliasChoices("transition_delay_ms", "song_transition_delay"),
    )
    cleanup_after_play: bool = True
    player_binary: str = Field(default="ffplay", min_length=1)


class DownloadSettings(BaseModel):
    """Media download configuration."""

    model_config = SettingsConfigDict(frozen=True, strict=True, populate_by_name=True)

    directory: str = Field(
        default="data/media", validation_alias=AliasChoices("directory", "dir", "path")
    )
    ytdlp_format: str = AudioConstants.YTDLP_FORMAT_DEFAULT
    audio_format: str = AudioConstants.AUDIO_CODEC_DEFAULT
    write_thumbnail: bool = True


class PrioritySettings(BaseModel):
    """Priority users seeded into the persisted priority set at startup."""

    model_config = SettingsConfigDict(frozen=True, strict=True, populate_by_name=True)

    user_ids: tuple[str, ...] = Field(
        default_factory=tuple, validation_alias=AliasChoices("user_ids", "users", "vips")
    )

    @field_validator("user_ids", mode="before")
    @classmethod
    def validate_user_ids(cls, v: tuple[str, ...] | list[str] | str) -> tuple[str, ...]:
        """Accept a JSON list or a comma-separated string."""
        if isinstance(v, str):
            v = [part for part in (p.strip() for p in v.split(",")) if part]
        if isinstance(v, list):
            v = tuple(v)
        return v


class ApiSettings(BaseModel):
    """Dashboard HTTP API configuration."""

    model_config = SettingsConfigDict(frozen=True, strict=True, populate_by_name=True)

    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = Field(default=8080, ge=1, le=65535)


class Settings(BaseSettings):
    """Application settings container.

    Automatically loads configuration from environment variables.

    Environment variable naming:
    - ENVIRONMENT, DEBUG, LOG_LEVEL (top-level)
    - RATE_LIMIT__MAX_REQUESTS, PERFORMANCE__PREFETCH_COUNT, etc. (nested)
    - PRIORITY__USER_IDS (JSON list or comma-separated)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        strict=True,
    )

    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    performance: PerformanceSettings = Field(default_factory=PerformanceSettings)
    playback: PlaybackSettings = Field(default_factory=PlaybackSettings)
    downloads: DownloadSettings = Field(default_factory=DownloadSettings)
    priority: PrioritySettings = Field(default_factory=PrioritySettings)
    api: ApiSettings = Field(default_factory=ApiSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        v_upper = v.upper()
        if v_upper not in LogLevels.ALL:
            raise ValueError(
                ErrorMessages.INVALID_LOG_LEVEL.format(level=v, valid_levels=sorted(LogLevels.ALL))
            )
        return v_upper


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are automatically loaded from:
    1. .env file (if present)
    2. Environment variables
    3. Default values
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
