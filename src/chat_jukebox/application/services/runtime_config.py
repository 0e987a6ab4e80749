"""Runtime-adjustable configuration backed by the persisted settings store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from chat_jukebox.domain.admission.entities import RateLimitConfig
from chat_jukebox.domain.shared.constants import SettingsKeys
from chat_jukebox.domain.shared.exceptions import PersistenceFailure, ValidationError
from chat_jukebox.domain.shared.messages import LogTemplates
from chat_jukebox.domain.shared.types import PrefetchCount

if TYPE_CHECKING:
    from chat_jukebox.config.settings import PerformanceSettings, RateLimitSettings
    from chat_jukebox.domain.shared.repository import SettingsRepository

logger = logging.getLogger(__name__)

_RATE_LIMIT_KEYS = {
    SettingsKeys.RATE_LIMIT_ENABLED: "enabled",
    SettingsKeys.RATE_LIMIT_MAX_REQUESTS: "max_requests",
    SettingsKeys.RATE_LIMIT_WINDOW_SECONDS: "window_seconds",
}

_PERFORMANCE_KEYS = {
    SettingsKeys.PREFETCH_NEXT: "prefetch_next",
    SettingsKeys.PREFETCH_COUNT: "prefetch_count",
}


class PerformanceConfig(BaseModel):
    """Effective prefetch configuration."""

    model_config = ConfigDict(frozen=True, strict=True)

    prefetch_next: bool = True
    prefetch_count: PrefetchCount = 0


class RuntimeConfig:
    """Reads and updates the runtime settings, falling back to startup defaults.

    A missing key uses the default from the environment settings. A store
    that cannot be read, or holds values that fail validation, also yields
    the defaults so that callers never fail because of configuration.
    """

    def __init__(
        self,
        *,
        settings_repository: SettingsRepository,
        rate_limit_defaults: RateLimitSettings,
        performance_defaults: PerformanceSettings,
    ) -> None:
        self._repo = settings_repository
        self._rate_limit_defaults = RateLimitConfig(
            enabled=rate_limit_defaults.enabled,
            max_requests=rate_limit_defaults.max_requests,
            window_seconds=rate_limit_defaults.window_seconds,
        )
        self._performance_defaults = PerformanceConfig(
            prefetch_next=performance_defaults.prefetch_next,
            prefetch_count=performance_defaults.prefetch_count,
        )

    async def _read(self, keys: dict[str, str], defaults: BaseModel) -> dict[str, Any]:
        values = defaults.model_dump()
        try:
            stored = await self._repo.get_many(list(keys))
        except Exception as e:
            logger.warning(LogTemplates.SETTING_READ_FAILED, ", ".join(keys), e)
            return values
        for key, field_name in keys.items():
            if key in stored and stored[key] is not None:
                values[field_name] = stored[key]
        return values

    async def rate_limit(self) -> RateLimitConfig:
        values = await self._read(_RATE_LIMIT_KEYS, self._rate_limit_defaults)
        try:
            return RateLimitConfig.model_validate(values)
        except PydanticValidationError as e:
            logger.warning(LogTemplates.SETTING_READ_FAILED, "rateLimit.*", e)
            return self._rate_limit_defaults

    async def performance(self) -> PerformanceConfig:
        values = await self._read(_PERFORMANCE_KEYS, self._performance_defaults)
        try:
            return PerformanceConfig.model_validate(values)
        except PydanticValidationError as e:
            logger.warning(LogTemplates.SETTING_READ_FAILED, "performance.*", e)
            return self._performance_defaults

    async def _write(self, keys: dict[str, str], config: BaseModel) -> None:
        try:
            for key, field_name in keys.items():
                await self._repo.set(key, getattr(config, field_name))
        except Exception as e:
            raise PersistenceFailure("settings") from e

    async def update_rate_limit(
        self,
        *,
        enabled: bool | None = None,
        max_requests: int | None = None,
        window_seconds: int | None = None,
    ) -> RateLimitConfig:
        """Persist new rate limit values; omitted values keep their current setting."""
        current = await self.rate_limit()
        updates = {
            "enabled": enabled,
            "max_requests": max_requests,
            "window_seconds": window_seconds,
        }
        merged = current.model_dump() | {k: v for k, v in updates.items() if v is not None}
        try:
            config = RateLimitConfig.model_validate(merged)
        except PydanticValidationError as e:
            field = str(e.errors()[0]["loc"][0]) if e.errors() else None
            raise ValidationError(str(e), field=field) from e

        await self._write(_RATE_LIMIT_KEYS, config)

        logger.info(
            LogTemplates.RATE_LIMIT_CONFIG_UPDATED,
            config.enabled,
            config.max_requests,
            config.window_seconds,
        )
        return config

    async def update_performance(
        self,
        *,
        prefetch_next: bool | None = None,
        prefetch_count: int | None = None,
    ) -> PerformanceConfig:
        """Persist new prefetch values; omitted values keep their current setting."""
        current = await self.performance()
        updates = {"prefetch_next": prefetch_next, "prefetch_count": prefetch_count}
        merged = current.model_dump() | {k: v for k, v in updates.items() if v is not None}
        try:
            config = PerformanceConfig.model_validate(merged)
        except PydanticValidationError as e:
            field = str(e.errors()[0]["loc"][0]) if e.errors() else None
            raise ValidationError(str(e), field=field) from e

        await self._write(_PERFORMANCE_KEYS, config)

        logger.info(
            LogTemplates.PERFORMANCE_CONFIG_UPDATED, config.prefetch_next, config.prefetch_count
        )
        return config
