"""Sliding-window rate limit configuration, decisions and evaluation."""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict

from chat_jukebox.domain.shared.types import (
    MaxRequests,
    NonNegativeFloat,
    NonNegativeInt,
    WindowSeconds,
)


class RateLimitConfig(BaseModel):
    """Effective rate limit configuration."""

    model_config = ConfigDict(frozen=True, strict=True)

    enabled: bool = True
    max_requests: MaxRequests = 3
    window_seconds: WindowSeconds = 60

    @property
    def retention_seconds(self) -> int:
        """How long request records stay useful to the limiter."""
        return self.window_seconds * 2


class RateLimitDecision(BaseModel):
    """Outcome of a rate limit check.

    ``remaining`` is None when the caller is not limited at all (priority
    user or limiter disabled). ``reset_at`` is a unix timestamp.
    """

    model_config = ConfigDict(frozen=True)

    allowed: bool
    remaining: NonNegativeInt | None = None
    reset_at: NonNegativeFloat | None = None
    wait_seconds: NonNegativeFloat = 0.0

    @property
    def is_unlimited(self) -> bool:
        return self.allowed and self.remaining is None

    @classmethod
    def unlimited(cls) -> RateLimitDecision:
        return cls(allowed=True)


def evaluate_window(
    timestamps: Iterable[float], config: RateLimitConfig, now: float
) -> RateLimitDecision:
    """Decide whether one more request fits into the trailing window.

    Only requests at or after ``now - window_seconds`` count. When the window
    is full the decision resets once the oldest counted request ages out.
    """
    window_start = now - config.window_seconds
    recent = sorted(t for t in timestamps if t >= window_start)

    if len(recent) >= config.max_requests:
        reset_at = recent[0] + config.window_seconds
        return RateLimitDecision(
            allowed=False,
            remaining=0,
            reset_at=reset_at,
            wait_seconds=max(0.0, reset_at - now),
        )

    reset_at = recent[0] + config.window_seconds if recent else now + config.window_seconds
    return RateLimitDecision(
        allowed=True,
        remaining=config.max_requests - len(recent) - 1,
        reset_at=reset_at,
    )
