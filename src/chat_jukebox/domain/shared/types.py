"""Reusable Pydantic Annotated types for domain-wide validation.

Every constrained type used across bounded contexts is defined here once,
so models can simply annotate their fields::

    from chat_jukebox.domain.shared.types import NonEmptyStr, DurationMs

    class MyModel(BaseModel):
        requester_id: NonEmptyStr
        duration_ms: DurationMs | None = None
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from pydantic import BeforeValidator, Field

# ── Numeric constraints ─────────────────────────────────────────────

NonNegativeInt = Annotated[int, Field(ge=0)]
"""Integer >= 0."""

PositiveInt = Annotated[int, Field(gt=0)]
"""Integer > 0."""

NonNegativeFloat = Annotated[float, Field(ge=0.0)]
"""Float >= 0.0."""


# ── String constraints ──────────────────────────────────────────────

NonEmptyStr = Annotated[str, Field(min_length=1)]
"""String with at least one character."""

TrackTitleStr = Annotated[str, Field(min_length=1, max_length=500)]
"""Track title: 1-500 characters."""

HttpUrlStr = Annotated[str, Field(pattern=r"^https?://")]
"""String that starts with http:// or https://."""

UserIdStr = Annotated[str, Field(min_length=1, max_length=255)]
"""Chat-platform user identifier (opaque string)."""


# ── Domain-specific numeric constraints ─────────────────────────────

DurationMs = Annotated[int, Field(ge=0, le=86_400_000)]
"""Track duration in milliseconds: 0 … 24 hours."""

MaxRequests = Annotated[int, Field(ge=1, le=1000)]
"""Requests allowed per rate-limit window."""

WindowSeconds = Annotated[int, Field(ge=1, le=86_400)]
"""Rate-limit window length in seconds."""

PrefetchCount = Annotated[int, Field(ge=0, le=100)]
"""Prefetch lookahead; 0 means the whole queue."""


# ── Datetime constraints ────────────────────────────────────────────

def _ensure_utc(v: datetime) -> datetime:
    """Validate that a datetime is timezone-aware and normalise to UTC."""
    if v.tzinfo is None:
        raise ValueError("datetime must be timezone-aware (UTC)")
    return v.astimezone(UTC)


UtcDatetimeField = Annotated[datetime, BeforeValidator(_ensure_utc)]
"""Timezone-aware datetime, normalised to UTC on input."""
