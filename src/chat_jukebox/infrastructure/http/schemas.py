"""Request and response bodies for the dashboard API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from chat_jukebox.domain.shared.types import (
    HttpUrlStr,
    MaxRequests,
    NonEmptyStr,
    NonNegativeInt,
    PrefetchCount,
    UserIdStr,
    WindowSeconds,
)


class EnqueueBody(BaseModel):
    track: NonEmptyStr
    requester_id: UserIdStr
    requester_name: NonEmptyStr | None = None
    group_id: NonEmptyStr | None = None


class PlaylistBody(BaseModel):
    url: HttpUrlStr
    requester_id: UserIdStr
    requester_name: NonEmptyStr | None = None
    group_id: NonEmptyStr | None = None


class SkipBody(BaseModel):
    requester_id: UserIdStr


class SeekBody(BaseModel):
    time: int = Field(description="Target position in milliseconds; clamped to the track")


class ReorderBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_index: NonNegativeInt = Field(alias="from")
    to_index: NonNegativeInt = Field(alias="to")


class RateLimitBody(BaseModel):
    enabled: bool | None = None
    max_requests: MaxRequests | None = None
    window_seconds: WindowSeconds | None = None


class PerformanceBody(BaseModel):
    prefetch_next: bool | None = None
    prefetch_count: PrefetchCount | None = None


class PriorityUserBody(BaseModel):
    user_id: UserIdStr
    name: NonEmptyStr | None = None
