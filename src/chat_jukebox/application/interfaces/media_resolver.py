"""Port interface for turning track specs into concrete media URLs."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict

from chat_jukebox.domain.queue.value_objects import SourceKind
from chat_jukebox.domain.shared.types import DurationMs, HttpUrlStr, NonEmptyStr


class ResolvedMedia(BaseModel):
    """Resolver output for a single playable item."""

    model_config = ConfigDict(frozen=True)

    url: HttpUrlStr
    title: NonEmptyStr
    artist: NonEmptyStr | None = None
    duration_ms: DurationMs | None = None
    thumbnail_url: HttpUrlStr | None = None


class MediaResolver(ABC):
    """Interface for URL classification, search and metadata lookup.

    Every coroutine either returns a result or raises ``ResolutionFailure``.
    """

    @abstractmethod
    def classify(self, spec: NonEmptyStr) -> SourceKind:
        """Classify a user-supplied spec as a URL, a playlist or a search query."""
        ...

    @abstractmethod
    async def resolve(
        self,
        spec: NonEmptyStr,
        *,
        expected_title: str | None = None,
        expected_artist: str | None = None,
    ) -> ResolvedMedia:
        """Resolve a URL or search query to one playable item."""
        ...

    @abstractmethod
    async def fetch_metadata(self, url: HttpUrlStr) -> ResolvedMedia:
        """Look up title, artist and duration for a concrete URL."""
        ...

    @abstractmethod
    async def extract_playlist(self, url: HttpUrlStr) -> list[ResolvedMedia]:
        """Expand a playlist URL into its entries, in playlist order."""
        ...
