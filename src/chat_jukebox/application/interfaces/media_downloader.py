"""Port interface for fetching media bytes to local storage."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from chat_jukebox.domain.shared.types import DurationMs, NonEmptyStr


class DownloadedMedia(BaseModel):
    """Files produced by a successful download."""

    model_config = ConfigDict(frozen=True)

    path: NonEmptyStr
    thumbnail_path: NonEmptyStr | None = None
    duration_ms: DurationMs | None = None


class MediaDownloader(ABC):
    """Interface for downloading resolved media."""

    @abstractmethod
    async def download(self, url: str, destination: Path) -> DownloadedMedia:
        """Download *url* next to *destination*.

        Args:
            url: A resolved media URL.
            destination: Path without extension; the downloader appends the
                container extension it produced.

        Returns:
            The produced files.

        Raises:
            DownloadFailure: If nothing playable was written.
        """
        ...
