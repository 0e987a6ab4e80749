"""MediaDownloader implementation that extracts audio files with yt-dlp."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Final

from yt_dlp import YoutubeDL

from chat_jukebox.application.interfaces.media_downloader import DownloadedMedia, MediaDownloader
from chat_jukebox.config.settings import DownloadSettings
from chat_jukebox.domain.shared.exceptions import DownloadFailure
from chat_jukebox.domain.shared.messages import ErrorMessages, LogTemplates

from .models import YtDlpOpts, YtDlpTrackInfo

logger = logging.getLogger(__name__)

THUMBNAIL_SUFFIXES: Final[frozenset[str]] = frozenset({".jpg", ".jpeg", ".png", ".webp"})
PARTIAL_SUFFIXES: Final[frozenset[str]] = frozenset({".part", ".ytdl", ".temp"})


class YtDlpDownloader(MediaDownloader):
    def __init__(self, settings: DownloadSettings | None = None) -> None:
        self._settings = settings or DownloadSettings()

    def _opts_for(self, destination: Path) -> YtDlpOpts:
        return YtDlpOpts(
            format=self._settings.ytdlp_format,
            skip_download=False,
            outtmpl=f"{destination}.%(ext)s",
            writethumbnail=self._settings.write_thumbnail,
            postprocessors=[
                {
                    "key": "FFmpegExtractAudio",
                    "preferredcodec": self._settings.audio_format,
                }
            ],
        )

    def _download_sync(self, url: str, destination: Path) -> dict[str, Any] | None:
        destination.parent.mkdir(parents=True, exist_ok=True)
        with YoutubeDL(params=self._opts_for(destination).to_params()) as ydl:
            data = ydl.extract_info(url, download=True)
        return dict(data) if isinstance(data, dict) else None

    async def download(self, url: str, destination: Path) -> DownloadedMedia:
        logger.info(LogTemplates.YTDLP_DOWNLOAD_STARTED, url, destination)
        try:
            data = await asyncio.to_thread(self._download_sync, url, destination)
        except Exception as e:
            logger.exception(LogTemplates.YTDLP_DOWNLOAD_FAILED, url)
            raise DownloadFailure(url, str(e)) from e

        media_path, thumbnail_path = self._locate_outputs(destination)
        if media_path is None:
            raise DownloadFailure(url, ErrorMessages.DOWNLOAD_PRODUCED_NO_FILE)

        info = YtDlpTrackInfo.model_validate(data) if data else None
        return DownloadedMedia(
            path=str(media_path),
            thumbnail_path=str(thumbnail_path) if thumbnail_path else None,
            duration_ms=info.duration_ms if info else None,
        )

    def _locate_outputs(self, destination: Path) -> tuple[Path | None, Path | None]:
        expected = destination.with_name(f"{destination.name}.{self._settings.audio_format}")
        media: Path | None = expected if expected.is_file() else None
        thumbnail: Path | None = None

        for candidate in sorted(destination.parent.glob(f"{destination.name}.*")):
            suffix = candidate.suffix.lower()
            if suffix in PARTIAL_SUFFIXES or not candidate.is_file():
                continue
            if suffix in THUMBNAIL_SUFFIXES:
                thumbnail = thumbnail or candidate
            elif media is None:
                media = candidate
        return media, thumbnail
