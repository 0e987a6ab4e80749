"""MediaResolver implementation using yt-dlp for classification, search and metadata."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import Any, Final

from yt_dlp import YoutubeDL

from chat_jukebox.application.interfaces.media_resolver import MediaResolver, ResolvedMedia
from chat_jukebox.config.settings import DownloadSettings
from chat_jukebox.domain.queue.value_objects import SourceKind
from chat_jukebox.domain.shared.exceptions import ResolutionFailure
from chat_jukebox.domain.shared.messages import ErrorMessages, LogTemplates

from .models import (
    CACHE_MAX_SIZE,
    CACHE_TTL,
    HINT_SEARCH_LIMIT,
    LOG_URL_TRUNCATE,
    CacheEntry,
    YtDlpOpts,
    YtDlpTrackInfo,
)

logger = logging.getLogger(__name__)

URL_PATTERNS: Final[list[re.Pattern[str]]] = [
    re.compile(r"^https?://", re.IGNORECASE),
    re.compile(r"^www\.", re.IGNORECASE),
]

PLAYLIST_PATTERNS: Final[list[re.Pattern[str]]] = [
    re.compile(r"[?&]list="),
    re.compile(r"/playlist\?"),
    re.compile(r"/sets/"),
    re.compile(r"/album/"),
]


def _score(info: YtDlpTrackInfo, title: str | None, artist: str | None) -> int:
    text = f"{info.performer or ''} {info.title}".casefold()
    score = 0
    if title and title.casefold() in text:
        score += 2
    if artist and artist.casefold() in text:
        score += 1
    return score


class YtDlpResolver(MediaResolver):
    def __init__(self, settings: DownloadSettings | None = None) -> None:
        self._settings = settings or DownloadSettings()
        self._base_opts = YtDlpOpts(format=self._settings.ytdlp_format)
        self._cache: dict[str, CacheEntry] = {}

    def _get_opts(self, **overrides: Any) -> YtDlpOpts:
        if overrides:
            return self._base_opts.model_copy(update=overrides)
        return self._base_opts

    def _get_playlist_opts(self) -> YtDlpOpts:
        return self._get_opts(noplaylist=False, extract_flat="in_playlist")

    # === Classification ===

    def classify(self, spec: str) -> SourceKind:
        value = spec.strip()
        if not any(pattern.search(value) for pattern in URL_PATTERNS):
            return SourceKind.SEARCH
        if any(pattern.search(value) for pattern in PLAYLIST_PATTERNS):
            return SourceKind.PLAYLIST
        return SourceKind.URL

    # === Blocking yt-dlp calls (run in a worker thread) ===

    def _extract_info_sync(self, url: str) -> YtDlpTrackInfo | None:
        now = time.time()
        cached = self._cache.get(url)
        if cached is not None:
            if now - cached.cached_at < CACHE_TTL:
                logger.debug(LogTemplates.CACHE_HIT_URL, url[:LOG_URL_TRUNCATE])
                return cached.info
            self._cache.pop(url, None)

        with YoutubeDL(params=self._get_opts().to_params()) as ydl:
            data = ydl.extract_info(url, download=False)
        result = YtDlpTrackInfo.model_validate(dict(data)) if isinstance(data, dict) else None

        self._cache[url] = CacheEntry(info=result, cached_at=now)
        if len(self._cache) > CACHE_MAX_SIZE:
            expired = [k for k, entry in self._cache.items() if now - entry.cached_at >= CACHE_TTL]
            for k in expired:
                self._cache.pop(k, None)
            if expired:
                logger.debug(LogTemplates.CACHE_EXPIRED_CLEANED, len(expired))
        return result

    def _search_sync(self, query: str, limit: int = 1) -> list[YtDlpTrackInfo]:
        with YoutubeDL(params=self._get_opts().to_params()) as ydl:
            data = ydl.extract_info(f"ytsearch{limit}:{query}", download=False)
        return self._entries(data)

    def _extract_playlist_sync(self, url: str) -> list[YtDlpTrackInfo]:
        with YoutubeDL(params=self._get_playlist_opts().to_params()) as ydl:
            data = ydl.extract_info(url, download=False)
        return self._entries(data)

    @staticmethod
    def _entries(data: Any) -> list[YtDlpTrackInfo]:
        if not isinstance(data, dict):
            return []
        entries = data.get("entries") or []
        return [YtDlpTrackInfo.model_validate(dict(e)) for e in entries if isinstance(e, dict)]

    # === MediaResolver ===

    async def resolve(
        self,
        spec: str,
        *,
        expected_title: str | None = None,
        expected_artist: str | None = None,
    ) -> ResolvedMedia:
        if self.classify(spec) == SourceKind.SEARCH:
            return await self._search(spec, expected_title, expected_artist)
        return await self.fetch_metadata(spec)

    async def _search(
        self, query: str, expected_title: str | None, expected_artist: str | None
    ) -> ResolvedMedia:
        limit = HINT_SEARCH_LIMIT if (expected_title or expected_artist) else 1
        try:
            results = await asyncio.to_thread(self._search_sync, query, limit)
        except Exception as e:
            logger.exception(LogTemplates.YTDLP_FAILED_SEARCH, query)
            raise ResolutionFailure(query, str(e)) from e

        candidates = [info for info in results if info.page_url]
        if not candidates:
            raise ResolutionFailure(query, ErrorMessages.NO_SEARCH_RESULTS, no_results=True)

        # Stable sort keeps yt-dlp's ranking among equally good matches.
        best = sorted(
            candidates, key=lambda info: _score(info, expected_title, expected_artist), reverse=True
        )[0]
        return self._to_media(best, query)

    async def fetch_metadata(self, url: str) -> ResolvedMedia:
        try:
            info = await asyncio.to_thread(self._extract_info_sync, url)
        except Exception as e:
            logger.exception(LogTemplates.YTDLP_FAILED_EXTRACT_INFO, url)
            raise ResolutionFailure(url, str(e)) from e

        if info is None:
            raise ResolutionFailure(url, ErrorMessages.NO_URL_IN_INFO_DICT)
        return self._to_media(info, url)

    async def extract_playlist(self, url: str) -> list[ResolvedMedia]:
        try:
            entries = await asyncio.to_thread(self._extract_playlist_sync, url)
        except Exception as e:
            logger.exception(LogTemplates.YTDLP_FAILED_EXTRACT_PLAYLIST, url)
            raise ResolutionFailure(url, str(e)) from e

        media = [self._to_media(info, url) for info in entries if info.page_url]
        if not media:
            raise ResolutionFailure(url, ErrorMessages.EMPTY_PLAYLIST, no_results=True)
        return media

    @staticmethod
    def _to_media(info: YtDlpTrackInfo, spec: str) -> ResolvedMedia:
        page_url = info.page_url
        if page_url is None:
            raise ResolutionFailure(spec, ErrorMessages.NO_URL_IN_INFO_DICT)
        return ResolvedMedia(
            url=page_url,
            title=info.title,
            artist=info.performer,
            duration_ms=info.duration_ms,
            thumbnail_url=info.thumbnail,
        )
