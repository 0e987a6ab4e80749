"""Audio infrastructure - yt-dlp resolver and downloader, ffplay output."""

from chat_jukebox.infrastructure.audio.ffplay_output import FfplayOutput
from chat_jukebox.infrastructure.audio.models import CacheEntry, YtDlpOpts, YtDlpTrackInfo
from chat_jukebox.infrastructure.audio.ytdlp_downloader import YtDlpDownloader
from chat_jukebox.infrastructure.audio.ytdlp_resolver import YtDlpResolver

__all__ = [
    "CacheEntry",
    "FfplayOutput",
    "YtDlpDownloader",
    "YtDlpOpts",
    "YtDlpResolver",
    "YtDlpTrackInfo",
]
