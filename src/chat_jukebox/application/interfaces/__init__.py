"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the application
layer and infrastructure adapters. These are the "ports" in
hexagonal architecture.
"""

from chat_jukebox.application.interfaces.audio_output import AudioOutput
from chat_jukebox.application.interfaces.media_downloader import DownloadedMedia, MediaDownloader
from chat_jukebox.application.interfaces.media_resolver import MediaResolver, ResolvedMedia

__all__ = [
    "AudioOutput",
    "MediaDownloader",
    "DownloadedMedia",
    "MediaResolver",
    "ResolvedMedia",
]
