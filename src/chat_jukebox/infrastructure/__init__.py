"""Infrastructure layer - external systems integration.

This layer contains implementations for:
- Persistence (SQLite repositories, rate-limit sweep)
- Audio (yt-dlp resolver and downloader, ffplay output)
- HTTP (FastAPI dashboard API)
"""

from chat_jukebox.infrastructure.persistence.database import Database

__all__ = [
    "Database",
]
