"""SQLite repository implementations."""

from chat_jukebox.infrastructure.persistence.repositories.priority_repository import (
    SQLitePriorityUserRepository,
)
from chat_jukebox.infrastructure.persistence.repositories.queue_repository import (
    SQLiteQueueRepository,
)
from chat_jukebox.infrastructure.persistence.repositories.rate_limit_repository import (
    SQLiteRateLimitRepository,
)
from chat_jukebox.infrastructure.persistence.repositories.settings_repository import (
    SQLiteSettingsRepository,
)

__all__ = [
    "SQLiteQueueRepository",
    "SQLiteRateLimitRepository",
    "SQLiteSettingsRepository",
    "SQLitePriorityUserRepository",
]
