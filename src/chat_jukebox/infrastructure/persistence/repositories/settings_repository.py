"""SQLite implementation of the runtime settings store."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from chat_jukebox.domain.shared.repository import SettingsRepository

if TYPE_CHECKING:
    from ..database import Database

logger = logging.getLogger(__name__)


class SQLiteSettingsRepository(SettingsRepository):
    def __init__(self, database: Database) -> None:
        self._db = database

    async def get(self, key: str) -> Any | None:
        row = await self._db.fetch_one("SELECT value FROM settings WHERE key = ?", (key,))
        if row is None:
            return None
        return json.loads(row["value"])

    async def set(self, key: str, value: Any) -> None:
        await self._db.execute(
            """
            INSERT INTO settings (key, value, updated_at)
            VALUES (?, ?, strftime('%Y-%m-%dT%H:%M:%f','now'))
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
            """,
            (key, json.dumps(value)),
        )
        logger.debug("Stored setting %s", key)

    async def get_many(self, keys: list[str]) -> dict[str, Any]:
        if not keys:
            return {}
        placeholders = ", ".join("?" for _ in keys)
        rows = await self._db.fetch_all(
            f"SELECT key, value FROM settings WHERE key IN ({placeholders})",  # noqa: S608
            tuple(keys),
        )
        return {row["key"]: json.loads(row["value"]) for row in rows}
