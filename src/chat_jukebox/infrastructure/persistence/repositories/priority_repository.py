"""SQLite implementation of the priority user set."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from chat_jukebox.domain.admission.repository import PriorityUserRepository

if TYPE_CHECKING:
    from ..database import Database

logger = logging.getLogger(__name__)


class SQLitePriorityUserRepository(PriorityUserRepository):
    def __init__(self, database: Database) -> None:
        self._db = database

    async def contains(self, user_id: str) -> bool:
        row = await self._db.fetch_one(
            "SELECT 1 FROM priority_users WHERE user_id = ?",
            (user_id,),
        )
        return row is not None

    async def add(self, user_id: str, name: str | None = None) -> bool:
        async with self._db.transaction() as conn:
            cursor = await conn.execute(
                "INSERT OR IGNORE INTO priority_users (user_id, name) VALUES (?, ?)",
                (user_id, name),
            )
            added = cursor.rowcount > 0
        if added:
            logger.debug("Added priority user %s", user_id)
        return added

    async def remove(self, user_id: str) -> bool:
        async with self._db.transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM priority_users WHERE user_id = ?",
                (user_id,),
            )
            removed = cursor.rowcount > 0
        if removed:
            logger.debug("Removed priority user %s", user_id)
        return removed

    async def list_all(self) -> list[str]:
        rows = await self._db.fetch_all("SELECT user_id FROM priority_users ORDER BY user_id")
        return [row["user_id"] for row in rows]
