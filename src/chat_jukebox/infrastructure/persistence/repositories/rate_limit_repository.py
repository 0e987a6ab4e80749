"""SQLite implementation of the rate-limit request log."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from chat_jukebox.domain.admission.repository import RateLimitRepository

if TYPE_CHECKING:
    from ..database import Database

logger = logging.getLogger(__name__)


class SQLiteRateLimitRepository(RateLimitRepository):
    def __init__(self, database: Database) -> None:
        self._db = database

    async def timestamps_since(self, user_id: str, command: str, since: float) -> list[float]:
        rows = await self._db.fetch_all(
            """
            SELECT requested_at FROM rate_limit_requests
            WHERE user_id = ? AND command = ? AND requested_at >= ?
            ORDER BY requested_at ASC
            """,
            (user_id, command, since),
        )
        return [float(row["requested_at"]) for row in rows]

    async def record(self, user_id: str, command: str, requested_at: float) -> None:
        await self._db.execute(
            "INSERT INTO rate_limit_requests (user_id, command, requested_at) VALUES (?, ?, ?)",
            (user_id, command, requested_at),
        )

    async def purge_older_than(self, cutoff: float) -> int:
        async with self._db.transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM rate_limit_requests WHERE requested_at < ?",
                (cutoff,),
            )
            deleted = cursor.rowcount
        return max(0, deleted)

    async def count(self) -> int:
        row = await self._db.fetch_one("SELECT COUNT(*) as count FROM rate_limit_requests")
        return row["count"] if row else 0
