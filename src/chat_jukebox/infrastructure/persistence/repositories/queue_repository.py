"""SQLite implementation of the queue repository."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from chat_jukebox.domain.queue.entities import TrackRequest
from chat_jukebox.domain.queue.repository import QueueRepository
from chat_jukebox.domain.queue.value_objects import TrackRequestId, TrackStatus
from chat_jukebox.domain.shared.datetime_utils import UtcDateTime

if TYPE_CHECKING:
    from ..database import Database

logger = logging.getLogger(__name__)

_INSERT_SQL = """
    INSERT INTO queue_tracks (
        id, position, source_ref, resolved_url, title, artist,
        requester_id, requester_name, group_id, is_priority, added_at,
        status, local_media_path, thumbnail_path, duration_ms, error
    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


class SQLiteQueueRepository(QueueRepository):
    def __init__(self, database: Database) -> None:
        self._db = database

    async def load(self) -> list[TrackRequest]:
        rows = await self._db.fetch_all("SELECT * FROM queue_tracks ORDER BY position ASC")
        return [self._row_to_track(row) for row in rows]

    async def save(self, tracks: list[TrackRequest]) -> None:
        async with self._db.transaction() as conn:
            await conn.execute("DELETE FROM queue_tracks")
            await conn.executemany(
                _INSERT_SQL,
                [self._track_to_params(track, position) for position, track in enumerate(tracks)],
            )
        logger.debug("Persisted queue with %d tracks", len(tracks))

    async def clear(self) -> None:
        await self._db.execute("DELETE FROM queue_tracks")

    async def count(self) -> int:
        row = await self._db.fetch_one("SELECT COUNT(*) as count FROM queue_tracks")
        return row["count"] if row else 0

    @staticmethod
    def _row_to_track(row: dict[str, Any]) -> TrackRequest:
        return TrackRequest(
            id=TrackRequestId(row["id"]),
            source_ref=row["source_ref"],
            resolved_url=row["resolved_url"],
            title=row["title"],
            artist=row["artist"],
            requester_id=row["requester_id"],
            requester_name=row["requester_name"],
            group_id=row["group_id"],
            is_priority=bool(row["is_priority"]),
            added_at=UtcDateTime.from_iso(row["added_at"]).dt,
            status=TrackStatus(row["status"]),
            local_media_path=row["local_media_path"],
            thumbnail_path=row["thumbnail_path"],
            duration_ms=row["duration_ms"],
            error=row["error"],
        )

    @staticmethod
    def _track_to_params(track: TrackRequest, position: int) -> tuple[Any, ...]:
        return (
            track.id.value,
            position,
            track.source_ref,
            track.resolved_url,
            track.title,
            track.artist,
            track.requester_id,
            track.requester_name,
            track.group_id,
            int(track.is_priority),
            UtcDateTime(track.added_at).iso,
            track.status.value,
            track.local_media_path,
            track.thumbnail_path,
            track.duration_ms,
            track.error,
        )
