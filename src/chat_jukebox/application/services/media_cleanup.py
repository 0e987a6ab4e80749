"""Deletes downloaded media that no queued or playing track needs any more."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

from chat_jukebox.domain.shared.events import TrackRemoved
from chat_jukebox.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from chat_jukebox.domain.queue.entities import TrackRequest
    from chat_jukebox.domain.shared.events import EventBus

    from .queue_store import QueueStore

logger = logging.getLogger(__name__)


class MediaCleanup:
    """Removes media files for removed or finished tracks.

    The file backing the current track is never deleted, whatever the caller
    asks for.
    """

    def __init__(
        self,
        *,
        queue_store: QueueStore,
        event_bus: EventBus,
        download_dir: Path,
    ) -> None:
        self._queue_store = queue_store
        self._event_bus = event_bus
        self._download_dir = download_dir
        self._subscribed = False

    def start(self) -> None:
        if self._subscribed:
            return
        self._event_bus.subscribe(TrackRemoved, self._on_track_removed)
        self._subscribed = True

    def stop(self) -> None:
        if not self._subscribed:
            return
        self._event_bus.unsubscribe(TrackRemoved, self._on_track_removed)
        self._subscribed = False

    async def _on_track_removed(self, event: TrackRemoved) -> None:
        self.delete_paths([event.local_media_path, event.thumbnail_path])

    def _protected_paths(self) -> set[Path]:
        current = self._queue_store.current
        if current is None:
            return set()
        return {
            Path(p).resolve()
            for p in (current.local_media_path, current.thumbnail_path)
            if p is not None
        }

    def delete_track_media(self, track: TrackRequest) -> int:
        """Delete the media and thumbnail of *track*.

        Returns:
            Number of files deleted.
        """
        return self.delete_paths([track.local_media_path, track.thumbnail_path])

    def delete_paths(self, paths: Iterable[str | None]) -> int:
        protected = self._protected_paths()
        deleted = 0
        for raw in paths:
            if not raw:
                continue
            path = Path(raw)
            if path.resolve() in protected:
                logger.debug(LogTemplates.MEDIA_PROTECTED, path)
                continue
            try:
                if path.exists():
                    path.unlink()
                    deleted += 1
                    logger.debug(LogTemplates.MEDIA_DELETED, path)
            except OSError as e:
                logger.warning(LogTemplates.MEDIA_DELETE_FAILED, path, e)
        return deleted

    def sweep_orphans(self) -> int:
        """Delete files in the download directory that no held track references.

        Downloads are named after their track id, so partial files of an
        in-flight prefetch are kept as long as the track is still queued.

        Returns:
            Number of files deleted.
        """
        if not self._download_dir.is_dir():
            return 0

        held = list(self._queue_store.get_queue())
        if self._queue_store.current is not None:
            held.append(self._queue_store.current)

        referenced = {str(track.id) for track in held}
        orphans = [
            str(path)
            for path in self._download_dir.iterdir()
            if path.is_file() and path.name.split(".", 1)[0] not in referenced
        ]
        deleted = self.delete_paths(orphans)
        if deleted:
            logger.info(LogTemplates.MEDIA_ORPHANS_SWEPT, deleted)
        return deleted
