"""
Application Commands (CQRS Write Side)

Command objects and their handlers for operations that change queue or
playback state.
"""

from chat_jukebox.application.commands.enqueue_playlist import (
    EnqueuePlaylistCommand,
    EnqueuePlaylistHandler,
    PlaylistResult,
)
from chat_jukebox.application.commands.enqueue_track import (
    EnqueueResult,
    EnqueueTrackCommand,
    EnqueueTrackHandler,
)
from chat_jukebox.application.commands.playback_controls import (
    ControlResult,
    PlaybackControlsHandler,
    SeekCommand,
)
from chat_jukebox.application.commands.queue_edit import (
    QueueEditHandler,
    QueueEditResult,
    RemoveTrackCommand,
    ReorderTrackCommand,
)
from chat_jukebox.application.commands.session import (
    NewSessionHandler,
    PrefetchAllHandler,
    SessionResult,
)
from chat_jukebox.application.commands.skip_track import (
    SkipResult,
    SkipTrackCommand,
    SkipTrackHandler,
)

__all__ = [
    # Enqueue
    "EnqueueTrackCommand",
    "EnqueueTrackHandler",
    "EnqueueResult",
    "EnqueuePlaylistCommand",
    "EnqueuePlaylistHandler",
    "PlaylistResult",
    # Skip
    "SkipTrackCommand",
    "SkipTrackHandler",
    "SkipResult",
    # Controls
    "SeekCommand",
    "PlaybackControlsHandler",
    "ControlResult",
    # Queue edits
    "RemoveTrackCommand",
    "ReorderTrackCommand",
    "QueueEditHandler",
    "QueueEditResult",
    # Session
    "NewSessionHandler",
    "PrefetchAllHandler",
    "SessionResult",
]
