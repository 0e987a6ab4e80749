"""
Application Queries (CQRS Read Side)

Query handlers for read operations. Queries do not modify state.
"""

from chat_jukebox.application.queries.get_current import CurrentTrackInfo, GetCurrentTrackHandler
from chat_jukebox.application.queries.get_queue import GetQueueHandler, QueueInfo

__all__ = [
    "GetQueueHandler",
    "QueueInfo",
    "GetCurrentTrackHandler",
    "CurrentTrackInfo",
]
