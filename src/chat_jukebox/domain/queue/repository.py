"""
Queue Domain Repository Interfaces

Abstract base classes defining the contracts for data persistence.
Implementations live in the infrastructure layer.
"""

from abc import ABC, abstractmethod

from chat_jukebox.domain.queue.entities import TrackRequest


class QueueRepository(ABC):
    """Abstract repository for the ordered pending queue.

    The queue is persisted as a whole so that a restart resumes the exact
    pending order. Implementations must apply a save atomically.
    """

    @abstractmethod
    async def load(self) -> list[TrackRequest]:
        """Load the persisted queue.

        Returns:
            Track requests ordered by queue position.
        """
        ...

    @abstractmethod
    async def save(self, tracks: list[TrackRequest]) -> None:
        """Replace the persisted queue with *tracks*, in order.

        Args:
            tracks: The full queue snapshot.
        """
        ...

    @abstractmethod
    async def clear(self) -> None:
        """Delete every persisted queue entry."""
        ...
