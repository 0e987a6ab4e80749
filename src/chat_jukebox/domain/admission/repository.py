"""
Admission Domain Repository Interfaces

Abstract base classes for the rate-limit request log and the priority set.
"""

from abc import ABC, abstractmethod


class RateLimitRepository(ABC):
    """Append-only log of gated requests keyed by (user, command)."""

    @abstractmethod
    async def timestamps_since(self, user_id: str, command: str, since: float) -> list[float]:
        """Get request timestamps at or after *since*.

        Args:
            user_id: The requesting user.
            command: The command type value.
            since: Unix timestamp lower bound (inclusive).

        Returns:
            Timestamps in ascending order.
        """
        ...

    @abstractmethod
    async def record(self, user_id: str, command: str, requested_at: float) -> None:
        """Append a request record."""
        ...

    @abstractmethod
    async def purge_older_than(self, cutoff: float) -> int:
        """Delete records strictly older than *cutoff*.

        Returns:
            Number of records deleted.
        """
        ...


class PriorityUserRepository(ABC):
    """Persisted set of users exempt from rate limiting."""

    @abstractmethod
    async def contains(self, user_id: str) -> bool:
        """Check whether *user_id* is a priority user."""
        ...

    @abstractmethod
    async def add(self, user_id: str, name: str | None = None) -> bool:
        """Add a priority user.

        Returns:
            True if the user was added, False if already present.
        """
        ...

    @abstractmethod
    async def remove(self, user_id: str) -> bool:
        """Remove a priority user.

        Returns:
            True if the user was removed, False if absent.
        """
        ...

    @abstractmethod
    async def list_all(self) -> list[str]:
        """Get all priority user IDs."""
        ...
