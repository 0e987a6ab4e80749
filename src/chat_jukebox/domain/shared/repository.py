"""Repository interface for the persisted runtime settings store."""

from abc import ABC, abstractmethod
from typing import Any


class SettingsRepository(ABC):
    """Key/value store of runtime-adjustable settings.

    Values are JSON-compatible scalars. Keys are listed in
    ``chat_jukebox.domain.shared.constants.SettingsKeys``.
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Get a setting value.

        Args:
            key: The setting key.

        Returns:
            The stored value, or None if the key was never set.
        """
        ...

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store a setting value, replacing any previous one."""
        ...

    @abstractmethod
    async def get_many(self, keys: list[str]) -> dict[str, Any]:
        """Get several settings at once; missing keys are omitted."""
        ...
