"""Application service wrapping the persisted priority (VIP) set."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from chat_jukebox.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from chat_jukebox.domain.admission.repository import PriorityUserRepository

logger = logging.getLogger(__name__)


class PriorityService:
    """Answers "is this user a VIP?" for admission and skip permission.

    A failed lookup answers False: the user is treated as an ordinary user
    rather than having the error surface in an unrelated command.
    """

    def __init__(self, *, priority_repository: PriorityUserRepository) -> None:
        self._repo = priority_repository

    async def is_priority(self, user_id: str) -> bool:
        try:
            return await self._repo.contains(user_id)
        except Exception as e:
            logger.warning(LogTemplates.PRIORITY_LOOKUP_FAILED, user_id, e)
            return False

    async def add(self, user_id: str, name: str | None = None) -> bool:
        return await self._repo.add(user_id, name)

    async def remove(self, user_id: str) -> bool:
        return await self._repo.remove(user_id)

    async def list_all(self) -> list[str]:
        return await self._repo.list_all()

    async def seed(self, user_ids: Iterable[str]) -> int:
        """Ensure every configured VIP is in the persisted set."""
        added = 0
        for user_id in user_ids:
            if await self._repo.add(user_id):
                added += 1
        if added:
            logger.info(LogTemplates.PRIORITY_SEEDED, added)
        return added
