"""
Admission Bounded Context

Per-user, per-command sliding-window rate limiting with a priority bypass.
"""

from chat_jukebox.domain.admission.entities import (
    RateLimitConfig,
    RateLimitDecision,
    evaluate_window,
)
from chat_jukebox.domain.admission.repository import (
    PriorityUserRepository,
    RateLimitRepository,
)
from chat_jukebox.domain.admission.value_objects import CommandType

__all__ = [
    "CommandType",
    "RateLimitConfig",
    "RateLimitDecision",
    "evaluate_window",
    "RateLimitRepository",
    "PriorityUserRepository",
]
