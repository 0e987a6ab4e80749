"""
Domain Layer

Contains pure business logic organized by bounded contexts:
- shared/: Exceptions, events, message constants and annotated types
- queue/: Track requests, URL normalization and playback session state
- admission/: Sliding-window rate limit rules and the priority set
"""

from chat_jukebox.domain.shared.exceptions import DomainError

__all__ = [
    "DomainError",
]
