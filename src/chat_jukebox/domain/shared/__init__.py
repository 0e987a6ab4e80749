"""
Shared Domain Kernel

Contains exceptions and events shared across all bounded contexts.
"""

from chat_jukebox.domain.shared.exceptions import (
    AdmissionDenied,
    DomainError,
    DownloadFailure,
    InvalidOperationError,
    PermissionDenied,
    PersistenceFailure,
    ResolutionFailure,
    ValidationError,
)

__all__ = [
    "DomainError",
    "ValidationError",
    "InvalidOperationError",
    "AdmissionDenied",
    "ResolutionFailure",
    "DownloadFailure",
    "PermissionDenied",
    "PersistenceFailure",
]
