"""Base exception classes for domain-level errors."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class ValidationError(DomainError):
    """Raised when domain validation fails."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class InvalidOperationError(DomainError):
    """Raised when an operation is invalid in the current state."""

    def __init__(self, operation: str, current_state: str, message: str | None = None) -> None:
        msg = message or f"Cannot perform '{operation}' in state '{current_state}'"
        super().__init__(msg, code="INVALID_OPERATION")
        self.operation = operation
        self.current_state = current_state


class AdmissionDenied(DomainError):
    """Raised when a user has exhausted their request window for a command."""

    def __init__(
        self,
        user_id: str,
        command: str,
        wait_seconds: float,
        reset_at: float | None = None,
    ) -> None:
        msg = f"Rate limit reached for '{command}'; retry in {wait_seconds:.0f}s"
        super().__init__(msg, code="ADMISSION_DENIED")
        self.user_id = user_id
        self.command = command
        self.wait_seconds = wait_seconds
        self.reset_at = reset_at


class ResolutionFailure(DomainError):
    """Raised when a source reference cannot be resolved to playable media."""

    def __init__(self, source_ref: str, reason: str, *, no_results: bool = False) -> None:
        super().__init__(f"Could not resolve '{source_ref}': {reason}", code="RESOLUTION_FAILURE")
        self.source_ref = source_ref
        self.reason = reason
        self.no_results = no_results


class DownloadFailure(DomainError):
    """Raised when media bytes could not be fetched for a resolved URL."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Download failed for '{url}': {reason}", code="DOWNLOAD_FAILURE")
        self.url = url
        self.reason = reason


class PermissionDenied(DomainError):
    """Raised when a user attempts an operation they are not entitled to."""

    def __init__(self, user_id: str, operation: str, message: str | None = None) -> None:
        msg = message or f"User '{user_id}' may not perform '{operation}'"
        super().__init__(msg, code="PERMISSION_DENIED")
        self.user_id = user_id
        self.operation = operation


class PersistenceFailure(DomainError):
    """Raised when durable storage rejects or cannot complete a write."""

    def __init__(self, operation: str, message: str | None = None) -> None:
        msg = message or f"Storage unavailable during '{operation}'"
        super().__init__(msg, code="PERSISTENCE_FAILURE")
        self.operation = operation
