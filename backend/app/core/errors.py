"""
Domain-specific exception hierarchy.

All application exceptions inherit from ProjectDeskError so the API
layer can translate them to HTTP responses in one place.  Each
exception carries a `details` dict for structured logging and for the
response body.
"""

from __future__ import annotations


class ProjectDeskError(Exception):
    """Base exception for all domain errors."""

    status_code: int = 400

    def __init__(
        self,
        message: str,
        *,
        details: dict | None = None,
    ) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(ProjectDeskError):
    """The requested row does not exist (or is not visible to the caller)."""

    status_code = 404


class PermissionDeniedError(ProjectDeskError):
    """The caller's role or ownership does not allow the operation."""

    status_code = 403


class EditWindowExpiredError(PermissionDeniedError):
    """A time-boxed edit/delete window has closed."""

    def __init__(self, message: str, *, window_minutes: int, **kwargs) -> None:
        self.window_minutes = window_minutes
        super().__init__(message, **kwargs)


class DomainValidationError(ProjectDeskError):
    """Input failed a business-level validation rule."""

    status_code = 422


class ConflictError(ProjectDeskError):
    """The operation conflicts with current state (duplicates, already deleted)."""

    status_code = 409


class PayloadTooLargeError(DomainValidationError):
    """An uploaded file exceeds the configured size limit."""

    status_code = 413


class StorageError(ProjectDeskError):
    """Object storage operation (S3/MinIO) failed."""

    status_code = 502
