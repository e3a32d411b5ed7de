# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain error hierarchy shared by the workflow, enrollment and access domains.

Every failure a caller can observe is a DomainError subclass carrying a
stable error code and the HTTP status the API layer maps it to.
"""

from typing import Any


class DomainError(Exception):
    """Base domain error.

    Attributes:
        error_code: Stable machine-readable code.
        http_status: HTTP status used by the API binding.
        message: Human-readable description.
        details: Structured context for the caller.
    """

    error_code: str = "DOMAIN_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to API response dict."""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
            }
        }


class InvalidTransitionError(DomainError):
    """Requested exam transition is not legal from the current state.

    Recoverable by re-reading the record and deciding again.
    """

    error_code = "INVALID_TRANSITION"
    http_status = 409

    def __init__(self, current: str, requested: str, class_course_id: str | None = None) -> None:
        super().__init__(
            f"Cannot {requested} an exam record in status '{current}'",
            details={
                "current": current,
                "requested": requested,
                "class_course_id": class_course_id,
            },
        )
        self.current = current
        self.requested = requested


class UnauthorizedError(DomainError):
    """Actor lacks the role or ownership required for the operation."""

    error_code = "UNAUTHORIZED"
    http_status = 403


class AccessDeniedError(UnauthorizedError):
    """Delegate access refused because its audit entry could not be written."""

    error_code = "ACCESS_DENIED"


class NoActiveWindowError(DomainError):
    """No open enrollment window for the class and academic year."""

    error_code = "NO_ACTIVE_WINDOW"
    http_status = 409


class TransientStorageError(DomainError):
    """Persistence call failed or timed out; nothing was committed."""

    error_code = "TRANSIENT_STORAGE_FAILURE"
    http_status = 503


class EmptyRosterError(DomainError):
    """Submission refused because the class-course has no enrolled students."""

    error_code = "EMPTY_ROSTER"
    http_status = 409


class WindowValidationError(DomainError):
    """Enrollment window bounds are inconsistent."""

    error_code = "INVALID_WINDOW"
    http_status = 422


class NotFoundError(DomainError):
    """Resource not found."""

    error_code = "NOT_FOUND"
    http_status = 404


class ConflictError(DomainError):
    """Resource already exists."""

    error_code = "CONFLICT"
    http_status = 409
