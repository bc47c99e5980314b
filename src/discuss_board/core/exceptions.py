"""Domain exceptions shared by services and the API layer.

Services raise these with human-readable messages; the error handling
middleware turns them into JSON responses using ``status_code`` and
``error`` without any per-route translation.
"""

from __future__ import annotations

from typing import Any


class BoardError(Exception):
    """Base exception for domain errors with structured details."""

    status_code = 400
    error = "bad_request"

    def __init__(
        self,
        message: str,
        *,
        error: str | None = None,
        status_code: int | None = None,
        detail: dict[str, Any] | None = None,
    ) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error description.
            error: Machine-readable error code overriding the class default.
            status_code: HTTP status code overriding the class default.
            detail: Optional additional details for debugging.
        """
        self.message = message
        if error is not None:
            self.error = error
        if status_code is not None:
            self.status_code = status_code
        self.detail = detail
        super().__init__(message)


class NotFoundError(BoardError):
    """Resource not found or soft-deleted (404)."""

    status_code = 404
    error = "not_found"

    def __init__(
        self,
        resource: str,
        identifier: object | None = None,
        detail: dict[str, Any] | None = None,
        *,
        message: str | None = None,
    ) -> None:
        if message is None:
            message = f"{resource} not found"
            if identifier is not None:
                message = f"{resource} not found: {identifier}"
        super().__init__(message, detail=detail)
        self.resource = resource
        self.identifier = identifier


class ConflictError(BoardError):
    """Duplicate or otherwise conflicting resource (409)."""

    status_code = 409
    error = "conflict"


class BusinessRuleError(BoardError):
    """A business rule rejected the operation (400)."""

    status_code = 400
    error = "business_rule_violation"


class ValidationAPIError(BoardError):
    """Request content failed a domain-level validation (400)."""

    status_code = 400
    error = "validation_error"


class PermissionDeniedError(BoardError):
    """Authenticated principal may not perform the operation (403)."""

    status_code = 403
    error = "forbidden"


class AuthenticationError(BoardError):
    """Missing, invalid or expired credentials (401)."""

    status_code = 401
    error = "unauthorized"

    def __init__(
        self, message: str = "Authentication required", detail: dict[str, Any] | None = None
    ) -> None:
        super().__init__(message, detail=detail)
