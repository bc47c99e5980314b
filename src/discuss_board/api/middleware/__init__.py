"""Discuss Board API middleware components.

This module provides middleware for:
- Request ID tracking
- Consistent error response formatting
- Bearer token authentication dependencies
"""

from discuss_board.api.middleware.auth import (
    AuthenticatedUser,
    require_authenticated_user,
    require_permission,
    require_role,
)
from discuss_board.api.middleware.errors import ErrorHandlerMiddleware, build_error_response
from discuss_board.api.middleware.request_id import RequestIDMiddleware, get_request_id

__all__ = [
    "AuthenticatedUser",
    "ErrorHandlerMiddleware",
    "RequestIDMiddleware",
    "build_error_response",
    "get_request_id",
    "require_authenticated_user",
    "require_permission",
    "require_role",
]
