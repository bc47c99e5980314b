"""Discuss Board core module.

Shared components used across all services:
- Configuration management
- Domain exception hierarchy
"""

from discuss_board.core.config import (
    AuthSettings,
    ConfigValidationError,
    ContentPolicySettings,
    DatabaseSettings,
    Environment,
    Settings,
    SMTPSettings,
)
from discuss_board.core.exceptions import (
    AuthenticationError,
    BoardError,
    BusinessRuleError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationAPIError,
)
from discuss_board.core.settings import (
    clear_settings_cache,
    get_settings,
    get_settings_safe,
)

__all__ = [
    "AuthSettings",
    "AuthenticationError",
    "BoardError",
    "BusinessRuleError",
    "ConfigValidationError",
    "ConflictError",
    "ContentPolicySettings",
    "DatabaseSettings",
    "Environment",
    "NotFoundError",
    "PermissionDeniedError",
    "SMTPSettings",
    "Settings",
    "ValidationAPIError",
    "clear_settings_cache",
    "get_settings",
    "get_settings_safe",
]
