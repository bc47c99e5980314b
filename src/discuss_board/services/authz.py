"""Role-based authorization for members, moderators and administrators.

This module provides:
- Permission definitions for board operations
- Role classes with permission mappings
- The Principal passed from the API layer into services

Roles are cumulative: moderators can do everything members can, and
administrators can do everything moderators can.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from discuss_board.core.exceptions import PermissionDeniedError

if TYPE_CHECKING:
    from uuid import UUID

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Permission definitions
# ---------------------------------------------------------------------------


class Permission(str, Enum):
    """Permissions for board operations.

    Permission names follow the pattern: ACTION_RESOURCE.
    """

    # Member content operations
    CREATE_POST = "create_post"
    CREATE_COMMENT = "create_comment"
    EDIT_OWN_CONTENT = "edit_own_content"
    DELETE_OWN_CONTENT = "delete_own_content"
    REACT = "react"
    MANAGE_POLLS = "manage_polls"
    VOTE_POLL = "vote_poll"
    MANAGE_ATTACHMENTS = "manage_attachments"
    REPORT_CONTENT = "report_content"
    CREATE_APPEAL = "create_appeal"
    MANAGE_OWN_NOTIFICATIONS = "manage_own_notifications"
    MANAGE_SUBSCRIPTIONS = "manage_subscriptions"
    REQUEST_EXPORT = "request_export"

    # Moderation operations
    VIEW_REPORTS = "view_reports"
    MANAGE_REPORTS = "manage_reports"
    VIEW_MODERATION_ACTIONS = "view_moderation_actions"
    CREATE_MODERATION_ACTION = "create_moderation_action"
    DELETE_ANY_CONTENT = "delete_any_content"
    CLOSE_ANY_POLL = "close_any_poll"
    VIEW_MEMBERS = "view_members"

    # Administrative operations
    MANAGE_ACCOUNTS = "manage_accounts"
    MANAGE_MODERATORS = "manage_moderators"
    MANAGE_ADMINISTRATORS = "manage_administrators"
    MANAGE_FORBIDDEN_WORDS = "manage_forbidden_words"
    MANAGE_TAXONOMY = "manage_taxonomy"
    MANAGE_APPEALS = "manage_appeals"
    MANAGE_EXPORTS = "manage_exports"
    VIEW_AUDIT_LOGS = "view_audit_logs"
    VIEW_ALL_NOTIFICATIONS = "view_all_notifications"


# ---------------------------------------------------------------------------
# Role classes
# ---------------------------------------------------------------------------


class RoleClass(str, Enum):
    """Role a session was opened as."""

    MEMBER = "member"
    MODERATOR = "moderator"
    ADMINISTRATOR = "administrator"


# ---------------------------------------------------------------------------
# Role-to-permission mappings
# ---------------------------------------------------------------------------

_MEMBER_PERMISSIONS = frozenset(
    [
        Permission.CREATE_POST,
        Permission.CREATE_COMMENT,
        Permission.EDIT_OWN_CONTENT,
        Permission.DELETE_OWN_CONTENT,
        Permission.REACT,
        Permission.MANAGE_POLLS,
        Permission.VOTE_POLL,
        Permission.MANAGE_ATTACHMENTS,
        Permission.REPORT_CONTENT,
        Permission.CREATE_APPEAL,
        Permission.MANAGE_OWN_NOTIFICATIONS,
        Permission.MANAGE_SUBSCRIPTIONS,
        Permission.REQUEST_EXPORT,
    ]
)

_MODERATOR_PERMISSIONS = _MEMBER_PERMISSIONS | frozenset(
    [
        Permission.VIEW_REPORTS,
        Permission.MANAGE_REPORTS,
        Permission.VIEW_MODERATION_ACTIONS,
        Permission.CREATE_MODERATION_ACTION,
        Permission.DELETE_ANY_CONTENT,
        Permission.CLOSE_ANY_POLL,
        Permission.VIEW_MEMBERS,
    ]
)

_ADMINISTRATOR_PERMISSIONS = _MODERATOR_PERMISSIONS | frozenset(
    [
        Permission.MANAGE_ACCOUNTS,
        Permission.MANAGE_MODERATORS,
        Permission.MANAGE_ADMINISTRATORS,
        Permission.MANAGE_FORBIDDEN_WORDS,
        Permission.MANAGE_TAXONOMY,
        Permission.MANAGE_APPEALS,
        Permission.MANAGE_EXPORTS,
        Permission.VIEW_AUDIT_LOGS,
        Permission.VIEW_ALL_NOTIFICATIONS,
    ]
)

ROLE_PERMISSIONS: dict[RoleClass, frozenset[Permission]] = {
    RoleClass.MEMBER: _MEMBER_PERMISSIONS,
    RoleClass.MODERATOR: _MODERATOR_PERMISSIONS,
    RoleClass.ADMINISTRATOR: _ADMINISTRATOR_PERMISSIONS,
}


def get_role_permissions(role: RoleClass) -> frozenset[Permission]:
    """Get the permissions granted to a role class."""
    return ROLE_PERMISSIONS.get(role, frozenset())


# ---------------------------------------------------------------------------
# Principal
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Principal:
    """Authenticated actor handed to services.

    Attributes:
        account_id: user_accounts.id of the actor.
        member_id: members.id of the actor.
        role: Role the session was opened as.
        permissions: Permissions derived from the role.
        moderator_id: moderators.id when logged in as moderator or administrator.
        administrator_id: administrators.id when logged in as administrator.
        jwt_id: Session ``jti``.
    """

    account_id: UUID
    member_id: UUID
    role: RoleClass
    permissions: frozenset[Permission] = field(default_factory=frozenset)
    moderator_id: UUID | None = None
    administrator_id: UUID | None = None
    jwt_id: str | None = None

    @classmethod
    def for_role(
        cls,
        *,
        account_id: UUID,
        member_id: UUID,
        role: RoleClass,
        moderator_id: UUID | None = None,
        administrator_id: UUID | None = None,
        jwt_id: str | None = None,
    ) -> Principal:
        """Build a principal with the permissions of ``role``."""
        return cls(
            account_id=account_id,
            member_id=member_id,
            role=role,
            permissions=get_role_permissions(role),
            moderator_id=moderator_id,
            administrator_id=administrator_id,
            jwt_id=jwt_id,
        )

    def has_permission(self, permission: Permission) -> bool:
        return permission in self.permissions

    def require(self, permission: Permission) -> None:
        """Raise unless the principal holds ``permission``.

        Raises:
            PermissionDeniedError: If the permission is missing.
        """
        if not self.has_permission(permission):
            logger.warning(
                "Permission denied",
                extra={
                    "account_id": str(self.account_id),
                    "role": self.role.value,
                    "permission": permission.value,
                },
            )
            raise PermissionDeniedError(
                f"Permission required: {permission.value}",
                detail={"permission": permission.value},
            )
