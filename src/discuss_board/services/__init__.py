"""Discuss Board service layer.

Business logic for the board, one service per concern:
- AuthService: join, login, token refresh, email verification, password reset
- PostService / CommentService: content authoring with edit history
- ReactionService / PollService / AttachmentService: participation
- ModerationService: reports, moderation actions and appeals
- NotificationService: notifications, preferences and subscriptions
- AccountAdminService: member search, account status and staff roles
- ForbiddenWordService / TaxonomyService: administrator-managed policy data
- AuditLogService / ExportService: compliance logs
"""

from discuss_board.services.accounts import AccountAdminService
from discuss_board.services.attachments import AttachmentService
from discuss_board.services.audit_log import AuditLogService
from discuss_board.services.auth import AuthService
from discuss_board.services.authz import Permission, Principal, RoleClass
from discuss_board.services.comments import CommentService
from discuss_board.services.exports import ExportService
from discuss_board.services.forbidden_words import ForbiddenWordService
from discuss_board.services.moderation import ModerationService
from discuss_board.services.notifications import NotificationService
from discuss_board.services.polls import PollService
from discuss_board.services.posts import PostService
from discuss_board.services.reactions import ReactionService
from discuss_board.services.taxonomy import TaxonomyService

__all__ = [
    "AccountAdminService",
    "AttachmentService",
    "AuditLogService",
    "AuthService",
    "CommentService",
    "ExportService",
    "ForbiddenWordService",
    "ModerationService",
    "NotificationService",
    "Permission",
    "PollService",
    "PostService",
    "Principal",
    "ReactionService",
    "RoleClass",
    "TaxonomyService",
]
