"""SQLAlchemy ORM models for Discuss Board.

This package contains all database models organized by domain:
- base: Common metadata, mixins, and type definitions
- accounts: User accounts, members, staff roles, consents and sessions
- content: Categories, tags, posts, comments, reactions, polls, attachments
- moderation: Forbidden words, content reports, moderation actions, appeals
- notifications: Notifications, preferences and subscriptions
- audit: Audit log and export requests
"""

from discuss_board.db.models.accounts import (
    Administrator,
    ConsentRecord,
    JwtSession,
    Member,
    Moderator,
    UserAccount,
    VerificationToken,
)
from discuss_board.db.models.audit import AuditLog, ExportLog
from discuss_board.db.models.base import Base, metadata
from discuss_board.db.models.content import (
    Attachment,
    Category,
    Comment,
    CommentEditHistory,
    CommentReaction,
    Poll,
    PollOption,
    PollVote,
    Post,
    PostEditHistory,
    PostReaction,
    Tag,
    post_tags,
)
from discuss_board.db.models.moderation import (
    Appeal,
    ContentReport,
    ForbiddenWord,
    ModerationAction,
)
from discuss_board.db.models.notifications import (
    Notification,
    NotificationPreference,
    Subscription,
)

__all__ = [
    "Administrator",
    "Appeal",
    "Attachment",
    "AuditLog",
    "Base",
    "Category",
    "Comment",
    "CommentEditHistory",
    "CommentReaction",
    "ConsentRecord",
    "ContentReport",
    "ExportLog",
    "ForbiddenWord",
    "JwtSession",
    "Member",
    "ModerationAction",
    "Moderator",
    "Notification",
    "NotificationPreference",
    "Poll",
    "PollOption",
    "PollVote",
    "Post",
    "PostEditHistory",
    "PostReaction",
    "Subscription",
    "Tag",
    "UserAccount",
    "VerificationToken",
    "metadata",
    "post_tags",
]
