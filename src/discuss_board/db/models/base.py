"""Base model definitions, mixins, and common types.

This module provides:
- SQLAlchemy declarative base with naming conventions
- Common column types and mixins for timestamps and soft deletion
- Enum types used across multiple models

Column types are dialect-neutral (``Uuid``, ``JSON``) and defaults are
generated in Python, so the same models run on PostgreSQL in production
and on SQLite in the test suite.
"""

from __future__ import annotations

import enum
import uuid
from datetime import UTC, datetime
from typing import Annotated, Any

from sqlalchemy import DateTime, Enum, MetaData, String, TypeDecorator, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Naming convention for constraints ensures consistent migration generation.
# See: https://alembic.sqlalchemy.org/en/latest/naming.html
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=NAMING_CONVENTION)


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


class UTCDateTime(TypeDecorator):
    """Timezone-aware timestamp that always round-trips as UTC.

    Backends without timezone support (SQLite) hand back naive values;
    those are tagged as UTC on load so comparisons with ``utcnow()`` work.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Any) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Any) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


def enum_type(enum_cls: type[enum.Enum], name: str) -> Enum:
    """Enum column type storing the member values (not names)."""
    return Enum(
        enum_cls,
        name=name,
        create_constraint=True,
        values_callable=lambda members: [m.value for m in members],
    )


# Common type annotations for columns
UUIDPrimaryKey = Annotated[
    uuid.UUID,
    mapped_column(Uuid, primary_key=True, default=uuid.uuid4),
]

TimestampTZ = Annotated[
    datetime,
    mapped_column(UTCDateTime, default=utcnow, nullable=False),
]

UpdatedTimestampTZ = Annotated[
    datetime,
    mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False),
]

OptionalTimestampTZ = Annotated[
    datetime | None,
    mapped_column(UTCDateTime, nullable=True),
]

ShortString = Annotated[str, mapped_column(String(100))]
MediumString = Annotated[str, mapped_column(String(255))]
LongString = Annotated[str, mapped_column(String(1000))]


class Base(DeclarativeBase):
    """Declarative base for all Discuss Board models."""

    metadata = metadata


class TimestampMixin:
    """created_at / updated_at columns."""

    created_at: Mapped[TimestampTZ]
    updated_at: Mapped[UpdatedTimestampTZ]


class SoftDeleteMixin(TimestampMixin):
    """Timestamps plus a ``deleted_at`` soft-delete marker.

    Rows with ``deleted_at`` set are hidden from every read path unless a
    query asks for them explicitly.
    """

    deleted_at: Mapped[OptionalTimestampTZ]

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


# =============================================================================
# Common Enums
# =============================================================================


class AccountStatus(enum.Enum):
    """Lifecycle status of a user account or member profile.

    Values:
        PENDING: Registered, email not yet verified
        ACTIVE: May log in and participate
        SUSPENDED: Temporarily blocked (moderation restrict/mute)
        BANNED: Permanently blocked by an administrator
    """

    PENDING = "pending"
    ACTIVE = "active"
    SUSPENDED = "suspended"
    BANNED = "banned"


class RoleStatus(enum.Enum):
    """Status of a moderator or administrator assignment."""

    ACTIVE = "active"
    REVOKED = "revoked"


class ConsentAction(enum.Enum):
    """Action recorded for a policy consent."""

    GRANTED = "granted"
    WITHDRAWN = "withdrawn"


class TokenPurpose(enum.Enum):
    """Purpose of a single-use verification token."""

    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"


class PostStatus(enum.Enum):
    """Visibility of a post."""

    PUBLISHED = "published"
    HIDDEN = "hidden"


class ReactionType(enum.Enum):
    """Reaction on a post or comment."""

    LIKE = "like"
    DISLIKE = "dislike"


class ReportContentType(enum.Enum):
    """Kind of content targeted by a report."""

    POST = "post"
    COMMENT = "comment"


class ReportStatus(enum.Enum):
    """Moderation workflow status of a content report.

    Values:
        PENDING: Filed, nobody has looked at it yet
        UNDER_REVIEW: A moderator is working on it
        RESOLVED: A moderation action was taken
        DISMISSED: No action needed
    """

    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


class ModerationActionType(enum.Enum):
    """Kinds of moderation actions.

    Values:
        WARN: Notify the member
        MUTE: Suspend the member for a period
        REMOVE: Soft-delete the targeted post or comment
        EDIT: Record an edit made on behalf of moderation
        RESTRICT: Suspend the member until lifted
        RESTORE: Undo a previous removal
        ESCALATE: Hand the case to administrators
    """

    WARN = "warn"
    MUTE = "mute"
    REMOVE = "remove"
    EDIT = "edit"
    RESTRICT = "restrict"
    RESTORE = "restore"
    ESCALATE = "escalate"


class ModerationActionStatus(enum.Enum):
    """Whether a moderation action is still in force."""

    ACTIVE = "active"
    REVOKED = "revoked"


class AppealStatus(enum.Enum):
    """Decision state of an appeal."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class NotificationFrequency(enum.Enum):
    """Digest frequency for notification delivery."""

    IMMEDIATE = "immediate"
    DAILY = "daily"
    WEEKLY = "weekly"


class ExportType(enum.Enum):
    """Scope of a member data export."""

    PROFILE = "profile"
    CONTENT = "content"
    ALL = "all"


class ExportStatus(enum.Enum):
    """Processing state of a data export request."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ActorType(enum.Enum):
    """Type of actor recorded in the audit log."""

    MEMBER = "member"
    MODERATOR = "moderator"
    ADMINISTRATOR = "administrator"
    SYSTEM = "system"
