"""Moderation models: forbidden words, content reports, actions and appeals."""

from __future__ import annotations

import uuid  # noqa: TC003 - required at runtime for SQLAlchemy type resolution

from sqlalchemy import ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from discuss_board.db.models.base import (
    AppealStatus,
    Base,
    ModerationActionStatus,
    ModerationActionType,
    OptionalTimestampTZ,
    ReportContentType,
    ReportStatus,
    SoftDeleteMixin,
    UUIDPrimaryKey,
    enum_type,
)


class ForbiddenWord(SoftDeleteMixin, Base):
    """Expression rejected in posts and comments (case-insensitive substring)."""

    __tablename__ = "forbidden_words"

    id: Mapped[UUIDPrimaryKey]
    expression: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class ContentReport(SoftDeleteMixin, Base):
    """Report filed by a member against a post or a comment."""

    __tablename__ = "content_reports"

    id: Mapped[UUIDPrimaryKey]
    reporter_member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
    )
    content_type: Mapped[ReportContentType] = mapped_column(
        enum_type(ReportContentType, "report_content_type"),
        nullable=False,
    )
    post_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=True,
    )
    comment_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=True,
    )
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[ReportStatus] = mapped_column(
        enum_type(ReportStatus, "report_status"),
        default=ReportStatus.PENDING,
        nullable=False,
    )
    moderation_action_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("moderation_actions.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_content_reports_status", "status"),
        Index("ix_content_reports_reporter_member_id", "reporter_member_id"),
    )


class ModerationAction(SoftDeleteMixin, Base):
    """Action taken by a moderator against a member, post or comment."""

    __tablename__ = "moderation_actions"

    id: Mapped[UUIDPrimaryKey]
    moderator_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("moderators.id", ondelete="CASCADE"),
        nullable=False,
    )
    target_member_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=True,
    )
    target_post_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=True,
    )
    target_comment_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=True,
    )
    action_type: Mapped[ModerationActionType] = mapped_column(
        enum_type(ModerationActionType, "moderation_action_type"),
        nullable=False,
    )
    action_reason: Mapped[str] = mapped_column(String(500), nullable=False)
    details: Mapped[str | None] = mapped_column(Text, nullable=True)
    effective_from: Mapped[OptionalTimestampTZ]
    effective_until: Mapped[OptionalTimestampTZ]
    status: Mapped[ModerationActionStatus] = mapped_column(
        enum_type(ModerationActionStatus, "moderation_action_status"),
        default=ModerationActionStatus.ACTIVE,
        nullable=False,
    )
    revoked_at: Mapped[OptionalTimestampTZ]

    __table_args__ = (
        Index("ix_moderation_actions_moderator_id", "moderator_id"),
        Index("ix_moderation_actions_target_member_id", "target_member_id"),
    )


class Appeal(SoftDeleteMixin, Base):
    """Member's appeal against a moderation action."""

    __tablename__ = "appeals"

    id: Mapped[UUIDPrimaryKey]
    moderation_action_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("moderation_actions.id", ondelete="CASCADE"),
        nullable=False,
    )
    appellant_member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
    )
    appeal_text: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[AppealStatus] = mapped_column(
        enum_type(AppealStatus, "appeal_status"),
        default=AppealStatus.PENDING,
        nullable=False,
    )
    decided_by_administrator_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("administrators.id", ondelete="SET NULL"),
        nullable=True,
    )
    decision_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    decided_at: Mapped[OptionalTimestampTZ]
