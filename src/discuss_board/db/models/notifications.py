"""Notification models: in-app notifications, preferences and post subscriptions."""

from __future__ import annotations

import uuid  # noqa: TC003 - required at runtime for SQLAlchemy type resolution

from sqlalchemy import JSON, Boolean, ForeignKey, Index, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from discuss_board.db.models.base import (
    Base,
    NotificationFrequency,
    OptionalTimestampTZ,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDPrimaryKey,
    enum_type,
)


class Notification(SoftDeleteMixin, Base):
    """In-app notification addressed to an account."""

    __tablename__ = "notifications"

    id: Mapped[UUIDPrimaryKey]
    recipient_account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("user_accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    notification_type: Mapped[str] = mapped_column(String(50), nullable=False)
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    link_uri: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    read_at: Mapped[OptionalTimestampTZ]

    __table_args__ = (Index("ix_notifications_recipient_account_id", "recipient_account_id"),)


class NotificationPreference(TimestampMixin, Base):
    """Per-account delivery preferences for notifications."""

    __tablename__ = "notification_preferences"

    id: Mapped[UUIDPrimaryKey]
    user_account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("user_accounts.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    email_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    push_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    in_app_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    frequency: Mapped[NotificationFrequency] = mapped_column(
        enum_type(NotificationFrequency, "notification_frequency"),
        default=NotificationFrequency.IMMEDIATE,
        nullable=False,
    )
    # Notification types the account wants; empty means all
    categories: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    mute_until: Mapped[OptionalTimestampTZ]


class Subscription(SoftDeleteMixin, Base):
    """Member's subscription to new comments on a post."""

    __tablename__ = "subscriptions"

    id: Mapped[UUIDPrimaryKey]
    member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
    )
    post_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
    )

    __table_args__ = (UniqueConstraint("member_id", "post_id", name="uq_subscriptions_member_post"),)
