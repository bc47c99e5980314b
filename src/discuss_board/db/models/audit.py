"""Compliance models: append-only audit log and data export requests."""

from __future__ import annotations

import uuid  # noqa: TC003 - required at runtime for SQLAlchemy type resolution

from sqlalchemy import ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from discuss_board.db.models.base import (
    ActorType,
    Base,
    ExportStatus,
    ExportType,
    OptionalTimestampTZ,
    SoftDeleteMixin,
    TimestampTZ,
    UUIDPrimaryKey,
    enum_type,
)


class AuditLog(Base):
    """Append-only record of security and moderation relevant events.

    Rows are never updated or deleted by the application.
    """

    __tablename__ = "audit_logs"

    id: Mapped[UUIDPrimaryKey]
    created_at: Mapped[TimestampTZ]
    actor_type: Mapped[ActorType] = mapped_column(
        enum_type(ActorType, "actor_type"),
        nullable=False,
    )
    # Account, moderator or administrator id depending on actor_type
    actor_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    action_type: Mapped[str] = mapped_column(String(100), nullable=False)
    target_object: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_audit_logs_created_at", "created_at"),
        Index("ix_audit_logs_action_type", "action_type"),
    )


class ExportLog(SoftDeleteMixin, Base):
    """Member request for an export of their data."""

    __tablename__ = "export_logs"

    id: Mapped[UUIDPrimaryKey]
    requester_member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
    )
    export_type: Mapped[ExportType] = mapped_column(
        enum_type(ExportType, "export_type"),
        nullable=False,
    )
    status: Mapped[ExportStatus] = mapped_column(
        enum_type(ExportStatus, "export_status"),
        default=ExportStatus.PENDING,
        nullable=False,
    )
    file_uri: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    completed_at: Mapped[OptionalTimestampTZ]
