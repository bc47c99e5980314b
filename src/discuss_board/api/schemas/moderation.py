"""Pydantic schemas for reports, moderation actions and appeals."""

from __future__ import annotations

# NOTE: datetime and UUID must remain at runtime for Pydantic validation
from datetime import datetime  # noqa: TC003
from uuid import UUID  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field

from discuss_board.api.schemas.common import PageQuery
from discuss_board.db.models.base import (
    AppealStatus,
    ModerationActionStatus,
    ModerationActionType,
    ReportContentType,
    ReportStatus,
)

# -----------------------------------------------------------------------------
# Reports
# -----------------------------------------------------------------------------


class ReportCreateRequest(BaseModel):
    content_type: ReportContentType
    post_id: UUID | None = None
    comment_id: UUID | None = None
    reason: str = Field(..., min_length=1, max_length=2000)

    model_config = ConfigDict(extra="forbid")


class ReportSearchRequest(PageQuery):
    reporter_member_id: UUID | None = None
    content_type: ReportContentType | None = None
    status: ReportStatus | None = None
    reason: str | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None


class ReportStatusUpdateRequest(BaseModel):
    status: ReportStatus

    model_config = ConfigDict(extra="forbid")


class ReportResponse(BaseModel):
    id: UUID
    reporter_member_id: UUID
    content_type: ReportContentType
    post_id: UUID | None = None
    comment_id: UUID | None = None
    reason: str
    status: ReportStatus
    moderation_action_id: UUID | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# -----------------------------------------------------------------------------
# Moderation actions
# -----------------------------------------------------------------------------


class ActionCreateRequest(BaseModel):
    """New moderation action. At least one target is required."""

    action_type: ModerationActionType
    action_reason: str = Field(..., min_length=1, max_length=500)
    target_member_id: UUID | None = None
    target_post_id: UUID | None = None
    target_comment_id: UUID | None = None
    details: str | None = None
    effective_from: datetime | None = None
    effective_until: datetime | None = None
    report_id: UUID | None = None

    model_config = ConfigDict(extra="forbid")


class ActionSearchRequest(PageQuery):
    moderator_id: UUID | None = None
    target_member_id: UUID | None = None
    action_type: ModerationActionType | None = None
    status: ModerationActionStatus | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None


class ActionResponse(BaseModel):
    id: UUID
    moderator_id: UUID
    target_member_id: UUID | None = None
    target_post_id: UUID | None = None
    target_comment_id: UUID | None = None
    action_type: ModerationActionType
    action_reason: str
    details: str | None = None
    effective_from: datetime | None = None
    effective_until: datetime | None = None
    status: ModerationActionStatus
    revoked_at: datetime | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# -----------------------------------------------------------------------------
# Appeals
# -----------------------------------------------------------------------------


class AppealCreateRequest(BaseModel):
    moderation_action_id: UUID
    appeal_text: str = Field(..., min_length=1, max_length=5000)

    model_config = ConfigDict(extra="forbid")


class AppealDecisionRequest(BaseModel):
    status: AppealStatus
    decision_reason: str | None = Field(None, max_length=2000)

    model_config = ConfigDict(extra="forbid")


class AppealSearchRequest(PageQuery):
    appellant_member_id: UUID | None = None
    status: AppealStatus | None = None
    moderation_action_id: UUID | None = None


class AppealResponse(BaseModel):
    id: UUID
    moderation_action_id: UUID
    appellant_member_id: UUID
    appeal_text: str
    status: AppealStatus
    decided_by_administrator_id: UUID | None = None
    decision_reason: str | None = None
    decided_at: datetime | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
