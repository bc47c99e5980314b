"""Pydantic schemas for member self-service: notifications, subscriptions, exports."""

from __future__ import annotations

# NOTE: datetime and UUID must remain at runtime for Pydantic validation
from datetime import datetime  # noqa: TC003
from uuid import UUID  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field

from discuss_board.api.schemas.common import PageQuery
from discuss_board.db.models.base import ExportStatus, ExportType, NotificationFrequency

# -----------------------------------------------------------------------------
# Notifications
# -----------------------------------------------------------------------------


class NotificationSearchRequest(PageQuery):
    notification_type: str | None = None
    is_read: bool | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None


class NotificationResponse(BaseModel):
    id: UUID
    recipient_account_id: UUID
    notification_type: str
    subject: str
    body: str
    link_uri: str | None = None
    read_at: datetime | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PreferencesUpdateRequest(BaseModel):
    """Partial update; omitted fields keep their value."""

    email_enabled: bool | None = None
    push_enabled: bool | None = None
    in_app_enabled: bool | None = None
    frequency: NotificationFrequency | None = None
    categories: list[str] | None = None
    mute_until: datetime | None = None
    clear_mute: bool = False

    model_config = ConfigDict(extra="forbid")


class PreferencesResponse(BaseModel):
    id: UUID
    user_account_id: UUID
    email_enabled: bool
    push_enabled: bool
    in_app_enabled: bool
    frequency: NotificationFrequency
    categories: list[str]
    mute_until: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


# -----------------------------------------------------------------------------
# Subscriptions
# -----------------------------------------------------------------------------


class SubscriptionRequest(BaseModel):
    post_id: UUID

    model_config = ConfigDict(extra="forbid")


class SubscriptionResponse(BaseModel):
    id: UUID
    member_id: UUID
    post_id: UUID
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# -----------------------------------------------------------------------------
# Exports
# -----------------------------------------------------------------------------


class ExportCreateRequest(BaseModel):
    export_type: ExportType

    model_config = ConfigDict(extra="forbid")


class ExportSearchRequest(PageQuery):
    requester_member_id: UUID | None = None
    export_type: ExportType | None = None
    status: ExportStatus | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None


class ExportStatusUpdateRequest(BaseModel):
    status: ExportStatus
    file_uri: str | None = Field(None, max_length=1000)

    model_config = ConfigDict(extra="forbid")


class ExportResponse(BaseModel):
    id: UUID
    requester_member_id: UUID
    export_type: ExportType
    status: ExportStatus
    file_uri: str | None = None
    completed_at: datetime | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
