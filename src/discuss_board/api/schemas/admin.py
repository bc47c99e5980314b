"""Pydantic schemas for administrator endpoints."""

from __future__ import annotations

# NOTE: datetime and UUID must remain at runtime for Pydantic validation
from datetime import datetime  # noqa: TC003
from uuid import UUID  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field

from discuss_board.api.schemas.common import PageQuery
from discuss_board.db.models.base import AccountStatus, ActorType, RoleStatus

# -----------------------------------------------------------------------------
# Members and accounts
# -----------------------------------------------------------------------------


class MemberSearchRequest(PageQuery):
    nickname: str | None = None
    email: str | None = None
    status: AccountStatus | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None


class MemberAdminResponse(BaseModel):
    """Member with its account, as seen by staff."""

    id: UUID
    user_account_id: UUID
    nickname: str
    display_name: str | None = None
    status: AccountStatus
    email: str
    account_status: AccountStatus
    email_verified: bool
    last_login_at: datetime | None = None
    created_at: datetime


class AccountStatusUpdateRequest(BaseModel):
    status: AccountStatus
    email_verified: bool | None = None

    model_config = ConfigDict(extra="forbid")


class ModeratorResponse(BaseModel):
    id: UUID
    member_id: UUID
    assigned_by_administrator_id: UUID | None = None
    status: RoleStatus
    assigned_at: datetime
    revoked_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class AdministratorResponse(BaseModel):
    id: UUID
    member_id: UUID
    escalated_by_administrator_id: UUID | None = None
    status: RoleStatus
    escalated_at: datetime
    revoked_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


# -----------------------------------------------------------------------------
# Forbidden words
# -----------------------------------------------------------------------------


class ForbiddenWordCreateRequest(BaseModel):
    expression: str = Field(..., min_length=1, max_length=100)
    description: str | None = None

    model_config = ConfigDict(extra="forbid")


class ForbiddenWordUpdateRequest(BaseModel):
    expression: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = None

    model_config = ConfigDict(extra="forbid")


class ForbiddenWordSearchRequest(PageQuery):
    search: str | None = None


class ForbiddenWordResponse(BaseModel):
    id: UUID
    expression: str
    description: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# -----------------------------------------------------------------------------
# Audit logs and notifications
# -----------------------------------------------------------------------------


class AuditLogSearchRequest(PageQuery):
    actor_type: ActorType | None = None
    actor_id: UUID | None = None
    action_type: str | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None


class AuditLogResponse(BaseModel):
    id: UUID
    actor_type: ActorType
    actor_id: UUID | None = None
    action_type: str
    target_object: str | None = None
    description: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AdminNotificationSearchRequest(PageQuery):
    recipient_account_id: UUID | None = None
    notification_type: str | None = None
    is_read: bool | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None
