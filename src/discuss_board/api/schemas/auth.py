"""Pydantic schemas for the /auth endpoints."""

from __future__ import annotations

# NOTE: datetime and UUID must remain at runtime for Pydantic validation
from datetime import datetime  # noqa: TC003
from uuid import UUID  # noqa: TC003

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from discuss_board.db.models.base import AccountStatus, ConsentAction
from discuss_board.services.authz import RoleClass

# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------


class ConsentSchema(BaseModel):
    """Policy consent given at registration."""

    consent_type: str = Field(..., min_length=1, max_length=50)
    consent_action: ConsentAction = Field(ConsentAction.GRANTED)
    policy_version: str = Field(..., min_length=1, max_length=50)

    model_config = ConfigDict(extra="forbid")


class MemberJoinRequest(BaseModel):
    """Member registration."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=256)
    nickname: str = Field(..., min_length=2, max_length=100)
    display_name: str | None = Field(None, max_length=255)
    consents: list[ConsentSchema] = Field(default_factory=list)
    device_info: str | None = Field(None, max_length=255)

    model_config = ConfigDict(extra="forbid")


class AdministratorJoinRequest(BaseModel):
    """Bootstrap administrator registration."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=256)
    nickname: str = Field(..., min_length=2, max_length=100)
    device_info: str | None = Field(None, max_length=255)

    model_config = ConfigDict(extra="forbid")


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=256)
    device_info: str | None = Field(None, max_length=255)

    model_config = ConfigDict(extra="forbid")


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)

    model_config = ConfigDict(extra="forbid")


class VerifyEmailRequest(BaseModel):
    token: str = Field(..., min_length=1)


class PasswordResetRequestSchema(BaseModel):
    email: EmailStr


class PasswordResetSchema(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1, max_length=256)


# -----------------------------------------------------------------------------
# Responses
# -----------------------------------------------------------------------------


class TokenSchema(BaseModel):
    """Issued token pair."""

    access: str
    refresh: str
    expired_at: datetime = Field(..., description="Access token expiry")
    refreshable_until: datetime = Field(..., description="Refresh token expiry")

    model_config = ConfigDict(from_attributes=True)


class MemberSchema(BaseModel):
    """Public member profile."""

    id: UUID
    nickname: str
    display_name: str | None = None
    status: AccountStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuthorizedResponse(BaseModel):
    """Result of join, login and refresh."""

    role: RoleClass
    account_id: UUID
    email: str
    email_verified: bool
    member: MemberSchema
    moderator_id: UUID | None = None
    administrator_id: UUID | None = None
    token: TokenSchema


class AccountSchema(BaseModel):
    id: UUID
    email: str
    status: AccountStatus
    email_verified: bool

    model_config = ConfigDict(from_attributes=True)
