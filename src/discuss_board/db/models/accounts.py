"""Account models: user accounts, member profiles, staff roles and sessions.

A ``UserAccount`` holds credentials. Every account has exactly one
``Member`` profile; moderator and administrator rights are separate rows
pointing at the member so they can be granted and revoked independently.
"""

from __future__ import annotations

import uuid  # noqa: TC003 - required at runtime for SQLAlchemy type resolution

from sqlalchemy import Boolean, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from discuss_board.db.models.base import (
    AccountStatus,
    Base,
    ConsentAction,
    OptionalTimestampTZ,
    RoleStatus,
    SoftDeleteMixin,
    TimestampMixin,
    TimestampTZ,
    TokenPurpose,
    UUIDPrimaryKey,
    enum_type,
)


class UserAccount(SoftDeleteMixin, Base):
    """Login credentials and account-level status."""

    __tablename__ = "user_accounts"

    id: Mapped[UUIDPrimaryKey]
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[AccountStatus] = mapped_column(
        enum_type(AccountStatus, "account_status"),
        default=AccountStatus.PENDING,
        nullable=False,
    )
    email_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_login_at: Mapped[OptionalTimestampTZ]


class Member(SoftDeleteMixin, Base):
    """Public profile of an account on the board."""

    __tablename__ = "members"

    id: Mapped[UUIDPrimaryKey]
    user_account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("user_accounts.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    nickname: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[AccountStatus] = mapped_column(
        enum_type(AccountStatus, "account_status"),
        default=AccountStatus.ACTIVE,
        nullable=False,
    )


class Moderator(SoftDeleteMixin, Base):
    """Moderator assignment for a member."""

    __tablename__ = "moderators"

    id: Mapped[UUIDPrimaryKey]
    member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("members.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    assigned_by_administrator_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("administrators.id", ondelete="SET NULL"),
        nullable=True,
    )
    status: Mapped[RoleStatus] = mapped_column(
        enum_type(RoleStatus, "role_status"),
        default=RoleStatus.ACTIVE,
        nullable=False,
    )
    assigned_at: Mapped[TimestampTZ]
    revoked_at: Mapped[OptionalTimestampTZ]

    @property
    def is_active(self) -> bool:
        return (
            self.status == RoleStatus.ACTIVE
            and self.revoked_at is None
            and self.deleted_at is None
        )


class Administrator(SoftDeleteMixin, Base):
    """Administrator assignment for a member."""

    __tablename__ = "administrators"

    id: Mapped[UUIDPrimaryKey]
    member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("members.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    # Self-reference for bootstrap administrators
    escalated_by_administrator_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("administrators.id", ondelete="SET NULL"),
        nullable=True,
    )
    status: Mapped[RoleStatus] = mapped_column(
        enum_type(RoleStatus, "role_status"),
        default=RoleStatus.ACTIVE,
        nullable=False,
    )
    escalated_at: Mapped[TimestampTZ]
    revoked_at: Mapped[OptionalTimestampTZ]

    @property
    def is_active(self) -> bool:
        return (
            self.status == RoleStatus.ACTIVE
            and self.revoked_at is None
            and self.deleted_at is None
        )


class ConsentRecord(Base):
    """Policy consent given (or withdrawn) by an account."""

    __tablename__ = "consent_records"

    id: Mapped[UUIDPrimaryKey]
    created_at: Mapped[TimestampTZ]
    user_account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("user_accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    consent_type: Mapped[str] = mapped_column(String(50), nullable=False)
    consent_action: Mapped[ConsentAction] = mapped_column(
        enum_type(ConsentAction, "consent_action"),
        nullable=False,
    )
    policy_version: Mapped[str] = mapped_column(String(50), nullable=False)

    __table_args__ = (Index("ix_consent_records_account_type", "user_account_id", "consent_type"),)


class JwtSession(SoftDeleteMixin, Base):
    """Refresh-capable login session.

    The session is keyed by the ``jti`` claim shared by the access and
    refresh tokens. Only the SHA-256 of the refresh token is stored, and
    each refresh rotates both ``jwt_id`` and the hash.
    """

    __tablename__ = "jwt_sessions"

    id: Mapped[UUIDPrimaryKey]
    user_account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("user_accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    jwt_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    refresh_token_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    expires_at: Mapped[TimestampTZ]
    revoked_at: Mapped[OptionalTimestampTZ]
    device_info: Mapped[str | None] = mapped_column(String(255), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)

    __table_args__ = (Index("ix_jwt_sessions_user_account_id", "user_account_id"),)


class VerificationToken(TimestampMixin, Base):
    """Single-use token for email verification or password reset."""

    __tablename__ = "verification_tokens"

    id: Mapped[UUIDPrimaryKey]
    user_account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("user_accounts.id", ondelete="CASCADE"),
        nullable=False,
    )
    purpose: Mapped[TokenPurpose] = mapped_column(
        enum_type(TokenPurpose, "token_purpose"),
        nullable=False,
    )
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    expires_at: Mapped[TimestampTZ]
    used_at: Mapped[OptionalTimestampTZ]
