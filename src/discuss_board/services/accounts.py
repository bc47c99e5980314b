"""Member search, account status changes and staff role management."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, or_, select, update

from discuss_board.core.config import ContentPolicySettings
from discuss_board.core.exceptions import BusinessRuleError, NotFoundError
from discuss_board.db.models.accounts import (
    Administrator,
    JwtSession,
    Member,
    Moderator,
    UserAccount,
)
from discuss_board.db.models.base import AccountStatus, RoleStatus, utcnow
from discuss_board.services.audit_log import AuditLogService
from discuss_board.services.authz import Permission
from discuss_board.services.pagination import Page, Pagination, page_params, parse_sort

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

    from discuss_board.services.authz import Principal

logger = logging.getLogger(__name__)

# Account statuses that lock the owner out
BLOCKING_STATUSES = frozenset([AccountStatus.SUSPENDED, AccountStatus.BANNED])


@dataclass(slots=True)
class MemberFilters:
    """Filters for the staff member search."""

    nickname: str | None = None
    email: str | None = None
    status: AccountStatus | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None
    page: int | None = None
    limit: int | None = None
    sort: str | None = None


@dataclass(frozen=True, slots=True)
class MemberRecord:
    """Member joined with its account, as returned by the staff search."""

    member: Member
    account: UserAccount


class AccountAdminService:
    """Administrative operations on accounts, moderators and administrators."""

    SORT_FIELDS = {
        "created_at": Member.created_at,
        "nickname": Member.nickname,
        "email": UserAccount.email,
    }

    def __init__(
        self, session: AsyncSession, policy: ContentPolicySettings | None = None
    ) -> None:
        self._session = session
        self._policy = policy or ContentPolicySettings()
        self._audit = AuditLogService(session, self._policy)

    async def search_members(
        self, principal: Principal, filters: MemberFilters
    ) -> Page[MemberRecord]:
        principal.require(Permission.VIEW_MEMBERS)
        stmt = (
            select(Member, UserAccount)
            .join(UserAccount, UserAccount.id == Member.user_account_id)
            .where(Member.deleted_at.is_(None), UserAccount.deleted_at.is_(None))
        )
        if filters.nickname:
            stmt = stmt.where(Member.nickname.icontains(filters.nickname, autoescape=True))
        if filters.email:
            stmt = stmt.where(UserAccount.email.icontains(filters.email, autoescape=True))
        if filters.status is not None:
            stmt = stmt.where(
                or_(UserAccount.status == filters.status, Member.status == filters.status)
            )
        if filters.created_from is not None:
            stmt = stmt.where(Member.created_at >= filters.created_from)
        if filters.created_to is not None:
            stmt = stmt.where(Member.created_at <= filters.created_to)

        params = page_params(filters.page, filters.limit, self._policy)
        order = parse_sort(filters.sort, self.SORT_FIELDS, "created_at")

        # Two-entity rows, so count here instead of through paginate()
        count_stmt = select(func.count()).select_from(
            stmt.with_only_columns(Member.id).subquery()
        )
        records = (await self._session.execute(count_stmt)).scalar_one()
        page_stmt = stmt.order_by(order, Member.id).offset(params.offset).limit(params.limit)
        result = await self._session.execute(page_stmt)
        data = [MemberRecord(member=m, account=a) for m, a in result.all()]
        return Page(pagination=Pagination.build(params, records), data=data)

    async def get_member(self, member_id: UUID) -> Member:
        member = await self._session.get(Member, member_id)
        if member is None or member.deleted_at is not None:
            raise NotFoundError("Member", member_id)
        return member

    async def get_account(self, account_id: UUID) -> UserAccount:
        account = await self._session.get(UserAccount, account_id)
        if account is None or account.deleted_at is not None:
            raise NotFoundError("Account", account_id)
        return account

    async def _revoke_sessions(self, account_id: UUID) -> None:
        await self._session.execute(
            update(JwtSession)
            .where(
                JwtSession.user_account_id == account_id,
                JwtSession.revoked_at.is_(None),
            )
            .values(revoked_at=utcnow())
            .execution_options(synchronize_session="fetch")
        )

    async def update_account_status(
        self,
        principal: Principal,
        account_id: UUID,
        *,
        status: AccountStatus,
        email_verified: bool | None = None,
    ) -> UserAccount:
        """Change an account's status; blocking statuses end all sessions."""
        principal.require(Permission.MANAGE_ACCOUNTS)
        account = await self.get_account(account_id)
        previous = account.status
        account.status = status
        if email_verified is not None:
            account.email_verified = email_verified
        if status in BLOCKING_STATUSES:
            await self._revoke_sessions(account.id)
        await self._session.flush()

        await self._audit.record_for(
            principal,
            "account_status_update",
            target_object=f"user_account:{account.id}",
            description=f"{previous.value} -> {status.value}",
        )
        logger.info(
            "Account status changed",
            extra={"account_id": str(account.id), "status": status.value},
        )
        return account

    async def _active_member(self, member_id: UUID) -> Member:
        member = await self.get_member(member_id)
        if member.status != AccountStatus.ACTIVE:
            raise BusinessRuleError(f"Member is {member.status.value}")
        return member

    async def assign_moderator(self, principal: Principal, member_id: UUID) -> Moderator:
        """Make a member a moderator.

        An active assignment is returned as is; a revoked one is reactivated.
        """
        principal.require(Permission.MANAGE_MODERATORS)
        member = await self._active_member(member_id)

        result = await self._session.execute(
            select(Moderator).where(Moderator.member_id == member.id)
        )
        moderator = result.scalar_one_or_none()
        if moderator is not None and moderator.is_active:
            return moderator

        if moderator is None:
            moderator = Moderator(member_id=member.id)
            self._session.add(moderator)
        moderator.status = RoleStatus.ACTIVE
        moderator.revoked_at = None
        moderator.deleted_at = None
        moderator.assigned_at = utcnow()
        moderator.assigned_by_administrator_id = principal.administrator_id
        await self._session.flush()

        await self._audit.record_for(
            principal,
            "moderator_assign",
            target_object=f"member:{member.id}",
        )
        return moderator

    async def revoke_moderator(self, principal: Principal, member_id: UUID) -> Moderator:
        principal.require(Permission.MANAGE_MODERATORS)
        result = await self._session.execute(
            select(Moderator).where(Moderator.member_id == member_id)
        )
        moderator = result.scalar_one_or_none()
        if moderator is None or not moderator.is_active:
            raise NotFoundError("Moderator", member_id)
        moderator.status = RoleStatus.REVOKED
        moderator.revoked_at = utcnow()
        await self._session.flush()

        await self._audit.record_for(
            principal,
            "moderator_revoke",
            target_object=f"member:{member_id}",
        )
        return moderator

    async def list_moderators(self, principal: Principal) -> list[Moderator]:
        principal.require(Permission.MANAGE_MODERATORS)
        result = await self._session.execute(
            select(Moderator)
            .where(
                Moderator.status == RoleStatus.ACTIVE,
                Moderator.deleted_at.is_(None),
            )
            .order_by(Moderator.assigned_at)
        )
        return list(result.scalars().all())

    async def escalate_administrator(
        self, principal: Principal, member_id: UUID
    ) -> Administrator:
        """Grant administrator rights to a member."""
        principal.require(Permission.MANAGE_ADMINISTRATORS)
        member = await self._active_member(member_id)

        result = await self._session.execute(
            select(Administrator).where(Administrator.member_id == member.id)
        )
        administrator = result.scalar_one_or_none()
        if administrator is not None and administrator.is_active:
            return administrator

        if administrator is None:
            administrator = Administrator(member_id=member.id)
            self._session.add(administrator)
        administrator.status = RoleStatus.ACTIVE
        administrator.revoked_at = None
        administrator.deleted_at = None
        administrator.escalated_at = utcnow()
        administrator.escalated_by_administrator_id = principal.administrator_id
        await self._session.flush()

        await self._audit.record_for(
            principal,
            "administrator_escalate",
            target_object=f"member:{member.id}",
        )
        return administrator

    async def revoke_administrator(
        self, principal: Principal, member_id: UUID
    ) -> Administrator:
        principal.require(Permission.MANAGE_ADMINISTRATORS)
        if member_id == principal.member_id:
            raise BusinessRuleError("Administrators cannot revoke themselves")

        result = await self._session.execute(
            select(Administrator).where(Administrator.member_id == member_id)
        )
        administrator = result.scalar_one_or_none()
        if administrator is None or not administrator.is_active:
            raise NotFoundError("Administrator", member_id)
        administrator.status = RoleStatus.REVOKED
        administrator.revoked_at = utcnow()
        await self._session.flush()

        await self._audit.record_for(
            principal,
            "administrator_revoke",
            target_object=f"member:{member_id}",
        )
        return administrator
