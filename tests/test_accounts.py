"""Tests for staff account administration.

Tests cover:
- Member search for moderators and administrators
- Account status changes and session revocation
- Moderator assignment and revocation
- Administrator escalation and revocation
"""

import pytest
from sqlalchemy import select

from discuss_board.core.exceptions import (
    AuthenticationError,
    BusinessRuleError,
    NotFoundError,
    PermissionDeniedError,
)
from discuss_board.db.models import AuditLog
from discuss_board.db.models.base import AccountStatus, RoleStatus
from discuss_board.services.accounts import AccountAdminService, MemberFilters
from discuss_board.services.auth import AuthService
from discuss_board.services.authz import RoleClass
from tests.factories import (
    MEMBER_PASSWORD,
    create_administrator,
    create_member,
    create_moderator,
)


@pytest.fixture
def account_service(db_session, policy) -> AccountAdminService:
    return AccountAdminService(db_session, policy)


class TestMemberSearch:
    """Tests for the staff member search."""

    @pytest.mark.asyncio
    async def test_search_by_nickname(self, account_service, db_session):
        moderator = await create_moderator(db_session)
        await create_member(db_session, "ada")
        await create_member(db_session, "adam")
        await create_member(db_session, "bob")

        page = await account_service.search_members(
            moderator.principal, MemberFilters(nickname="ada", sort="nickname:asc")
        )
        assert [r.member.nickname for r in page.data] == ["ada", "adam"]
        assert page.data[0].account.email == "ada@example.com"
        assert page.pagination.records == 2

    @pytest.mark.asyncio
    async def test_search_by_status(self, account_service, db_session):
        moderator = await create_moderator(db_session)
        await create_member(db_session, "ada")
        await create_member(db_session, "bob", member_status=AccountStatus.SUSPENDED)

        page = await account_service.search_members(
            moderator.principal, MemberFilters(status=AccountStatus.SUSPENDED)
        )
        assert [r.member.nickname for r in page.data] == ["bob"]

    @pytest.mark.asyncio
    async def test_members_cannot_search(self, account_service, db_session):
        ada = await create_member(db_session)
        with pytest.raises(PermissionDeniedError):
            await account_service.search_members(ada.principal, MemberFilters())


class TestAccountStatus:
    """Tests for account status changes."""

    @pytest.mark.asyncio
    async def test_ban_revokes_sessions(
        self, account_service, db_session, auth_settings, policy
    ):
        admin = await create_administrator(db_session)
        ada = await create_member(db_session)
        auth = AuthService(db_session, auth_settings, policy)
        login = await auth.login(RoleClass.MEMBER, email=ada.email, password=MEMBER_PASSWORD)

        account = await account_service.update_account_status(
            admin.principal, ada.account.id, status=AccountStatus.BANNED
        )
        assert account.status == AccountStatus.BANNED

        with pytest.raises(AuthenticationError, match="revoked"):
            await auth.authenticate(login.tokens.access)

        entry = (
            await db_session.execute(
                select(AuditLog).where(AuditLog.action_type == "account_status_update")
            )
        ).scalar_one()
        assert entry.description == "active -> banned"

    @pytest.mark.asyncio
    async def test_verify_email_flag(self, account_service, db_session):
        admin = await create_administrator(db_session)
        ada = await create_member(db_session, verified=False, account_status=AccountStatus.PENDING)

        account = await account_service.update_account_status(
            admin.principal, ada.account.id, status=AccountStatus.ACTIVE, email_verified=True
        )
        assert account.email_verified

    @pytest.mark.asyncio
    async def test_moderator_cannot_change_status(self, account_service, db_session):
        moderator = await create_moderator(db_session)
        ada = await create_member(db_session)
        with pytest.raises(PermissionDeniedError):
            await account_service.update_account_status(
                moderator.principal, ada.account.id, status=AccountStatus.BANNED
            )

    @pytest.mark.asyncio
    async def test_unknown_account(self, account_service, db_session):
        admin = await create_administrator(db_session)
        with pytest.raises(NotFoundError, match="Account"):
            await account_service.update_account_status(
                admin.principal, admin.member.id, status=AccountStatus.BANNED
            )


class TestModerators:
    """Tests for moderator assignment."""

    @pytest.mark.asyncio
    async def test_assign_list_revoke(self, account_service, db_session):
        admin = await create_administrator(db_session)
        ada = await create_member(db_session)

        moderator = await account_service.assign_moderator(admin.principal, ada.member.id)
        assert moderator.assigned_by_administrator_id == admin.administrator.id
        assert [m.id for m in await account_service.list_moderators(admin.principal)] == [
            moderator.id
        ]

        revoked = await account_service.revoke_moderator(admin.principal, ada.member.id)
        assert revoked.status == RoleStatus.REVOKED
        assert await account_service.list_moderators(admin.principal) == []

        with pytest.raises(NotFoundError):
            await account_service.revoke_moderator(admin.principal, ada.member.id)

    @pytest.mark.asyncio
    async def test_reassign_reactivates_row(self, account_service, db_session):
        admin = await create_administrator(db_session)
        ada = await create_member(db_session)
        first = await account_service.assign_moderator(admin.principal, ada.member.id)
        await account_service.revoke_moderator(admin.principal, ada.member.id)

        again = await account_service.assign_moderator(admin.principal, ada.member.id)
        assert again.id == first.id
        assert again.is_active

    @pytest.mark.asyncio
    async def test_suspended_member_cannot_be_assigned(self, account_service, db_session):
        admin = await create_administrator(db_session)
        ada = await create_member(db_session, member_status=AccountStatus.SUSPENDED)
        with pytest.raises(BusinessRuleError, match="suspended"):
            await account_service.assign_moderator(admin.principal, ada.member.id)


class TestAdministrators:
    """Tests for administrator escalation."""

    @pytest.mark.asyncio
    async def test_escalate_and_revoke(self, account_service, db_session):
        admin = await create_administrator(db_session)
        ada = await create_member(db_session)

        escalated = await account_service.escalate_administrator(admin.principal, ada.member.id)
        assert escalated.escalated_by_administrator_id == admin.administrator.id
        assert escalated.is_active

        revoked = await account_service.revoke_administrator(admin.principal, ada.member.id)
        assert revoked.status == RoleStatus.REVOKED

    @pytest.mark.asyncio
    async def test_cannot_revoke_self(self, account_service, db_session):
        admin = await create_administrator(db_session)
        with pytest.raises(BusinessRuleError, match="themselves"):
            await account_service.revoke_administrator(admin.principal, admin.member.id)

    @pytest.mark.asyncio
    async def test_moderator_cannot_escalate(self, account_service, db_session):
        moderator = await create_moderator(db_session)
        ada = await create_member(db_session)
        with pytest.raises(PermissionDeniedError):
            await account_service.escalate_administrator(moderator.principal, ada.member.id)
