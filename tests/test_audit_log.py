"""Tests for the audit log service."""

from uuid import uuid4

import pytest

from discuss_board.db.models.base import ActorType
from discuss_board.services.audit_log import AuditLogFilters, AuditLogService
from tests.factories import create_administrator, create_moderator


@pytest.fixture
def audit(db_session, policy) -> AuditLogService:
    return AuditLogService(db_session, policy)


class TestRecord:
    @pytest.mark.asyncio
    async def test_record_for_uses_principal_role(self, audit, db_session):
        moderator = await create_moderator(db_session)
        entry = await audit.record_for(
            moderator.principal, "post_lock", target_object="post:1", description="Flame war"
        )
        assert entry.actor_type == ActorType.MODERATOR
        assert entry.actor_id == moderator.account.id
        assert entry.created_at is not None

    @pytest.mark.asyncio
    async def test_system_actor(self, audit):
        entry = await audit.record(
            actor_type=ActorType.SYSTEM, actor_id=None, action_type="maintenance"
        )
        assert entry.actor_id is None


class TestSearch:
    """Tests for audit log filtering."""

    @pytest.mark.asyncio
    async def test_filters(self, audit, db_session):
        admin = await create_administrator(db_session)
        moderator = await create_moderator(db_session)
        await audit.record_for(admin.principal, "moderator_assign")
        await audit.record_for(moderator.principal, "post_lock")
        await audit.record_for(moderator.principal, "post_unlock")
        await audit.record(actor_type=ActorType.MEMBER, actor_id=uuid4(), action_type="member_login")

        by_type = await audit.search(AuditLogFilters(actor_type=ActorType.MODERATOR))
        assert by_type.pagination.records == 2

        by_action = await audit.search(AuditLogFilters(action_type="moderator_assign"))
        assert [e.actor_id for e in by_action.data] == [admin.account.id]

        by_actor = await audit.search(AuditLogFilters(actor_id=moderator.account.id, limit=1))
        assert by_actor.pagination.pages == 2
        assert len(by_actor.data) == 1

    @pytest.mark.asyncio
    async def test_sort_by_action_type(self, audit, db_session):
        admin = await create_administrator(db_session)
        for action in ("b_action", "c_action", "a_action"):
            await audit.record_for(admin.principal, action)

        page = await audit.search(AuditLogFilters(sort="action_type:asc"))
        assert [e.action_type for e in page.data] == ["a_action", "b_action", "c_action"]
