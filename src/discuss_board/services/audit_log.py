"""Append-only audit log for security and moderation events.

Services call ``AuditLogService.record`` inside the same transaction as the
change they describe, so an audit row exists exactly when the change
was committed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import select

from discuss_board.core.config import ContentPolicySettings
from discuss_board.db.models.audit import AuditLog
from discuss_board.db.models.base import ActorType
from discuss_board.services.pagination import Page, page_params, paginate, parse_sort

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

    from discuss_board.services.authz import Principal

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AuditLogFilters:
    """Filters for the administrator audit log search."""

    actor_type: ActorType | None = None
    actor_id: UUID | None = None
    action_type: str | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None
    page: int | None = None
    limit: int | None = None
    sort: str | None = None


class AuditLogService:
    """Write and search audit log rows."""

    SORT_FIELDS = {
        "created_at": AuditLog.created_at,
        "action_type": AuditLog.action_type,
        "actor_type": AuditLog.actor_type,
    }

    def __init__(
        self, session: AsyncSession, policy: ContentPolicySettings | None = None
    ) -> None:
        self._session = session
        self._policy = policy or ContentPolicySettings()

    async def record(
        self,
        *,
        actor_type: ActorType,
        actor_id: UUID | None,
        action_type: str,
        target_object: str | None = None,
        description: str | None = None,
    ) -> AuditLog:
        """Append an audit row (flushed, not committed)."""
        entry = AuditLog(
            actor_type=actor_type,
            actor_id=actor_id,
            action_type=action_type,
            target_object=target_object,
            description=description,
        )
        self._session.add(entry)
        await self._session.flush()

        logger.info(
            "Audit event recorded",
            extra={
                "audit_id": str(entry.id),
                "actor_type": actor_type.value,
                "action_type": action_type,
                "target_object": target_object,
            },
        )
        return entry

    async def record_for(
        self,
        principal: Principal,
        action_type: str,
        target_object: str | None = None,
        description: str | None = None,
    ) -> AuditLog:
        """Append an audit row attributed to an authenticated principal."""
        return await self.record(
            actor_type=ActorType(principal.role.value),
            actor_id=principal.account_id,
            action_type=action_type,
            target_object=target_object,
            description=description,
        )

    async def search(self, filters: AuditLogFilters) -> Page[AuditLog]:
        stmt = select(AuditLog)
        if filters.actor_type is not None:
            stmt = stmt.where(AuditLog.actor_type == filters.actor_type)
        if filters.actor_id is not None:
            stmt = stmt.where(AuditLog.actor_id == filters.actor_id)
        if filters.action_type:
            stmt = stmt.where(AuditLog.action_type == filters.action_type)
        if filters.created_from is not None:
            stmt = stmt.where(AuditLog.created_at >= filters.created_from)
        if filters.created_to is not None:
            stmt = stmt.where(AuditLog.created_at <= filters.created_to)

        params = page_params(filters.page, filters.limit, self._policy)
        order = parse_sort(filters.sort, self.SORT_FIELDS, "created_at")
        rows, pagination = await paginate(self._session, stmt, params, [order, AuditLog.id])
        return Page(pagination=pagination, data=rows)
