"""Member data export requests.

Members request an export; producing the archive happens outside the
board, and administrators record its progress here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import select

from discuss_board.core.config import ContentPolicySettings
from discuss_board.core.exceptions import BusinessRuleError, ConflictError, NotFoundError
from discuss_board.db.models.audit import ExportLog
from discuss_board.db.models.base import ExportStatus, ExportType, utcnow
from discuss_board.services.audit_log import AuditLogService
from discuss_board.services.authz import Permission
from discuss_board.services.pagination import Page, page_params, paginate, parse_sort

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

    from discuss_board.services.authz import Principal

logger = logging.getLogger(__name__)

# Allowed status moves; terminal states have no successors
_TRANSITIONS: dict[ExportStatus, frozenset[ExportStatus]] = {
    ExportStatus.PENDING: frozenset([ExportStatus.PROCESSING, ExportStatus.FAILED]),
    ExportStatus.PROCESSING: frozenset([ExportStatus.COMPLETED, ExportStatus.FAILED]),
    ExportStatus.COMPLETED: frozenset(),
    ExportStatus.FAILED: frozenset(),
}


@dataclass(slots=True)
class ExportFilters:
    requester_member_id: UUID | None = None
    export_type: ExportType | None = None
    status: ExportStatus | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None
    page: int | None = None
    limit: int | None = None
    sort: str | None = None


class ExportService:
    """Request and track data exports."""

    SORT_FIELDS = {
        "created_at": ExportLog.created_at,
        "status": ExportLog.status,
        "export_type": ExportLog.export_type,
    }

    def __init__(
        self, session: AsyncSession, policy: ContentPolicySettings | None = None
    ) -> None:
        self._session = session
        self._policy = policy or ContentPolicySettings()
        self._audit = AuditLogService(session, self._policy)

    async def request_export(self, principal: Principal, export_type: ExportType) -> ExportLog:
        """Queue an export for the caller.

        Raises:
            ConflictError: If an export of the same type is still pending.
        """
        principal.require(Permission.REQUEST_EXPORT)
        result = await self._session.execute(
            select(ExportLog.id).where(
                ExportLog.requester_member_id == principal.member_id,
                ExportLog.export_type == export_type,
                ExportLog.status == ExportStatus.PENDING,
                ExportLog.deleted_at.is_(None),
            )
        )
        if result.first() is not None:
            raise ConflictError(f"A {export_type.value} export is already pending")

        export = ExportLog(
            requester_member_id=principal.member_id,
            export_type=export_type,
            status=ExportStatus.PENDING,
        )
        self._session.add(export)
        await self._session.flush()
        await self._audit.record_for(
            principal,
            "export_request",
            target_object=f"export_log:{export.id}",
            description=export_type.value,
        )
        return export

    async def get_export(self, export_id: UUID) -> ExportLog:
        export = await self._session.get(ExportLog, export_id)
        if export is None or export.deleted_at is not None:
            raise NotFoundError("Export", export_id)
        return export

    async def list_own_exports(self, principal: Principal, filters: ExportFilters) -> Page[ExportLog]:
        filters.requester_member_id = principal.member_id
        return await self.search_exports(filters)

    async def search_exports(self, filters: ExportFilters) -> Page[ExportLog]:
        stmt = select(ExportLog).where(ExportLog.deleted_at.is_(None))
        if filters.requester_member_id is not None:
            stmt = stmt.where(ExportLog.requester_member_id == filters.requester_member_id)
        if filters.export_type is not None:
            stmt = stmt.where(ExportLog.export_type == filters.export_type)
        if filters.status is not None:
            stmt = stmt.where(ExportLog.status == filters.status)
        if filters.created_from is not None:
            stmt = stmt.where(ExportLog.created_at >= filters.created_from)
        if filters.created_to is not None:
            stmt = stmt.where(ExportLog.created_at <= filters.created_to)

        params = page_params(filters.page, filters.limit, self._policy)
        order = parse_sort(filters.sort, self.SORT_FIELDS, "created_at")
        rows, pagination = await paginate(self._session, stmt, params, [order, ExportLog.id])
        return Page(pagination=pagination, data=rows)

    async def update_export_status(
        self,
        principal: Principal,
        export_id: UUID,
        *,
        status: ExportStatus,
        file_uri: str | None = None,
    ) -> ExportLog:
        """Move an export along pending -> processing -> completed/failed.

        Raises:
            BusinessRuleError: Invalid transition, or completion without a file URI.
        """
        principal.require(Permission.MANAGE_EXPORTS)
        export = await self.get_export(export_id)
        if status not in _TRANSITIONS[export.status]:
            raise BusinessRuleError(
                f"Cannot move export from {export.status.value} to {status.value}"
            )
        if status == ExportStatus.COMPLETED:
            if not file_uri:
                raise BusinessRuleError("A completed export needs a file_uri")
            export.file_uri = file_uri
            export.completed_at = utcnow()
        export.status = status
        await self._session.flush()

        await self._audit.record_for(
            principal,
            "export_status_update",
            target_object=f"export_log:{export.id}",
            description=status.value,
        )
        logger.info(
            "Export status changed",
            extra={"export_id": str(export.id), "status": status.value},
        )
        return export
