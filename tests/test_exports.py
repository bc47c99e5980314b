"""Tests for member data export requests."""

import pytest
from sqlalchemy import select

from discuss_board.core.exceptions import BusinessRuleError, ConflictError, PermissionDeniedError
from discuss_board.db.models import AuditLog
from discuss_board.db.models.base import ExportStatus, ExportType
from discuss_board.services.exports import ExportFilters, ExportService
from tests.factories import create_administrator, create_member


@pytest.fixture
def export_service(db_session, policy) -> ExportService:
    return ExportService(db_session, policy)


class TestRequestExport:
    """Tests for requesting exports."""

    @pytest.mark.asyncio
    async def test_request_is_pending_and_audited(self, export_service, db_session):
        ada = await create_member(db_session)
        export = await export_service.request_export(ada.principal, ExportType.ALL)

        assert export.status == ExportStatus.PENDING
        assert export.requester_member_id == ada.member.id
        entry = (await db_session.execute(select(AuditLog))).scalar_one()
        assert entry.action_type == "export_request"
        assert entry.description == "all"

    @pytest.mark.asyncio
    async def test_duplicate_pending_conflicts(self, export_service, db_session):
        ada = await create_member(db_session)
        await export_service.request_export(ada.principal, ExportType.PROFILE)
        with pytest.raises(ConflictError):
            await export_service.request_export(ada.principal, ExportType.PROFILE)
        # A different type is fine
        await export_service.request_export(ada.principal, ExportType.CONTENT)

    @pytest.mark.asyncio
    async def test_list_own_exports(self, export_service, db_session):
        ada = await create_member(db_session)
        bob = await create_member(db_session, "bob")
        mine = await export_service.request_export(ada.principal, ExportType.ALL)
        await export_service.request_export(bob.principal, ExportType.ALL)

        page = await export_service.list_own_exports(ada.principal, ExportFilters())
        assert [e.id for e in page.data] == [mine.id]

        everything = await export_service.search_exports(ExportFilters())
        assert everything.pagination.records == 2


class TestExportStatus:
    """Tests for administrator status updates."""

    @pytest.mark.asyncio
    async def test_full_lifecycle(self, export_service, db_session):
        ada = await create_member(db_session)
        admin = await create_administrator(db_session)
        export = await export_service.request_export(ada.principal, ExportType.ALL)

        await export_service.update_export_status(
            admin.principal, export.id, status=ExportStatus.PROCESSING
        )
        done = await export_service.update_export_status(
            admin.principal,
            export.id,
            status=ExportStatus.COMPLETED,
            file_uri="https://files.example.com/exports/ada.zip",
        )
        assert done.status == ExportStatus.COMPLETED
        assert done.completed_at is not None
        assert done.file_uri.endswith("ada.zip")

    @pytest.mark.asyncio
    async def test_pending_cannot_complete(self, export_service, db_session):
        ada = await create_member(db_session)
        admin = await create_administrator(db_session)
        export = await export_service.request_export(ada.principal, ExportType.ALL)
        with pytest.raises(BusinessRuleError, match="pending to completed"):
            await export_service.update_export_status(
                admin.principal,
                export.id,
                status=ExportStatus.COMPLETED,
                file_uri="https://files.example.com/x.zip",
            )

    @pytest.mark.asyncio
    async def test_completion_needs_file_uri(self, export_service, db_session):
        ada = await create_member(db_session)
        admin = await create_administrator(db_session)
        export = await export_service.request_export(ada.principal, ExportType.ALL)
        await export_service.update_export_status(
            admin.principal, export.id, status=ExportStatus.PROCESSING
        )
        with pytest.raises(BusinessRuleError, match="file_uri"):
            await export_service.update_export_status(
                admin.principal, export.id, status=ExportStatus.COMPLETED
            )

    @pytest.mark.asyncio
    async def test_failed_is_terminal(self, export_service, db_session):
        ada = await create_member(db_session)
        admin = await create_administrator(db_session)
        export = await export_service.request_export(ada.principal, ExportType.ALL)
        await export_service.update_export_status(
            admin.principal, export.id, status=ExportStatus.FAILED
        )
        with pytest.raises(BusinessRuleError):
            await export_service.update_export_status(
                admin.principal, export.id, status=ExportStatus.PROCESSING
            )

    @pytest.mark.asyncio
    async def test_member_cannot_update(self, export_service, db_session):
        ada = await create_member(db_session)
        export = await export_service.request_export(ada.principal, ExportType.ALL)
        with pytest.raises(PermissionDeniedError):
            await export_service.update_export_status(
                ada.principal, export.id, status=ExportStatus.PROCESSING
            )
