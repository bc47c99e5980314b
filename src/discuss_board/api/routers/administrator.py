"""Administrator router under /discussBoard/administrator.

Account status, staff roles, forbidden words, taxonomy, audit logs,
notification oversight, appeal decisions and export processing.
"""

from __future__ import annotations

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from discuss_board.api.dependencies import AppSettings, DbSession
from discuss_board.api.middleware.auth import AuthenticatedUser, require_permission
from discuss_board.api.routers.moderator import member_admin_response
from discuss_board.api.schemas.account import (
    ExportResponse,
    ExportSearchRequest,
    ExportStatusUpdateRequest,
    NotificationResponse,
)
from discuss_board.api.schemas.admin import (
    AccountStatusUpdateRequest,
    AdministratorResponse,
    AdminNotificationSearchRequest,
    AuditLogResponse,
    AuditLogSearchRequest,
    ForbiddenWordCreateRequest,
    ForbiddenWordResponse,
    ForbiddenWordSearchRequest,
    ForbiddenWordUpdateRequest,
    MemberAdminResponse,
    ModeratorResponse,
)
from discuss_board.api.schemas.auth import AccountSchema
from discuss_board.api.schemas.common import PageResponse, page_response
from discuss_board.api.schemas.content import (
    CategoryCreateRequest,
    CategoryResponse,
    CategoryUpdateRequest,
    TagCreateRequest,
    TagResponse,
)
from discuss_board.api.schemas.moderation import (
    AppealDecisionRequest,
    AppealResponse,
    AppealSearchRequest,
)
from discuss_board.services.accounts import AccountAdminService, MemberRecord
from discuss_board.services.audit_log import AuditLogFilters, AuditLogService
from discuss_board.services.authz import Permission
from discuss_board.services.exports import ExportFilters, ExportService
from discuss_board.services.forbidden_words import ForbiddenWordFilters, ForbiddenWordService
from discuss_board.services.moderation import AppealFilters, ModerationService
from discuss_board.services.notifications import NotificationFilters, NotificationService
from discuss_board.services.taxonomy import TaxonomyService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/discussBoard/administrator", tags=["administrator"])

AccountManager = Annotated[
    AuthenticatedUser, Depends(require_permission(Permission.MANAGE_ACCOUNTS))
]
ModeratorManager = Annotated[
    AuthenticatedUser, Depends(require_permission(Permission.MANAGE_MODERATORS))
]
AdministratorManager = Annotated[
    AuthenticatedUser, Depends(require_permission(Permission.MANAGE_ADMINISTRATORS))
]
WordManager = Annotated[
    AuthenticatedUser, Depends(require_permission(Permission.MANAGE_FORBIDDEN_WORDS))
]
TaxonomyManager = Annotated[
    AuthenticatedUser, Depends(require_permission(Permission.MANAGE_TAXONOMY))
]
AppealManager = Annotated[
    AuthenticatedUser, Depends(require_permission(Permission.MANAGE_APPEALS))
]
ExportManager = Annotated[
    AuthenticatedUser, Depends(require_permission(Permission.MANAGE_EXPORTS))
]
AuditViewer = Annotated[
    AuthenticatedUser, Depends(require_permission(Permission.VIEW_AUDIT_LOGS))
]
NotificationViewer = Annotated[
    AuthenticatedUser, Depends(require_permission(Permission.VIEW_ALL_NOTIFICATIONS))
]


# -----------------------------------------------------------------------------
# Accounts and members
# -----------------------------------------------------------------------------


@router.get("/accounts/{account_id}", response_model=AccountSchema, summary="Get an account")
async def get_account(
    account_id: UUID, user: AccountManager, db: DbSession, settings: AppSettings
) -> AccountSchema:
    account = await AccountAdminService(db, settings.content).get_account(account_id)
    return AccountSchema.model_validate(account)


@router.put(
    "/accounts/{account_id}/status",
    response_model=AccountSchema,
    summary="Change an account's status",
)
async def update_account_status(
    account_id: UUID,
    body: AccountStatusUpdateRequest,
    user: AccountManager,
    db: DbSession,
    settings: AppSettings,
) -> AccountSchema:
    """Suspending or banning an account also revokes all of its sessions."""
    account = await AccountAdminService(db, settings.content).update_account_status(
        user.to_principal(),
        account_id,
        status=body.status,
        email_verified=body.email_verified,
    )
    await db.commit()
    return AccountSchema.model_validate(account)


@router.get("/members/{member_id}", response_model=MemberAdminResponse, summary="Get a member")
async def get_member(
    member_id: UUID, user: AccountManager, db: DbSession, settings: AppSettings
) -> MemberAdminResponse:
    service = AccountAdminService(db, settings.content)
    member = await service.get_member(member_id)
    account = await service.get_account(member.user_account_id)
    return member_admin_response(MemberRecord(member=member, account=account))


# -----------------------------------------------------------------------------
# Moderators and administrators
# -----------------------------------------------------------------------------


@router.get("/moderators", response_model=list[ModeratorResponse], summary="Active moderators")
async def list_moderators(
    user: ModeratorManager, db: DbSession, settings: AppSettings
) -> list[ModeratorResponse]:
    rows = await AccountAdminService(db, settings.content).list_moderators(user.to_principal())
    return [ModeratorResponse.model_validate(row) for row in rows]


@router.post(
    "/moderators/{member_id}",
    response_model=ModeratorResponse,
    summary="Assign the moderator role",
)
async def assign_moderator(
    member_id: UUID, user: ModeratorManager, db: DbSession, settings: AppSettings
) -> ModeratorResponse:
    moderator = await AccountAdminService(db, settings.content).assign_moderator(
        user.to_principal(), member_id
    )
    await db.commit()
    return ModeratorResponse.model_validate(moderator)


@router.delete(
    "/moderators/{member_id}",
    response_model=ModeratorResponse,
    summary="Revoke the moderator role",
)
async def revoke_moderator(
    member_id: UUID, user: ModeratorManager, db: DbSession, settings: AppSettings
) -> ModeratorResponse:
    moderator = await AccountAdminService(db, settings.content).revoke_moderator(
        user.to_principal(), member_id
    )
    await db.commit()
    return ModeratorResponse.model_validate(moderator)


@router.post(
    "/administrators/{member_id}",
    response_model=AdministratorResponse,
    summary="Escalate a member to administrator",
)
async def escalate_administrator(
    member_id: UUID, user: AdministratorManager, db: DbSession, settings: AppSettings
) -> AdministratorResponse:
    administrator = await AccountAdminService(db, settings.content).escalate_administrator(
        user.to_principal(), member_id
    )
    await db.commit()
    return AdministratorResponse.model_validate(administrator)


@router.delete(
    "/administrators/{member_id}",
    response_model=AdministratorResponse,
    summary="Revoke administrator rights",
)
async def revoke_administrator(
    member_id: UUID, user: AdministratorManager, db: DbSession, settings: AppSettings
) -> AdministratorResponse:
    administrator = await AccountAdminService(db, settings.content).revoke_administrator(
        user.to_principal(), member_id
    )
    await db.commit()
    return AdministratorResponse.model_validate(administrator)


# -----------------------------------------------------------------------------
# Forbidden words
# -----------------------------------------------------------------------------


@router.post(
    "/forbidden-words",
    response_model=ForbiddenWordResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a forbidden expression",
)
async def create_forbidden_word(
    body: ForbiddenWordCreateRequest, user: WordManager, db: DbSession, settings: AppSettings
) -> ForbiddenWordResponse:
    word = await ForbiddenWordService(db, settings.content).create(
        body.expression, body.description
    )
    await db.commit()
    return ForbiddenWordResponse.model_validate(word)


@router.patch(
    "/forbidden-words",
    response_model=PageResponse[ForbiddenWordResponse],
    summary="Search forbidden expressions",
)
async def search_forbidden_words(
    body: ForbiddenWordSearchRequest, user: WordManager, db: DbSession, settings: AppSettings
) -> dict:
    page = await ForbiddenWordService(db, settings.content).search(
        ForbiddenWordFilters(**body.model_dump())
    )
    return page_response(page, ForbiddenWordResponse)


@router.get(
    "/forbidden-words/{word_id}",
    response_model=ForbiddenWordResponse,
    summary="Get a forbidden expression",
)
async def get_forbidden_word(
    word_id: UUID, user: WordManager, db: DbSession, settings: AppSettings
) -> ForbiddenWordResponse:
    word = await ForbiddenWordService(db, settings.content).get(word_id)
    return ForbiddenWordResponse.model_validate(word)


@router.put(
    "/forbidden-words/{word_id}",
    response_model=ForbiddenWordResponse,
    summary="Edit a forbidden expression",
)
async def update_forbidden_word(
    word_id: UUID,
    body: ForbiddenWordUpdateRequest,
    user: WordManager,
    db: DbSession,
    settings: AppSettings,
) -> ForbiddenWordResponse:
    word = await ForbiddenWordService(db, settings.content).update(
        word_id, expression=body.expression, description=body.description
    )
    await db.commit()
    return ForbiddenWordResponse.model_validate(word)


@router.delete(
    "/forbidden-words/{word_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a forbidden expression",
)
async def delete_forbidden_word(
    word_id: UUID, user: WordManager, db: DbSession, settings: AppSettings
) -> None:
    await ForbiddenWordService(db, settings.content).delete(word_id)
    await db.commit()


# -----------------------------------------------------------------------------
# Categories and tags
# -----------------------------------------------------------------------------


@router.get("/categories", response_model=list[CategoryResponse], summary="All categories")
async def list_categories(user: TaxonomyManager, db: DbSession) -> list[CategoryResponse]:
    rows = await TaxonomyService(db).list_categories(include_inactive=True)
    return [CategoryResponse.model_validate(row) for row in rows]


@router.post(
    "/categories",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a category",
)
async def create_category(
    body: CategoryCreateRequest, user: TaxonomyManager, db: DbSession
) -> CategoryResponse:
    category = await TaxonomyService(db).create_category(
        body.name,
        body.description,
        is_active=body.is_active,
        sort_order=body.sort_order,
    )
    await db.commit()
    return CategoryResponse.model_validate(category)


@router.put(
    "/categories/{category_id}",
    response_model=CategoryResponse,
    summary="Edit a category",
)
async def update_category(
    category_id: UUID, body: CategoryUpdateRequest, user: TaxonomyManager, db: DbSession
) -> CategoryResponse:
    category = await TaxonomyService(db).update_category(category_id, **body.model_dump())
    await db.commit()
    return CategoryResponse.model_validate(category)


@router.delete(
    "/categories/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a category",
)
async def delete_category(category_id: UUID, user: TaxonomyManager, db: DbSession) -> None:
    await TaxonomyService(db).delete_category(category_id)
    await db.commit()


@router.post(
    "/tags",
    response_model=TagResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a tag",
)
async def create_tag(body: TagCreateRequest, user: TaxonomyManager, db: DbSession) -> TagResponse:
    tag = await TaxonomyService(db).create_tag(body.label)
    await db.commit()
    return TagResponse.model_validate(tag)


# -----------------------------------------------------------------------------
# Audit logs and notifications
# -----------------------------------------------------------------------------


@router.patch(
    "/audit-logs", response_model=PageResponse[AuditLogResponse], summary="Search audit logs"
)
async def search_audit_logs(
    body: AuditLogSearchRequest, user: AuditViewer, db: DbSession, settings: AppSettings
) -> dict:
    page = await AuditLogService(db, settings.content).search(
        AuditLogFilters(**body.model_dump())
    )
    return page_response(page, AuditLogResponse)


@router.patch(
    "/notifications",
    response_model=PageResponse[NotificationResponse],
    summary="Search all notifications",
)
async def search_notifications(
    body: AdminNotificationSearchRequest,
    user: NotificationViewer,
    db: DbSession,
    settings: AppSettings,
) -> dict:
    page = await NotificationService(db, settings.content).search(
        NotificationFilters(**body.model_dump())
    )
    return page_response(page, NotificationResponse)


# -----------------------------------------------------------------------------
# Appeals
# -----------------------------------------------------------------------------


@router.patch("/appeals", response_model=PageResponse[AppealResponse], summary="Search appeals")
async def search_appeals(
    body: AppealSearchRequest, user: AppealManager, db: DbSession, settings: AppSettings
) -> dict:
    page = await ModerationService(db, settings.content).list_appeals(
        AppealFilters(**body.model_dump())
    )
    return page_response(page, AppealResponse)


@router.put(
    "/appeals/{appeal_id}/decision",
    response_model=AppealResponse,
    summary="Accept or reject an appeal",
)
async def decide_appeal(
    appeal_id: UUID,
    body: AppealDecisionRequest,
    user: AppealManager,
    db: DbSession,
    settings: AppSettings,
) -> AppealResponse:
    appeal = await ModerationService(db, settings.content).decide_appeal(
        user.to_principal(),
        appeal_id,
        status=body.status,
        decision_reason=body.decision_reason,
    )
    await db.commit()
    return AppealResponse.model_validate(appeal)


# -----------------------------------------------------------------------------
# Exports
# -----------------------------------------------------------------------------


@router.patch("/exports", response_model=PageResponse[ExportResponse], summary="Search exports")
async def search_exports(
    body: ExportSearchRequest, user: ExportManager, db: DbSession, settings: AppSettings
) -> dict:
    page = await ExportService(db, settings.content).search_exports(
        ExportFilters(**body.model_dump())
    )
    return page_response(page, ExportResponse)


@router.put(
    "/exports/{export_id}/status",
    response_model=ExportResponse,
    summary="Record export progress",
)
async def update_export_status(
    export_id: UUID,
    body: ExportStatusUpdateRequest,
    user: ExportManager,
    db: DbSession,
    settings: AppSettings,
) -> ExportResponse:
    export = await ExportService(db, settings.content).update_export_status(
        user.to_principal(), export_id, status=body.status, file_uri=body.file_uri
    )
    await db.commit()
    return ExportResponse.model_validate(export)
