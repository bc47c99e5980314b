"""Moderator router under /discussBoard/moderator.

Report queue, moderation actions, member lookup and direct content
removal. Administrator sessions hold every moderator permission.
"""

from __future__ import annotations

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from discuss_board.api.dependencies import AppSettings, DbSession
from discuss_board.api.middleware.auth import AuthenticatedUser, require_permission
from discuss_board.api.schemas.admin import MemberAdminResponse, MemberSearchRequest
from discuss_board.api.schemas.common import PageResponse, PaginationSchema, page_response
from discuss_board.api.schemas.content import CommentResponse, PollResponse, PostResponse
from discuss_board.api.schemas.moderation import (
    ActionCreateRequest,
    ActionResponse,
    ActionSearchRequest,
    ReportResponse,
    ReportSearchRequest,
    ReportStatusUpdateRequest,
)
from discuss_board.services.accounts import AccountAdminService, MemberFilters, MemberRecord
from discuss_board.services.authz import Permission
from discuss_board.services.comments import CommentService
from discuss_board.services.moderation import ActionFilters, ModerationService, ReportFilters
from discuss_board.services.polls import PollService
from discuss_board.services.posts import PostService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/discussBoard/moderator", tags=["moderator"])

ReportViewer = Annotated[AuthenticatedUser, Depends(require_permission(Permission.VIEW_REPORTS))]
ReportManager = Annotated[
    AuthenticatedUser, Depends(require_permission(Permission.MANAGE_REPORTS))
]
ActionViewer = Annotated[
    AuthenticatedUser, Depends(require_permission(Permission.VIEW_MODERATION_ACTIONS))
]
ActionCreator = Annotated[
    AuthenticatedUser, Depends(require_permission(Permission.CREATE_MODERATION_ACTION))
]
ContentRemover = Annotated[
    AuthenticatedUser, Depends(require_permission(Permission.DELETE_ANY_CONTENT))
]
PollCloser = Annotated[AuthenticatedUser, Depends(require_permission(Permission.CLOSE_ANY_POLL))]
MemberViewer = Annotated[AuthenticatedUser, Depends(require_permission(Permission.VIEW_MEMBERS))]


def member_admin_response(record: MemberRecord) -> MemberAdminResponse:
    member, account = record.member, record.account
    return MemberAdminResponse(
        id=member.id,
        user_account_id=account.id,
        nickname=member.nickname,
        display_name=member.display_name,
        status=member.status,
        email=account.email,
        account_status=account.status,
        email_verified=account.email_verified,
        last_login_at=account.last_login_at,
        created_at=member.created_at,
    )


# -----------------------------------------------------------------------------
# Reports
# -----------------------------------------------------------------------------


@router.patch("/reports", response_model=PageResponse[ReportResponse], summary="Report queue")
async def search_reports(
    body: ReportSearchRequest, user: ReportViewer, db: DbSession, settings: AppSettings
) -> dict:
    page = await ModerationService(db, settings.content).search_reports(
        ReportFilters(**body.model_dump())
    )
    return page_response(page, ReportResponse)


@router.get("/reports/{report_id}", response_model=ReportResponse, summary="Get a report")
async def get_report(
    report_id: UUID, user: ReportViewer, db: DbSession, settings: AppSettings
) -> ReportResponse:
    report = await ModerationService(db, settings.content).get_report(report_id)
    return ReportResponse.model_validate(report)


@router.put(
    "/reports/{report_id}/status",
    response_model=ReportResponse,
    summary="Change a report's status",
)
async def update_report_status(
    report_id: UUID,
    body: ReportStatusUpdateRequest,
    user: ReportManager,
    db: DbSession,
    settings: AppSettings,
) -> ReportResponse:
    report = await ModerationService(db, settings.content).update_report_status(
        user.to_principal(), report_id, body.status
    )
    await db.commit()
    return ReportResponse.model_validate(report)


# -----------------------------------------------------------------------------
# Actions
# -----------------------------------------------------------------------------


@router.post(
    "/actions",
    response_model=ActionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Take a moderation action",
)
async def create_action(
    body: ActionCreateRequest, user: ActionCreator, db: DbSession, settings: AppSettings
) -> ActionResponse:
    action = await ModerationService(db, settings.content).create_action(
        user.to_principal(), **body.model_dump()
    )
    await db.commit()
    return ActionResponse.model_validate(action)


@router.patch(
    "/actions", response_model=PageResponse[ActionResponse], summary="Search moderation actions"
)
async def search_actions(
    body: ActionSearchRequest, user: ActionViewer, db: DbSession, settings: AppSettings
) -> dict:
    page = await ModerationService(db, settings.content).search_actions(
        ActionFilters(**body.model_dump())
    )
    return page_response(page, ActionResponse)


@router.get("/actions/{action_id}", response_model=ActionResponse, summary="Get an action")
async def get_action(
    action_id: UUID, user: ActionViewer, db: DbSession, settings: AppSettings
) -> ActionResponse:
    action = await ModerationService(db, settings.content).get_action(action_id)
    return ActionResponse.model_validate(action)


@router.post(
    "/actions/{action_id}/revoke",
    response_model=ActionResponse,
    summary="Revoke a moderation action",
)
async def revoke_action(
    action_id: UUID, user: ActionCreator, db: DbSession, settings: AppSettings
) -> ActionResponse:
    action = await ModerationService(db, settings.content).revoke_action(
        user.to_principal(), action_id
    )
    await db.commit()
    return ActionResponse.model_validate(action)


# -----------------------------------------------------------------------------
# Members
# -----------------------------------------------------------------------------


@router.patch(
    "/members", response_model=PageResponse[MemberAdminResponse], summary="Search members"
)
async def search_members(
    body: MemberSearchRequest, user: MemberViewer, db: DbSession, settings: AppSettings
) -> PageResponse[MemberAdminResponse]:
    page = await AccountAdminService(db, settings.content).search_members(
        user.to_principal(), MemberFilters(**body.model_dump())
    )
    return PageResponse[MemberAdminResponse](
        pagination=PaginationSchema.model_validate(page.pagination),
        data=[member_admin_response(record) for record in page.data],
    )


# -----------------------------------------------------------------------------
# Content
# -----------------------------------------------------------------------------


@router.delete(
    "/comments/{comment_id}",
    response_model=CommentResponse,
    summary="Remove any comment",
)
async def remove_comment(
    comment_id: UUID, user: ContentRemover, db: DbSession, settings: AppSettings
) -> CommentResponse:
    comment = await CommentService(db, settings.content).remove_comment(
        user.to_principal(), comment_id
    )
    await db.commit()
    return CommentResponse.model_validate(comment)


@router.delete(
    "/posts/{post_id}",
    response_model=PostResponse,
    summary="Remove any post",
)
async def remove_post(
    post_id: UUID, user: ContentRemover, db: DbSession, settings: AppSettings
) -> PostResponse:
    post = await PostService(db, settings.content).delete_post(user.to_principal(), post_id)
    await db.commit()
    return PostResponse.model_validate(post)


@router.put("/posts/{post_id}/lock", response_model=PostResponse, summary="Lock a post")
async def lock_post(
    post_id: UUID, user: ActionCreator, db: DbSession, settings: AppSettings
) -> PostResponse:
    post = await PostService(db, settings.content).set_locked(user.to_principal(), post_id, True)
    await db.commit()
    return PostResponse.model_validate(post)


@router.delete("/posts/{post_id}/lock", response_model=PostResponse, summary="Unlock a post")
async def unlock_post(
    post_id: UUID, user: ActionCreator, db: DbSession, settings: AppSettings
) -> PostResponse:
    post = await PostService(db, settings.content).set_locked(user.to_principal(), post_id, False)
    await db.commit()
    return PostResponse.model_validate(post)


@router.post(
    "/posts/{post_id}/polls/{poll_id}/close",
    response_model=PollResponse,
    summary="Close any poll",
)
async def close_poll(
    post_id: UUID, poll_id: UUID, user: PollCloser, db: DbSession
) -> PollResponse:
    poll = await PollService(db).close_poll(user.to_principal(), post_id, poll_id)
    await db.commit()
    return PollResponse.model_validate(poll)
