"""Member router under /discussBoard/member.

Authoring of posts, comments, reactions, polls and attachments, plus the
member's reports, appeals, notifications, subscriptions and exports.
Moderator and administrator sessions reach these routes too since roles
are cumulative.
"""

from __future__ import annotations

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from discuss_board.api.dependencies import AppSettings, DbSession
from discuss_board.api.middleware.auth import AuthenticatedUser, require_permission
from discuss_board.api.schemas.account import (
    ExportCreateRequest,
    ExportResponse,
    NotificationResponse,
    NotificationSearchRequest,
    PreferencesResponse,
    PreferencesUpdateRequest,
    SubscriptionRequest,
    SubscriptionResponse,
)
from discuss_board.api.schemas.common import MessageResponse, PageQuery, PageResponse, page_response
from discuss_board.api.schemas.content import (
    AttachmentCreateRequest,
    AttachmentResponse,
    AttachmentUpdateRequest,
    CommentCreateRequest,
    CommentReactionResponse,
    CommentResponse,
    CommentUpdateRequest,
    PollCreateRequest,
    PollResponse,
    PollUpdateRequest,
    PostCreateRequest,
    PostReactionResponse,
    PostResponse,
    PostUpdateRequest,
    ReactionRequest,
    VoteRequest,
    VoteResponse,
)
from discuss_board.api.schemas.moderation import (
    AppealCreateRequest,
    AppealResponse,
    AppealSearchRequest,
    ReportCreateRequest,
    ReportResponse,
)
from discuss_board.core.exceptions import PermissionDeniedError
from discuss_board.services.attachments import AttachmentService
from discuss_board.services.authz import Permission
from discuss_board.services.comments import CommentService
from discuss_board.services.exports import ExportFilters, ExportService
from discuss_board.services.moderation import AppealFilters, ModerationService
from discuss_board.services.notifications import NotificationFilters, NotificationService
from discuss_board.services.polls import PollService
from discuss_board.services.posts import PostService
from discuss_board.services.reactions import ReactionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/discussBoard/member", tags=["member"])


def _user(permission: Permission):
    return Annotated[AuthenticatedUser, Depends(require_permission(permission))]


PostAuthor = _user(Permission.CREATE_POST)
CommentAuthor = _user(Permission.CREATE_COMMENT)
ContentEditor = _user(Permission.EDIT_OWN_CONTENT)
ContentDeleter = _user(Permission.DELETE_OWN_CONTENT)
Reactor = _user(Permission.REACT)
PollManager = _user(Permission.MANAGE_POLLS)
Voter = _user(Permission.VOTE_POLL)
AttachmentManager = _user(Permission.MANAGE_ATTACHMENTS)
Reporter = _user(Permission.REPORT_CONTENT)
Appellant = _user(Permission.CREATE_APPEAL)
NotificationOwner = _user(Permission.MANAGE_OWN_NOTIFICATIONS)
Subscriber = _user(Permission.MANAGE_SUBSCRIPTIONS)
ExportRequester = _user(Permission.REQUEST_EXPORT)


# -----------------------------------------------------------------------------
# Posts
# -----------------------------------------------------------------------------


@router.post(
    "/posts",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a post",
)
async def create_post(
    body: PostCreateRequest, user: PostAuthor, db: DbSession, settings: AppSettings
) -> PostResponse:
    post = await PostService(db, settings.content).create_post(
        user.to_principal(),
        title=body.title,
        body=body.body,
        category_id=body.category_id,
        tag_ids=body.tag_ids,
    )
    await db.commit()
    return PostResponse.model_validate(post)


@router.put("/posts/{post_id}", response_model=PostResponse, summary="Edit own post")
async def update_post(
    post_id: UUID,
    body: PostUpdateRequest,
    user: ContentEditor,
    db: DbSession,
    settings: AppSettings,
) -> PostResponse:
    post = await PostService(db, settings.content).update_post(
        user.to_principal(),
        post_id,
        title=body.title,
        body=body.body,
        category_id=body.category_id,
        tag_ids=body.tag_ids,
    )
    await db.commit()
    return PostResponse.model_validate(post)


@router.delete(
    "/posts/{post_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete own post",
)
async def delete_post(
    post_id: UUID, user: ContentDeleter, db: DbSession, settings: AppSettings
) -> None:
    await PostService(db, settings.content).delete_post(user.to_principal(), post_id)
    await db.commit()


# -----------------------------------------------------------------------------
# Comments
# -----------------------------------------------------------------------------


@router.post(
    "/posts/{post_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Comment on a post",
)
async def create_comment(
    post_id: UUID,
    body: CommentCreateRequest,
    user: CommentAuthor,
    db: DbSession,
    settings: AppSettings,
) -> CommentResponse:
    comment = await CommentService(db, settings.content).create_comment(
        user.to_principal(),
        post_id,
        content=body.content,
        parent_comment_id=body.parent_comment_id,
    )
    await db.commit()
    return CommentResponse.model_validate(comment)


@router.put("/comments/{comment_id}", response_model=CommentResponse, summary="Edit own comment")
async def update_comment(
    comment_id: UUID,
    body: CommentUpdateRequest,
    user: ContentEditor,
    db: DbSession,
    settings: AppSettings,
) -> CommentResponse:
    comment = await CommentService(db, settings.content).update_comment(
        user.to_principal(), comment_id, content=body.content
    )
    await db.commit()
    return CommentResponse.model_validate(comment)


@router.delete(
    "/comments/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete own comment",
)
async def delete_comment(
    comment_id: UUID, user: ContentDeleter, db: DbSession, settings: AppSettings
) -> None:
    await CommentService(db, settings.content).delete_comment(user.to_principal(), comment_id)
    await db.commit()


# -----------------------------------------------------------------------------
# Reactions
# -----------------------------------------------------------------------------


@router.post(
    "/posts/{post_id}/reactions",
    response_model=PostReactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="React to a post",
)
async def react_to_post(
    post_id: UUID, body: ReactionRequest, user: Reactor, db: DbSession
) -> PostReactionResponse:
    reaction = await ReactionService(db).react_to_post(
        user.to_principal(), post_id, body.reaction_type
    )
    await db.commit()
    return PostReactionResponse.model_validate(reaction)


@router.delete(
    "/posts/reactions/{reaction_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove own post reaction",
)
async def remove_post_reaction(reaction_id: UUID, user: Reactor, db: DbSession) -> None:
    await ReactionService(db).remove_reaction(user.to_principal(), reaction_id, "post")
    await db.commit()


@router.post(
    "/comments/{comment_id}/reactions",
    response_model=CommentReactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="React to a comment",
)
async def react_to_comment(
    comment_id: UUID, body: ReactionRequest, user: Reactor, db: DbSession
) -> CommentReactionResponse:
    reaction = await ReactionService(db).react_to_comment(
        user.to_principal(), comment_id, body.reaction_type
    )
    await db.commit()
    return CommentReactionResponse.model_validate(reaction)


@router.delete(
    "/comments/reactions/{reaction_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove own comment reaction",
)
async def remove_comment_reaction(reaction_id: UUID, user: Reactor, db: DbSession) -> None:
    await ReactionService(db).remove_reaction(user.to_principal(), reaction_id, "comment")
    await db.commit()


# -----------------------------------------------------------------------------
# Polls and votes
# -----------------------------------------------------------------------------


@router.post(
    "/posts/{post_id}/polls",
    response_model=PollResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Attach a poll to own post",
)
async def create_poll(
    post_id: UUID, body: PollCreateRequest, user: PollManager, db: DbSession
) -> PollResponse:
    poll = await PollService(db).create_poll(
        user.to_principal(),
        post_id,
        question=body.question,
        options=body.options,
        multi_choice=body.multi_choice,
        closes_at=body.closes_at,
    )
    await db.commit()
    return PollResponse.model_validate(poll)


@router.put("/posts/{post_id}/polls/{poll_id}", response_model=PollResponse, summary="Edit a poll")
async def update_poll(
    post_id: UUID,
    poll_id: UUID,
    body: PollUpdateRequest,
    user: PollManager,
    db: DbSession,
) -> PollResponse:
    poll = await PollService(db).update_poll(
        user.to_principal(),
        post_id,
        poll_id,
        question=body.question,
        multi_choice=body.multi_choice,
        closes_at=body.closes_at,
    )
    await db.commit()
    return PollResponse.model_validate(poll)


@router.post(
    "/posts/{post_id}/polls/{poll_id}/close",
    response_model=PollResponse,
    summary="Close a poll early",
)
async def close_poll(
    post_id: UUID, poll_id: UUID, user: PollManager, db: DbSession
) -> PollResponse:
    poll = await PollService(db).close_poll(user.to_principal(), post_id, poll_id)
    await db.commit()
    return PollResponse.model_validate(poll)


@router.delete(
    "/posts/{post_id}/polls/{poll_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a poll",
)
async def delete_poll(post_id: UUID, poll_id: UUID, user: PollManager, db: DbSession) -> None:
    await PollService(db).delete_poll(user.to_principal(), post_id, poll_id)
    await db.commit()


@router.post(
    "/polls/{poll_id}/votes",
    response_model=VoteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Vote in a poll",
)
async def vote(poll_id: UUID, body: VoteRequest, user: Voter, db: DbSession) -> VoteResponse:
    """Cast one vote, or several on a multi-choice poll.

    The first recorded vote is returned.
    """
    first = await PollService(db).vote(user.to_principal(), poll_id, body.option_ids)
    await db.commit()
    return VoteResponse.model_validate(first)


@router.delete("/polls/{poll_id}/votes", response_model=MessageResponse, summary="Retract votes")
async def retract_votes(poll_id: UUID, user: Voter, db: DbSession) -> MessageResponse:
    removed = await PollService(db).retract_votes(user.to_principal(), poll_id)
    await db.commit()
    return MessageResponse(message=f"{removed} vote(s) retracted")


# -----------------------------------------------------------------------------
# Attachments
# -----------------------------------------------------------------------------


async def _add_attachment(
    user: AuthenticatedUser,
    db: DbSession,
    settings: AppSettings,
    body: AttachmentCreateRequest,
    *,
    post_id: UUID | None = None,
    comment_id: UUID | None = None,
) -> AttachmentResponse:
    attachment = await AttachmentService(db, settings.content).add_attachment(
        user.to_principal(),
        post_id=post_id,
        comment_id=comment_id,
        file_name=body.file_name,
        file_uri=body.file_uri,
        content_type=body.content_type,
        size_bytes=body.size_bytes,
    )
    await db.commit()
    return AttachmentResponse.model_validate(attachment)


@router.post(
    "/posts/{post_id}/attachments",
    response_model=AttachmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Attach a file to own post",
)
async def add_post_attachment(
    post_id: UUID,
    body: AttachmentCreateRequest,
    user: AttachmentManager,
    db: DbSession,
    settings: AppSettings,
) -> AttachmentResponse:
    return await _add_attachment(user, db, settings, body, post_id=post_id)


@router.post(
    "/comments/{comment_id}/attachments",
    response_model=AttachmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Attach a file to own comment",
)
async def add_comment_attachment(
    comment_id: UUID,
    body: AttachmentCreateRequest,
    user: AttachmentManager,
    db: DbSession,
    settings: AppSettings,
) -> AttachmentResponse:
    return await _add_attachment(user, db, settings, body, comment_id=comment_id)


@router.put(
    "/attachments/{attachment_id}",
    response_model=AttachmentResponse,
    summary="Edit attachment metadata",
)
async def update_attachment(
    attachment_id: UUID,
    body: AttachmentUpdateRequest,
    user: AttachmentManager,
    db: DbSession,
    settings: AppSettings,
) -> AttachmentResponse:
    attachment = await AttachmentService(db, settings.content).update_attachment(
        user.to_principal(),
        attachment_id,
        file_name=body.file_name,
        content_type=body.content_type,
    )
    await db.commit()
    return AttachmentResponse.model_validate(attachment)


@router.delete(
    "/attachments/{attachment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete own attachment",
)
async def delete_attachment(
    attachment_id: UUID, user: AttachmentManager, db: DbSession, settings: AppSettings
) -> None:
    await AttachmentService(db, settings.content).delete_attachment(
        user.to_principal(), attachment_id
    )
    await db.commit()


# -----------------------------------------------------------------------------
# Reports and appeals
# -----------------------------------------------------------------------------


@router.post(
    "/reports",
    response_model=ReportResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Report a post or comment",
)
async def create_report(
    body: ReportCreateRequest, user: Reporter, db: DbSession, settings: AppSettings
) -> ReportResponse:
    report = await ModerationService(db, settings.content).create_report(
        user.to_principal(),
        content_type=body.content_type,
        reason=body.reason,
        post_id=body.post_id,
        comment_id=body.comment_id,
    )
    await db.commit()
    return ReportResponse.model_validate(report)


@router.post(
    "/appeals",
    response_model=AppealResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Appeal a moderation action",
)
async def create_appeal(
    body: AppealCreateRequest, user: Appellant, db: DbSession, settings: AppSettings
) -> AppealResponse:
    appeal = await ModerationService(db, settings.content).create_appeal(
        user.to_principal(), body.moderation_action_id, body.appeal_text
    )
    await db.commit()
    return AppealResponse.model_validate(appeal)


@router.patch("/appeals", response_model=PageResponse[AppealResponse], summary="Own appeals")
async def list_own_appeals(
    body: AppealSearchRequest, user: Appellant, db: DbSession, settings: AppSettings
) -> dict:
    filters = AppealFilters(**body.model_dump())
    filters.appellant_member_id = user.principal.member_id
    page = await ModerationService(db, settings.content).list_appeals(filters)
    return page_response(page, AppealResponse)


# -----------------------------------------------------------------------------
# Notifications and preferences
# -----------------------------------------------------------------------------


@router.patch(
    "/notifications",
    response_model=PageResponse[NotificationResponse],
    summary="Own notifications",
)
async def search_notifications(
    body: NotificationSearchRequest,
    user: NotificationOwner,
    db: DbSession,
    settings: AppSettings,
) -> dict:
    page = await NotificationService(db, settings.content).search_own(
        user.to_principal(), NotificationFilters(**body.model_dump())
    )
    return page_response(page, NotificationResponse)


@router.put(
    "/notifications/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark a notification read",
)
async def mark_notification_read(
    notification_id: UUID, user: NotificationOwner, db: DbSession, settings: AppSettings
) -> NotificationResponse:
    notification = await NotificationService(db, settings.content).mark_read(
        user.to_principal(), notification_id
    )
    await db.commit()
    return NotificationResponse.model_validate(notification)


@router.delete(
    "/notifications/{notification_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a notification",
)
async def delete_notification(
    notification_id: UUID, user: NotificationOwner, db: DbSession, settings: AppSettings
) -> None:
    await NotificationService(db, settings.content).delete(user.to_principal(), notification_id)
    await db.commit()


@router.get("/preferences", response_model=PreferencesResponse, summary="Notification preferences")
async def get_preferences(
    user: NotificationOwner, db: DbSession, settings: AppSettings
) -> PreferencesResponse:
    preference = await NotificationService(db, settings.content).get_preferences(
        user.to_principal()
    )
    await db.commit()
    return PreferencesResponse.model_validate(preference)


@router.put(
    "/preferences",
    response_model=PreferencesResponse,
    summary="Update notification preferences",
)
async def update_preferences(
    body: PreferencesUpdateRequest,
    user: NotificationOwner,
    db: DbSession,
    settings: AppSettings,
) -> PreferencesResponse:
    preference = await NotificationService(db, settings.content).update_preferences(
        user.to_principal(), **body.model_dump()
    )
    await db.commit()
    return PreferencesResponse.model_validate(preference)


# -----------------------------------------------------------------------------
# Subscriptions
# -----------------------------------------------------------------------------


@router.post(
    "/subscriptions",
    response_model=SubscriptionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Subscribe to a post",
)
async def subscribe(
    body: SubscriptionRequest, user: Subscriber, db: DbSession, settings: AppSettings
) -> SubscriptionResponse:
    subscription = await NotificationService(db, settings.content).subscribe(
        user.principal.member_id, body.post_id
    )
    await db.commit()
    return SubscriptionResponse.model_validate(subscription)


@router.get(
    "/subscriptions",
    response_model=PageResponse[SubscriptionResponse],
    summary="Own subscriptions",
)
async def list_subscriptions(
    user: Subscriber,
    db: DbSession,
    settings: AppSettings,
    page: Annotated[int | None, Query()] = None,
    limit: Annotated[int | None, Query()] = None,
) -> dict:
    result = await NotificationService(db, settings.content).list_subscriptions(
        user.principal.member_id, page, limit
    )
    return page_response(result, SubscriptionResponse)


@router.delete(
    "/subscriptions/{post_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unsubscribe from a post",
)
async def unsubscribe(
    post_id: UUID, user: Subscriber, db: DbSession, settings: AppSettings
) -> None:
    await NotificationService(db, settings.content).unsubscribe(user.principal.member_id, post_id)
    await db.commit()


# -----------------------------------------------------------------------------
# Exports
# -----------------------------------------------------------------------------


@router.post(
    "/exports",
    response_model=ExportResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a data export",
)
async def request_export(
    body: ExportCreateRequest, user: ExportRequester, db: DbSession, settings: AppSettings
) -> ExportResponse:
    export = await ExportService(db, settings.content).request_export(
        user.to_principal(), body.export_type
    )
    await db.commit()
    return ExportResponse.model_validate(export)


@router.patch("/exports", response_model=PageResponse[ExportResponse], summary="Own exports")
async def list_own_exports(
    body: PageQuery, user: ExportRequester, db: DbSession, settings: AppSettings
) -> dict:
    page = await ExportService(db, settings.content).list_own_exports(
        user.to_principal(), ExportFilters(page=body.page, limit=body.limit, sort=body.sort)
    )
    return page_response(page, ExportResponse)


@router.get("/exports/{export_id}", response_model=ExportResponse, summary="Get own export")
async def get_export(
    export_id: UUID, user: ExportRequester, db: DbSession, settings: AppSettings
) -> ExportResponse:
    export = await ExportService(db, settings.content).get_export(export_id)
    if export.requester_member_id != user.principal.member_id:
        raise PermissionDeniedError("You can only view your own exports")
    return ExportResponse.model_validate(export)
