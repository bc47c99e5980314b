"""Public read-only router under /discussBoard.

No authentication is required; only live content is returned.
"""

from __future__ import annotations

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query

from discuss_board.api.dependencies import AppSettings, DbSession
from discuss_board.api.schemas.common import PageResponse, page_response
from discuss_board.api.schemas.content import (
    AttachmentResponse,
    CategoryResponse,
    CommentEditHistoryResponse,
    CommentResponse,
    PollResponse,
    PollResultsResponse,
    PostEditHistoryResponse,
    PostResponse,
    PostSearchRequest,
    PostSummary,
    ReactionSummaryResponse,
    TagResponse,
)
from discuss_board.services.attachments import AttachmentService
from discuss_board.services.comments import CommentService
from discuss_board.services.polls import PollService
from discuss_board.services.posts import PostFilters, PostService
from discuss_board.services.reactions import ReactionService
from discuss_board.services.taxonomy import TaxonomyService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/discussBoard", tags=["public"])


# -----------------------------------------------------------------------------
# Posts
# -----------------------------------------------------------------------------


@router.patch(
    "/posts",
    response_model=PageResponse[PostSummary],
    summary="Search posts",
    description="Filtered, sorted and paginated list of live posts.",
)
async def search_posts(
    body: PostSearchRequest, db: DbSession, settings: AppSettings
) -> dict:
    service = PostService(db, settings.content)
    page = await service.search_posts(PostFilters(**body.model_dump()))
    return page_response(page, PostSummary)


@router.get("/posts/{post_id}", response_model=PostResponse, summary="Get a post")
async def get_post(post_id: UUID, db: DbSession, settings: AppSettings) -> PostResponse:
    post = await PostService(db, settings.content).get_post(post_id)
    return PostResponse.model_validate(post)


@router.get(
    "/posts/{post_id}/histories",
    response_model=list[PostEditHistoryResponse],
    summary="Edit history of a post",
)
async def list_post_histories(
    post_id: UUID, db: DbSession, settings: AppSettings
) -> list[PostEditHistoryResponse]:
    rows = await PostService(db, settings.content).list_post_edit_history(post_id)
    return [PostEditHistoryResponse.model_validate(row) for row in rows]


@router.get(
    "/posts/{post_id}/reactions",
    response_model=ReactionSummaryResponse,
    summary="Reaction counts of a post",
)
async def post_reactions(post_id: UUID, db: DbSession) -> ReactionSummaryResponse:
    summary = await ReactionService(db).post_summary(post_id)
    return ReactionSummaryResponse.model_validate(summary)


@router.get(
    "/posts/{post_id}/attachments",
    response_model=list[AttachmentResponse],
    summary="Attachments of a post",
)
async def post_attachments(
    post_id: UUID, db: DbSession, settings: AppSettings
) -> list[AttachmentResponse]:
    await PostService(db, settings.content).get_post(post_id)
    rows = await AttachmentService(db, settings.content).list_attachments(post_id=post_id)
    return [AttachmentResponse.model_validate(row) for row in rows]


# -----------------------------------------------------------------------------
# Comments
# -----------------------------------------------------------------------------


@router.get(
    "/posts/{post_id}/comments",
    response_model=PageResponse[CommentResponse],
    summary="Comments of a post, oldest first",
)
async def list_comments(
    post_id: UUID,
    db: DbSession,
    settings: AppSettings,
    parent_comment_id: Annotated[UUID | None, Query()] = None,
    page: Annotated[int | None, Query()] = None,
    limit: Annotated[int | None, Query()] = None,
) -> dict:
    result = await CommentService(db, settings.content).list_comments(
        post_id, parent_comment_id=parent_comment_id, page=page, limit=limit
    )
    return page_response(result, CommentResponse)


@router.get("/comments/{comment_id}", response_model=CommentResponse, summary="Get a comment")
async def get_comment(comment_id: UUID, db: DbSession, settings: AppSettings) -> CommentResponse:
    comment = await CommentService(db, settings.content).get_comment(comment_id)
    return CommentResponse.model_validate(comment)


@router.get(
    "/comments/{comment_id}/attachments",
    response_model=list[AttachmentResponse],
    summary="Attachments of a comment",
)
async def comment_attachments(
    comment_id: UUID, db: DbSession, settings: AppSettings
) -> list[AttachmentResponse]:
    await CommentService(db, settings.content).get_comment(comment_id)
    rows = await AttachmentService(db, settings.content).list_attachments(comment_id=comment_id)
    return [AttachmentResponse.model_validate(row) for row in rows]


@router.get(
    "/comments/{comment_id}/histories",
    response_model=list[CommentEditHistoryResponse],
    summary="Edit history of a comment",
)
async def list_comment_histories(
    comment_id: UUID, db: DbSession, settings: AppSettings
) -> list[CommentEditHistoryResponse]:
    rows = await CommentService(db, settings.content).list_comment_edit_history(comment_id)
    return [CommentEditHistoryResponse.model_validate(row) for row in rows]


@router.get(
    "/comments/{comment_id}/reactions",
    response_model=ReactionSummaryResponse,
    summary="Reaction counts of a comment",
)
async def comment_reactions(comment_id: UUID, db: DbSession) -> ReactionSummaryResponse:
    summary = await ReactionService(db).comment_summary(comment_id)
    return ReactionSummaryResponse.model_validate(summary)


# -----------------------------------------------------------------------------
# Polls
# -----------------------------------------------------------------------------


@router.get("/polls/{poll_id}", response_model=PollResponse, summary="Get a poll")
async def get_poll(poll_id: UUID, db: DbSession) -> PollResponse:
    poll = await PollService(db).get_poll(poll_id)
    return PollResponse.model_validate(poll)


@router.get(
    "/polls/{poll_id}/results",
    response_model=PollResultsResponse,
    summary="Vote counts per option",
)
async def poll_results(poll_id: UUID, db: DbSession) -> PollResultsResponse:
    results = await PollService(db).poll_results(poll_id)
    return PollResultsResponse.model_validate(results)


# -----------------------------------------------------------------------------
# Taxonomy
# -----------------------------------------------------------------------------


@router.get("/categories", response_model=list[CategoryResponse], summary="Active categories")
async def list_categories(db: DbSession) -> list[CategoryResponse]:
    rows = await TaxonomyService(db).list_categories()
    return [CategoryResponse.model_validate(row) for row in rows]


@router.get("/tags", response_model=list[TagResponse], summary="Tags")
async def list_tags(
    db: DbSession, search: Annotated[str | None, Query(max_length=50)] = None
) -> list[TagResponse]:
    rows = await TaxonomyService(db).list_tags(search)
    return [TagResponse.model_validate(row) for row in rows]
