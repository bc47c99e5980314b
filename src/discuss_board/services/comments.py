"""Comments on posts, including threaded replies.

Replies record their depth in ``nesting_level`` (top-level comments are 0)
so the depth limit is checked without walking the parent chain.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from sqlalchemy import select

from discuss_board.core.config import ContentPolicySettings
from discuss_board.core.exceptions import (
    BusinessRuleError,
    NotFoundError,
    PermissionDeniedError,
)
from discuss_board.db.models.accounts import Member
from discuss_board.db.models.base import utcnow
from discuss_board.db.models.content import Comment, CommentEditHistory, Post
from discuss_board.services.audit_log import AuditLogService
from discuss_board.services.authz import Permission
from discuss_board.services.forbidden_words import ForbiddenWordService
from discuss_board.services.notifications import COMMENT_REPLY, NotificationService
from discuss_board.services.pagination import Page, page_params, paginate
from discuss_board.services.posts import check_length

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

    from discuss_board.services.authz import Principal

logger = logging.getLogger(__name__)


class CommentService:
    """Create, edit, delete and list comments."""

    def __init__(
        self, session: AsyncSession, policy: ContentPolicySettings | None = None
    ) -> None:
        self._session = session
        self._policy = policy or ContentPolicySettings()
        self._words = ForbiddenWordService(session, self._policy)
        self._notifications = NotificationService(session, self._policy)
        self._audit = AuditLogService(session, self._policy)

    async def _live_post(self, post_id: UUID) -> Post:
        post = await self._session.get(Post, post_id)
        if post is None or post.deleted_at is not None:
            raise NotFoundError("Post", post_id)
        return post

    async def _check_content(self, content: str) -> str:
        content = check_length(
            "Comment",
            content,
            self._policy.comment_min_length,
            self._policy.comment_max_length,
        )
        await self._words.check_text(content)
        return content

    async def get_comment(self, comment_id: UUID) -> Comment:
        comment = await self._session.get(Comment, comment_id)
        if comment is None or comment.deleted_at is not None:
            raise NotFoundError("Comment", comment_id)
        return comment

    async def _account_ids_for_members(self, member_ids: set[UUID]) -> list[UUID]:
        if not member_ids:
            return []
        result = await self._session.execute(
            select(Member.user_account_id).where(
                Member.id.in_(member_ids),
                Member.deleted_at.is_(None),
            )
        )
        return list(result.scalars().all())

    async def _notify_reply(
        self, post: Post, comment: Comment, parent: Comment | None
    ) -> None:
        recipients = set(await self._notifications.subscriber_member_ids(post.id))
        if parent is not None:
            recipients.add(parent.author_member_id)
        recipients.discard(comment.author_member_id)

        for account_id in await self._account_ids_for_members(recipients):
            await self._notifications.notify(
                account_id,
                COMMENT_REPLY,
                subject=f"New reply on '{post.title}'",
                body=comment.content[:200],
                link_uri=f"/discussBoard/posts/{post.id}/comments/{comment.id}",
            )

    async def create_comment(
        self,
        principal: Principal,
        post_id: UUID,
        *,
        content: str,
        parent_comment_id: UUID | None = None,
    ) -> Comment:
        """Add a comment or a reply to a post.

        Subscribers of the post and the author of the parent comment are
        notified, except the commenter.

        Raises:
            NotFoundError: If the post or parent comment is missing.
            BusinessRuleError: Locked post, forbidden word, parent on another
                post or nesting deeper than allowed.
        """
        principal.require(Permission.CREATE_COMMENT)
        post = await self._live_post(post_id)
        if post.is_locked:
            raise BusinessRuleError("Post is locked")

        content = await self._check_content(content)

        parent: Comment | None = None
        nesting_level = 0
        if parent_comment_id is not None:
            parent = await self.get_comment(parent_comment_id)
            if parent.post_id != post.id:
                raise BusinessRuleError("Parent comment belongs to a different post")
            nesting_level = parent.nesting_level + 1
            if nesting_level > self._policy.max_comment_nesting_level:
                raise BusinessRuleError("Maximum comment nesting depth exceeded")

        comment = Comment(
            post_id=post.id,
            author_member_id=principal.member_id,
            parent_comment_id=parent_comment_id,
            content=content,
            nesting_level=nesting_level,
        )
        self._session.add(comment)
        await self._session.flush()

        await self._notify_reply(post, comment, parent)

        logger.info(
            "Comment created",
            extra={"comment_id": str(comment.id), "post_id": str(post.id)},
        )
        return comment

    async def update_comment(
        self, principal: Principal, comment_id: UUID, *, content: str
    ) -> Comment:
        principal.require(Permission.EDIT_OWN_CONTENT)
        comment = await self.get_comment(comment_id)
        if comment.author_member_id != principal.member_id:
            raise PermissionDeniedError("Only the author can edit this comment")
        if comment.is_locked:
            raise BusinessRuleError("Comment is locked")

        content = await self._check_content(content)
        if content != comment.content:
            self._session.add(
                CommentEditHistory(
                    comment_id=comment.id,
                    editor_member_id=principal.member_id,
                    previous_content=comment.content,
                )
            )
            comment.content = content
            comment.updated_at = utcnow()
        await self._session.flush()
        return comment

    async def delete_comment(self, principal: Principal, comment_id: UUID) -> Comment:
        """Soft-delete the caller's own comment within the delete window.

        Raises:
            NotFoundError: If the comment does not exist.
            PermissionDeniedError: If the caller is not the author.
            BusinessRuleError: If already deleted or the window has passed.
        """
        principal.require(Permission.DELETE_OWN_CONTENT)
        comment = await self._session.get(Comment, comment_id)
        if comment is None:
            raise NotFoundError("Comment", comment_id)
        if comment.author_member_id != principal.member_id:
            raise PermissionDeniedError("Only the author can delete this comment")
        if comment.deleted_at is not None:
            raise BusinessRuleError("Comment already deleted")

        window_minutes = self._policy.comment_delete_window_minutes
        if utcnow() - comment.created_at > timedelta(minutes=window_minutes):
            raise BusinessRuleError(
                f"Comment can only be deleted within {window_minutes} minutes of creation"
            )

        comment.deleted_at = utcnow()
        await self._session.flush()
        await self._audit.record_for(
            principal,
            "comment_delete",
            target_object=f"comment:{comment.id}",
            description=f"Comment on post {comment.post_id} deleted by its author",
        )
        return comment

    async def remove_comment(self, principal: Principal, comment_id: UUID) -> Comment:
        """Soft-delete any comment regardless of author or age."""
        principal.require(Permission.DELETE_ANY_CONTENT)
        comment = await self.get_comment(comment_id)
        comment.deleted_at = utcnow()
        await self._session.flush()
        await self._audit.record_for(
            principal,
            "comment_remove",
            target_object=f"comment:{comment.id}",
        )
        return comment

    async def list_comments(
        self,
        post_id: UUID,
        *,
        parent_comment_id: UUID | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> Page[Comment]:
        await self._live_post(post_id)
        stmt = select(Comment).where(
            Comment.post_id == post_id,
            Comment.deleted_at.is_(None),
        )
        if parent_comment_id is not None:
            stmt = stmt.where(Comment.parent_comment_id == parent_comment_id)
        params = page_params(page, limit, self._policy)
        rows, pagination = await paginate(
            self._session, stmt, params, [Comment.created_at.asc(), Comment.id]
        )
        return Page(pagination=pagination, data=rows)

    async def list_comment_edit_history(self, comment_id: UUID) -> list[CommentEditHistory]:
        await self.get_comment(comment_id)
        result = await self._session.execute(
            select(CommentEditHistory)
            .where(CommentEditHistory.comment_id == comment_id)
            .order_by(CommentEditHistory.created_at.desc(), CommentEditHistory.id)
        )
        return list(result.scalars().all())
