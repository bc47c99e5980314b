"""Posts: creation, editing with history, deletion and search."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import or_, select

from discuss_board.core.config import ContentPolicySettings
from discuss_board.core.exceptions import (
    BusinessRuleError,
    NotFoundError,
    PermissionDeniedError,
    ValidationAPIError,
)
from discuss_board.db.models.base import PostStatus, utcnow
from discuss_board.db.models.content import Category, Post, PostEditHistory, post_tags
from discuss_board.services.audit_log import AuditLogService
from discuss_board.services.authz import Permission
from discuss_board.services.forbidden_words import ForbiddenWordService
from discuss_board.services.notifications import NotificationService
from discuss_board.services.pagination import Page, page_params, paginate, parse_sort
from discuss_board.services.taxonomy import TaxonomyService

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

    from discuss_board.services.authz import Principal

logger = logging.getLogger(__name__)


def check_length(field_name: str, value: str, minimum: int, maximum: int) -> str:
    """Strip ``value`` and enforce its length bounds.

    Raises:
        ValidationAPIError: If the stripped value is too short or too long.
    """
    stripped = value.strip()
    if not minimum <= len(stripped) <= maximum:
        raise ValidationAPIError(
            f"{field_name} must be between {minimum} and {maximum} characters",
            detail={"field": field_name.lower(), "min": minimum, "max": maximum},
        )
    return stripped


@dataclass(slots=True)
class PostFilters:
    """Filters for the public post search."""

    author_member_id: UUID | None = None
    status: PostStatus | None = None
    category_id: UUID | None = None
    tag_id: UUID | None = None
    keyword: str | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None
    page: int | None = None
    limit: int | None = None
    sort: str | None = None


class PostService:
    """Create, edit, delete and search posts."""

    SORT_FIELDS = {
        "created_at": Post.created_at,
        "updated_at": Post.updated_at,
        "title": Post.title,
    }

    def __init__(
        self, session: AsyncSession, policy: ContentPolicySettings | None = None
    ) -> None:
        self._session = session
        self._policy = policy or ContentPolicySettings()
        self._words = ForbiddenWordService(session, self._policy)
        self._taxonomy = TaxonomyService(session)
        self._notifications = NotificationService(session, self._policy)
        self._audit = AuditLogService(session, self._policy)

    def _check_title(self, title: str) -> str:
        return check_length(
            "Title",
            title,
            self._policy.post_title_min_length,
            self._policy.post_title_max_length,
        )

    def _check_body(self, body: str) -> str:
        return check_length(
            "Body",
            body,
            self._policy.post_body_min_length,
            self._policy.post_body_max_length,
        )

    async def _check_category(self, category_id: UUID) -> Category:
        category = await self._session.get(Category, category_id)
        if category is None or category.deleted_at is not None or not category.is_active:
            raise NotFoundError("Category", category_id)
        return category

    async def create_post(
        self,
        principal: Principal,
        *,
        title: str,
        body: str,
        category_id: UUID | None = None,
        tag_ids: list[UUID] | None = None,
    ) -> Post:
        """Publish a post and subscribe its author to it.

        Raises:
            ValidationAPIError: If title or body is out of bounds.
            BusinessRuleError: If a forbidden word is present.
            NotFoundError: If the category or a tag does not exist.
        """
        principal.require(Permission.CREATE_POST)
        title = self._check_title(title)
        body = self._check_body(body)
        await self._words.check_text(title, body)

        if category_id is not None:
            await self._check_category(category_id)
        tags = await self._taxonomy.get_tags(tag_ids or [])

        post = Post(
            author_member_id=principal.member_id,
            category_id=category_id,
            title=title,
            body=body,
            status=PostStatus.PUBLISHED,
            tags=tags,
        )
        self._session.add(post)
        await self._session.flush()

        await self._notifications.subscribe(principal.member_id, post.id)

        logger.info(
            "Post created",
            extra={"post_id": str(post.id), "member_id": str(principal.member_id)},
        )
        return post

    async def get_post(self, post_id: UUID) -> Post:
        post = await self._session.get(Post, post_id)
        if post is None or post.deleted_at is not None:
            raise NotFoundError("Post", post_id)
        return post

    async def update_post(
        self,
        principal: Principal,
        post_id: UUID,
        *,
        title: str | None = None,
        body: str | None = None,
        category_id: UUID | None = None,
        tag_ids: list[UUID] | None = None,
    ) -> Post:
        """Edit a post, keeping the previous version in the edit history.

        Raises:
            PermissionDeniedError: If the caller is not the author.
            BusinessRuleError: If the post is locked or a forbidden word is present.
        """
        principal.require(Permission.EDIT_OWN_CONTENT)
        post = await self.get_post(post_id)
        if post.author_member_id != principal.member_id:
            raise PermissionDeniedError("Only the author can edit this post")
        if post.is_locked:
            raise BusinessRuleError("Post is locked")

        new_title = self._check_title(title) if title is not None else post.title
        new_body = self._check_body(body) if body is not None else post.body
        await self._words.check_text(new_title, new_body)

        if category_id is not None:
            await self._check_category(category_id)
            post.category_id = category_id
        if tag_ids is not None:
            post.tags = await self._taxonomy.get_tags(tag_ids)

        if new_title != post.title or new_body != post.body:
            self._session.add(
                PostEditHistory(
                    post_id=post.id,
                    editor_member_id=principal.member_id,
                    previous_title=post.title,
                    previous_body=post.body,
                )
            )
            post.title = new_title
            post.body = new_body

        post.updated_at = utcnow()
        await self._session.flush()
        return post

    async def delete_post(self, principal: Principal, post_id: UUID) -> Post:
        """Soft-delete a post.

        Authors may delete within the configured window; moderators and
        administrators at any time.

        Raises:
            BusinessRuleError: If already deleted or the window has passed.
            PermissionDeniedError: If the caller is neither author nor moderator.
        """
        post = await self._session.get(Post, post_id)
        if post is None:
            raise NotFoundError("Post", post_id)
        if post.deleted_at is not None:
            raise BusinessRuleError("Post already deleted")

        if not principal.has_permission(Permission.DELETE_ANY_CONTENT):
            principal.require(Permission.DELETE_OWN_CONTENT)
            if post.author_member_id != principal.member_id:
                raise PermissionDeniedError("Only the author can delete this post")
            window = timedelta(minutes=self._policy.post_delete_window_minutes)
            if utcnow() - post.created_at > window:
                raise BusinessRuleError(
                    "Post can only be deleted within "
                    f"{self._policy.post_delete_window_minutes} minutes of creation"
                )

        post.deleted_at = utcnow()
        await self._session.flush()
        await self._audit.record_for(
            principal,
            "post_delete",
            target_object=f"post:{post.id}",
            description=f"Post '{post.title}' deleted",
        )
        return post

    async def search_posts(self, filters: PostFilters) -> Page[Post]:
        stmt = select(Post).where(Post.deleted_at.is_(None))
        if filters.author_member_id is not None:
            stmt = stmt.where(Post.author_member_id == filters.author_member_id)
        if filters.status is not None:
            stmt = stmt.where(Post.status == filters.status)
        if filters.category_id is not None:
            stmt = stmt.where(Post.category_id == filters.category_id)
        if filters.tag_id is not None:
            stmt = stmt.where(
                Post.id.in_(
                    select(post_tags.c.post_id).where(post_tags.c.tag_id == filters.tag_id)
                )
            )
        if filters.keyword:
            keyword = filters.keyword.strip()
            stmt = stmt.where(
                or_(
                    Post.title.icontains(keyword, autoescape=True),
                    Post.body.icontains(keyword, autoescape=True),
                )
            )
        if filters.created_from is not None:
            stmt = stmt.where(Post.created_at >= filters.created_from)
        if filters.created_to is not None:
            stmt = stmt.where(Post.created_at <= filters.created_to)

        params = page_params(filters.page, filters.limit, self._policy)
        order = parse_sort(filters.sort, self.SORT_FIELDS, "created_at")
        rows, pagination = await paginate(self._session, stmt, params, [order, Post.id])
        return Page(pagination=pagination, data=rows)

    async def list_post_edit_history(self, post_id: UUID) -> list[PostEditHistory]:
        await self.get_post(post_id)
        result = await self._session.execute(
            select(PostEditHistory)
            .where(PostEditHistory.post_id == post_id)
            .order_by(PostEditHistory.created_at.desc(), PostEditHistory.id)
        )
        return list(result.scalars().all())

    async def set_locked(self, principal: Principal, post_id: UUID, locked: bool) -> Post:
        """Lock or unlock a post against edits, comments and reactions."""
        principal.require(Permission.CREATE_MODERATION_ACTION)
        post = await self.get_post(post_id)
        post.is_locked = locked
        await self._session.flush()
        await self._audit.record_for(
            principal,
            "post_lock" if locked else "post_unlock",
            target_object=f"post:{post.id}",
        )
        return post
