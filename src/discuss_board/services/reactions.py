"""Likes and dislikes on posts and comments."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlalchemy import func, select

from discuss_board.core.exceptions import (
    BusinessRuleError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
)
from discuss_board.db.models.base import ReactionType, utcnow
from discuss_board.db.models.content import Comment, CommentReaction, Post, PostReaction
from discuss_board.services.authz import Permission

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

    from discuss_board.services.authz import Principal

logger = logging.getLogger(__name__)

ReactionKind = Literal["post", "comment"]


@dataclass(frozen=True, slots=True)
class ReactionSummary:
    likes: int
    dislikes: int


class ReactionService:
    """One reaction per member and target; removed reactions can be re-added."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def react_to_post(
        self, principal: Principal, post_id: UUID, reaction_type: ReactionType
    ) -> PostReaction:
        principal.require(Permission.REACT)
        post = await self._session.get(Post, post_id)
        if post is None or post.deleted_at is not None:
            raise NotFoundError("Post", post_id)
        if post.is_locked:
            raise BusinessRuleError("Post is locked")
        if post.author_member_id == principal.member_id:
            raise BusinessRuleError("You cannot react to your own post")

        result = await self._session.execute(
            select(PostReaction).where(
                PostReaction.post_id == post_id,
                PostReaction.member_id == principal.member_id,
            )
        )
        reaction = result.scalar_one_or_none()
        if reaction is not None:
            if reaction.deleted_at is None:
                raise ConflictError("You have already reacted to this post")
            reaction.deleted_at = None
            reaction.reaction_type = reaction_type
        else:
            reaction = PostReaction(
                post_id=post_id,
                member_id=principal.member_id,
                reaction_type=reaction_type,
            )
            self._session.add(reaction)
        await self._session.flush()
        return reaction

    async def react_to_comment(
        self, principal: Principal, comment_id: UUID, reaction_type: ReactionType
    ) -> CommentReaction:
        """React to a comment.

        Raises:
            NotFoundError: If the comment does not exist.
            BusinessRuleError: Deleted or locked comment, or own comment.
            ConflictError: If the member already has a live reaction.
        """
        principal.require(Permission.REACT)
        comment = await self._session.get(Comment, comment_id)
        if comment is None:
            raise NotFoundError("Comment", comment_id)
        if comment.deleted_at is not None:
            raise BusinessRuleError("Comment has been deleted")
        if comment.is_locked:
            raise BusinessRuleError("Comment is locked")
        if comment.author_member_id == principal.member_id:
            raise BusinessRuleError("You cannot react to your own comment")

        result = await self._session.execute(
            select(CommentReaction).where(
                CommentReaction.comment_id == comment_id,
                CommentReaction.member_id == principal.member_id,
            )
        )
        reaction = result.scalar_one_or_none()
        if reaction is not None:
            if reaction.deleted_at is None:
                raise ConflictError("You have already reacted to this comment")
            reaction.deleted_at = None
            reaction.reaction_type = reaction_type
        else:
            reaction = CommentReaction(
                comment_id=comment_id,
                member_id=principal.member_id,
                reaction_type=reaction_type,
            )
            self._session.add(reaction)
        await self._session.flush()
        return reaction

    async def remove_reaction(
        self, principal: Principal, reaction_id: UUID, kind: ReactionKind
    ) -> None:
        principal.require(Permission.REACT)
        model = PostReaction if kind == "post" else CommentReaction
        reaction = await self._session.get(model, reaction_id)
        if reaction is None or reaction.deleted_at is not None:
            raise NotFoundError("Reaction", reaction_id)
        if reaction.member_id != principal.member_id:
            raise PermissionDeniedError("You can only remove your own reaction")
        reaction.deleted_at = utcnow()
        await self._session.flush()

    async def _summary(self, model, column, target_id: UUID) -> ReactionSummary:
        result = await self._session.execute(
            select(model.reaction_type, func.count())
            .where(column == target_id, model.deleted_at.is_(None))
            .group_by(model.reaction_type)
        )
        counts = dict(result.all())
        return ReactionSummary(
            likes=counts.get(ReactionType.LIKE, 0),
            dislikes=counts.get(ReactionType.DISLIKE, 0),
        )

    async def post_summary(self, post_id: UUID) -> ReactionSummary:
        post = await self._session.get(Post, post_id)
        if post is None or post.deleted_at is not None:
            raise NotFoundError("Post", post_id)
        return await self._summary(PostReaction, PostReaction.post_id, post_id)

    async def comment_summary(self, comment_id: UUID) -> ReactionSummary:
        comment = await self._session.get(Comment, comment_id)
        if comment is None or comment.deleted_at is not None:
            raise NotFoundError("Comment", comment_id)
        return await self._summary(CommentReaction, CommentReaction.comment_id, comment_id)
