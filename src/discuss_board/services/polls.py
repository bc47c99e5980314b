"""Polls attached to posts, voting and results.

A poll is open until ``closed_at`` is set or ``closes_at`` passes; the
time-based close is evaluated on read, nothing runs in the background.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, select

from discuss_board.core.exceptions import (
    BusinessRuleError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationAPIError,
)
from discuss_board.db.models.base import utcnow
from discuss_board.db.models.content import Poll, PollOption, PollVote, Post
from discuss_board.services.authz import Permission

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

    from discuss_board.services.authz import Principal

logger = logging.getLogger(__name__)

MIN_OPTIONS = 2
MAX_OPTIONS = 10

POLL_UNAVAILABLE = "Poll not found, closed, or has been deleted"


def is_open(poll: Poll, now: datetime | None = None) -> bool:
    now = now or utcnow()
    if poll.closed_at is not None:
        return False
    return poll.closes_at is None or poll.closes_at > now


@dataclass(frozen=True, slots=True)
class OptionResult:
    option_id: UUID
    label: str
    votes: int


@dataclass(frozen=True, slots=True)
class PollResults:
    poll_id: UUID
    question: str
    is_open: bool
    total_votes: int
    options: list[OptionResult]


class PollService:
    """Create, edit, close and vote on polls."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _own_post(self, principal: Principal, post_id: UUID) -> Post:
        post = await self._session.get(Post, post_id)
        if post is None or post.deleted_at is not None:
            raise NotFoundError("Post", post_id)
        if post.author_member_id != principal.member_id:
            raise PermissionDeniedError("Only the post author can manage its poll")
        return post

    async def get_poll(self, poll_id: UUID, post_id: UUID | None = None) -> Poll:
        poll = await self._session.get(Poll, poll_id)
        if poll is None or poll.deleted_at is not None:
            raise NotFoundError("Poll", poll_id)
        if post_id is not None and poll.post_id != post_id:
            raise NotFoundError("Poll", poll_id)
        return poll

    async def create_poll(
        self,
        principal: Principal,
        post_id: UUID,
        *,
        question: str,
        options: list[str],
        multi_choice: bool = False,
        closes_at: datetime | None = None,
    ) -> Poll:
        """Attach a poll to the caller's post.

        Raises:
            ConflictError: If the post already has a live poll.
            ValidationAPIError: Bad option count, duplicate labels or a
                closing time in the past.
        """
        principal.require(Permission.MANAGE_POLLS)
        post = await self._own_post(principal, post_id)

        question = question.strip()
        if not question:
            raise ValidationAPIError("Poll question must not be empty")
        labels = [label.strip() for label in options]
        if not MIN_OPTIONS <= len(labels) <= MAX_OPTIONS:
            raise ValidationAPIError(
                f"A poll needs between {MIN_OPTIONS} and {MAX_OPTIONS} options"
            )
        if any(not label for label in labels):
            raise ValidationAPIError("Poll options must not be empty")
        if len({label.casefold() for label in labels}) != len(labels):
            raise ValidationAPIError("Poll options must be unique")
        if closes_at is not None and closes_at <= utcnow():
            raise ValidationAPIError("closes_at must be in the future")

        existing = await self._session.execute(
            select(Poll.id).where(Poll.post_id == post.id, Poll.deleted_at.is_(None))
        )
        if existing.first() is not None:
            raise ConflictError("This post already has a poll")

        poll = Poll(
            post_id=post.id,
            question=question,
            multi_choice=multi_choice,
            closes_at=closes_at,
            options=[
                PollOption(label=label, position=position)
                for position, label in enumerate(labels)
            ],
        )
        self._session.add(poll)
        await self._session.flush()
        logger.info("Poll created", extra={"poll_id": str(poll.id), "post_id": str(post.id)})
        return poll

    async def _has_votes(self, poll_id: UUID) -> bool:
        result = await self._session.execute(
            select(PollVote.id).where(
                PollVote.poll_id == poll_id,
                PollVote.deleted_at.is_(None),
            ).limit(1)
        )
        return result.first() is not None

    async def update_poll(
        self,
        principal: Principal,
        post_id: UUID,
        poll_id: UUID,
        *,
        question: str | None = None,
        multi_choice: bool | None = None,
        closes_at: datetime | None = None,
    ) -> Poll:
        principal.require(Permission.MANAGE_POLLS)
        await self._own_post(principal, post_id)
        poll = await self.get_poll(poll_id, post_id)
        if not is_open(poll):
            raise BusinessRuleError("Poll is closed")

        if question is not None:
            question = question.strip()
            if not question:
                raise ValidationAPIError("Poll question must not be empty")
            poll.question = question
        if multi_choice is not None and multi_choice != poll.multi_choice:
            if await self._has_votes(poll.id):
                raise BusinessRuleError("Cannot change the poll type after votes were cast")
            poll.multi_choice = multi_choice
        if closes_at is not None:
            if closes_at <= utcnow():
                raise ValidationAPIError("closes_at must be in the future")
            poll.closes_at = closes_at
        await self._session.flush()
        return poll

    async def close_poll(self, principal: Principal, post_id: UUID, poll_id: UUID) -> Poll:
        """Close a poll; the post author or a moderator may do this."""
        poll = await self.get_poll(poll_id, post_id)
        if not principal.has_permission(Permission.CLOSE_ANY_POLL):
            principal.require(Permission.MANAGE_POLLS)
            await self._own_post(principal, post_id)
        if poll.closed_at is not None:
            raise BusinessRuleError("Poll is already closed")
        poll.closed_at = utcnow()
        await self._session.flush()
        return poll

    async def delete_poll(self, principal: Principal, post_id: UUID, poll_id: UUID) -> None:
        principal.require(Permission.MANAGE_POLLS)
        await self._own_post(principal, post_id)
        poll = await self.get_poll(poll_id, post_id)
        poll.deleted_at = utcnow()
        await self._session.flush()

    async def vote(
        self, principal: Principal, poll_id: UUID, option_ids: list[UUID]
    ) -> PollVote:
        """Cast votes, one row per selected option.

        Returns:
            The first vote row created.

        Raises:
            NotFoundError: If the poll is missing, closed or deleted.
            ValidationAPIError: Unknown options, duplicates or the wrong
                number of options for the poll type.
            ConflictError: If the member already voted.
        """
        principal.require(Permission.VOTE_POLL)
        poll = await self._session.get(Poll, poll_id)
        if poll is None or poll.deleted_at is not None or not is_open(poll):
            raise NotFoundError("Poll", poll_id, message=POLL_UNAVAILABLE)

        if not option_ids:
            raise ValidationAPIError("Select at least one option")
        if len(set(option_ids)) != len(option_ids):
            raise ValidationAPIError("Duplicate options in vote")
        if not poll.multi_choice and len(option_ids) != 1:
            raise ValidationAPIError("This poll accepts exactly one option")

        valid_ids = {option.id for option in poll.options}
        unknown = [str(option_id) for option_id in option_ids if option_id not in valid_ids]
        if unknown:
            raise ValidationAPIError(
                "Option does not belong to this poll", detail={"option_ids": unknown}
            )

        result = await self._session.execute(
            select(PollVote.poll_option_id).where(
                PollVote.poll_id == poll.id,
                PollVote.member_id == principal.member_id,
                PollVote.deleted_at.is_(None),
            )
        )
        already = set(result.scalars().all())
        if already and not poll.multi_choice:
            raise ConflictError("You have already voted in this poll")
        if already & set(option_ids):
            raise ConflictError("You have already voted for this option")

        votes = [
            PollVote(poll_id=poll.id, poll_option_id=option_id, member_id=principal.member_id)
            for option_id in option_ids
        ]
        self._session.add_all(votes)
        await self._session.flush()
        return votes[0]

    async def retract_votes(self, principal: Principal, poll_id: UUID) -> int:
        """Withdraw the caller's votes while the poll is open."""
        principal.require(Permission.VOTE_POLL)
        poll = await self._session.get(Poll, poll_id)
        if poll is None or poll.deleted_at is not None or not is_open(poll):
            raise NotFoundError("Poll", poll_id, message=POLL_UNAVAILABLE)
        result = await self._session.execute(
            select(PollVote).where(
                PollVote.poll_id == poll.id,
                PollVote.member_id == principal.member_id,
                PollVote.deleted_at.is_(None),
            )
        )
        votes = list(result.scalars().all())
        now = utcnow()
        for vote in votes:
            vote.deleted_at = now
        await self._session.flush()
        return len(votes)

    async def poll_results(self, poll_id: UUID) -> PollResults:
        poll = await self.get_poll(poll_id)
        result = await self._session.execute(
            select(PollVote.poll_option_id, func.count())
            .where(PollVote.poll_id == poll.id, PollVote.deleted_at.is_(None))
            .group_by(PollVote.poll_option_id)
        )
        counts = dict(result.all())
        options = [
            OptionResult(option_id=option.id, label=option.label, votes=counts.get(option.id, 0))
            for option in poll.options
        ]
        return PollResults(
            poll_id=poll.id,
            question=poll.question,
            is_open=is_open(poll),
            total_votes=sum(option.votes for option in options),
            options=options,
        )
