"""Tests for the comment service.

Tests cover:
- Top-level comments and threaded replies with the nesting limit
- Reply notifications to subscribers and parent authors
- Author edits with history
- Author deletion window and moderator removal
- Listing order and parent filtering
"""

from datetime import timedelta

import pytest
from sqlalchemy import select

from discuss_board.core.config import ContentPolicySettings
from discuss_board.core.exceptions import (
    BusinessRuleError,
    NotFoundError,
    PermissionDeniedError,
    ValidationAPIError,
)
from discuss_board.db.models import AuditLog, Notification
from discuss_board.services.comments import CommentService
from discuss_board.services.forbidden_words import ForbiddenWordService
from discuss_board.services.notifications import COMMENT_REPLY, NotificationService
from tests.factories import create_comment, create_member, create_moderator, create_post


@pytest.fixture
def comment_service(db_session, policy) -> CommentService:
    return CommentService(db_session, policy)


class TestCreateComment:
    """Tests for adding comments and replies."""

    @pytest.mark.asyncio
    async def test_top_level_comment(self, comment_service, db_session):
        author = await create_member(db_session)
        post = await create_post(db_session, author)

        comment = await comment_service.create_comment(
            author.principal, post.id, content="  Welcome!  "
        )
        assert comment.content == "Welcome!"
        assert comment.nesting_level == 0
        assert comment.parent_comment_id is None

    @pytest.mark.asyncio
    async def test_reply_increments_nesting(self, comment_service, db_session):
        author = await create_member(db_session)
        post = await create_post(db_session, author)
        parent = await create_comment(db_session, author, post)

        reply = await comment_service.create_comment(
            author.principal, post.id, content="Thanks", parent_comment_id=parent.id
        )
        assert reply.nesting_level == 1
        assert reply.parent_comment_id == parent.id

    @pytest.mark.asyncio
    async def test_nesting_limit(self, db_session):
        service = CommentService(db_session, ContentPolicySettings(max_comment_nesting_level=1))
        author = await create_member(db_session)
        post = await create_post(db_session, author)
        top = await create_comment(db_session, author, post)
        reply = await create_comment(db_session, author, post, parent=top)

        with pytest.raises(BusinessRuleError, match="nesting"):
            await service.create_comment(
                author.principal, post.id, content="Too deep", parent_comment_id=reply.id
            )

    @pytest.mark.asyncio
    async def test_parent_on_other_post_rejected(self, comment_service, db_session):
        author = await create_member(db_session)
        first = await create_post(db_session, author)
        second = await create_post(db_session, author, title="Second post")
        parent = await create_comment(db_session, author, first)

        with pytest.raises(BusinessRuleError, match="different post"):
            await comment_service.create_comment(
                author.principal, second.id, content="Wrong thread", parent_comment_id=parent.id
            )

    @pytest.mark.asyncio
    async def test_locked_post_rejects_comments(self, comment_service, db_session):
        author = await create_member(db_session)
        post = await create_post(db_session, author, is_locked=True)
        with pytest.raises(BusinessRuleError, match="locked"):
            await comment_service.create_comment(author.principal, post.id, content="Hello")

    @pytest.mark.asyncio
    async def test_too_short_rejected(self, comment_service, db_session):
        author = await create_member(db_session)
        post = await create_post(db_session, author)
        with pytest.raises(ValidationAPIError):
            await comment_service.create_comment(author.principal, post.id, content=" x ")

    @pytest.mark.asyncio
    async def test_forbidden_word_rejected(self, comment_service, db_session, policy):
        author = await create_member(db_session)
        post = await create_post(db_session, author)
        await ForbiddenWordService(db_session, policy).create("spam")

        with pytest.raises(BusinessRuleError) as exc_info:
            await comment_service.create_comment(
                author.principal, post.id, content="Buy SPAM today"
            )
        assert exc_info.value.error == "forbidden_word"

    @pytest.mark.asyncio
    async def test_missing_post(self, comment_service, db_session):
        author = await create_member(db_session)
        with pytest.raises(NotFoundError, match="Post"):
            await comment_service.create_comment(
                author.principal, author.member.id, content="Hello"
            )


class TestReplyNotifications:
    """Tests for notifications sent on new comments."""

    @pytest.mark.asyncio
    async def test_subscribers_and_parent_author_notified(self, comment_service, db_session):
        owner = await create_member(db_session)
        parent_author = await create_member(db_session, "bob")
        commenter = await create_member(db_session, "cy")
        post = await create_post(db_session, owner)
        await NotificationService(db_session).subscribe(owner.member.id, post.id)
        await NotificationService(db_session).subscribe(commenter.member.id, post.id)
        parent = await create_comment(db_session, parent_author, post)

        await comment_service.create_comment(
            commenter.principal, post.id, content="Agreed", parent_comment_id=parent.id
        )

        notifications = (await db_session.execute(select(Notification))).scalars().all()
        recipients = {n.recipient_account_id for n in notifications}
        # The commenter is subscribed but never notified of their own reply
        assert recipients == {owner.account.id, parent_author.account.id}
        assert {n.notification_type for n in notifications} == {COMMENT_REPLY}
        assert all(n.link_uri.startswith(f"/discussBoard/posts/{post.id}") for n in notifications)


class TestUpdateComment:
    @pytest.mark.asyncio
    async def test_edit_records_history(self, comment_service, db_session):
        author = await create_member(db_session)
        post = await create_post(db_session, author)
        comment = await create_comment(db_session, author, post, content="First draft")

        await comment_service.update_comment(author.principal, comment.id, content="Second draft")

        history = await comment_service.list_comment_edit_history(comment.id)
        assert [h.previous_content for h in history] == ["First draft"]
        assert comment.content == "Second draft"

    @pytest.mark.asyncio
    async def test_only_author_may_edit(self, comment_service, db_session):
        author = await create_member(db_session)
        other = await create_member(db_session, "bob")
        post = await create_post(db_session, author)
        comment = await create_comment(db_session, author, post)
        with pytest.raises(PermissionDeniedError):
            await comment_service.update_comment(other.principal, comment.id, content="Mine now")

    @pytest.mark.asyncio
    async def test_forbidden_word_rejected_on_edit(self, comment_service, db_session, policy):
        author = await create_member(db_session)
        post = await create_post(db_session, author)
        comment = await create_comment(db_session, author, post, content="Clean words")
        await ForbiddenWordService(db_session, policy).create("spam")

        with pytest.raises(BusinessRuleError, match="forbidden word"):
            await comment_service.update_comment(
                author.principal, comment.id, content="Now with spam"
            )
        assert comment.content == "Clean words"


class TestDeleteComment:
    """Tests for author deletion and moderator removal."""

    @pytest.mark.asyncio
    async def test_author_deletes_within_window(self, comment_service, db_session):
        author = await create_member(db_session)
        post = await create_post(db_session, author)
        comment = await create_comment(db_session, author, post)

        await comment_service.delete_comment(author.principal, comment.id)

        with pytest.raises(NotFoundError):
            await comment_service.get_comment(comment.id)
        entry = (await db_session.execute(select(AuditLog))).scalar_one()
        assert entry.action_type == "comment_delete"

    @pytest.mark.asyncio
    async def test_delete_twice(self, comment_service, db_session):
        author = await create_member(db_session)
        post = await create_post(db_session, author)
        comment = await create_comment(db_session, author, post)

        await comment_service.delete_comment(author.principal, comment.id)
        with pytest.raises(BusinessRuleError, match="Comment already deleted"):
            await comment_service.delete_comment(author.principal, comment.id)

    @pytest.mark.asyncio
    async def test_window_expires(self, comment_service, db_session):
        author = await create_member(db_session)
        post = await create_post(db_session, author)
        comment = await create_comment(db_session, author, post, age=timedelta(minutes=16))
        with pytest.raises(BusinessRuleError, match="15 minutes"):
            await comment_service.delete_comment(author.principal, comment.id)

    @pytest.mark.asyncio
    async def test_moderator_cannot_use_author_delete(self, comment_service, db_session):
        author = await create_member(db_session)
        moderator = await create_moderator(db_session)
        post = await create_post(db_session, author)
        comment = await create_comment(db_session, author, post)
        with pytest.raises(PermissionDeniedError):
            await comment_service.delete_comment(moderator.principal, comment.id)

    @pytest.mark.asyncio
    async def test_moderator_removes_old_comment(self, comment_service, db_session):
        author = await create_member(db_session)
        moderator = await create_moderator(db_session)
        post = await create_post(db_session, author)
        comment = await create_comment(db_session, author, post, age=timedelta(days=1))

        removed = await comment_service.remove_comment(moderator.principal, comment.id)
        assert removed.deleted_at is not None

    @pytest.mark.asyncio
    async def test_member_cannot_remove(self, comment_service, db_session):
        author = await create_member(db_session)
        post = await create_post(db_session, author)
        comment = await create_comment(db_session, author, post)
        with pytest.raises(PermissionDeniedError):
            await comment_service.remove_comment(author.principal, comment.id)


class TestListComments:
    @pytest.mark.asyncio
    async def test_oldest_first_and_parent_filter(self, comment_service, db_session):
        author = await create_member(db_session)
        post = await create_post(db_session, author)
        first = await create_comment(db_session, author, post, content="first", age=timedelta(minutes=3))
        await create_comment(db_session, author, post, content="second", age=timedelta(minutes=2))
        await create_comment(
            db_session, author, post, content="reply", parent=first, age=timedelta(minutes=1)
        )

        page = await comment_service.list_comments(post.id)
        assert [c.content for c in page.data] == ["first", "second", "reply"]

        replies = await comment_service.list_comments(post.id, parent_comment_id=first.id)
        assert [c.content for c in replies.data] == ["reply"]
