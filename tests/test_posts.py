"""Tests for the post service.

Tests cover:
- Creation with length checks, forbidden words, categories and tags
- Author edits with edit history and the lock rule
- Deletion window for authors versus moderators
- Search filters and sorting
- Locking by moderators
"""

from datetime import timedelta

import pytest
from sqlalchemy import select

from discuss_board.core.exceptions import (
    BusinessRuleError,
    NotFoundError,
    PermissionDeniedError,
    ValidationAPIError,
)
from discuss_board.db.models import AuditLog, Subscription
from discuss_board.db.models.base import ActorType, PostStatus, utcnow
from discuss_board.services.forbidden_words import ForbiddenWordService
from discuss_board.services.posts import PostFilters, PostService, check_length
from discuss_board.services.taxonomy import TaxonomyService
from tests.factories import create_member, create_moderator, create_post


@pytest.fixture
def post_service(db_session, policy) -> PostService:
    return PostService(db_session, policy)


class TestCheckLength:
    def test_strips_value(self):
        assert check_length("Title", "  Hello there  ", 5, 150) == "Hello there"

    def test_whitespace_does_not_count(self):
        with pytest.raises(ValidationAPIError) as exc_info:
            check_length("Title", "   ab   ", 5, 150)
        assert exc_info.value.detail == {"field": "title", "min": 5, "max": 150}


class TestCreatePost:
    """Tests for publishing posts."""

    @pytest.mark.asyncio
    async def test_create_subscribes_author(self, post_service, db_session):
        author = await create_member(db_session)
        post = await post_service.create_post(
            author.principal, title="  Board rules  ", body="Please be kind to each other."
        )

        assert post.title == "Board rules"
        assert post.status == PostStatus.PUBLISHED
        assert post.author_member_id == author.member.id
        subscription = (await db_session.execute(select(Subscription))).scalar_one()
        assert subscription.post_id == post.id
        assert subscription.member_id == author.member.id

    @pytest.mark.asyncio
    async def test_short_title_rejected(self, post_service, db_session):
        author = await create_member(db_session)
        with pytest.raises(ValidationAPIError, match="Title"):
            await post_service.create_post(author.principal, title="Hi", body="Long enough body")

    @pytest.mark.asyncio
    async def test_short_body_rejected(self, post_service, db_session):
        author = await create_member(db_session)
        with pytest.raises(ValidationAPIError, match="Body"):
            await post_service.create_post(author.principal, title="Valid title", body="tiny")

    @pytest.mark.asyncio
    async def test_forbidden_word_rejected(self, post_service, db_session):
        await ForbiddenWordService(db_session).create("spamword")
        author = await create_member(db_session)
        with pytest.raises(BusinessRuleError) as exc_info:
            await post_service.create_post(
                author.principal, title="Valid title", body="Buy SPAMWORD products now"
            )
        assert exc_info.value.error == "forbidden_word"
        assert exc_info.value.detail == {"expression": "spamword"}

    @pytest.mark.asyncio
    async def test_category_and_tags(self, post_service, db_session):
        taxonomy = TaxonomyService(db_session)
        category = await taxonomy.create_category("General")
        python = await taxonomy.create_tag("python")
        async_tag = await taxonomy.create_tag("asyncio")
        author = await create_member(db_session)

        post = await post_service.create_post(
            author.principal,
            title="Event loops",
            body="How do event loops work?",
            category_id=category.id,
            tag_ids=[python.id, async_tag.id, python.id],
        )

        assert post.category_id == category.id
        assert sorted(tag.label for tag in post.tags) == ["asyncio", "python"]

    @pytest.mark.asyncio
    async def test_inactive_category_rejected(self, post_service, db_session):
        category = await TaxonomyService(db_session).create_category("Archive", is_active=False)
        author = await create_member(db_session)
        with pytest.raises(NotFoundError, match="Category"):
            await post_service.create_post(
                author.principal,
                title="Valid title",
                body="Long enough body",
                category_id=category.id,
            )

    @pytest.mark.asyncio
    async def test_unknown_tag_rejected(self, post_service, db_session):
        author = await create_member(db_session)
        unknown = (await create_member(db_session, "other")).member.id
        with pytest.raises(NotFoundError, match="Tag"):
            await post_service.create_post(
                author.principal, title="Valid title", body="Long enough body", tag_ids=[unknown]
            )


class TestUpdatePost:
    """Tests for author edits."""

    @pytest.mark.asyncio
    async def test_edit_records_history(self, post_service, db_session):
        author = await create_member(db_session)
        post = await create_post(db_session, author)

        updated = await post_service.update_post(
            author.principal, post.id, title="Hello board, edited"
        )
        assert updated.title == "Hello board, edited"
        assert updated.body == "First post on the board."

        history = await post_service.list_post_edit_history(post.id)
        assert len(history) == 1
        assert history[0].previous_title == "Hello board"
        assert history[0].editor_member_id == author.member.id

    @pytest.mark.asyncio
    async def test_unchanged_edit_writes_no_history(self, post_service, db_session):
        author = await create_member(db_session)
        post = await create_post(db_session, author)
        await post_service.update_post(author.principal, post.id, title="Hello board")
        assert await post_service.list_post_edit_history(post.id) == []

    @pytest.mark.asyncio
    async def test_only_author_may_edit(self, post_service, db_session):
        author = await create_member(db_session)
        other = await create_member(db_session, "bob")
        post = await create_post(db_session, author)
        with pytest.raises(PermissionDeniedError):
            await post_service.update_post(other.principal, post.id, title="Hijacked title")

    @pytest.mark.asyncio
    async def test_locked_post_cannot_be_edited(self, post_service, db_session):
        author = await create_member(db_session)
        post = await create_post(db_session, author, is_locked=True)
        with pytest.raises(BusinessRuleError, match="locked"):
            await post_service.update_post(author.principal, post.id, title="New title here")


class TestDeletePost:
    """Tests for soft deletion."""

    @pytest.mark.asyncio
    async def test_author_deletes_within_window(self, post_service, db_session):
        author = await create_member(db_session)
        post = await create_post(db_session, author)

        deleted = await post_service.delete_post(author.principal, post.id)
        assert deleted.deleted_at is not None
        with pytest.raises(NotFoundError):
            await post_service.get_post(post.id)

        entry = (await db_session.execute(select(AuditLog))).scalar_one()
        assert entry.action_type == "post_delete"
        assert entry.actor_type == ActorType.MEMBER
        assert entry.target_object == f"post:{post.id}"

    @pytest.mark.asyncio
    async def test_author_window_expires(self, post_service, db_session):
        author = await create_member(db_session)
        post = await create_post(db_session, author, age=timedelta(hours=1))
        with pytest.raises(BusinessRuleError, match="30 minutes"):
            await post_service.delete_post(author.principal, post.id)

    @pytest.mark.asyncio
    async def test_moderator_deletes_any_time(self, post_service, db_session):
        author = await create_member(db_session)
        moderator = await create_moderator(db_session)
        post = await create_post(db_session, author, age=timedelta(days=3))

        deleted = await post_service.delete_post(moderator.principal, post.id)
        assert deleted.deleted_at is not None

    @pytest.mark.asyncio
    async def test_other_member_cannot_delete(self, post_service, db_session):
        author = await create_member(db_session)
        other = await create_member(db_session, "bob")
        post = await create_post(db_session, author)
        with pytest.raises(PermissionDeniedError):
            await post_service.delete_post(other.principal, post.id)

    @pytest.mark.asyncio
    async def test_double_delete_rejected(self, post_service, db_session):
        author = await create_member(db_session)
        post = await create_post(db_session, author)
        await post_service.delete_post(author.principal, post.id)
        with pytest.raises(BusinessRuleError, match="already deleted"):
            await post_service.delete_post(author.principal, post.id)


class TestSearchPosts:
    """Tests for the public post search."""

    @pytest.mark.asyncio
    async def test_keyword_matches_title_or_body(self, post_service, db_session):
        author = await create_member(db_session)
        await create_post(db_session, author, title="Gardening tips", body="Tomatoes need sun.")
        await create_post(db_session, author, title="Cooking", body="Use fresh TOMATOES.")
        await create_post(db_session, author, title="Cycling", body="Ride every day.")

        page = await post_service.search_posts(PostFilters(keyword="tomatoes", sort="title:asc"))
        assert [post.title for post in page.data] == ["Cooking", "Gardening tips"]
        assert page.pagination.records == 2

    @pytest.mark.asyncio
    async def test_keyword_wildcards_are_literal(self, post_service, db_session):
        author = await create_member(db_session)
        await create_post(db_session, author, title="Sale", body="Everything 50% off today.")
        await create_post(db_session, author, title="Results", body="We scored 500 points.")
        await create_post(db_session, author, title="Naming", body="Use snake_case names.")
        await create_post(db_session, author, title="Prose", body="A snakeycase mistake.")

        percent = await post_service.search_posts(PostFilters(keyword="50%"))
        assert [post.title for post in percent.data] == ["Sale"]
        underscore = await post_service.search_posts(PostFilters(keyword="snake_case"))
        assert [post.title for post in underscore.data] == ["Naming"]

    @pytest.mark.asyncio
    async def test_deleted_posts_hidden(self, post_service, db_session):
        author = await create_member(db_session)
        await create_post(db_session, author, title="Visible post")
        await create_post(db_session, author, title="Gone post", deleted_at=utcnow())

        page = await post_service.search_posts(PostFilters())
        assert [post.title for post in page.data] == ["Visible post"]

    @pytest.mark.asyncio
    async def test_filter_by_author_and_status(self, post_service, db_session):
        ada = await create_member(db_session)
        bob = await create_member(db_session, "bob")
        await create_post(db_session, ada, title="Ada post")
        await create_post(db_session, bob, title="Bob post")
        await create_post(db_session, bob, title="Bob hidden", status=PostStatus.HIDDEN)

        page = await post_service.search_posts(
            PostFilters(author_member_id=bob.member.id, status=PostStatus.PUBLISHED)
        )
        assert [post.title for post in page.data] == ["Bob post"]

    @pytest.mark.asyncio
    async def test_filter_by_tag(self, post_service, db_session):
        tag = await TaxonomyService(db_session).create_tag("news")
        author = await create_member(db_session)
        tagged = await post_service.create_post(
            author.principal, title="Tagged post", body="Has the news tag.", tag_ids=[tag.id]
        )
        await create_post(db_session, author, title="Untagged post")

        page = await post_service.search_posts(PostFilters(tag_id=tag.id))
        assert [post.id for post in page.data] == [tagged.id]

    @pytest.mark.asyncio
    async def test_filter_by_created_range(self, post_service, db_session):
        author = await create_member(db_session)
        await create_post(db_session, author, title="Old post", age=timedelta(days=2))
        await create_post(db_session, author, title="New post")

        page = await post_service.search_posts(
            PostFilters(created_from=utcnow() - timedelta(days=1))
        )
        assert [post.title for post in page.data] == ["New post"]

    @pytest.mark.asyncio
    async def test_default_sort_is_newest_first(self, post_service, db_session):
        author = await create_member(db_session)
        await create_post(db_session, author, title="Older", age=timedelta(hours=2))
        await create_post(db_session, author, title="Newer", age=timedelta(hours=1))

        page = await post_service.search_posts(PostFilters())
        assert [post.title for post in page.data] == ["Newer", "Older"]


class TestLocking:
    """Tests for moderator locks."""

    @pytest.mark.asyncio
    async def test_moderator_locks_and_unlocks(self, post_service, db_session):
        author = await create_member(db_session)
        moderator = await create_moderator(db_session)
        post = await create_post(db_session, author)

        locked = await post_service.set_locked(moderator.principal, post.id, True)
        assert locked.is_locked
        await post_service.set_locked(moderator.principal, post.id, False)

        actions = (
            await db_session.execute(select(AuditLog.action_type).order_by(AuditLog.created_at))
        ).scalars().all()
        assert sorted(actions) == ["post_lock", "post_unlock"]

    @pytest.mark.asyncio
    async def test_member_cannot_lock(self, post_service, db_session):
        author = await create_member(db_session)
        post = await create_post(db_session, author)
        with pytest.raises(PermissionDeniedError):
            await post_service.set_locked(author.principal, post.id, True)
