"""Tests for attachment metadata on posts and comments."""

import pytest
from sqlalchemy import select

from discuss_board.core.config import ContentPolicySettings
from discuss_board.core.exceptions import (
    BusinessRuleError,
    NotFoundError,
    PermissionDeniedError,
    ValidationAPIError,
)
from discuss_board.db.models import AuditLog
from discuss_board.services.attachments import AttachmentService
from tests.factories import create_comment, create_member, create_moderator, create_post


@pytest.fixture
def attachment_service(db_session, policy) -> AttachmentService:
    return AttachmentService(db_session, policy)


def _file(**overrides):
    fields = {
        "file_name": "diagram.png",
        "file_uri": "https://files.example.com/diagram.png",
        "content_type": "image/png",
        "size_bytes": 2048,
    }
    fields.update(overrides)
    return fields


class TestAddAttachment:
    """Tests for recording attachments."""

    @pytest.mark.asyncio
    async def test_attach_to_post(self, attachment_service, db_session):
        author = await create_member(db_session)
        post = await create_post(db_session, author)

        attachment = await attachment_service.add_attachment(
            author.principal, post_id=post.id, **_file()
        )
        assert attachment.uploader_member_id == author.member.id
        assert await attachment_service.list_attachments(post_id=post.id) == [attachment]

    @pytest.mark.asyncio
    async def test_attach_to_comment(self, attachment_service, db_session):
        author = await create_member(db_session)
        post = await create_post(db_session, author)
        comment = await create_comment(db_session, author, post)

        attachment = await attachment_service.add_attachment(
            author.principal, comment_id=comment.id, **_file()
        )
        assert attachment.comment_id == comment.id
        assert attachment.post_id is None

    @pytest.mark.asyncio
    async def test_exactly_one_target(self, attachment_service, db_session):
        author = await create_member(db_session)
        post = await create_post(db_session, author)
        comment = await create_comment(db_session, author, post)
        with pytest.raises(BusinessRuleError):
            await attachment_service.add_attachment(
                author.principal, post_id=post.id, comment_id=comment.id, **_file()
            )
        with pytest.raises(BusinessRuleError):
            await attachment_service.add_attachment(author.principal, **_file())

    @pytest.mark.asyncio
    async def test_only_author_attaches(self, attachment_service, db_session):
        author = await create_member(db_session)
        other = await create_member(db_session, "bob")
        post = await create_post(db_session, author)
        with pytest.raises(PermissionDeniedError):
            await attachment_service.add_attachment(other.principal, post_id=post.id, **_file())

    @pytest.mark.asyncio
    @pytest.mark.parametrize("size", [0, 10 * 1024 * 1024 + 1])
    async def test_size_limits(self, attachment_service, db_session, size):
        author = await create_member(db_session)
        post = await create_post(db_session, author)
        with pytest.raises(ValidationAPIError):
            await attachment_service.add_attachment(
                author.principal, post_id=post.id, **_file(size_bytes=size)
            )

    @pytest.mark.asyncio
    async def test_count_limit(self, db_session):
        service = AttachmentService(db_session, ContentPolicySettings(max_attachments_per_target=2))
        author = await create_member(db_session)
        post = await create_post(db_session, author)
        for _ in range(2):
            await service.add_attachment(author.principal, post_id=post.id, **_file())
        with pytest.raises(BusinessRuleError, match="At most 2"):
            await service.add_attachment(author.principal, post_id=post.id, **_file())


class TestManageAttachment:
    """Tests for renaming and removing attachments."""

    @pytest.mark.asyncio
    async def test_uploader_renames(self, attachment_service, db_session):
        author = await create_member(db_session)
        post = await create_post(db_session, author)
        attachment = await attachment_service.add_attachment(
            author.principal, post_id=post.id, **_file()
        )

        updated = await attachment_service.update_attachment(
            author.principal, attachment.id, file_name=" chart.png "
        )
        assert updated.file_name == "chart.png"

    @pytest.mark.asyncio
    async def test_other_member_cannot_rename(self, attachment_service, db_session):
        author = await create_member(db_session)
        other = await create_member(db_session, "bob")
        post = await create_post(db_session, author)
        attachment = await attachment_service.add_attachment(
            author.principal, post_id=post.id, **_file()
        )
        with pytest.raises(PermissionDeniedError):
            await attachment_service.update_attachment(
                other.principal, attachment.id, file_name="mine.png"
            )

    @pytest.mark.asyncio
    async def test_uploader_deletes_without_audit(self, attachment_service, db_session):
        author = await create_member(db_session)
        post = await create_post(db_session, author)
        attachment = await attachment_service.add_attachment(
            author.principal, post_id=post.id, **_file()
        )

        await attachment_service.delete_attachment(author.principal, attachment.id)
        with pytest.raises(NotFoundError):
            await attachment_service.get_attachment(attachment.id)
        assert (await db_session.execute(select(AuditLog))).first() is None

    @pytest.mark.asyncio
    async def test_moderator_removal_is_audited(self, attachment_service, db_session):
        author = await create_member(db_session)
        moderator = await create_moderator(db_session)
        post = await create_post(db_session, author)
        attachment = await attachment_service.add_attachment(
            author.principal, post_id=post.id, **_file()
        )

        await attachment_service.delete_attachment(moderator.principal, attachment.id)

        entry = (await db_session.execute(select(AuditLog))).scalar_one()
        assert entry.action_type == "attachment_remove"
        assert entry.target_object == f"attachment:{attachment.id}"

    @pytest.mark.asyncio
    async def test_other_member_cannot_delete(self, attachment_service, db_session):
        author = await create_member(db_session)
        other = await create_member(db_session, "bob")
        post = await create_post(db_session, author)
        attachment = await attachment_service.add_attachment(
            author.principal, post_id=post.id, **_file()
        )
        with pytest.raises(PermissionDeniedError):
            await attachment_service.delete_attachment(other.principal, attachment.id)
