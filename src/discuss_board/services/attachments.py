"""Attachment metadata on posts and comments.

Files live in external storage; the board keeps the URI, name, content
type and size only.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import func, select

from discuss_board.core.config import ContentPolicySettings
from discuss_board.core.exceptions import (
    BusinessRuleError,
    NotFoundError,
    PermissionDeniedError,
    ValidationAPIError,
)
from discuss_board.db.models.base import utcnow
from discuss_board.db.models.content import Attachment, Comment, Post
from discuss_board.services.audit_log import AuditLogService
from discuss_board.services.authz import Permission

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

    from discuss_board.services.authz import Principal

logger = logging.getLogger(__name__)


class AttachmentService:
    """Add, rename, list and remove attachments."""

    def __init__(
        self, session: AsyncSession, policy: ContentPolicySettings | None = None
    ) -> None:
        self._session = session
        self._policy = policy or ContentPolicySettings()
        self._audit = AuditLogService(session, self._policy)

    async def _owned_target(
        self,
        principal: Principal,
        post_id: UUID | None,
        comment_id: UUID | None,
    ) -> Post | Comment:
        if (post_id is None) == (comment_id is None):
            raise BusinessRuleError("Attach to exactly one of a post or a comment")

        target: Post | Comment | None
        if post_id is not None:
            target = await self._session.get(Post, post_id)
            if target is None or target.deleted_at is not None:
                raise NotFoundError("Post", post_id)
        else:
            target = await self._session.get(Comment, comment_id)
            if target is None or target.deleted_at is not None:
                raise NotFoundError("Comment", comment_id)

        if target.author_member_id != principal.member_id:
            raise PermissionDeniedError("Only the author can manage attachments")
        return target

    def _target_clause(self, post_id: UUID | None, comment_id: UUID | None):
        if post_id is not None:
            return Attachment.post_id == post_id
        return Attachment.comment_id == comment_id

    async def add_attachment(
        self,
        principal: Principal,
        *,
        post_id: UUID | None = None,
        comment_id: UUID | None = None,
        file_name: str,
        file_uri: str,
        content_type: str,
        size_bytes: int,
    ) -> Attachment:
        """Record an attachment on the caller's post or comment.

        Raises:
            ValidationAPIError: If the file is empty or too large.
            BusinessRuleError: If the target already holds the maximum count.
        """
        principal.require(Permission.MANAGE_ATTACHMENTS)
        await self._owned_target(principal, post_id, comment_id)

        if size_bytes <= 0:
            raise ValidationAPIError("Attachment size must be positive")
        if size_bytes > self._policy.max_attachment_bytes:
            raise ValidationAPIError(
                f"Attachment exceeds {self._policy.max_attachment_bytes} bytes",
                detail={"max_bytes": self._policy.max_attachment_bytes},
            )
        if not file_name.strip():
            raise ValidationAPIError("File name must not be empty")

        result = await self._session.execute(
            select(func.count(Attachment.id)).where(
                self._target_clause(post_id, comment_id),
                Attachment.deleted_at.is_(None),
            )
        )
        if result.scalar_one() >= self._policy.max_attachments_per_target:
            raise BusinessRuleError(
                f"At most {self._policy.max_attachments_per_target} attachments allowed"
            )

        attachment = Attachment(
            uploader_member_id=principal.member_id,
            post_id=post_id,
            comment_id=comment_id,
            file_name=file_name.strip(),
            file_uri=file_uri,
            content_type=content_type,
            size_bytes=size_bytes,
        )
        self._session.add(attachment)
        await self._session.flush()
        logger.info("Attachment added", extra={"attachment_id": str(attachment.id)})
        return attachment

    async def get_attachment(self, attachment_id: UUID) -> Attachment:
        attachment = await self._session.get(Attachment, attachment_id)
        if attachment is None or attachment.deleted_at is not None:
            raise NotFoundError("Attachment", attachment_id)
        return attachment

    async def update_attachment(
        self,
        principal: Principal,
        attachment_id: UUID,
        *,
        file_name: str | None = None,
        content_type: str | None = None,
    ) -> Attachment:
        principal.require(Permission.MANAGE_ATTACHMENTS)
        attachment = await self.get_attachment(attachment_id)
        if attachment.uploader_member_id != principal.member_id:
            raise PermissionDeniedError("Only the uploader can edit this attachment")
        if file_name is not None:
            if not file_name.strip():
                raise ValidationAPIError("File name must not be empty")
            attachment.file_name = file_name.strip()
        if content_type is not None:
            attachment.content_type = content_type
        await self._session.flush()
        return attachment

    async def list_attachments(
        self, *, post_id: UUID | None = None, comment_id: UUID | None = None
    ) -> list[Attachment]:
        if (post_id is None) == (comment_id is None):
            raise BusinessRuleError("List attachments of exactly one post or comment")
        result = await self._session.execute(
            select(Attachment)
            .where(
                self._target_clause(post_id, comment_id),
                Attachment.deleted_at.is_(None),
            )
            .order_by(Attachment.created_at, Attachment.id)
        )
        return list(result.scalars().all())

    async def delete_attachment(self, principal: Principal, attachment_id: UUID) -> None:
        attachment = await self.get_attachment(attachment_id)
        if attachment.uploader_member_id != principal.member_id:
            principal.require(Permission.DELETE_ANY_CONTENT)
            await self._audit.record_for(
                principal,
                "attachment_remove",
                target_object=f"attachment:{attachment.id}",
            )
        attachment.deleted_at = utcnow()
        await self._session.flush()
