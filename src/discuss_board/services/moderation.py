"""Content reports, moderation actions and appeals.

This module implements the moderation workflow:
- Members report posts or comments
- Moderators review reports and take actions against members or content
- Actions apply their effect immediately (removal, restoration, suspension)
- Members appeal actions taken against them; administrators decide

Every action and decision is written to the audit log in the same
transaction as its effect.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import select

from discuss_board.core.config import ContentPolicySettings
from discuss_board.core.exceptions import (
    BusinessRuleError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationAPIError,
)
from discuss_board.db.models.accounts import Member, Moderator
from discuss_board.db.models.base import (
    AccountStatus,
    AppealStatus,
    ModerationActionStatus,
    ModerationActionType,
    ReportContentType,
    ReportStatus,
    RoleStatus,
    utcnow,
)
from discuss_board.db.models.content import Comment, Post
from discuss_board.db.models.moderation import Appeal, ContentReport, ModerationAction
from discuss_board.services.audit_log import AuditLogService
from discuss_board.services.authz import Permission, RoleClass
from discuss_board.services.notifications import (
    APPEAL_DECISION,
    MODERATION_ACTION,
    MODERATION_WARNING,
    NotificationService,
)
from discuss_board.services.pagination import Page, page_params, paginate, parse_sort

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

    from discuss_board.services.authz import Principal

logger = logging.getLogger(__name__)

# Actions that suspend the target member while active
SUSPENDING_ACTIONS = frozenset([ModerationActionType.MUTE, ModerationActionType.RESTRICT])


@dataclass(slots=True)
class ReportFilters:
    """Filters for the moderator report queue."""

    reporter_member_id: UUID | None = None
    content_type: ReportContentType | None = None
    status: ReportStatus | None = None
    reason: str | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None
    page: int | None = None
    limit: int | None = None
    sort: str | None = None


@dataclass(slots=True)
class ActionFilters:
    moderator_id: UUID | None = None
    target_member_id: UUID | None = None
    action_type: ModerationActionType | None = None
    status: ModerationActionStatus | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None
    page: int | None = None
    limit: int | None = None
    sort: str | None = None


@dataclass(slots=True)
class AppealFilters:
    appellant_member_id: UUID | None = None
    status: AppealStatus | None = None
    moderation_action_id: UUID | None = None
    page: int | None = None
    limit: int | None = None
    sort: str | None = None


class ModerationService:
    """Reports, actions and appeals."""

    REPORT_SORT_FIELDS = {
        "created_at": ContentReport.created_at,
        "status": ContentReport.status,
        "reason": ContentReport.reason,
    }
    ACTION_SORT_FIELDS = {
        "created_at": ModerationAction.created_at,
        "action_type": ModerationAction.action_type,
        "status": ModerationAction.status,
    }
    APPEAL_SORT_FIELDS = {
        "created_at": Appeal.created_at,
        "status": Appeal.status,
    }

    def __init__(
        self, session: AsyncSession, policy: ContentPolicySettings | None = None
    ) -> None:
        self._session = session
        self._policy = policy or ContentPolicySettings()
        self._notifications = NotificationService(session, self._policy)
        self._audit = AuditLogService(session, self._policy)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_post(self, post_id: UUID, *, live: bool = True) -> Post:
        post = await self._session.get(Post, post_id)
        if post is None or (live and post.deleted_at is not None):
            raise NotFoundError("Post", post_id)
        return post

    async def _get_comment(self, comment_id: UUID, *, live: bool = True) -> Comment:
        comment = await self._session.get(Comment, comment_id)
        if comment is None or (live and comment.deleted_at is not None):
            raise NotFoundError("Comment", comment_id)
        return comment

    async def _get_member(self, member_id: UUID, *, live: bool = True) -> Member:
        member = await self._session.get(Member, member_id)
        if member is None or (live and member.deleted_at is not None):
            raise NotFoundError("Member", member_id)
        return member

    async def _acting_moderator_id(self, principal: Principal) -> UUID:
        """Moderator row id of the caller.

        Administrators without a moderator assignment get one on their
        first action, so every action references a moderator row.
        """
        if principal.moderator_id is not None:
            return principal.moderator_id
        if principal.role != RoleClass.ADMINISTRATOR:
            raise PermissionDeniedError("Not an active moderator")

        result = await self._session.execute(
            select(Moderator).where(Moderator.member_id == principal.member_id)
        )
        moderator = result.scalar_one_or_none()
        if moderator is None:
            moderator = Moderator(
                member_id=principal.member_id,
                assigned_by_administrator_id=principal.administrator_id,
                status=RoleStatus.ACTIVE,
            )
            self._session.add(moderator)
        elif not moderator.is_active:
            moderator.status = RoleStatus.ACTIVE
            moderator.revoked_at = None
            moderator.deleted_at = None
            moderator.assigned_at = utcnow()
        await self._session.flush()
        return moderator.id

    async def _notify_member(
        self, member_id: UUID, notification_type: str, subject: str, body: str
    ) -> None:
        member = await self._session.get(Member, member_id)
        if member is None:
            return
        await self._notifications.notify(
            member.user_account_id, notification_type, subject=subject, body=body
        )

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    async def create_report(
        self,
        principal: Principal,
        *,
        content_type: ReportContentType,
        reason: str,
        post_id: UUID | None = None,
        comment_id: UUID | None = None,
    ) -> ContentReport:
        """File a report against a post or a comment.

        Raises:
            BusinessRuleError: If the target does not match ``content_type``.
            NotFoundError: If the target does not exist.
            ConflictError: If the member already reported this target.
        """
        principal.require(Permission.REPORT_CONTENT)
        reason = reason.strip()
        if not reason:
            raise ValidationAPIError("A reason is required")

        if content_type == ReportContentType.POST:
            if post_id is None or comment_id is not None:
                raise BusinessRuleError("A post report must reference exactly one post")
            await self._get_post(post_id)
            target_clause = ContentReport.post_id == post_id
        else:
            if comment_id is None or post_id is not None:
                raise BusinessRuleError("A comment report must reference exactly one comment")
            await self._get_comment(comment_id)
            target_clause = ContentReport.comment_id == comment_id

        result = await self._session.execute(
            select(ContentReport.id).where(
                target_clause,
                ContentReport.reporter_member_id == principal.member_id,
                ContentReport.deleted_at.is_(None),
            )
        )
        if result.first() is not None:
            raise ConflictError("You have already reported this content")

        report = ContentReport(
            reporter_member_id=principal.member_id,
            content_type=content_type,
            post_id=post_id,
            comment_id=comment_id,
            reason=reason,
            status=ReportStatus.PENDING,
        )
        self._session.add(report)
        await self._session.flush()
        logger.info(
            "Content reported",
            extra={"report_id": str(report.id), "content_type": content_type.value},
        )
        return report

    async def get_report(self, report_id: UUID) -> ContentReport:
        report = await self._session.get(ContentReport, report_id)
        if report is None or report.deleted_at is not None:
            raise NotFoundError("Report", report_id)
        return report

    async def search_reports(self, filters: ReportFilters) -> Page[ContentReport]:
        stmt = select(ContentReport).where(ContentReport.deleted_at.is_(None))
        if filters.reporter_member_id is not None:
            stmt = stmt.where(ContentReport.reporter_member_id == filters.reporter_member_id)
        if filters.content_type is not None:
            stmt = stmt.where(ContentReport.content_type == filters.content_type)
        if filters.status is not None:
            stmt = stmt.where(ContentReport.status == filters.status)
        if filters.reason:
            stmt = stmt.where(ContentReport.reason.icontains(filters.reason, autoescape=True))
        if filters.created_from is not None:
            stmt = stmt.where(ContentReport.created_at >= filters.created_from)
        if filters.created_to is not None:
            stmt = stmt.where(ContentReport.created_at <= filters.created_to)

        params = page_params(filters.page, filters.limit, self._policy)
        order = parse_sort(filters.sort, self.REPORT_SORT_FIELDS, "created_at")
        rows, pagination = await paginate(
            self._session, stmt, params, [order, ContentReport.id]
        )
        return Page(pagination=pagination, data=rows)

    async def update_report_status(
        self, principal: Principal, report_id: UUID, status: ReportStatus
    ) -> ContentReport:
        principal.require(Permission.MANAGE_REPORTS)
        report = await self.get_report(report_id)
        previous = report.status
        report.status = status
        await self._session.flush()
        await self._audit.record_for(
            principal,
            "report_status_update",
            target_object=f"content_report:{report.id}",
            description=f"{previous.value} -> {status.value}",
        )
        return report

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def create_action(
        self,
        principal: Principal,
        *,
        action_type: ModerationActionType,
        action_reason: str,
        target_member_id: UUID | None = None,
        target_post_id: UUID | None = None,
        target_comment_id: UUID | None = None,
        details: str | None = None,
        effective_from: datetime | None = None,
        effective_until: datetime | None = None,
        report_id: UUID | None = None,
    ) -> ModerationAction:
        """Record a moderation action and apply its effect.

        When only content is targeted, the content author becomes the
        target member so they can appeal.

        Raises:
            BusinessRuleError: No target, or a target the action cannot use.
            NotFoundError: If a target or the linked report does not exist.
        """
        principal.require(Permission.CREATE_MODERATION_ACTION)
        if target_member_id is None and target_post_id is None and target_comment_id is None:
            raise BusinessRuleError("A moderation action needs at least one target")
        action_reason = action_reason.strip()
        if not action_reason:
            raise ValidationAPIError("A reason is required")
        if (
            effective_from is not None
            and effective_until is not None
            and effective_until <= effective_from
        ):
            raise ValidationAPIError("effective_until must be after effective_from")

        live = action_type != ModerationActionType.RESTORE
        post = await self._get_post(target_post_id, live=live) if target_post_id else None
        comment = (
            await self._get_comment(target_comment_id, live=live)
            if target_comment_id
            else None
        )
        if target_member_id is not None:
            member = await self._get_member(target_member_id)
        else:
            author_id = (comment or post).author_member_id
            member = await self._get_member(author_id, live=False)
            target_member_id = member.id

        report = await self.get_report(report_id) if report_id is not None else None

        if action_type in (ModerationActionType.REMOVE, ModerationActionType.RESTORE):
            if post is None and comment is None:
                raise BusinessRuleError(f"'{action_type.value}' needs a post or comment target")

        moderator_id = await self._acting_moderator_id(principal)
        action = ModerationAction(
            moderator_id=moderator_id,
            target_member_id=target_member_id,
            target_post_id=target_post_id,
            target_comment_id=target_comment_id,
            action_type=action_type,
            action_reason=action_reason,
            details=details,
            effective_from=effective_from or utcnow(),
            effective_until=effective_until,
            status=ModerationActionStatus.ACTIVE,
        )
        self._session.add(action)
        await self._session.flush()

        now = utcnow()
        if action_type == ModerationActionType.REMOVE:
            for target in (post, comment):
                if target is not None:
                    target.deleted_at = now
        elif action_type == ModerationActionType.RESTORE:
            for target in (post, comment):
                if target is not None:
                    target.deleted_at = None
        elif action_type in SUSPENDING_ACTIONS:
            member.status = AccountStatus.SUSPENDED

        if action_type == ModerationActionType.WARN:
            await self._notify_member(
                member.id,
                MODERATION_WARNING,
                subject="You received a warning from the moderators",
                body=action_reason,
            )
        else:
            await self._notify_member(
                member.id,
                MODERATION_ACTION,
                subject=f"Moderation action: {action_type.value}",
                body=action_reason,
            )

        if report is not None:
            report.status = ReportStatus.RESOLVED
            report.moderation_action_id = action.id

        await self._session.flush()
        await self._audit.record_for(
            principal,
            f"moderation_{action_type.value}",
            target_object=f"moderation_action:{action.id}",
            description=action_reason,
        )
        logger.info(
            "Moderation action taken",
            extra={"action_id": str(action.id), "action_type": action_type.value},
        )
        return action

    async def get_action(self, action_id: UUID) -> ModerationAction:
        action = await self._session.get(ModerationAction, action_id)
        if action is None or action.deleted_at is not None:
            raise NotFoundError("Moderation action", action_id)
        return action

    async def search_actions(self, filters: ActionFilters) -> Page[ModerationAction]:
        stmt = select(ModerationAction).where(ModerationAction.deleted_at.is_(None))
        if filters.moderator_id is not None:
            stmt = stmt.where(ModerationAction.moderator_id == filters.moderator_id)
        if filters.target_member_id is not None:
            stmt = stmt.where(ModerationAction.target_member_id == filters.target_member_id)
        if filters.action_type is not None:
            stmt = stmt.where(ModerationAction.action_type == filters.action_type)
        if filters.status is not None:
            stmt = stmt.where(ModerationAction.status == filters.status)
        if filters.created_from is not None:
            stmt = stmt.where(ModerationAction.created_at >= filters.created_from)
        if filters.created_to is not None:
            stmt = stmt.where(ModerationAction.created_at <= filters.created_to)

        params = page_params(filters.page, filters.limit, self._policy)
        order = parse_sort(filters.sort, self.ACTION_SORT_FIELDS, "created_at")
        rows, pagination = await paginate(
            self._session, stmt, params, [order, ModerationAction.id]
        )
        return Page(pagination=pagination, data=rows)

    async def _has_active_suspension(self, member_id: UUID) -> bool:
        result = await self._session.execute(
            select(ModerationAction.id)
            .where(
                ModerationAction.target_member_id == member_id,
                ModerationAction.action_type.in_(SUSPENDING_ACTIONS),
                ModerationAction.status == ModerationActionStatus.ACTIVE,
                ModerationAction.deleted_at.is_(None),
            )
            .limit(1)
        )
        return result.first() is not None

    async def _revoke(self, action: ModerationAction) -> None:
        action.status = ModerationActionStatus.REVOKED
        action.revoked_at = utcnow()
        if action.action_type in SUSPENDING_ACTIONS and action.target_member_id is not None:
            member = await self._session.get(Member, action.target_member_id)
            if (
                member is not None
                and member.status == AccountStatus.SUSPENDED
                and not await self._has_active_suspension(action.target_member_id)
            ):
                member.status = AccountStatus.ACTIVE
        await self._session.flush()

    async def revoke_action(self, principal: Principal, action_id: UUID) -> ModerationAction:
        """Revoke an action, lifting a suspension it caused."""
        principal.require(Permission.CREATE_MODERATION_ACTION)
        action = await self.get_action(action_id)
        if action.status == ModerationActionStatus.REVOKED:
            raise BusinessRuleError("Moderation action already revoked")
        await self._revoke(action)
        await self._audit.record_for(
            principal,
            "moderation_revoke",
            target_object=f"moderation_action:{action.id}",
        )
        return action

    # ------------------------------------------------------------------
    # Appeals
    # ------------------------------------------------------------------

    async def create_appeal(
        self, principal: Principal, action_id: UUID, appeal_text: str
    ) -> Appeal:
        """Appeal an action taken against the caller.

        Raises:
            PermissionDeniedError: If the caller is not the action's target.
            ConflictError: If a pending appeal already exists.
        """
        principal.require(Permission.CREATE_APPEAL)
        action = await self.get_action(action_id)
        if action.target_member_id != principal.member_id:
            raise PermissionDeniedError("You can only appeal actions taken against you")
        if action.status == ModerationActionStatus.REVOKED:
            raise BusinessRuleError("Moderation action already revoked")
        appeal_text = appeal_text.strip()
        if not appeal_text:
            raise ValidationAPIError("Appeal text is required")

        result = await self._session.execute(
            select(Appeal.id).where(
                Appeal.moderation_action_id == action.id,
                Appeal.status == AppealStatus.PENDING,
                Appeal.deleted_at.is_(None),
            )
        )
        if result.first() is not None:
            raise ConflictError("An appeal for this action is already pending")

        appeal = Appeal(
            moderation_action_id=action.id,
            appellant_member_id=principal.member_id,
            appeal_text=appeal_text,
            status=AppealStatus.PENDING,
        )
        self._session.add(appeal)
        await self._session.flush()
        return appeal

    async def get_appeal(self, appeal_id: UUID) -> Appeal:
        appeal = await self._session.get(Appeal, appeal_id)
        if appeal is None or appeal.deleted_at is not None:
            raise NotFoundError("Appeal", appeal_id)
        return appeal

    async def decide_appeal(
        self,
        principal: Principal,
        appeal_id: UUID,
        *,
        status: AppealStatus,
        decision_reason: str | None = None,
    ) -> Appeal:
        """Accept or reject an appeal; accepting revokes the action."""
        principal.require(Permission.MANAGE_APPEALS)
        if status == AppealStatus.PENDING:
            raise ValidationAPIError("Decision must be accepted or rejected")
        appeal = await self.get_appeal(appeal_id)
        if appeal.status != AppealStatus.PENDING:
            raise BusinessRuleError("Appeal has already been decided")

        appeal.status = status
        appeal.decision_reason = decision_reason
        appeal.decided_by_administrator_id = principal.administrator_id
        appeal.decided_at = utcnow()

        if status == AppealStatus.ACCEPTED:
            action = await self.get_action(appeal.moderation_action_id)
            if action.status != ModerationActionStatus.REVOKED:
                await self._revoke(action)

        await self._session.flush()
        await self._notify_member(
            appeal.appellant_member_id,
            APPEAL_DECISION,
            subject=f"Your appeal was {status.value}",
            body=decision_reason or "",
        )
        await self._audit.record_for(
            principal,
            "appeal_decision",
            target_object=f"appeal:{appeal.id}",
            description=status.value,
        )
        return appeal

    async def list_appeals(self, filters: AppealFilters) -> Page[Appeal]:
        stmt = select(Appeal).where(Appeal.deleted_at.is_(None))
        if filters.appellant_member_id is not None:
            stmt = stmt.where(Appeal.appellant_member_id == filters.appellant_member_id)
        if filters.status is not None:
            stmt = stmt.where(Appeal.status == filters.status)
        if filters.moderation_action_id is not None:
            stmt = stmt.where(Appeal.moderation_action_id == filters.moderation_action_id)

        params = page_params(filters.page, filters.limit, self._policy)
        order = parse_sort(filters.sort, self.APPEAL_SORT_FIELDS, "created_at")
        rows, pagination = await paginate(self._session, stmt, params, [order, Appeal.id])
        return Page(pagination=pagination, data=rows)
