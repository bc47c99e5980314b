"""In-app notifications, notification preferences and post subscriptions.

Notifications are written synchronously by the service that triggers them
(comment replies, moderation warnings). The recipient's preferences decide
whether a row is written at all.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import select

from discuss_board.core.config import ContentPolicySettings
from discuss_board.core.exceptions import NotFoundError, PermissionDeniedError
from discuss_board.db.models.base import NotificationFrequency, utcnow
from discuss_board.db.models.content import Post
from discuss_board.db.models.notifications import (
    Notification,
    NotificationPreference,
    Subscription,
)
from discuss_board.services.pagination import Page, page_params, paginate, parse_sort

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

    from discuss_board.services.authz import Principal

logger = logging.getLogger(__name__)

# Notification types
COMMENT_REPLY = "comment_reply"
MODERATION_WARNING = "moderation_warning"
MODERATION_ACTION = "moderation_action"
APPEAL_DECISION = "appeal_decision"


@dataclass(slots=True)
class NotificationFilters:
    """Filters for notification searches."""

    notification_type: str | None = None
    is_read: bool | None = None
    recipient_account_id: UUID | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None
    page: int | None = None
    limit: int | None = None
    sort: str | None = None


class NotificationService:
    """Create, list and manage notifications and delivery preferences."""

    SORT_FIELDS = {
        "created_at": Notification.created_at,
        "notification_type": Notification.notification_type,
        "read_at": Notification.read_at,
    }

    def __init__(
        self, session: AsyncSession, policy: ContentPolicySettings | None = None
    ) -> None:
        self._session = session
        self._policy = policy or ContentPolicySettings()

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    async def notify(
        self,
        recipient_account_id: UUID,
        notification_type: str,
        subject: str,
        body: str,
        link_uri: str | None = None,
    ) -> Notification | None:
        """Write a notification unless the recipient opted out.

        Returns:
            The created notification, or None when preferences suppressed it.
        """
        preference = await self._find_preferences(recipient_account_id)
        if preference is not None:
            if not preference.in_app_enabled:
                return None
            if preference.mute_until is not None and preference.mute_until > utcnow():
                return None
            if preference.categories and notification_type not in preference.categories:
                return None

        notification = Notification(
            recipient_account_id=recipient_account_id,
            notification_type=notification_type,
            subject=subject,
            body=body,
            link_uri=link_uri,
        )
        self._session.add(notification)
        await self._session.flush()

        logger.debug(
            "Notification created",
            extra={
                "notification_id": str(notification.id),
                "notification_type": notification_type,
            },
        )
        return notification

    # ------------------------------------------------------------------
    # Recipient operations
    # ------------------------------------------------------------------

    async def search_own(
        self, principal: Principal, filters: NotificationFilters
    ) -> Page[Notification]:
        filters.recipient_account_id = principal.account_id
        return await self.search(filters)

    async def search(self, filters: NotificationFilters) -> Page[Notification]:
        """Search live notifications; without a recipient filter this spans all accounts."""
        stmt = select(Notification).where(Notification.deleted_at.is_(None))
        if filters.recipient_account_id is not None:
            stmt = stmt.where(Notification.recipient_account_id == filters.recipient_account_id)
        if filters.notification_type:
            stmt = stmt.where(Notification.notification_type == filters.notification_type)
        if filters.is_read is True:
            stmt = stmt.where(Notification.read_at.is_not(None))
        elif filters.is_read is False:
            stmt = stmt.where(Notification.read_at.is_(None))
        if filters.created_from is not None:
            stmt = stmt.where(Notification.created_at >= filters.created_from)
        if filters.created_to is not None:
            stmt = stmt.where(Notification.created_at <= filters.created_to)

        params = page_params(filters.page, filters.limit, self._policy)
        order = parse_sort(filters.sort, self.SORT_FIELDS, "created_at")
        rows, pagination = await paginate(self._session, stmt, params, [order, Notification.id])
        return Page(pagination=pagination, data=rows)

    async def get_own(self, principal: Principal, notification_id: UUID) -> Notification:
        notification = await self._session.get(Notification, notification_id)
        if notification is None or notification.deleted_at is not None:
            raise NotFoundError("Notification", notification_id)
        if notification.recipient_account_id != principal.account_id:
            raise PermissionDeniedError("You can only access your own notifications")
        return notification

    async def mark_read(self, principal: Principal, notification_id: UUID) -> Notification:
        notification = await self.get_own(principal, notification_id)
        if notification.read_at is None:
            notification.read_at = utcnow()
            await self._session.flush()
        return notification

    async def delete(self, principal: Principal, notification_id: UUID) -> None:
        notification = await self.get_own(principal, notification_id)
        notification.deleted_at = utcnow()
        await self._session.flush()

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    async def _find_preferences(self, account_id: UUID) -> NotificationPreference | None:
        result = await self._session.execute(
            select(NotificationPreference).where(
                NotificationPreference.user_account_id == account_id
            )
        )
        return result.scalar_one_or_none()

    async def get_preferences(self, principal: Principal) -> NotificationPreference:
        """Return preferences, creating the defaults on first access."""
        preference = await self._find_preferences(principal.account_id)
        if preference is None:
            preference = NotificationPreference(
                user_account_id=principal.account_id,
                email_enabled=True,
                push_enabled=False,
                in_app_enabled=True,
                frequency=NotificationFrequency.IMMEDIATE,
                categories=[],
            )
            self._session.add(preference)
            await self._session.flush()
        return preference

    async def update_preferences(
        self,
        principal: Principal,
        *,
        email_enabled: bool | None = None,
        push_enabled: bool | None = None,
        in_app_enabled: bool | None = None,
        frequency: NotificationFrequency | None = None,
        categories: list[str] | None = None,
        mute_until: datetime | None = None,
        clear_mute: bool = False,
    ) -> NotificationPreference:
        preference = await self.get_preferences(principal)
        if email_enabled is not None:
            preference.email_enabled = email_enabled
        if push_enabled is not None:
            preference.push_enabled = push_enabled
        if in_app_enabled is not None:
            preference.in_app_enabled = in_app_enabled
        if frequency is not None:
            preference.frequency = frequency
        if categories is not None:
            preference.categories = sorted(set(categories))
        if clear_mute:
            preference.mute_until = None
        elif mute_until is not None:
            preference.mute_until = mute_until
        await self._session.flush()

        logger.info(
            "Notification preferences updated",
            extra={"account_id": str(principal.account_id)},
        )
        return preference

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    async def subscribe(self, member_id: UUID, post_id: UUID) -> Subscription:
        """Subscribe to a post; repeated calls return the same row."""
        post = await self._session.get(Post, post_id)
        if post is None or post.deleted_at is not None:
            raise NotFoundError("Post", post_id)

        result = await self._session.execute(
            select(Subscription).where(
                Subscription.member_id == member_id,
                Subscription.post_id == post_id,
            )
        )
        subscription = result.scalar_one_or_none()
        if subscription is not None:
            if subscription.deleted_at is not None:
                subscription.deleted_at = None
                await self._session.flush()
            return subscription

        subscription = Subscription(member_id=member_id, post_id=post_id)
        self._session.add(subscription)
        await self._session.flush()
        return subscription

    async def unsubscribe(self, member_id: UUID, post_id: UUID) -> None:
        result = await self._session.execute(
            select(Subscription).where(
                Subscription.member_id == member_id,
                Subscription.post_id == post_id,
                Subscription.deleted_at.is_(None),
            )
        )
        subscription = result.scalar_one_or_none()
        if subscription is None:
            raise NotFoundError("Subscription", post_id)
        subscription.deleted_at = utcnow()
        await self._session.flush()

    async def list_subscriptions(
        self, member_id: UUID, page: int | None = None, limit: int | None = None
    ) -> Page[Subscription]:
        stmt = select(Subscription).where(
            Subscription.member_id == member_id,
            Subscription.deleted_at.is_(None),
        )
        params = page_params(page, limit, self._policy)
        rows, pagination = await paginate(
            self._session, stmt, params, [Subscription.created_at.desc(), Subscription.id]
        )
        return Page(pagination=pagination, data=rows)

    async def subscriber_member_ids(self, post_id: UUID) -> list[UUID]:
        result = await self._session.execute(
            select(Subscription.member_id).where(
                Subscription.post_id == post_id,
                Subscription.deleted_at.is_(None),
            )
        )
        return list(result.scalars().all())
