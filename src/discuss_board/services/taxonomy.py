"""Categories and tags."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import func, select

from discuss_board.core.exceptions import BusinessRuleError, ConflictError, NotFoundError
from discuss_board.db.models.base import utcnow
from discuss_board.db.models.content import Category, Tag

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


class TaxonomyService:
    """Administrator-managed categories and tags."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def _find_category_by_name(self, name: str) -> Category | None:
        result = await self._session.execute(
            select(Category).where(func.lower(Category.name) == name.lower())
        )
        return result.scalar_one_or_none()

    async def create_category(
        self,
        name: str,
        description: str | None = None,
        *,
        is_active: bool = True,
        sort_order: int = 0,
    ) -> Category:
        name = name.strip()
        if not name:
            raise BusinessRuleError("Category name must not be empty")
        existing = await self._find_category_by_name(name)
        if existing is not None:
            raise ConflictError(f"Category already exists: {name}")

        category = Category(
            name=name,
            description=description,
            is_active=is_active,
            sort_order=sort_order,
        )
        self._session.add(category)
        await self._session.flush()
        logger.info("Category created", extra={"category_id": str(category.id)})
        return category

    async def get_category(self, category_id: UUID) -> Category:
        category = await self._session.get(Category, category_id)
        if category is None or category.deleted_at is not None:
            raise NotFoundError("Category", category_id)
        return category

    async def update_category(
        self,
        category_id: UUID,
        *,
        name: str | None = None,
        description: str | None = None,
        is_active: bool | None = None,
        sort_order: int | None = None,
    ) -> Category:
        category = await self.get_category(category_id)
        if name is not None:
            name = name.strip()
            if not name:
                raise BusinessRuleError("Category name must not be empty")
            other = await self._find_category_by_name(name)
            if other is not None and other.id != category.id:
                raise ConflictError(f"Category already exists: {name}")
            category.name = name
        if description is not None:
            category.description = description
        if is_active is not None:
            category.is_active = is_active
        if sort_order is not None:
            category.sort_order = sort_order
        await self._session.flush()
        return category

    async def delete_category(self, category_id: UUID) -> None:
        category = await self.get_category(category_id)
        category.deleted_at = utcnow()
        category.is_active = False
        await self._session.flush()

    async def list_categories(self, *, include_inactive: bool = False) -> list[Category]:
        stmt = select(Category).where(Category.deleted_at.is_(None))
        if not include_inactive:
            stmt = stmt.where(Category.is_active.is_(True))
        stmt = stmt.order_by(Category.sort_order, Category.name)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    async def create_tag(self, label: str) -> Tag:
        label = label.strip()
        if not label:
            raise BusinessRuleError("Tag label must not be empty")
        result = await self._session.execute(
            select(Tag).where(func.lower(Tag.label) == label.lower())
        )
        if result.scalar_one_or_none() is not None:
            raise ConflictError(f"Tag already exists: {label}")

        tag = Tag(label=label)
        self._session.add(tag)
        await self._session.flush()
        return tag

    async def list_tags(self, search: str | None = None) -> list[Tag]:
        stmt = select(Tag)
        if search:
            stmt = stmt.where(Tag.label.icontains(search, autoescape=True))
        result = await self._session.execute(stmt.order_by(Tag.label))
        return list(result.scalars().all())

    async def get_tags(self, tag_ids: list[UUID]) -> list[Tag]:
        """Load tags by id, failing if any is missing."""
        if not tag_ids:
            return []
        unique_ids = list(dict.fromkeys(tag_ids))
        result = await self._session.execute(select(Tag).where(Tag.id.in_(unique_ids)))
        tags = list(result.scalars().all())
        found = {tag.id for tag in tags}
        missing = [str(tag_id) for tag_id in unique_ids if tag_id not in found]
        if missing:
            raise NotFoundError("Tag", ", ".join(missing))
        return tags
