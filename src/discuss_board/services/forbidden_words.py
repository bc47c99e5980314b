"""Forbidden word list and the content check used by posts and comments."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import func, select

from discuss_board.core.config import ContentPolicySettings
from discuss_board.core.exceptions import BusinessRuleError, ConflictError, NotFoundError
from discuss_board.db.models.base import utcnow
from discuss_board.db.models.moderation import ForbiddenWord
from discuss_board.services.pagination import Page, page_params, paginate, parse_sort

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


def find_forbidden_word(text: str, expressions: list[str]) -> str | None:
    """Return the first expression contained in ``text``, ignoring case."""
    haystack = text.casefold()
    for expression in expressions:
        if expression and expression.casefold() in haystack:
            return expression
    return None


@dataclass(slots=True)
class ForbiddenWordFilters:
    search: str | None = None
    page: int | None = None
    limit: int | None = None
    sort: str | None = None


class ForbiddenWordService:
    """CRUD for forbidden expressions plus content screening."""

    SORT_FIELDS = {
        "created_at": ForbiddenWord.created_at,
        "expression": ForbiddenWord.expression,
    }

    def __init__(
        self, session: AsyncSession, policy: ContentPolicySettings | None = None
    ) -> None:
        self._session = session
        self._policy = policy or ContentPolicySettings()

    async def active_expressions(self) -> list[str]:
        result = await self._session.execute(
            select(ForbiddenWord.expression).where(ForbiddenWord.deleted_at.is_(None))
        )
        return list(result.scalars().all())

    async def check_text(self, *texts: str) -> None:
        """Reject text containing any live forbidden expression.

        Raises:
            BusinessRuleError: Naming the first matching expression.
        """
        expressions = await self.active_expressions()
        if not expressions:
            return
        for text in texts:
            match = find_forbidden_word(text, expressions)
            if match is not None:
                raise BusinessRuleError(
                    f"Content contains forbidden word: {match}",
                    error="forbidden_word",
                    detail={"expression": match},
                )

    async def _find_by_expression(self, expression: str) -> ForbiddenWord | None:
        result = await self._session.execute(
            select(ForbiddenWord).where(
                func.lower(ForbiddenWord.expression) == expression.lower()
            )
        )
        return result.scalar_one_or_none()

    async def create(self, expression: str, description: str | None = None) -> ForbiddenWord:
        expression = expression.strip()
        if not expression:
            raise BusinessRuleError("Expression must not be empty")

        existing = await self._find_by_expression(expression)
        if existing is not None:
            if existing.deleted_at is None:
                raise ConflictError(f"Forbidden word already exists: {expression}")
            # Revive the soft-deleted row to keep the unique constraint happy
            existing.deleted_at = None
            existing.expression = expression
            existing.description = description
            await self._session.flush()
            return existing

        word = ForbiddenWord(expression=expression, description=description)
        self._session.add(word)
        await self._session.flush()
        logger.info("Forbidden word added", extra={"forbidden_word_id": str(word.id)})
        return word

    async def get(self, word_id: UUID) -> ForbiddenWord:
        word = await self._session.get(ForbiddenWord, word_id)
        if word is None or word.deleted_at is not None:
            raise NotFoundError("Forbidden word", word_id)
        return word

    async def update(
        self,
        word_id: UUID,
        *,
        expression: str | None = None,
        description: str | None = None,
    ) -> ForbiddenWord:
        word = await self.get(word_id)
        if expression is not None:
            expression = expression.strip()
            if not expression:
                raise BusinessRuleError("Expression must not be empty")
            other = await self._find_by_expression(expression)
            if other is not None and other.id != word.id:
                raise ConflictError(f"Forbidden word already exists: {expression}")
            word.expression = expression
        if description is not None:
            word.description = description
        await self._session.flush()
        return word

    async def delete(self, word_id: UUID) -> None:
        word = await self.get(word_id)
        word.deleted_at = utcnow()
        await self._session.flush()
        logger.info("Forbidden word removed", extra={"forbidden_word_id": str(word_id)})

    async def search(self, filters: ForbiddenWordFilters) -> Page[ForbiddenWord]:
        stmt = select(ForbiddenWord).where(ForbiddenWord.deleted_at.is_(None))
        if filters.search:
            stmt = stmt.where(ForbiddenWord.expression.icontains(filters.search, autoescape=True))
        params = page_params(filters.page, filters.limit, self._policy)
        order = parse_sort(filters.sort, self.SORT_FIELDS, "created_at")
        rows, pagination = await paginate(self._session, stmt, params, [order, ForbiddenWord.id])
        return Page(pagination=pagination, data=rows)
