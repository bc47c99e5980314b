"""Pagination and sorting helpers shared by the search endpoints.

Every list endpoint answers with ``{pagination, data}`` where
``pagination`` is ``{current, limit, records, pages}``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqlalchemy import func, select

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from sqlalchemy import Select
    from sqlalchemy.ext.asyncio import AsyncSession

    from discuss_board.core.config import ContentPolicySettings

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class PageParams:
    """Normalized page number and page size."""

    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True, slots=True)
class Pagination:
    """Pagination block returned with every page."""

    current: int
    limit: int
    records: int
    pages: int

    @classmethod
    def build(cls, params: PageParams, records: int) -> Pagination:
        pages = math.ceil(records / params.limit) if records else 0
        return cls(current=params.page, limit=params.limit, records=records, pages=pages)


@dataclass(frozen=True, slots=True)
class Page(Generic[T]):
    """One page of results plus its pagination block."""

    pagination: Pagination
    data: list[T]


def page_params(
    page: int | None,
    limit: int | None,
    policy: ContentPolicySettings,
) -> PageParams:
    """Clamp user supplied page and limit values.

    Missing or non-positive values fall back to page 1 and the default page
    size; limits above the configured maximum are capped.
    """
    current = page if page is not None and page >= 1 else 1
    size = limit if limit is not None and limit >= 1 else policy.default_page_size
    size = min(size, policy.max_page_size)
    return PageParams(page=current, limit=size)


def parse_sort(
    sort: str | None,
    allowed: Mapping[str, Any],
    default: str,
    *,
    default_descending: bool = True,
) -> Any:
    """Translate a ``field``, ``field:asc``, ``field:desc`` or ``-field`` sort key.

    Args:
        sort: Raw sort string from the request.
        allowed: Mapping of public field names to ORM columns.
        default: Field used when ``sort`` is empty or not allowed.
        default_descending: Direction used when none is given.

    Returns:
        An ORDER BY clause element.
    """
    field = default
    descending = default_descending

    if sort:
        raw = sort.strip()
        direction: str | None = None
        if raw.startswith("-"):
            raw, direction = raw[1:], "desc"
        elif ":" in raw:
            raw, direction = raw.split(":", 1)
        raw = raw.strip()
        if raw in allowed:
            field = raw
            direction = (direction or "").strip().lower()
            if direction in ("asc", "desc"):
                descending = direction == "desc"
        # Unknown fields and directions keep the defaults

    column = allowed[field]
    return column.desc() if descending else column.asc()


async def paginate(
    session: AsyncSession,
    stmt: Select,
    params: PageParams,
    order_by: Sequence[Any],
) -> tuple[list[Any], Pagination]:
    """Run a count and a page query for ``stmt``.

    Returns:
        Tuple of (rows, pagination).
    """
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    records = (await session.execute(count_stmt)).scalar_one()

    page_stmt = stmt.order_by(*order_by).offset(params.offset).limit(params.limit)
    rows = list((await session.execute(page_stmt)).scalars().all())

    return rows, Pagination.build(params, records)
