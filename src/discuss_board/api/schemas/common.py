"""Schemas shared by every namespace: pagination and plain messages."""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from discuss_board.services.pagination import Page

T = TypeVar("T")


class PaginationSchema(BaseModel):
    """Pagination block of a list response."""

    current: int = Field(..., description="Current page number (1-based)")
    limit: int = Field(..., description="Page size")
    records: int = Field(..., description="Total matching records")
    pages: int = Field(..., description="Total number of pages")

    model_config = ConfigDict(from_attributes=True)


class PageResponse(BaseModel, Generic[T]):
    """Paginated list response."""

    pagination: PaginationSchema
    data: list[T]


def page_response(page: Page, item_schema: type[BaseModel]) -> dict:
    """Convert a service ``Page`` of ORM rows into response data."""
    return {
        "pagination": PaginationSchema.model_validate(page.pagination),
        "data": [item_schema.model_validate(row) for row in page.data],
    }


class PageQuery(BaseModel):
    """Paging and sorting fields accepted by search bodies."""

    page: int | None = Field(None, description="Page number, defaults to 1")
    limit: int | None = Field(None, description="Page size, capped by the server")
    sort: str | None = Field(
        None,
        description="Sort field, optionally 'field:asc', 'field:desc' or '-field'",
    )


class MessageResponse(BaseModel):
    """Simple acknowledgement."""

    message: str
