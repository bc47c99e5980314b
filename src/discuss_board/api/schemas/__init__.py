"""Pydantic schemas for the Discuss Board API.

This package contains request/response schemas organized by API namespace.
"""

from discuss_board.api.schemas.common import (
    MessageResponse,
    PageQuery,
    PageResponse,
    PaginationSchema,
    page_response,
)

__all__ = [
    "MessageResponse",
    "PageQuery",
    "PageResponse",
    "PaginationSchema",
    "page_response",
]
