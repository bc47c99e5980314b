"""Pydantic schemas for posts, comments, reactions, polls, attachments and taxonomy."""

from __future__ import annotations

# NOTE: datetime and UUID must remain at runtime for Pydantic validation
from datetime import datetime  # noqa: TC003
from uuid import UUID  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field

from discuss_board.api.schemas.common import PageQuery
from discuss_board.db.models.base import PostStatus, ReactionType

# -----------------------------------------------------------------------------
# Categories and tags
# -----------------------------------------------------------------------------


class CategoryCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    is_active: bool = True
    sort_order: int = 0

    model_config = ConfigDict(extra="forbid")


class CategoryUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = None
    is_active: bool | None = None
    sort_order: int | None = None

    model_config = ConfigDict(extra="forbid")


class CategoryResponse(BaseModel):
    id: UUID
    name: str
    description: str | None = None
    is_active: bool
    sort_order: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TagCreateRequest(BaseModel):
    label: str = Field(..., min_length=1, max_length=50)

    model_config = ConfigDict(extra="forbid")


class TagResponse(BaseModel):
    id: UUID
    label: str

    model_config = ConfigDict(from_attributes=True)


# -----------------------------------------------------------------------------
# Posts
# -----------------------------------------------------------------------------


class PostCreateRequest(BaseModel):
    """New post. Length limits are enforced by the content policy."""

    title: str = Field(..., min_length=1, max_length=300)
    body: str = Field(..., min_length=1)
    category_id: UUID | None = None
    tag_ids: list[UUID] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class PostUpdateRequest(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=300)
    body: str | None = Field(None, min_length=1)
    category_id: UUID | None = None
    tag_ids: list[UUID] | None = None

    model_config = ConfigDict(extra="forbid")


class PostSearchRequest(PageQuery):
    """Search body for ``PATCH /discussBoard/posts``."""

    author_member_id: UUID | None = None
    status: PostStatus | None = None
    category_id: UUID | None = None
    tag_id: UUID | None = None
    keyword: str | None = Field(None, max_length=200)
    created_from: datetime | None = None
    created_to: datetime | None = None


class PostSummary(BaseModel):
    id: UUID
    author_member_id: UUID
    category_id: UUID | None = None
    title: str
    status: PostStatus
    is_locked: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PostResponse(PostSummary):
    body: str
    tags: list[TagResponse] = Field(default_factory=list)


class PostEditHistoryResponse(BaseModel):
    id: UUID
    post_id: UUID
    editor_member_id: UUID
    previous_title: str
    previous_body: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# -----------------------------------------------------------------------------
# Comments
# -----------------------------------------------------------------------------


class CommentCreateRequest(BaseModel):
    content: str = Field(..., min_length=1)
    parent_comment_id: UUID | None = None

    model_config = ConfigDict(extra="forbid")


class CommentUpdateRequest(BaseModel):
    content: str = Field(..., min_length=1)

    model_config = ConfigDict(extra="forbid")


class CommentResponse(BaseModel):
    id: UUID
    post_id: UUID
    author_member_id: UUID
    parent_comment_id: UUID | None = None
    content: str
    nesting_level: int
    is_locked: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommentEditHistoryResponse(BaseModel):
    id: UUID
    comment_id: UUID
    editor_member_id: UUID
    previous_content: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# -----------------------------------------------------------------------------
# Reactions
# -----------------------------------------------------------------------------


class ReactionRequest(BaseModel):
    reaction_type: ReactionType

    model_config = ConfigDict(extra="forbid")


class PostReactionResponse(BaseModel):
    id: UUID
    post_id: UUID
    member_id: UUID
    reaction_type: ReactionType
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommentReactionResponse(BaseModel):
    id: UUID
    comment_id: UUID
    member_id: UUID
    reaction_type: ReactionType
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReactionSummaryResponse(BaseModel):
    likes: int
    dislikes: int

    model_config = ConfigDict(from_attributes=True)


# -----------------------------------------------------------------------------
# Polls
# -----------------------------------------------------------------------------


class PollCreateRequest(BaseModel):
    question: str = Field(..., min_length=1, max_length=300)
    options: list[str] = Field(..., min_length=2, max_length=10)
    multi_choice: bool = False
    closes_at: datetime | None = None

    model_config = ConfigDict(extra="forbid")


class PollUpdateRequest(BaseModel):
    question: str | None = Field(None, min_length=1, max_length=300)
    multi_choice: bool | None = None
    closes_at: datetime | None = None

    model_config = ConfigDict(extra="forbid")


class PollOptionResponse(BaseModel):
    id: UUID
    label: str
    position: int

    model_config = ConfigDict(from_attributes=True)


class PollResponse(BaseModel):
    id: UUID
    post_id: UUID
    question: str
    multi_choice: bool
    closes_at: datetime | None = None
    closed_at: datetime | None = None
    options: list[PollOptionResponse]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VoteRequest(BaseModel):
    option_ids: list[UUID] = Field(..., min_length=1)

    model_config = ConfigDict(extra="forbid")


class VoteResponse(BaseModel):
    id: UUID
    poll_id: UUID
    poll_option_id: UUID
    member_id: UUID
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OptionResultResponse(BaseModel):
    option_id: UUID
    label: str
    votes: int

    model_config = ConfigDict(from_attributes=True)


class PollResultsResponse(BaseModel):
    poll_id: UUID
    question: str
    is_open: bool
    total_votes: int
    options: list[OptionResultResponse]

    model_config = ConfigDict(from_attributes=True)


# -----------------------------------------------------------------------------
# Attachments
# -----------------------------------------------------------------------------


class AttachmentCreateRequest(BaseModel):
    file_name: str = Field(..., min_length=1, max_length=255)
    file_uri: str = Field(..., min_length=1, max_length=1000)
    content_type: str = Field(..., min_length=1, max_length=100)
    size_bytes: int = Field(..., gt=0)

    model_config = ConfigDict(extra="forbid")


class AttachmentUpdateRequest(BaseModel):
    file_name: str | None = Field(None, min_length=1, max_length=255)
    content_type: str | None = Field(None, min_length=1, max_length=100)

    model_config = ConfigDict(extra="forbid")


class AttachmentResponse(BaseModel):
    id: UUID
    uploader_member_id: UUID
    post_id: UUID | None = None
    comment_id: UUID | None = None
    file_name: str
    file_uri: str
    content_type: str
    size_bytes: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
