"""Content models: categories, tags, posts, comments, reactions, polls, attachments."""

from __future__ import annotations

import uuid  # noqa: TC003 - required at runtime for SQLAlchemy type resolution

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from discuss_board.db.models.base import (
    Base,
    OptionalTimestampTZ,
    PostStatus,
    ReactionType,
    SoftDeleteMixin,
    TimestampMixin,
    TimestampTZ,
    UUIDPrimaryKey,
    enum_type,
    metadata,
)

post_tags = Table(
    "post_tags",
    metadata,
    Column("post_id", Uuid, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Uuid, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Category(SoftDeleteMixin, Base):
    """Top-level grouping of posts."""

    __tablename__ = "categories"

    id: Mapped[UUIDPrimaryKey]
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class Tag(TimestampMixin, Base):
    """Free-form label attached to posts."""

    __tablename__ = "tags"

    id: Mapped[UUIDPrimaryKey]
    label: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)


class Post(SoftDeleteMixin, Base):
    """Discussion thread opened by a member."""

    __tablename__ = "posts"

    id: Mapped[UUIDPrimaryKey]
    author_member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
    )
    category_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[PostStatus] = mapped_column(
        enum_type(PostStatus, "post_status"),
        default=PostStatus.PUBLISHED,
        nullable=False,
    )
    is_locked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    tags: Mapped[list[Tag]] = relationship(
        "Tag",
        secondary=post_tags,
        lazy="selectin",
        order_by="Tag.label",
    )

    __table_args__ = (
        Index("ix_posts_author_member_id", "author_member_id"),
        Index("ix_posts_category_id", "category_id"),
        Index("ix_posts_created_at", "created_at"),
    )


class PostEditHistory(Base):
    """Previous version of a post, written on every edit."""

    __tablename__ = "post_edit_histories"

    id: Mapped[UUIDPrimaryKey]
    created_at: Mapped[TimestampTZ]
    post_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
    )
    editor_member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
    )
    previous_title: Mapped[str] = mapped_column(String(300), nullable=False)
    previous_body: Mapped[str] = mapped_column(Text, nullable=False)


class Comment(SoftDeleteMixin, Base):
    """Comment on a post; replies point at their parent comment."""

    __tablename__ = "comments"

    id: Mapped[UUIDPrimaryKey]
    post_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
    )
    author_member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
    )
    parent_comment_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    # Top-level comments are level 0
    nesting_level: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_locked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (
        Index("ix_comments_post_id", "post_id"),
        Index("ix_comments_parent_comment_id", "parent_comment_id"),
    )


class CommentEditHistory(Base):
    """Previous version of a comment, written on every edit."""

    __tablename__ = "comment_edit_histories"

    id: Mapped[UUIDPrimaryKey]
    created_at: Mapped[TimestampTZ]
    comment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=False,
    )
    editor_member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
    )
    previous_content: Mapped[str] = mapped_column(Text, nullable=False)


class PostReaction(SoftDeleteMixin, Base):
    """Like or dislike on a post, one per member."""

    __tablename__ = "post_reactions"

    id: Mapped[UUIDPrimaryKey]
    post_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
    )
    member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
    )
    reaction_type: Mapped[ReactionType] = mapped_column(
        enum_type(ReactionType, "reaction_type"),
        nullable=False,
    )

    __table_args__ = (UniqueConstraint("post_id", "member_id", name="uq_post_reactions_post_member"),)


class CommentReaction(SoftDeleteMixin, Base):
    """Like or dislike on a comment, one per member."""

    __tablename__ = "comment_reactions"

    id: Mapped[UUIDPrimaryKey]
    comment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=False,
    )
    member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
    )
    reaction_type: Mapped[ReactionType] = mapped_column(
        enum_type(ReactionType, "reaction_type"),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("comment_id", "member_id", name="uq_comment_reactions_comment_member"),
    )


class Attachment(SoftDeleteMixin, Base):
    """File metadata linked to a post or a comment.

    Storage is external; only the URI and descriptive fields are kept.
    """

    __tablename__ = "attachments"

    id: Mapped[UUIDPrimaryKey]
    uploader_member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
    )
    post_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=True,
    )
    comment_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=True,
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_uri: Mapped[str] = mapped_column(String(1000), nullable=False)
    content_type: Mapped[str] = mapped_column(String(100), nullable=False)
    size_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False)


class Poll(SoftDeleteMixin, Base):
    """Poll attached to a post."""

    __tablename__ = "polls"

    id: Mapped[UUIDPrimaryKey]
    post_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
    )
    question: Mapped[str] = mapped_column(String(300), nullable=False)
    multi_choice: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    closes_at: Mapped[OptionalTimestampTZ]
    closed_at: Mapped[OptionalTimestampTZ]

    options: Mapped[list[PollOption]] = relationship(
        "PollOption",
        lazy="selectin",
        order_by="PollOption.position",
        cascade="all, delete-orphan",
    )


class PollOption(Base):
    """Answer choice of a poll."""

    __tablename__ = "poll_options"

    id: Mapped[UUIDPrimaryKey]
    created_at: Mapped[TimestampTZ]
    poll_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("polls.id", ondelete="CASCADE"),
        nullable=False,
    )
    label: Mapped[str] = mapped_column(String(200), nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class PollVote(Base):
    """A member's vote for one option of a poll."""

    __tablename__ = "poll_votes"

    id: Mapped[UUIDPrimaryKey]
    created_at: Mapped[TimestampTZ]
    deleted_at: Mapped[OptionalTimestampTZ]
    poll_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("polls.id", ondelete="CASCADE"),
        nullable=False,
    )
    poll_option_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("poll_options.id", ondelete="CASCADE"),
        nullable=False,
    )
    member_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
    )

    __table_args__ = (Index("ix_poll_votes_poll_member", "poll_id", "member_id"),)
