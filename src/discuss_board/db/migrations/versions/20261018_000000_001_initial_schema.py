"""Initial schema with all board tables.

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

Creates all tables for Discuss Board:
- user_accounts, members, moderators, administrators (accounts)
- consent_records, jwt_sessions, verification_tokens (auth)
- categories, tags, posts, post_tags, comments, edit histories (content)
- post_reactions, comment_reactions, polls, poll_options, poll_votes,
  attachments (participation)
- forbidden_words, moderation_actions, content_reports, appeals (moderation)
- notifications, notification_preferences, subscriptions (notifications)
- audit_logs, export_logs (compliance)
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# Revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ENUMS: dict[str, tuple[str, ...]] = {
    "account_status": ("pending", "active", "suspended", "banned"),
    "role_status": ("active", "revoked"),
    "consent_action": ("granted", "withdrawn"),
    "token_purpose": ("email_verification", "password_reset"),
    "post_status": ("published", "hidden"),
    "reaction_type": ("like", "dislike"),
    "report_content_type": ("post", "comment"),
    "report_status": ("pending", "under_review", "resolved", "dismissed"),
    "moderation_action_type": (
        "warn",
        "mute",
        "remove",
        "edit",
        "restrict",
        "restore",
        "escalate",
    ),
    "moderation_action_status": ("active", "revoked"),
    "appeal_status": ("pending", "accepted", "rejected"),
    "notification_frequency": ("immediate", "daily", "weekly"),
    "export_type": ("profile", "content", "all"),
    "export_status": ("pending", "processing", "completed", "failed"),
    "actor_type": ("member", "moderator", "administrator", "system"),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _id() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False)


def _timestamps(*, soft_delete: bool = True) -> list[sa.Column]:
    columns = [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]
    if soft_delete:
        columns.append(sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True))
    return columns


def _fk(table: str, column: str, target: str, ondelete: str = "CASCADE") -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(
        [column],
        [f"{target}.id"],
        name=op.f(f"fk_{table}_{column}_{target}"),
        ondelete=ondelete,
    )


def upgrade() -> None:
    """Apply migration: Initial schema with all board tables."""
    # Create enum types first
    bind = op.get_bind()
    for name in ENUMS:
        _enum(name).create(bind, checkfirst=True)

    uuid_type = postgresql.UUID(as_uuid=True)

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------
    op.create_table(
        "user_accounts",
        _id(),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("status", _enum("account_status"), nullable=False),
        sa.Column("email_verified", sa.Boolean(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_user_accounts")),
        sa.UniqueConstraint("email", name=op.f("uq_user_accounts_email")),
    )

    op.create_table(
        "members",
        _id(),
        sa.Column("user_account_id", uuid_type, nullable=False),
        sa.Column("nickname", sa.String(100), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("status", _enum("account_status"), nullable=False),
        *_timestamps(),
        _fk("members", "user_account_id", "user_accounts"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_members")),
        sa.UniqueConstraint("user_account_id", name=op.f("uq_members_user_account_id")),
        sa.UniqueConstraint("nickname", name=op.f("uq_members_nickname")),
    )

    op.create_table(
        "administrators",
        _id(),
        sa.Column("member_id", uuid_type, nullable=False),
        sa.Column("escalated_by_administrator_id", uuid_type, nullable=True),
        sa.Column("status", _enum("role_status"), nullable=False),
        sa.Column("escalated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        _fk("administrators", "member_id", "members"),
        _fk("administrators", "escalated_by_administrator_id", "administrators", "SET NULL"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_administrators")),
        sa.UniqueConstraint("member_id", name=op.f("uq_administrators_member_id")),
    )

    op.create_table(
        "moderators",
        _id(),
        sa.Column("member_id", uuid_type, nullable=False),
        sa.Column("assigned_by_administrator_id", uuid_type, nullable=True),
        sa.Column("status", _enum("role_status"), nullable=False),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        _fk("moderators", "member_id", "members"),
        _fk("moderators", "assigned_by_administrator_id", "administrators", "SET NULL"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_moderators")),
        sa.UniqueConstraint("member_id", name=op.f("uq_moderators_member_id")),
    )

    op.create_table(
        "consent_records",
        _id(),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("user_account_id", uuid_type, nullable=False),
        sa.Column("consent_type", sa.String(50), nullable=False),
        sa.Column("consent_action", _enum("consent_action"), nullable=False),
        sa.Column("policy_version", sa.String(50), nullable=False),
        _fk("consent_records", "user_account_id", "user_accounts"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_consent_records")),
    )
    op.create_index(
        "ix_consent_records_account_type",
        "consent_records",
        ["user_account_id", "consent_type"],
        unique=False,
    )

    op.create_table(
        "jwt_sessions",
        _id(),
        sa.Column("user_account_id", uuid_type, nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("jwt_id", sa.String(64), nullable=False),
        sa.Column("refresh_token_hash", sa.String(64), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("device_info", sa.String(255), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        *_timestamps(),
        _fk("jwt_sessions", "user_account_id", "user_accounts"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_jwt_sessions")),
        sa.UniqueConstraint("jwt_id", name=op.f("uq_jwt_sessions_jwt_id")),
    )
    op.create_index(
        "ix_jwt_sessions_user_account_id", "jwt_sessions", ["user_account_id"], unique=False
    )

    op.create_table(
        "verification_tokens",
        _id(),
        sa.Column("user_account_id", uuid_type, nullable=False),
        sa.Column("purpose", _enum("token_purpose"), nullable=False),
        sa.Column("token_hash", sa.String(64), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(soft_delete=False),
        _fk("verification_tokens", "user_account_id", "user_accounts"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_verification_tokens")),
        sa.UniqueConstraint("token_hash", name=op.f("uq_verification_tokens_token_hash")),
    )

    # -------------------------------------------------------------------------
    # Content
    # -------------------------------------------------------------------------
    op.create_table(
        "categories",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_categories")),
        sa.UniqueConstraint("name", name=op.f("uq_categories_name")),
    )

    op.create_table(
        "tags",
        _id(),
        sa.Column("label", sa.String(50), nullable=False),
        *_timestamps(soft_delete=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_tags")),
        sa.UniqueConstraint("label", name=op.f("uq_tags_label")),
    )

    op.create_table(
        "posts",
        _id(),
        sa.Column("author_member_id", uuid_type, nullable=False),
        sa.Column("category_id", uuid_type, nullable=True),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("status", _enum("post_status"), nullable=False),
        sa.Column("is_locked", sa.Boolean(), nullable=False),
        *_timestamps(),
        _fk("posts", "author_member_id", "members"),
        _fk("posts", "category_id", "categories", "SET NULL"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_posts")),
    )
    op.create_index("ix_posts_author_member_id", "posts", ["author_member_id"], unique=False)
    op.create_index("ix_posts_category_id", "posts", ["category_id"], unique=False)
    op.create_index("ix_posts_created_at", "posts", ["created_at"], unique=False)

    op.create_table(
        "post_tags",
        sa.Column("post_id", uuid_type, nullable=False),
        sa.Column("tag_id", uuid_type, nullable=False),
        _fk("post_tags", "post_id", "posts"),
        _fk("post_tags", "tag_id", "tags"),
        sa.PrimaryKeyConstraint("post_id", "tag_id", name=op.f("pk_post_tags")),
    )

    op.create_table(
        "post_edit_histories",
        _id(),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("post_id", uuid_type, nullable=False),
        sa.Column("editor_member_id", uuid_type, nullable=False),
        sa.Column("previous_title", sa.String(300), nullable=False),
        sa.Column("previous_body", sa.Text(), nullable=False),
        _fk("post_edit_histories", "post_id", "posts"),
        _fk("post_edit_histories", "editor_member_id", "members"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_post_edit_histories")),
    )

    op.create_table(
        "comments",
        _id(),
        sa.Column("post_id", uuid_type, nullable=False),
        sa.Column("author_member_id", uuid_type, nullable=False),
        sa.Column("parent_comment_id", uuid_type, nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("nesting_level", sa.Integer(), nullable=False),
        sa.Column("is_locked", sa.Boolean(), nullable=False),
        *_timestamps(),
        _fk("comments", "post_id", "posts"),
        _fk("comments", "author_member_id", "members"),
        _fk("comments", "parent_comment_id", "comments"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_comments")),
    )
    op.create_index("ix_comments_post_id", "comments", ["post_id"], unique=False)
    op.create_index(
        "ix_comments_parent_comment_id", "comments", ["parent_comment_id"], unique=False
    )

    op.create_table(
        "comment_edit_histories",
        _id(),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("comment_id", uuid_type, nullable=False),
        sa.Column("editor_member_id", uuid_type, nullable=False),
        sa.Column("previous_content", sa.Text(), nullable=False),
        _fk("comment_edit_histories", "comment_id", "comments"),
        _fk("comment_edit_histories", "editor_member_id", "members"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_comment_edit_histories")),
    )

    op.create_table(
        "post_reactions",
        _id(),
        sa.Column("post_id", uuid_type, nullable=False),
        sa.Column("member_id", uuid_type, nullable=False),
        sa.Column("reaction_type", _enum("reaction_type"), nullable=False),
        *_timestamps(),
        _fk("post_reactions", "post_id", "posts"),
        _fk("post_reactions", "member_id", "members"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_post_reactions")),
        sa.UniqueConstraint("post_id", "member_id", name="uq_post_reactions_post_member"),
    )

    op.create_table(
        "comment_reactions",
        _id(),
        sa.Column("comment_id", uuid_type, nullable=False),
        sa.Column("member_id", uuid_type, nullable=False),
        sa.Column("reaction_type", _enum("reaction_type"), nullable=False),
        *_timestamps(),
        _fk("comment_reactions", "comment_id", "comments"),
        _fk("comment_reactions", "member_id", "members"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_comment_reactions")),
        sa.UniqueConstraint(
            "comment_id", "member_id", name="uq_comment_reactions_comment_member"
        ),
    )

    op.create_table(
        "attachments",
        _id(),
        sa.Column("uploader_member_id", uuid_type, nullable=False),
        sa.Column("post_id", uuid_type, nullable=True),
        sa.Column("comment_id", uuid_type, nullable=True),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("file_uri", sa.String(1000), nullable=False),
        sa.Column("content_type", sa.String(100), nullable=False),
        sa.Column("size_bytes", sa.BigInteger(), nullable=False),
        *_timestamps(),
        _fk("attachments", "uploader_member_id", "members"),
        _fk("attachments", "post_id", "posts"),
        _fk("attachments", "comment_id", "comments"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_attachments")),
    )

    op.create_table(
        "polls",
        _id(),
        sa.Column("post_id", uuid_type, nullable=False),
        sa.Column("question", sa.String(300), nullable=False),
        sa.Column("multi_choice", sa.Boolean(), nullable=False),
        sa.Column("closes_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        _fk("polls", "post_id", "posts"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_polls")),
    )

    op.create_table(
        "poll_options",
        _id(),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("poll_id", uuid_type, nullable=False),
        sa.Column("label", sa.String(200), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        _fk("poll_options", "poll_id", "polls"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_poll_options")),
    )

    op.create_table(
        "poll_votes",
        _id(),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("poll_id", uuid_type, nullable=False),
        sa.Column("poll_option_id", uuid_type, nullable=False),
        sa.Column("member_id", uuid_type, nullable=False),
        _fk("poll_votes", "poll_id", "polls"),
        _fk("poll_votes", "poll_option_id", "poll_options"),
        _fk("poll_votes", "member_id", "members"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_poll_votes")),
    )
    op.create_index(
        "ix_poll_votes_poll_member", "poll_votes", ["poll_id", "member_id"], unique=False
    )

    # -------------------------------------------------------------------------
    # Moderation
    # -------------------------------------------------------------------------
    op.create_table(
        "forbidden_words",
        _id(),
        sa.Column("expression", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_forbidden_words")),
        sa.UniqueConstraint("expression", name=op.f("uq_forbidden_words_expression")),
    )

    op.create_table(
        "moderation_actions",
        _id(),
        sa.Column("moderator_id", uuid_type, nullable=False),
        sa.Column("target_member_id", uuid_type, nullable=True),
        sa.Column("target_post_id", uuid_type, nullable=True),
        sa.Column("target_comment_id", uuid_type, nullable=True),
        sa.Column("action_type", _enum("moderation_action_type"), nullable=False),
        sa.Column("action_reason", sa.String(500), nullable=False),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column("effective_from", sa.DateTime(timezone=True), nullable=True),
        sa.Column("effective_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", _enum("moderation_action_status"), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        _fk("moderation_actions", "moderator_id", "moderators"),
        _fk("moderation_actions", "target_member_id", "members"),
        _fk("moderation_actions", "target_post_id", "posts"),
        _fk("moderation_actions", "target_comment_id", "comments"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_moderation_actions")),
    )
    op.create_index(
        "ix_moderation_actions_moderator_id", "moderation_actions", ["moderator_id"], unique=False
    )
    op.create_index(
        "ix_moderation_actions_target_member_id",
        "moderation_actions",
        ["target_member_id"],
        unique=False,
    )

    op.create_table(
        "content_reports",
        _id(),
        sa.Column("reporter_member_id", uuid_type, nullable=False),
        sa.Column("content_type", _enum("report_content_type"), nullable=False),
        sa.Column("post_id", uuid_type, nullable=True),
        sa.Column("comment_id", uuid_type, nullable=True),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("status", _enum("report_status"), nullable=False),
        sa.Column("moderation_action_id", uuid_type, nullable=True),
        *_timestamps(),
        _fk("content_reports", "reporter_member_id", "members"),
        _fk("content_reports", "post_id", "posts"),
        _fk("content_reports", "comment_id", "comments"),
        _fk("content_reports", "moderation_action_id", "moderation_actions", "SET NULL"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_content_reports")),
    )
    op.create_index("ix_content_reports_status", "content_reports", ["status"], unique=False)
    op.create_index(
        "ix_content_reports_reporter_member_id",
        "content_reports",
        ["reporter_member_id"],
        unique=False,
    )

    op.create_table(
        "appeals",
        _id(),
        sa.Column("moderation_action_id", uuid_type, nullable=False),
        sa.Column("appellant_member_id", uuid_type, nullable=False),
        sa.Column("appeal_text", sa.Text(), nullable=False),
        sa.Column("status", _enum("appeal_status"), nullable=False),
        sa.Column("decided_by_administrator_id", uuid_type, nullable=True),
        sa.Column("decision_reason", sa.Text(), nullable=True),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        _fk("appeals", "moderation_action_id", "moderation_actions"),
        _fk("appeals", "appellant_member_id", "members"),
        _fk("appeals", "decided_by_administrator_id", "administrators", "SET NULL"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_appeals")),
    )

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------
    op.create_table(
        "notifications",
        _id(),
        sa.Column("recipient_account_id", uuid_type, nullable=False),
        sa.Column("notification_type", sa.String(50), nullable=False),
        sa.Column("subject", sa.String(255), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("link_uri", sa.String(1000), nullable=True),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        _fk("notifications", "recipient_account_id", "user_accounts"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_notifications")),
    )
    op.create_index(
        "ix_notifications_recipient_account_id",
        "notifications",
        ["recipient_account_id"],
        unique=False,
    )

    op.create_table(
        "notification_preferences",
        _id(),
        sa.Column("user_account_id", uuid_type, nullable=False),
        sa.Column("email_enabled", sa.Boolean(), nullable=False),
        sa.Column("push_enabled", sa.Boolean(), nullable=False),
        sa.Column("in_app_enabled", sa.Boolean(), nullable=False),
        sa.Column("frequency", _enum("notification_frequency"), nullable=False),
        sa.Column("categories", sa.JSON(), nullable=False),
        sa.Column("mute_until", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(soft_delete=False),
        _fk("notification_preferences", "user_account_id", "user_accounts"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_notification_preferences")),
        sa.UniqueConstraint(
            "user_account_id", name=op.f("uq_notification_preferences_user_account_id")
        ),
    )

    op.create_table(
        "subscriptions",
        _id(),
        sa.Column("member_id", uuid_type, nullable=False),
        sa.Column("post_id", uuid_type, nullable=False),
        *_timestamps(),
        _fk("subscriptions", "member_id", "members"),
        _fk("subscriptions", "post_id", "posts"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_subscriptions")),
        sa.UniqueConstraint("member_id", "post_id", name="uq_subscriptions_member_post"),
    )

    # -------------------------------------------------------------------------
    # Compliance
    # -------------------------------------------------------------------------
    op.create_table(
        "audit_logs",
        _id(),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("actor_type", _enum("actor_type"), nullable=False),
        sa.Column("actor_id", uuid_type, nullable=True),
        sa.Column("action_type", sa.String(100), nullable=False),
        sa.Column("target_object", sa.String(255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_audit_logs")),
    )
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"], unique=False)
    op.create_index("ix_audit_logs_action_type", "audit_logs", ["action_type"], unique=False)

    op.create_table(
        "export_logs",
        _id(),
        sa.Column("requester_member_id", uuid_type, nullable=False),
        sa.Column("export_type", _enum("export_type"), nullable=False),
        sa.Column("status", _enum("export_status"), nullable=False),
        sa.Column("file_uri", sa.String(1000), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        _fk("export_logs", "requester_member_id", "members"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_export_logs")),
    )


def downgrade() -> None:
    """Revert migration: Initial schema with all board tables."""
    # Drop tables in reverse order (respecting foreign key dependencies)
    op.drop_table("export_logs")
    op.drop_table("audit_logs")
    op.drop_table("subscriptions")
    op.drop_table("notification_preferences")
    op.drop_table("notifications")
    op.drop_table("appeals")
    op.drop_table("content_reports")
    op.drop_table("moderation_actions")
    op.drop_table("forbidden_words")
    op.drop_table("poll_votes")
    op.drop_table("poll_options")
    op.drop_table("polls")
    op.drop_table("attachments")
    op.drop_table("comment_reactions")
    op.drop_table("post_reactions")
    op.drop_table("comment_edit_histories")
    op.drop_table("comments")
    op.drop_table("post_edit_histories")
    op.drop_table("post_tags")
    op.drop_table("posts")
    op.drop_table("tags")
    op.drop_table("categories")
    op.drop_table("verification_tokens")
    op.drop_table("jwt_sessions")
    op.drop_table("consent_records")
    op.drop_table("moderators")
    op.drop_table("administrators")
    op.drop_table("members")
    op.drop_table("user_accounts")

    # Drop enum types
    for name in reversed(list(ENUMS)):
        op.execute(f"DROP TYPE IF EXISTS {name}")
