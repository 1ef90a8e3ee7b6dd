"""Initial schema: users, sessions, audit, content, comments, messages, registrations.

Revision ID: a0c1d2e3f4a5
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "a0c1d2e3f4a5"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _content_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("creator_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(64), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(32), nullable=False, server_default="aspirant"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("display_name", sa.String(128), nullable=True),
        sa.Column("profile_image", sa.String(512), nullable=True),
        sa.Column("department", sa.String(128), nullable=True),
        sa.Column("year", sa.String(16), nullable=True),
        sa.Column("role_title", sa.String(128), nullable=True),
        sa.Column("tags", sa.String(255), nullable=True),
        sa.Column("linkedin", sa.String(512), nullable=True),
        sa.Column("github", sa.String(512), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.UniqueConstraint("username"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("idx_users_role", "users", ["role"])

    op.create_table(
        "user_sessions",
        sa.Column("token", sa.String(128), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_user_sessions_user_id", "user_sessions", ["user_id"])
    op.create_index("idx_user_sessions_expires_at", "user_sessions", ["expires_at"])

    op.create_table(
        "audit_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("request_id", sa.String(64), nullable=True),
        sa.Column("client_ip", sa.String(64), nullable=True),
        sa.Column("actor_user_id", sa.Integer(), nullable=True),
        sa.Column("actor_username", sa.String(64), nullable=True),
        sa.Column("action", sa.String(128), nullable=False),
        sa.Column("entity_type", sa.String(128), nullable=True),
        sa.Column("entity_id", sa.String(128), nullable=True),
        sa.Column("reason", sa.String(512), nullable=True),
        sa.Column("metadata_json", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["actor_user_id"], ["users.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("request_id", "id", name="uq_audit_request_id_id"),
    )

    op.create_table(
        "projects",
        *_content_columns(),
        sa.Column("category", sa.String(128), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image", sa.String(512), nullable=True),
        sa.Column("technologies", sa.JSON(), nullable=True),
        sa.Column("team", sa.JSON(), nullable=True),
    )
    op.create_index("ix_projects_creator_id", "projects", ["creator_id"])
    op.create_index("idx_projects_category", "projects", ["category"])

    op.create_table(
        "blogs",
        *_content_columns(),
        sa.Column("excerpt", sa.String(512), nullable=True),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("category", sa.String(128), nullable=True),
        sa.Column("date", sa.String(32), nullable=True),
        sa.Column("image", sa.String(512), nullable=True),
        sa.Column("author", sa.String(128), nullable=True),
    )
    op.create_index("ix_blogs_creator_id", "blogs", ["creator_id"])
    op.create_index("idx_blogs_category", "blogs", ["category"])

    op.create_table(
        "research_items",
        *_content_columns(),
        sa.Column("category", sa.String(128), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image", sa.String(512), nullable=True),
        sa.Column("date", sa.String(32), nullable=True),
        sa.Column("authors", sa.JSON(), nullable=True),
        sa.Column("citations", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_research_items_creator_id", "research_items", ["creator_id"])
    op.create_index("idx_research_items_category", "research_items", ["category"])

    op.create_table(
        "events",
        *_content_columns(),
        sa.Column("type", sa.String(64), nullable=True),
        sa.Column("date", sa.String(32), nullable=True),
        sa.Column("time", sa.String(64), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image", sa.String(512), nullable=True),
    )
    op.create_index("ix_events_creator_id", "events", ["creator_id"])
    op.create_index("idx_events_date", "events", ["date"])

    op.create_table(
        "comments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=True),
        sa.Column("blog_id", sa.Integer(), nullable=True),
        sa.Column("research_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["blog_id"], ["blogs.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["research_id"], ["research_items.id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            "(CASE WHEN project_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN blog_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN research_id IS NULL THEN 0 ELSE 1 END) = 1",
            name="ck_comments_single_target",
        ),
    )
    op.create_index("idx_comments_user", "comments", ["user_id"])
    op.create_index("idx_comments_project", "comments", ["project_id"])
    op.create_index("idx_comments_blog", "comments", ["blog_id"])
    op.create_index("idx_comments_research", "comments", ["research_id"])

    op.create_table(
        "messages",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
    )
    op.create_index("ix_messages_user_id", "messages", ["user_id"])
    op.create_index("idx_messages_created_at", "messages", ["created_at"])

    op.create_table(
        "event_registrations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "event_id", name="uq_event_registrations_user_event"),
    )
    op.create_index("ix_event_registrations_user_id", "event_registrations", ["user_id"])
    op.create_index("idx_event_registrations_event", "event_registrations", ["event_id"])


def downgrade() -> None:
    op.drop_table("event_registrations")
    op.drop_table("messages")
    op.drop_table("comments")
    op.drop_table("events")
    op.drop_table("research_items")
    op.drop_table("blogs")
    op.drop_table("projects")
    op.drop_table("audit_events")
    op.drop_table("user_sessions")
    op.drop_table("users")
