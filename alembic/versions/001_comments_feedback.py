"""Comments and feedback tables

- comments: catalog-entry comments with moderation status, optional author
  identity and the ownership-secret digest
- feedback: site feedback with triage status

Revision ID: 001_comments_feedback
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_comments_feedback"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- comments ---
    op.create_table(
        "comments",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("normalized_key", sa.String(200), nullable=False),
        sa.Column("brand", sa.String(120), nullable=True),
        sa.Column("model", sa.String(120), nullable=True),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("body", sa.Text, nullable=False),
        sa.Column("author_name", sa.String(120), nullable=True),
        sa.Column("author_email", sa.String(254), nullable=True),
        sa.Column("author_id", sa.String(64), nullable=True),
        sa.Column("edit_key_hash", sa.String(64), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_comments_normalized_key", "comments", ["normalized_key"])
    op.create_index("ix_comments_author_email", "comments", ["author_email"])
    op.create_index("ix_comments_author_id", "comments", ["author_id"])
    op.create_index("ix_comments_status", "comments", ["status"])
    op.create_index("ix_comments_key_created", "comments", ["normalized_key", "created_at"])

    # --- feedback ---
    op.create_table(
        "feedback",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("category", sa.String(16), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("email", sa.String(254), nullable=True),
        sa.Column("page_url", sa.String(2000), nullable=True),
        sa.Column("user_agent", sa.String(512), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="new"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_feedback_category", "feedback", ["category"])
    op.create_index("ix_feedback_status", "feedback", ["status"])


def downgrade() -> None:
    op.drop_index("ix_feedback_status", table_name="feedback")
    op.drop_index("ix_feedback_category", table_name="feedback")
    op.drop_table("feedback")
    op.drop_index("ix_comments_key_created", table_name="comments")
    op.drop_index("ix_comments_status", table_name="comments")
    op.drop_index("ix_comments_author_id", table_name="comments")
    op.drop_index("ix_comments_author_email", table_name="comments")
    op.drop_index("ix_comments_normalized_key", table_name="comments")
    op.drop_table("comments")
