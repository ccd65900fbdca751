"""initial: campaigns, social_posts

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_EMPTY_LIST = sa.text("'[]'::jsonb")


def upgrade() -> None:
    op.create_table(
        "campaigns",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("truck_id", sa.String(64), nullable=False),
        sa.Column("owner_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("status", sa.String(32), server_default="draft", nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("target_reach", sa.Integer(), nullable=True),
        sa.Column("target_engagement", sa.Integer(), nullable=True),
        sa.Column("target_sales", sa.Float(), nullable=True),
        sa.Column("target_new_customers", sa.Integer(), nullable=True),
        sa.Column("budget_total", sa.Float(), nullable=True),
        sa.Column("budget_spent", sa.Float(), nullable=True),
        sa.Column("budget_currency", sa.String(8), server_default="USD", nullable=False),
        sa.Column("platforms", postgresql.JSONB(), server_default=_EMPTY_LIST, nullable=False),
        sa.Column("hashtags", postgresql.JSONB(), server_default=_EMPTY_LIST, nullable=False),
        sa.Column("keywords", postgresql.JSONB(), server_default=_EMPTY_LIST, nullable=False),
        sa.Column("promotion", postgresql.JSONB(), nullable=True),
        sa.Column("contest", postgresql.JSONB(), nullable=True),
        sa.Column("total_posts", sa.Integer(), server_default="0", nullable=False),
        sa.Column("total_reach", sa.Integer(), server_default="0", nullable=False),
        sa.Column("total_engagement", sa.Integer(), server_default="0", nullable=False),
        sa.Column("total_clicks", sa.Integer(), server_default="0", nullable=False),
        sa.Column("conversion_rate", sa.Float(), server_default="0", nullable=False),
        sa.Column("roi", sa.Float(), server_default="0", nullable=False),
        sa.Column("new_followers", sa.Integer(), server_default="0", nullable=False),
        sa.Column("analytics_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("post_ids", postgresql.JSONB(), server_default=_EMPTY_LIST, nullable=False),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_campaigns_truck_id", "campaigns", ["truck_id"])
    op.create_index(
        "ix_campaigns_truck_status_window",
        "campaigns",
        ["truck_id", "status", "start_date", "end_date"],
    )

    op.create_table(
        "social_posts",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("truck_id", sa.String(64), nullable=False),
        sa.Column("owner_id", sa.String(64), nullable=False),
        sa.Column("text", sa.Text(), nullable=True),
        sa.Column("hashtags", postgresql.JSONB(), server_default=_EMPTY_LIST, nullable=False),
        sa.Column("mentions", postgresql.JSONB(), server_default=_EMPTY_LIST, nullable=False),
        sa.Column("images", postgresql.JSONB(), server_default=_EMPTY_LIST, nullable=False),
        sa.Column("link", sa.String(2048), nullable=True),
        sa.Column("status", sa.String(32), server_default="draft", nullable=False),
        sa.Column("scheduled_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("published_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("platforms", postgresql.JSONB(), server_default=_EMPTY_LIST, nullable=False),
        sa.Column("is_template", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("template_name", sa.String(255), nullable=True),
        sa.Column("template_category", sa.String(64), nullable=True),
        sa.Column("impressions", sa.Integer(), server_default="0", nullable=False),
        sa.Column("reach", sa.Integer(), server_default="0", nullable=False),
        sa.Column("engagement", sa.Integer(), server_default="0", nullable=False),
        sa.Column("likes", sa.Integer(), server_default="0", nullable=False),
        sa.Column("comments", sa.Integer(), server_default="0", nullable=False),
        sa.Column("shares", sa.Integer(), server_default="0", nullable=False),
        sa.Column("saves", sa.Integer(), server_default="0", nullable=False),
        sa.Column("clicks", sa.Integer(), server_default="0", nullable=False),
        sa.Column("analytics_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ai_generated", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("ai_prompt", sa.Text(), nullable=True),
        sa.Column("campaign_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("campaign_name", sa.String(255), nullable=True),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_social_posts_truck_id", "social_posts", ["truck_id"])
    op.create_index("ix_social_posts_campaign_id", "social_posts", ["campaign_id"])
    op.create_index(
        "ix_social_posts_truck_status_scheduled",
        "social_posts",
        ["truck_id", "status", "scheduled_time"],
    )
    op.create_index("ix_social_posts_truck_template", "social_posts", ["truck_id", "is_template"])


def downgrade() -> None:
    op.drop_index("ix_social_posts_truck_template", table_name="social_posts")
    op.drop_index("ix_social_posts_truck_status_scheduled", table_name="social_posts")
    op.drop_index("ix_social_posts_campaign_id", table_name="social_posts")
    op.drop_index("ix_social_posts_truck_id", table_name="social_posts")
    op.drop_table("social_posts")
    op.drop_index("ix_campaigns_truck_status_window", table_name="campaigns")
    op.drop_index("ix_campaigns_truck_id", table_name="campaigns")
    op.drop_table("campaigns")
