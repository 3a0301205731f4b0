"""Create analytics event, popularity and trending tables.

Revision ID: 20261018_0001
Revises: 
Create Date: 2026-10-18

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "search_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("session_id", sa.String(length=64), nullable=False),
        sa.Column("query", sa.Text(), nullable=False),
        sa.Column("results", sa.JSON().with_variant(postgresql.JSONB(), "postgresql"), nullable=False),
        sa.Column("result_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(op.f("ix_search_events_session_id"), "search_events", ["session_id"], unique=False)
    op.create_index(op.f("ix_search_events_occurred_at"), "search_events", ["occurred_at"], unique=False)
    op.create_index("ix_search_events_session_query", "search_events", ["session_id", "query"], unique=False)

    op.create_table(
        "click_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("session_id", sa.String(length=64), nullable=False),
        sa.Column("query", sa.Text(), nullable=False),
        sa.Column("clicked_address", sa.String(length=42), nullable=False),
        sa.Column("result_rank", sa.Integer(), nullable=False),
        sa.Column("result_score", sa.Float(), nullable=True),
        sa.Column("time_to_click_ms", sa.Integer(), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(op.f("ix_click_events_session_id"), "click_events", ["session_id"], unique=False)
    op.create_index(op.f("ix_click_events_query"), "click_events", ["query"], unique=False)
    op.create_index(op.f("ix_click_events_clicked_address"), "click_events", ["clicked_address"], unique=False)
    op.create_index(op.f("ix_click_events_occurred_at"), "click_events", ["occurred_at"], unique=False)
    op.create_index("ix_click_events_query_occurred_at", "click_events", ["query", "occurred_at"], unique=False)

    op.create_table(
        "token_popularity",
        sa.Column("token_address", sa.String(length=42), primary_key=True),
        sa.Column("search_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("click_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("last_searched_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_clicked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "learned_tokens",
        sa.Column("address", sa.String(length=42), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("symbol", sa.String(length=50), nullable=True),
        sa.Column("decimals", sa.Integer(), nullable=False, server_default=sa.text("18")),
        sa.Column("type", sa.String(length=10), nullable=False),
        sa.Column("source", sa.String(length=50), nullable=True),
        sa.Column("popularity_score", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("scan_frequency", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("holder_count", sa.Integer(), nullable=True),
        sa.Column("discovery_timestamp", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("last_seen_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("type IN ('TOKEN', 'NFT')", name="ck_learned_tokens_type"),
    )
    op.create_index(op.f("ix_learned_tokens_type"), "learned_tokens", ["type"], unique=False)
    op.create_index(op.f("ix_learned_tokens_popularity_score"), "learned_tokens", ["popularity_score"], unique=False)

    op.create_table(
        "token_interactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "token_address",
            sa.String(length=42),
            sa.ForeignKey("learned_tokens.address", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("interaction_type", sa.String(length=10), nullable=False),
        sa.Column("session_id", sa.String(length=64), nullable=True),
        sa.Column("query_text", sa.Text(), nullable=True),
        sa.Column("result_position", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "interaction_type IN ('search', 'click', 'select')",
            name="ck_token_interactions_type",
        ),
    )
    op.create_index(op.f("ix_token_interactions_token_address"), "token_interactions", ["token_address"], unique=False)
    op.create_index(
        op.f("ix_token_interactions_interaction_type"), "token_interactions", ["interaction_type"], unique=False
    )

    op.create_table(
        "trending_searches",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("address", sa.String(length=42), nullable=False, unique=True),
        sa.Column("asset_type", sa.String(length=10), nullable=False),
        sa.Column("symbol", sa.String(length=50), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("search_count", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("asset_type IN ('TOKEN', 'NFT')", name="ck_trending_searches_asset_type"),
    )
    op.create_index(op.f("ix_trending_searches_asset_type"), "trending_searches", ["asset_type"], unique=False)
    op.create_index("ix_trending_searches_rank", "trending_searches", ["search_count", "updated_at"], unique=False)

    op.create_table(
        "trending_search_log",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("address", sa.String(length=42), nullable=False),
        sa.Column("asset_type", sa.String(length=10), nullable=False),
        sa.Column("symbol", sa.String(length=50), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("asset_type IN ('TOKEN', 'NFT')", name="ck_trending_search_log_asset_type"),
    )
    op.create_index(op.f("ix_trending_search_log_address"), "trending_search_log", ["address"], unique=False)
    op.create_index(
        "ix_trending_search_log_type_occurred_at", "trending_search_log", ["asset_type", "occurred_at"], unique=False
    )
    op.create_index("ix_trending_search_log_occurred_at", "trending_search_log", ["occurred_at"], unique=False)


def downgrade() -> None:
    op.drop_table("trending_search_log")
    op.drop_table("trending_searches")
    op.drop_table("token_interactions")
    op.drop_table("learned_tokens")
    op.drop_table("token_popularity")
    op.drop_table("click_events")
    op.drop_table("search_events")
