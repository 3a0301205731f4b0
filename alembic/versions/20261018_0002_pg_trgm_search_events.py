"""Enable pg_trgm and add trigram index on search_events.query.

Revision ID: 20261018_0002
Revises: 20261018_0001
Create Date: 2026-10-18

"""

from __future__ import annotations

from alembic import op


revision = "20261018_0002"
down_revision = "20261018_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    if bind.dialect.name != "postgresql":
        return

    op.execute("CREATE EXTENSION IF NOT EXISTS pg_trgm")

    op.create_index(
        "idx_search_events_query_trgm",
        "search_events",
        ["query"],
        unique=False,
        postgresql_using="gin",
        postgresql_ops={"query": "gin_trgm_ops"},
    )


def downgrade() -> None:
    bind = op.get_bind()
    if bind.dialect.name != "postgresql":
        return

    op.drop_index("idx_search_events_query_trgm", table_name="search_events")
