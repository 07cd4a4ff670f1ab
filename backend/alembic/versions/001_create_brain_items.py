"""Create the brain_items table.

Revision ID: 001_brain_items
Revises:
Create Date: 2026-10-19

- Table: brain_items (text, image and link captures keyed by LINE user id)
- Generated column: search_vector over title and content
- Indexes: owner timeline, type, category, GIN on tags and search_vector
- Triggers: updated_at auto-update
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_brain_items"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ==========================================================================
    # BRAIN ITEMS TABLE
    # ==========================================================================
    op.create_table(
        "brain_items",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=True),
        sa.Column("tags", postgresql.ARRAY(sa.Text()), nullable=False, server_default="{}"),
        sa.Column("category", sa.String(), nullable=True),
        sa.Column("ai_summary", sa.Text(), nullable=True),

        # Link items
        sa.Column("link_url", sa.Text(), nullable=True),
        sa.Column("link_preview", postgresql.JSONB(), nullable=True),

        # Image items
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("thumbnail_url", sa.Text(), nullable=True),
        sa.Column("ocr_text", sa.Text(), nullable=True),

        # Timestamps
        sa.Column("created_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.Column("updated_at", postgresql.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),

        # Full-text search
        sa.Column(
            "search_vector",
            postgresql.TSVECTOR(),
            sa.Computed("to_tsvector('simple', coalesce(title, '') || ' ' || coalesce(content, ''))", persisted=True),
            nullable=True,
        ),

        sa.CheckConstraint("type IN ('text', 'image', 'link')", name="ck_brain_items_type"),
    )

    op.create_index("idx_brain_items_user_created_at", "brain_items", ["user_id", sa.text("created_at DESC")])
    op.create_index("idx_brain_items_type", "brain_items", ["type"])
    op.create_index("idx_brain_items_category", "brain_items", ["category"])
    op.create_index("idx_brain_items_tags", "brain_items", ["tags"], postgresql_using="gin")
    op.create_index("idx_brain_items_search_vector", "brain_items", ["search_vector"], postgresql_using="gin")

    # ==========================================================================
    # UPDATED_AT TRIGGER
    # ==========================================================================
    op.execute("""
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TRIGGER update_brain_items_updated_at
            BEFORE UPDATE ON brain_items
            FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();
    """)


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS update_brain_items_updated_at ON brain_items")
    op.execute("DROP FUNCTION IF EXISTS update_updated_at_column()")

    op.drop_index("idx_brain_items_search_vector", table_name="brain_items")
    op.drop_index("idx_brain_items_tags", table_name="brain_items")
    op.drop_index("idx_brain_items_category", table_name="brain_items")
    op.drop_index("idx_brain_items_type", table_name="brain_items")
    op.drop_index("idx_brain_items_user_created_at", table_name="brain_items")
    op.drop_table("brain_items")
