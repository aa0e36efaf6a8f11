"""Create media table and its FTS5 search index."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "20251019_01"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "media",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("path", sa.String(length=1024), nullable=False),
        sa.Column("thumb", sa.String(length=1024)),
        sa.Column("mime", sa.String(length=255), nullable=False),
        sa.Column("width", sa.Integer()),
        sa.Column("height", sa.Integer()),
        sa.Column("size_bytes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("tags", sa.Text(), nullable=False, server_default=""),
        sa.Column("ocr_text", sa.Text()),
        sa.Column("sha256", sa.String(length=64)),
        sa.Column(
            "processing_status",
            sa.String(length=16),
            nullable=False,
            server_default="processing",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    )
    op.create_index("ix_media_created_at", "media", ["created_at"])
    op.create_index("ix_media_sha256", "media", ["sha256"], unique=True)
    op.execute(
        "CREATE VIRTUAL TABLE IF NOT EXISTS media_fts "
        "USING fts5(id UNINDEXED, ocr_text, tags, path UNINDEXED)"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS media_fts")
    op.drop_index("ix_media_sha256", table_name="media")
    op.drop_index("ix_media_created_at", table_name="media")
    op.drop_table("media")
