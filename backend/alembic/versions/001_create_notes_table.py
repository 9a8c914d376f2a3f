"""Create notes table

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Creates the `notes` table and its created_at index.
How:   Integer identity key, TIMESTAMP WITH TIME ZONE for both timestamps,
       both defaulting to CURRENT_TIMESTAMP.

Rollback: downgrade() drops the table (all notes are lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the notes table and the index backing the newest-first list."""
    op.create_table(
        "notes",

        sa.Column(
            "id",
            sa.Integer(),
            autoincrement=True,
            nullable=False,
            comment="Store-assigned identifier, never reused",
        ),

        sa.Column(
            "title",
            sa.String(255),
            nullable=False,
            comment="Trimmed title, 1-255 characters",
        ),

        sa.Column(
            "content",
            sa.Text(),
            nullable=False,
            comment="Note body, stored verbatim",
        ),

        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When this note was created (UTC)",
        ),

        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="Last modification (UTC); equals created_at until the first update",
        ),

        sa.PrimaryKeyConstraint("id"),
    )

    # GET /api/notes orders by created_at DESC
    op.create_index(
        "idx_notes_created_at",
        "notes",
        [sa.text("created_at DESC")],
    )


def downgrade() -> None:
    op.drop_index("idx_notes_created_at", table_name="notes")
    op.drop_table("notes")
