"""add_custom_notes_table

Revision ID: 0002_add_custom_notes
Revises: 0001_initial_schema
Create Date: 2026-10-20 10:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0002_add_custom_notes"
down_revision: Union[str, None] = "0001_initial_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "custom_notes",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("custom_request_id", sa.Uuid(), nullable=False),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.ForeignKeyConstraint(["custom_request_id"], ["custom_requests.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by"], ["team_members.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_custom_notes_custom_request_id"), "custom_notes", ["custom_request_id"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_custom_notes_custom_request_id"), table_name="custom_notes")
    op.drop_table("custom_notes")
