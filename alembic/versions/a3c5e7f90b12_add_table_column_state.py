"""add table column state table

Revision ID: a3c5e7f90b12
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a3c5e7f90b12"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "table_column_state",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("owner_id", sa.String(length=120), nullable=False),
        sa.Column("table_id", sa.String(length=120), nullable=False),
        sa.Column("column_key", sa.String(length=120), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("is_visible", sa.Boolean(), nullable=False),
        sa.Column("pinned", sa.String(length=8), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "owner_id",
            "table_id",
            "column_key",
            name="uq_table_column_state_owner_table_column",
        ),
    )
    op.create_index(
        "ix_table_column_state_owner_table_order",
        "table_column_state",
        ["owner_id", "table_id", "display_order"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(
        "ix_table_column_state_owner_table_order", table_name="table_column_state"
    )
    op.drop_table("table_column_state")
