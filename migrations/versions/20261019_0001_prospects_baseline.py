"""prospects and append-only prospect history

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:01
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "prospects",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("company", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("source", sa.String(length=255), nullable=True),
        sa.Column("stage", sa.String(length=40), nullable=False, server_default="new"),
        sa.Column("temperature", sa.String(length=20), nullable=False, server_default="warm"),
        sa.Column("commitment", sa.String(length=40), nullable=True),
        sa.Column("product_interest", sa.String(length=255), nullable=True),
        sa.Column("estimated_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("next_action", sa.Text(), nullable=True),
        sa.Column("next_action_date", sa.Date(), nullable=True),
        sa.Column("last_meeting_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("sensitivity", sa.Integer(), nullable=True),
        sa.Column("executive_summary", sa.Text(), nullable=True),
        sa.Column("objections", sa.JSON(), nullable=True),
        sa.Column("key_quotes", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_prospects_stage", "prospects", ["stage"])
    op.create_index("idx_prospects_temperature", "prospects", ["temperature"])
    op.create_index("idx_prospects_created_at", "prospects", ["created_at"])

    op.create_table(
        "prospect_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("prospect_id", sa.String(length=36), nullable=False),
        sa.Column("field_changed", sa.String(length=64), nullable=False),
        sa.Column("previous_value", sa.Text(), nullable=True),
        sa.Column("new_value", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["prospect_id"], ["prospects.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_prospect_history_prospect_created",
        "prospect_history",
        ["prospect_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("idx_prospect_history_prospect_created", table_name="prospect_history")
    op.drop_table("prospect_history")
    op.drop_index("idx_prospects_created_at", table_name="prospects")
    op.drop_index("idx_prospects_temperature", table_name="prospects")
    op.drop_index("idx_prospects_stage", table_name="prospects")
    op.drop_table("prospects")
