"""Create the pfc table — one row of proteins/fats/carbs totals per date.

Revision ID: 0001_create_pfc
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = "0001_create_pfc"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "pfc",
        sa.Column("date", sa.Date, primary_key=True),
        sa.Column("proteins", sa.Float, nullable=False, server_default="0"),
        sa.Column("fats", sa.Float, nullable=False, server_default="0"),
        sa.Column("carbs", sa.Float, nullable=False, server_default="0"),
    )


def downgrade() -> None:
    op.drop_table("pfc")
