"""Create saved configuration

Revision ID: 3f1a7c2e9b40
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3f1a7c2e9b40"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "saved_configuration",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("version", sa.String(length=10), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("saved_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index(
        "ix_saved_configuration_year",
        "saved_configuration",
        ["year"],
    )


def downgrade() -> None:
    op.drop_index("ix_saved_configuration_year", table_name="saved_configuration")
    op.drop_table("saved_configuration")
