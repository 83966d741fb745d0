"""create sheet store and material rate tables

Revision ID: 3f1c9a7d2b64
Revises:
Create Date: 2026-10-19 10:04:51.118204

Base schema: sheets, sheet_rows (append-only costing rows) and material_rates.
Idempotent — databases first built by Base.metadata.create_all() already have
these tables and are stamped at this revision on startup.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2b64'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _table_exists(table_name):
    """Check if a table exists."""
    bind = op.get_bind()
    insp = inspect(bind)
    return table_name in insp.get_table_names()


def upgrade() -> None:
    if not _table_exists("sheets"):
        op.create_table(
            "sheets",
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("headers_json", sa.JSON(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint("name"),
        )

    if not _table_exists("sheet_rows"):
        op.create_table(
            "sheet_rows",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("sheet_name", sa.String(), nullable=False),
            sa.Column("row_key", sa.String(), nullable=True),
            sa.Column("values_json", sa.JSON(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["sheet_name"], ["sheets.name"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("sheet_name", "row_key", name="uq_sheet_rows_sheet_key"),
        )
        op.create_index("ix_sheet_rows_id", "sheet_rows", ["id"])
        op.create_index("ix_sheet_rows_sheet_name", "sheet_rows", ["sheet_name"])

    if not _table_exists("material_rates"):
        op.create_table(
            "material_rates",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column(
                "rate_type",
                sa.Enum("COPPER", "PVC", "LABOUR_ON_WIRE", name="ratetype"),
                nullable=False,
            ),
            sa.Column("value", sa.Float(), nullable=False),
            sa.Column("unit", sa.String(), nullable=True),
            sa.Column("description", sa.String(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("rate_type"),
        )
        op.create_index("ix_material_rates_id", "material_rates", ["id"])


def downgrade() -> None:
    for table_name in ["material_rates", "sheet_rows", "sheets"]:
        if _table_exists(table_name):
            op.drop_table(table_name)
