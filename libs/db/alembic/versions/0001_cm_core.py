# ruff: noqa: I001
"""Commission core tables: lines and transactions.

Revision ID: 0001_cm_core
Revises: None
Create Date: 2025-11-04
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_cm_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # cm_lines
    op.create_table(
        "cm_lines",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("mdn", sa.String(length=10), nullable=False),
        sa.Column("customer_name", sa.Text(), nullable=False),
        sa.Column("provider", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("activation_date", sa.Date(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.CheckConstraint(
            "status in ('ACTIVE','INACTIVE','SUSPENDED')",
            name="ck_cm_lines_status",
        ),
    )
    op.create_index("ix_cm_lines_user_mdn", "cm_lines", ["user_id", "mdn"])

    # cm_transactions
    op.create_table(
        "cm_transactions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column(
            "line_id",
            sa.String(length=36),
            sa.ForeignKey("cm_lines.id"),
            nullable=True,
        ),
        sa.Column("mdn", sa.String(length=10), nullable=False),
        sa.Column("provider", sa.String(), nullable=True),
        sa.Column("customer", sa.Text(), nullable=True),
        sa.Column("cycle", sa.Text(), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("activity_type", sa.String(), nullable=True),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("transaction_date", sa.Date(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.CheckConstraint(
            "category in ('ACT','RESIDUAL','DEACT')",
            name="ck_cm_tx_category",
        ),
    )
    op.create_index(
        "ix_cm_tx_dedupe",
        "cm_transactions",
        ["user_id", "mdn", "cycle", "amount", "category"],
    )
    op.create_index("ix_cm_tx_line_id", "cm_transactions", ["line_id"])


def downgrade() -> None:
    op.drop_index("ix_cm_tx_line_id", table_name="cm_transactions")
    op.drop_index("ix_cm_tx_dedupe", table_name="cm_transactions")
    op.drop_table("cm_transactions")
    op.drop_index("ix_cm_lines_user_mdn", table_name="cm_lines")
    op.drop_table("cm_lines")
