"""Job ledger baseline

Revision ID: 20261017_01
Revises: None
Create Date: 2026-10-17
"""
# pylint: disable=no-member,invalid-name,wrong-import-order

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261017_01"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    op.create_table(
        "verification_history",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("job_id", sa.Text(), nullable=False),
        sa.Column("class_hash", sa.Text(), nullable=False),
        sa.Column("contract_name", sa.Text(), nullable=False),
        sa.Column("network", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("package_name", sa.Text(), nullable=True),
        sa.Column("scarb_version", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("cairo_version", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("dojo_version", sa.Text(), nullable=True),
        sa.UniqueConstraint("job_id", name="uq_verification_history_job_id"),
    )
    op.create_index("ix_verification_history_job_id", "verification_history", ["job_id"])
    op.create_index("ix_verification_history_class_hash", "verification_history", ["class_hash"])
    op.create_index("ix_verification_history_network", "verification_history", ["network"])
    op.create_index("ix_verification_history_status", "verification_history", ["status"])
    op.create_index("ix_verification_history_submitted_at", "verification_history", ["submitted_at"])


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_index("ix_verification_history_submitted_at", table_name="verification_history")
    op.drop_index("ix_verification_history_status", table_name="verification_history")
    op.drop_index("ix_verification_history_network", table_name="verification_history")
    op.drop_index("ix_verification_history_class_hash", table_name="verification_history")
    op.drop_index("ix_verification_history_job_id", table_name="verification_history")
    op.drop_table("verification_history")
