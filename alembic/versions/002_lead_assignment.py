"""Track how and when a lead was assigned.

Revision ID: 002
Revises: 001
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table("leads") as batch:
        batch.add_column(sa.Column("assigned_at", sa.DateTime, nullable=True))
        batch.add_column(sa.Column("assignment_method", sa.String(20), nullable=True))
    op.execute(
        "UPDATE leads SET assignment_method = 'manual', assigned_at = created_at "
        "WHERE assigned_sales_id IS NOT NULL"
    )


def downgrade() -> None:
    with op.batch_alter_table("leads") as batch:
        batch.drop_column("assignment_method")
        batch.drop_column("assigned_at")
