"""Add append-only role change audit table.

Revision ID: 20261018100000
Revises: 20261018000000
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "20261018100000"
down_revision: Union[str, None] = "20261018000000"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "role_change_records",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("granted_by", sa.String(length=36), nullable=False),
        sa.Column("previous_role", sa.String(length=32), nullable=True),
        sa.Column("new_role", sa.String(length=32), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column(
            "granted_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name=op.f("fk_role_change_records_user_id_users"),
            ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(
            ["granted_by"],
            ["users.id"],
            name=op.f("fk_role_change_records_granted_by_users"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_role_change_records")),
    )
    op.create_index(
        op.f("ix_role_change_records_user_id"),
        "role_change_records",
        ["user_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_role_change_records_user_id"), table_name="role_change_records")
    op.drop_table("role_change_records")
