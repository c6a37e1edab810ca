"""Initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "participants",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("telegram_id", sa.BigInteger(), nullable=False),
        sa.Column("telegram_username", sa.String(), nullable=True),
        sa.Column("display_name", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_participants_telegram_id", "participants", ["telegram_id"], unique=True)

    op.create_table(
        "pool_config",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("deadline", sa.DateTime(), nullable=False),
        sa.Column(
            "phase",
            sa.Enum("open", "assigned", name="pool_phase"),
            nullable=False,
            server_default="open",
        ),
        sa.Column("cycle", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("assigned_at", sa.DateTime(), nullable=True),
        sa.Column("last_assignment_seed", sa.BigInteger(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("id = 1", name="ck_pool_config_singleton"),
        sa.CheckConstraint("capacity >= 2 AND capacity <= 500", name="ck_pool_config_capacity"),
        sa.CheckConstraint("cycle >= 1", name="ck_pool_config_cycle"),
    )

    op.create_table(
        "wishes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("participant_id", sa.Integer(), nullable=False),
        sa.Column("text", sa.String(length=200), nullable=False),
        sa.Column("edit_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["participant_id"], ["participants.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("participant_id", name="uq_wishes_participant_id"),
        sa.CheckConstraint("edit_count >= 0 AND edit_count <= 1", name="ck_wishes_edit_count"),
    )

    op.create_table(
        "assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("cycle", sa.Integer(), nullable=False),
        sa.Column("giver_participant_id", sa.Integer(), nullable=False),
        sa.Column("receiver_participant_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["giver_participant_id"], ["participants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["receiver_participant_id"], ["participants.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("cycle", "giver_participant_id", name="uq_assignments_cycle_giver"),
        sa.UniqueConstraint("cycle", "receiver_participant_id", name="uq_assignments_cycle_receiver"),
        sa.CheckConstraint(
            "giver_participant_id <> receiver_participant_id", name="ck_assignments_no_self"
        ),
    )


def downgrade() -> None:
    op.drop_table("assignments")
    op.drop_table("wishes")
    op.drop_table("pool_config")
    op.drop_index("ix_participants_telegram_id", table_name="participants")
    op.drop_table("participants")
    if op.get_bind().dialect.name == "postgresql":
        op.execute("DROP TYPE IF EXISTS pool_phase")
