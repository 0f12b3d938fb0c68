"""Per-plan task status table."""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "task_states",
        sa.Column("plan_id", sa.String(), server_default="default", nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("status", sa.String(), server_default="unstarted", nullable=False),
        sa.Column("position", sa.Integer(), server_default="0", nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "status IN ('unstarted', 'pending', 'success', 'failed')",
            name="ck_task_states_status",
        ),
        sa.PrimaryKeyConstraint("plan_id", "name"),
    )
    op.create_index("ix_task_states_status", "task_states", ["status"])
    op.create_index("ix_task_states_plan_position", "task_states", ["plan_id", "position"])


def downgrade() -> None:
    op.drop_index("ix_task_states_plan_position", table_name="task_states")
    op.drop_index("ix_task_states_status", table_name="task_states")
    op.drop_table("task_states")
