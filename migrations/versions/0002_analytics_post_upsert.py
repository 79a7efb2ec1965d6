"""Key ingested analytics by scheduled post and platform

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-19

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "0002"
down_revision: Union[str, None] = "0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table("analytics_records") as batch_op:
        batch_op.add_column(sa.Column("schedule_id", sa.Integer(), nullable=True))
        batch_op.create_foreign_key(
            "fk_analytics_records_schedule",
            "scheduled_posts",
            ["schedule_id"],
            ["id"],
            ondelete="CASCADE",
        )
        # Manual records leave schedule_id NULL and never conflict
        batch_op.create_unique_constraint(
            "uq_analytics_post_platform", ["schedule_id", "platform"]
        )
        batch_op.create_index("ix_analytics_records_schedule_id", ["schedule_id"])


def downgrade() -> None:
    with op.batch_alter_table("analytics_records") as batch_op:
        batch_op.drop_index("ix_analytics_records_schedule_id")
        batch_op.drop_constraint("uq_analytics_post_platform", type_="unique")
        batch_op.drop_constraint("fk_analytics_records_schedule", type_="foreignkey")
        batch_op.drop_column("schedule_id")
