"""Create user_stats and achievements tables

Revision ID: 5c2e8a41f7b3
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '5c2e8a41f7b3'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create the XP table and the achievement ledger."""

    # --- user_stats ---
    op.create_table(
        "user_stats",
        sa.Column("user_id", sa.String(64), primary_key=True),
        sa.Column("xp", sa.Integer, nullable=False, server_default="0"),
        sa.Column("level", sa.Integer, nullable=False, server_default="1"),
        sa.Column(
            "last_updated",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("xp >= 0", name="ck_user_stats_xp_non_negative"),
        sa.CheckConstraint("level >= 1", name="ck_user_stats_level_positive"),
    )

    # --- achievements ---
    op.create_table(
        "achievements",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("slug", sa.String(64), nullable=False),
        sa.Column(
            "unlocked_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        # At-most-once unlock per user
        sa.UniqueConstraint("user_id", "slug", name="uq_achievements_user_slug"),
    )
    op.create_index("ix_achievements_user_id", "achievements", ["user_id"])


def downgrade() -> None:
    """Drop the XP table and the achievement ledger."""
    op.drop_index("ix_achievements_user_id", table_name="achievements")
    op.drop_table("achievements")
    op.drop_table("user_stats")
