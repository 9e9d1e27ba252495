"""challenges_completions_user_stats

Revision ID: 3c1f0a7d9b21
Revises:
Create Date: 2026-09-28 09:10:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "3c1f0a7d9b21"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def _counter(name: str) -> sa.Column:
    return sa.Column(name, sa.Integer(), nullable=False, server_default=sa.text("0"))


def upgrade() -> None:
    op.create_table(
        "daily_challenges",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("challenge_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("start_actor_id", sa.Integer(), nullable=False),
        sa.Column("start_actor_name", sa.String(255), nullable=False),
        sa.Column("start_actor_profile_path", sa.String(255), nullable=True),
        sa.Column("end_actor_id", sa.Integer(), nullable=False),
        sa.Column("end_actor_name", sa.String(255), nullable=False),
        sa.Column("end_actor_profile_path", sa.String(255), nullable=True),
        sa.Column("estimated_moves", sa.SmallInteger(), nullable=True),
        sa.Column("difficulty", sa.String(16), nullable=False),
        sa.Column("hints_used", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("promoted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("status IN ('next','active','archived')", name="ck_daily_challenges_status"),
        sa.CheckConstraint("difficulty IN ('easy','normal','hard')", name="ck_daily_challenges_difficulty"),
        sa.CheckConstraint(
            "estimated_moves IS NULL OR (estimated_moves BETWEEN 1 AND 6)",
            name="ck_daily_challenges_estimated_moves_range",
        ),
        sa.CheckConstraint("hints_used >= 0", name="ck_daily_challenges_hints_used_non_negative"),
    )
    op.create_index("idx_daily_challenges_date", "daily_challenges", ["challenge_date"])
    op.create_index(
        "uq_daily_challenges_single_active",
        "daily_challenges",
        ["status"],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
    )
    op.create_index(
        "uq_daily_challenges_single_next",
        "daily_challenges",
        ["status"],
        unique=True,
        postgresql_where=sa.text("status = 'next'"),
    )

    op.create_table(
        "user_challenge_completions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("challenge_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("moves", sa.SmallInteger(), nullable=False),
        sa.Column("connections", sa.Text(), nullable=False),
        sa.Column("trophy_tier", sa.String(16), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("moves BETWEEN 1 AND 6", name="ck_user_challenge_completions_moves_range"),
        sa.CheckConstraint(
            "trophy_tier IN ('walkOfFame','oscar','goldenGlobe','emmy','sag','popcorn')",
            name="ck_user_challenge_completions_trophy_tier",
        ),
        sa.ForeignKeyConstraint(["challenge_id"], ["daily_challenges.id"]),
    )
    op.create_index(
        "idx_user_challenge_completions_user_completed",
        "user_challenge_completions",
        ["user_id", "completed_at"],
    )
    op.create_index(
        "idx_user_challenge_completions_challenge",
        "user_challenge_completions",
        ["challenge_id"],
    )

    op.create_table(
        "user_stats",
        sa.Column("user_id", sa.String(64), primary_key=True),
        _counter("total_completions"),
        _counter("total_moves"),
        _counter("trophy_walk_of_fame"),
        _counter("trophy_oscar"),
        _counter("trophy_golden_globe"),
        _counter("trophy_emmy"),
        _counter("trophy_sag"),
        _counter("trophy_popcorn"),
        _counter("completions_at_1_move"),
        _counter("completions_at_2_moves"),
        _counter("completions_at_3_moves"),
        _counter("completions_at_4_moves"),
        _counter("completions_at_5_moves"),
        _counter("completions_at_6_moves"),
        _counter("current_streak"),
        _counter("max_streak"),
        sa.Column("last_played_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("total_completions >= 0", name="ck_user_stats_total_completions_non_negative"),
        sa.CheckConstraint("total_moves >= 0", name="ck_user_stats_total_moves_non_negative"),
        sa.CheckConstraint(
            "current_streak >= 0 AND max_streak >= current_streak",
            name="ck_user_stats_streak_bounds",
        ),
    )


def downgrade() -> None:
    op.drop_table("user_stats")
    op.drop_index("idx_user_challenge_completions_challenge", table_name="user_challenge_completions")
    op.drop_index("idx_user_challenge_completions_user_completed", table_name="user_challenge_completions")
    op.drop_table("user_challenge_completions")
    op.drop_index("uq_daily_challenges_single_next", table_name="daily_challenges")
    op.drop_index("uq_daily_challenges_single_active", table_name="daily_challenges")
    op.drop_index("idx_daily_challenges_date", table_name="daily_challenges")
    op.drop_table("daily_challenges")
