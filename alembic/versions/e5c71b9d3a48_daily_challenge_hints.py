"""daily_challenge_hints

Revision ID: e5c71b9d3a48
Revises: b4a9c2e1f605
Create Date: 2026-10-17 09:20:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "e5c71b9d3a48"
down_revision: str | None = "b4a9c2e1f605"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.add_column("daily_challenges", sa.Column("start_actor_hint", sa.Text(), nullable=True))
    op.add_column("daily_challenges", sa.Column("end_actor_hint", sa.Text(), nullable=True))


def downgrade() -> None:
    op.drop_column("daily_challenges", "end_actor_hint")
    op.drop_column("daily_challenges", "start_actor_hint")
