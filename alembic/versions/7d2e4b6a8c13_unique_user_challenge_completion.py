"""unique_user_challenge_completion

Revision ID: 7d2e4b6a8c13
Revises: 3c1f0a7d9b21
Create Date: 2026-10-02 14:30:00.000000
"""
from collections.abc import Sequence

from alembic import op

revision: str = "7d2e4b6a8c13"
down_revision: str | None = "3c1f0a7d9b21"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None

# Same ordering as app.game.completions.maintenance.dedupe_completions.
DEDUPE_SQL = """
DELETE FROM user_challenge_completions AS c
USING (
    SELECT
        id,
        row_number() OVER (
            PARTITION BY user_id, challenge_id
            ORDER BY completed_at ASC, id ASC
        ) AS position
    FROM user_challenge_completions
) AS ranked
WHERE c.id = ranked.id
  AND ranked.position > 1
"""


def upgrade() -> None:
    op.execute(DEDUPE_SQL)
    op.create_unique_constraint(
        "uq_user_challenge_completions_user_challenge",
        "user_challenge_completions",
        ["user_id", "challenge_id"],
    )


def downgrade() -> None:
    op.drop_constraint(
        "uq_user_challenge_completions_user_challenge",
        "user_challenge_completions",
        type_="unique",
    )
