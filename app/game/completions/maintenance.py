from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repo.challenge_completions_repo import ChallengeCompletionsRepo
from app.db.repo.user_stats_repo import UserStatsRepo
from app.game.completions.types import DedupeReport, StatsRebuildReport
from app.game.trophies.rules import MOVES_STAT_COLUMNS, TROPHY_STAT_COLUMNS

logger = structlog.get_logger(__name__)

COUNTER_COLUMNS = (
    "total_completions",
    "total_moves",
    *TROPHY_STAT_COLUMNS.values(),
    *MOVES_STAT_COLUMNS.values(),
)


async def dedupe_completions(session: AsyncSession, *, dry_run: bool = False) -> DedupeReport:
    """Keeps the earliest completion per (user, challenge) and deletes the rest.

    Needed once for rows written before the unique constraint existed.
    Ties on ``completed_at`` are broken by id so repeated runs agree.
    """
    duplicates = await ChallengeCompletionsRepo.list_duplicate_ids(session)
    groups = Counter((user_id, challenge_id) for _, user_id, challenge_id in duplicates)
    for (user_id, challenge_id), extra in groups.items():
        logger.info(
            "challenge_completion_duplicates_found",
            user_id=user_id,
            challenge_id=str(challenge_id),
            extra_records=extra,
            dry_run=dry_run,
        )

    deleted = 0
    if not dry_run:
        deleted = await ChallengeCompletionsRepo.delete_by_ids(session, [row[0] for row in duplicates])

    report = DedupeReport(groups_repaired=len(groups), records_deleted=deleted)
    logger.info(
        "challenge_completion_dedupe_finished",
        groups_repaired=report.groups_repaired,
        records_deleted=report.records_deleted,
        dry_run=dry_run,
    )
    return report


async def rebuild_user_stats(
    session: AsyncSession,
    *,
    now_utc: datetime,
    user_ids: Sequence[str] | None = None,
) -> StatsRebuildReport:
    """Recomputes completion counters from the stored records.

    Streak columns are left untouched since they depend on play history
    that is not derivable from one record per challenge.
    """
    aggregates = await ChallengeCompletionsRepo.aggregate_by_user(
        session,
        tier_columns={tier.value: column for tier, column in TROPHY_STAT_COLUMNS.items()},
        moves_columns=MOVES_STAT_COLUMNS,
        user_ids=user_ids,
    )
    seen: set[str] = set()
    for row in aggregates:
        user_id = str(row["user_id"])
        seen.add(user_id)
        counters = {column: int(row[column]) for column in COUNTER_COLUMNS}
        await UserStatsRepo.replace_counters(session, user_id=user_id, counters=counters, now_utc=now_utc)

    for user_id in user_ids or ():
        if user_id in seen:
            continue
        await UserStatsRepo.replace_counters(
            session,
            user_id=user_id,
            counters={column: 0 for column in COUNTER_COLUMNS},
            now_utc=now_utc,
        )
        seen.add(user_id)

    logger.info("user_stats_rebuilt", users_rebuilt=len(seen))
    return StatsRebuildReport(users_rebuilt=len(seen))
