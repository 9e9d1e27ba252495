from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.db.models.challenge_completions import ChallengeCompletion
from app.db.models.user_stats import UserStats
from app.db.repo.challenge_completions_repo import ChallengeCompletionsRepo
from app.db.repo.challenges_repo import ChallengesRepo
from app.db.repo.user_stats_repo import UserStatsRepo
from app.game.challenges.time import civil_date
from app.game.completions.errors import CompletionError, CompletionValidationError
from app.game.completions.streaks import advance_streak
from app.game.completions.types import CompletionRecord, CompletionResult, StatsSnapshot
from app.game.trophies.rules import (
    MAX_MOVES,
    MIN_MOVES,
    MOVES_STAT_COLUMNS,
    TROPHY_STAT_COLUMNS,
    evaluate_trophy,
    is_valid_moves,
    resolve_par,
)
from app.game.trophies.types import TrophyTier

logger = structlog.get_logger(__name__)


def _record_from_row(row: ChallengeCompletion) -> CompletionRecord:
    return CompletionRecord(
        id=row.id,
        user_id=row.user_id,
        challenge_id=row.challenge_id,
        moves=int(row.moves),
        connections=row.connections,
        trophy_tier=TrophyTier(row.trophy_tier),
        completed_at=row.completed_at,
    )


def snapshot_from_stats(row: UserStats) -> StatsSnapshot:
    return StatsSnapshot(
        user_id=row.user_id,
        total_completions=int(row.total_completions),
        total_moves=int(row.total_moves),
        trophies={tier: int(getattr(row, column)) for tier, column in TROPHY_STAT_COLUMNS.items()},
        completions_by_moves={moves: int(getattr(row, column)) for moves, column in MOVES_STAT_COLUMNS.items()},
        current_streak=int(row.current_streak),
        max_streak=int(row.max_streak),
        last_played_date=row.last_played_date,
    )


def empty_snapshot(user_id: str) -> StatsSnapshot:
    return StatsSnapshot(
        user_id=user_id,
        total_completions=0,
        total_moves=0,
        trophies={tier: 0 for tier in TrophyTier},
        completions_by_moves={moves: 0 for moves in MOVES_STAT_COLUMNS},
        current_streak=0,
        max_streak=0,
        last_played_date=None,
    )


class CompletionLedgerService:
    @staticmethod
    async def record_completion(
        session: AsyncSession,
        *,
        user_id: str,
        challenge_id: UUID,
        moves: int,
        connections: str,
        now_utc: datetime,
        timezone_name: str | None = None,
    ) -> CompletionResult:
        """Records one completion per (user, challenge) and counts it once.

        The conditional insert decides the single winner. Only the winner
        touches ``user_stats``, inside the same transaction, so the record and
        its increment become visible together. Every other caller returns the
        stored record with ``created=False``.
        """
        if not is_valid_moves(moves):
            raise CompletionValidationError(
                "E_MOVES_OUT_OF_RANGE",
                f"moves must be between {MIN_MOVES} and {MAX_MOVES}",
            )

        challenge = await ChallengesRepo.get_by_id(session, challenge_id)
        if challenge is None:
            raise CompletionValidationError("E_CHALLENGE_NOT_FOUND", "challenge does not exist")

        try:
            par = resolve_par(estimated_moves=challenge.estimated_moves, difficulty=challenge.difficulty)
        except ValueError as exc:
            raise CompletionValidationError("E_CHALLENGE_DIFFICULTY_INVALID", str(exc)) from exc

        trophy_tier = evaluate_trophy(moves, par)
        completion_id = uuid4()
        created = await ChallengeCompletionsRepo.create_once(
            session,
            completion_id=completion_id,
            user_id=user_id,
            challenge_id=challenge_id,
            moves=moves,
            connections=connections,
            trophy_tier=trophy_tier.value,
            completed_at=now_utc,
        )

        if created:
            stats = await CompletionLedgerService._apply_to_stats(
                session,
                user_id=user_id,
                moves=moves,
                trophy_tier=trophy_tier,
                now_utc=now_utc,
                timezone_name=timezone_name or get_settings().challenge_timezone,
            )
            record = CompletionRecord(
                id=completion_id,
                user_id=user_id,
                challenge_id=challenge_id,
                moves=moves,
                connections=connections,
                trophy_tier=trophy_tier,
                completed_at=now_utc,
            )
            logger.info(
                "challenge_completion_recorded",
                user_id=user_id,
                challenge_id=str(challenge_id),
                moves=moves,
                par=par,
                trophy_tier=trophy_tier.value,
                total_completions=stats.total_completions,
            )
            return CompletionResult(created=True, record=record, stats=stats)

        existing = await ChallengeCompletionsRepo.get_by_user_challenge(
            session,
            user_id=user_id,
            challenge_id=challenge_id,
        )
        if existing is None:
            raise CompletionError("completion insert conflicted but no stored record was found")

        stats_row = await UserStatsRepo.get_by_user_id(session, user_id)
        stats = snapshot_from_stats(stats_row) if stats_row is not None else empty_snapshot(user_id)
        logger.info(
            "challenge_completion_duplicate",
            user_id=user_id,
            challenge_id=str(challenge_id),
            stored_moves=int(existing.moves),
            submitted_moves=moves,
        )
        return CompletionResult(created=False, record=_record_from_row(existing), stats=stats)

    @staticmethod
    async def _apply_to_stats(
        session: AsyncSession,
        *,
        user_id: str,
        moves: int,
        trophy_tier: TrophyTier,
        now_utc: datetime,
        timezone_name: str,
    ) -> StatsSnapshot:
        await UserStatsRepo.ensure_exists(session, user_id=user_id, now_utc=now_utc)
        current = await UserStatsRepo.get_by_user_id_for_update(session, user_id)
        if current is None:
            raise CompletionError(f"user_stats row missing for {user_id}")

        streak = advance_streak(
            current_streak=int(current.current_streak),
            max_streak=int(current.max_streak),
            last_played_date=current.last_played_date,
            played_on=civil_date(now_utc, timezone_name),
        )
        updated = await UserStatsRepo.apply_completion(
            session,
            user_id=user_id,
            moves=moves,
            trophy_column=TROPHY_STAT_COLUMNS[trophy_tier],
            moves_column=MOVES_STAT_COLUMNS[moves],
            current_streak=streak.current_streak,
            max_streak=streak.max_streak,
            last_played_date=streak.last_played_date,
            now_utc=now_utc,
        )
        return snapshot_from_stats(updated)

    @staticmethod
    async def get_stats(session: AsyncSession, *, user_id: str, now_utc: datetime) -> StatsSnapshot:
        stats_row = await UserStatsRepo.get_by_user_id(session, user_id)
        if stats_row is None:
            await UserStatsRepo.ensure_exists(session, user_id=user_id, now_utc=now_utc)
            stats_row = await UserStatsRepo.get_by_user_id(session, user_id)
        if stats_row is None:
            raise CompletionError(f"user_stats row missing for {user_id}")
        return snapshot_from_stats(stats_row)
