from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.challenge_completions import ChallengeCompletion


class ChallengeCompletionsRepo:
    @staticmethod
    async def create_once(
        session: AsyncSession,
        *,
        completion_id: UUID,
        user_id: str,
        challenge_id: UUID,
        moves: int,
        connections: str,
        trophy_tier: str,
        completed_at: datetime,
    ) -> bool:
        stmt = (
            insert(ChallengeCompletion)
            .values(
                id=completion_id,
                user_id=user_id,
                challenge_id=challenge_id,
                moves=moves,
                connections=connections,
                trophy_tier=trophy_tier,
                completed_at=completed_at,
            )
            .on_conflict_do_nothing(constraint="uq_user_challenge_completions_user_challenge")
            .returning(ChallengeCompletion.id)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def get_by_user_challenge(
        session: AsyncSession,
        *,
        user_id: str,
        challenge_id: UUID,
    ) -> ChallengeCompletion | None:
        stmt = select(ChallengeCompletion).where(
            ChallengeCompletion.user_id == user_id,
            ChallengeCompletion.challenge_id == challenge_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_duplicate_ids(session: AsyncSession) -> list[tuple[UUID, str, UUID]]:
        ranked = (
            select(
                ChallengeCompletion.id.label("id"),
                ChallengeCompletion.user_id.label("user_id"),
                ChallengeCompletion.challenge_id.label("challenge_id"),
                func.row_number()
                .over(
                    partition_by=(ChallengeCompletion.user_id, ChallengeCompletion.challenge_id),
                    order_by=(ChallengeCompletion.completed_at.asc(), ChallengeCompletion.id.asc()),
                )
                .label("position"),
            )
        ).subquery()
        stmt = (
            select(ranked.c.id, ranked.c.user_id, ranked.c.challenge_id)
            .where(ranked.c.position > 1)
            .order_by(ranked.c.user_id, ranked.c.challenge_id)
        )
        result = await session.execute(stmt)
        return [(row.id, row.user_id, row.challenge_id) for row in result]

    @staticmethod
    async def delete_by_ids(session: AsyncSession, completion_ids: Sequence[UUID]) -> int:
        if not completion_ids:
            return 0
        stmt = (
            delete(ChallengeCompletion)
            .where(ChallengeCompletion.id.in_(list(completion_ids)))
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0)

    @staticmethod
    async def aggregate_by_user(
        session: AsyncSession,
        *,
        tier_columns: dict[str, str],
        moves_columns: dict[int, str],
        user_ids: Sequence[str] | None = None,
    ) -> list[dict[str, object]]:
        columns = [
            ChallengeCompletion.user_id.label("user_id"),
            func.count().label("total_completions"),
            func.coalesce(func.sum(ChallengeCompletion.moves), 0).label("total_moves"),
        ]
        for tier, column_name in tier_columns.items():
            columns.append(func.count().filter(ChallengeCompletion.trophy_tier == tier).label(column_name))
        for moves, column_name in moves_columns.items():
            columns.append(func.count().filter(ChallengeCompletion.moves == moves).label(column_name))

        stmt = select(*columns).group_by(ChallengeCompletion.user_id).order_by(ChallengeCompletion.user_id)
        if user_ids is not None:
            stmt = stmt.where(ChallengeCompletion.user_id.in_(list(user_ids)))
        result = await session.execute(stmt)
        return [dict(row._mapping) for row in result]
