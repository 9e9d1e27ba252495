from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.user_stats import UserStats


class UserStatsRepo:
    @staticmethod
    async def get_by_user_id(session: AsyncSession, user_id: str) -> UserStats | None:
        return await session.get(UserStats, user_id, populate_existing=True)

    @staticmethod
    async def get_by_user_id_for_update(session: AsyncSession, user_id: str) -> UserStats | None:
        stmt = (
            select(UserStats)
            .where(UserStats.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def ensure_exists(session: AsyncSession, *, user_id: str, now_utc: datetime) -> bool:
        stmt = (
            insert(UserStats)
            .values(user_id=user_id, created_at=now_utc, updated_at=now_utc)
            .on_conflict_do_nothing(index_elements=[UserStats.user_id])
            .returning(UserStats.user_id)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def apply_completion(
        session: AsyncSession,
        *,
        user_id: str,
        moves: int,
        trophy_column: str,
        moves_column: str,
        current_streak: int,
        max_streak: int,
        last_played_date: date,
        now_utc: datetime,
    ) -> UserStats:
        trophy_attr = getattr(UserStats, trophy_column)
        moves_attr = getattr(UserStats, moves_column)
        stmt = (
            update(UserStats)
            .where(UserStats.user_id == user_id)
            .values(
                {
                    UserStats.total_completions: UserStats.total_completions + 1,
                    UserStats.total_moves: UserStats.total_moves + moves,
                    trophy_attr: trophy_attr + 1,
                    moves_attr: moves_attr + 1,
                    UserStats.current_streak: current_streak,
                    UserStats.max_streak: max_streak,
                    UserStats.last_played_date: last_played_date,
                    UserStats.updated_at: now_utc,
                }
            )
            .execution_options(synchronize_session=False)
        )
        await session.execute(stmt)
        stats = await UserStatsRepo.get_by_user_id(session, user_id)
        assert stats is not None
        return stats

    @staticmethod
    async def replace_counters(
        session: AsyncSession,
        *,
        user_id: str,
        counters: dict[str, int],
        now_utc: datetime,
    ) -> None:
        stmt = insert(UserStats).values(user_id=user_id, created_at=now_utc, updated_at=now_utc, **counters)
        stmt = stmt.on_conflict_do_update(
            index_elements=[UserStats.user_id],
            set_={**counters, "updated_at": now_utc},
        )
        await session.execute(stmt)
