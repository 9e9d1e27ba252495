from __future__ import annotations

from datetime import date, datetime
from uuid import UUID, uuid4

from sqlalchemy import select, text, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.daily_challenges import DailyChallenge

ROTATION_LOCK_KEY = 7_340_112_901


class ChallengesRepo:
    @staticmethod
    async def acquire_rotation_lock(session: AsyncSession) -> None:
        await session.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": ROTATION_LOCK_KEY})

    @staticmethod
    async def get_by_id(session: AsyncSession, challenge_id: UUID) -> DailyChallenge | None:
        return await session.get(DailyChallenge, challenge_id)

    @staticmethod
    async def get_by_status(session: AsyncSession, status: str) -> DailyChallenge | None:
        stmt = select(DailyChallenge).where(DailyChallenge.status == status)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_status_for_update(session: AsyncSession, status: str) -> DailyChallenge | None:
        stmt = select(DailyChallenge).where(DailyChallenge.status == status).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        status: str,
        challenge_date: date,
        start_actor_id: int,
        start_actor_name: str,
        start_actor_profile_path: str | None,
        end_actor_id: int,
        end_actor_name: str,
        end_actor_profile_path: str | None,
        difficulty: str,
        estimated_moves: int | None,
        now_utc: datetime,
    ) -> DailyChallenge:
        challenge = DailyChallenge(
            id=uuid4(),
            challenge_date=challenge_date,
            status=status,
            start_actor_id=start_actor_id,
            start_actor_name=start_actor_name,
            start_actor_profile_path=start_actor_profile_path,
            end_actor_id=end_actor_id,
            end_actor_name=end_actor_name,
            end_actor_profile_path=end_actor_profile_path,
            estimated_moves=estimated_moves,
            difficulty=difficulty,
            hints_used=0,
            created_at=now_utc,
            promoted_at=now_utc if status == "active" else None,
            archived_at=None,
        )
        session.add(challenge)
        await session.flush()
        return challenge

    @staticmethod
    async def archive(session: AsyncSession, challenge: DailyChallenge, *, now_utc: datetime) -> None:
        challenge.status = "archived"
        challenge.archived_at = now_utc
        # Frees the single-active slot before another row claims it.
        await session.flush()

    @staticmethod
    async def promote(
        session: AsyncSession,
        challenge: DailyChallenge,
        *,
        challenge_date: date,
        now_utc: datetime,
    ) -> None:
        challenge.status = "active"
        challenge.challenge_date = challenge_date
        challenge.promoted_at = now_utc
        await session.flush()

    @staticmethod
    async def record_hint(
        session: AsyncSession,
        challenge_id: UUID,
        *,
        side: str,
        content: str,
    ) -> int | None:
        """Stores the first hint for one actor and bumps ``hints_used``; None if already stored."""
        column = DailyChallenge.start_actor_hint if side == "start" else DailyChallenge.end_actor_hint
        stmt = (
            update(DailyChallenge)
            .where(DailyChallenge.id == challenge_id, column.is_(None))
            .values({column: content, DailyChallenge.hints_used: DailyChallenge.hints_used + 1})
            .returning(DailyChallenge.hints_used)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_hint_state(session: AsyncSession, challenge_id: UUID) -> tuple[int, str | None, str | None] | None:
        stmt = select(
            DailyChallenge.hints_used,
            DailyChallenge.start_actor_hint,
            DailyChallenge.end_actor_hint,
        ).where(DailyChallenge.id == challenge_id)
        result = await session.execute(stmt)
        row = result.one_or_none()
        if row is None:
            return None
        return int(row.hints_used), row.start_actor_hint, row.end_actor_hint
