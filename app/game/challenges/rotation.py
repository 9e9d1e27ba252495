from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import date, datetime, timezone
from functools import lru_cache
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import get_settings
from app.db.models.daily_challenges import DailyChallenge
from app.db.repo.challenges_repo import ChallengesRepo
from app.db.session import SessionLocal
from app.game.challenges.errors import GeneratorError, TransientStoreError
from app.game.challenges.generator import ActorPairGenerator, TmdbActorPairGenerator
from app.game.challenges.time import civil_date, next_civil_date
from app.game.challenges.types import (
    ActorPair,
    ChallengeStatus,
    NextChallengeResult,
    PromotionOutcome,
    PromotionResult,
    RotationResult,
)
from app.game.trophies.rules import parse_difficulty

logger = structlog.get_logger(__name__)

TRANSIENT_STORE_ERRORS: tuple[type[BaseException], ...] = (
    OperationalError,
    InterfaceError,
    TimeoutError,
    OSError,
)
STORE_ERRORS: tuple[type[BaseException], ...] = (SQLAlchemyError, TimeoutError, OSError)

SleepFn = Callable[[float], Awaitable[object]]


def _actor_ids(challenge: DailyChallenge | None) -> frozenset[int]:
    if challenge is None:
        return frozenset()
    return frozenset({challenge.start_actor_id, challenge.end_actor_id})


def _log_failure(event: str, *, reason: str, day: date, exc: BaseException) -> None:
    logger.error(event, reason=reason, civil_date=day.isoformat(), error=str(exc), error_type=type(exc).__name__)


class ChallengeRotationScheduler:
    """Moves challenges through next -> active -> archived once per civil day.

    Built once per process and holds no per-run state. Every store step runs
    in its own transaction behind a Postgres advisory lock, so overlapping
    triggers serialise and the second one finds nothing left to do.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        generator: ActorPairGenerator,
        *,
        timezone_name: str,
        max_attempts: int = 5,
        backoff_base_seconds: float = 1.0,
        difficulty: str = "normal",
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._session_factory = session_factory
        self._generator = generator
        self._timezone_name = timezone_name
        self._max_attempts = max(1, int(max_attempts))
        self._backoff_base_seconds = max(0.0, float(backoff_base_seconds))
        self._difficulty = parse_difficulty(difficulty).value
        self._sleep = sleep

    def backoff_delay(self, attempt: int) -> float:
        return self._backoff_base_seconds * (2 ** (attempt - 1))

    async def _generate_pair(self, *, exclude_actor_ids: frozenset[int]) -> ActorPair:
        try:
            return await self._generator.generate(exclude_actor_ids=exclude_actor_ids)
        except GeneratorError:
            raise
        except Exception as exc:
            raise GeneratorError(f"actor pair generator crashed: {exc!r}") from exc

    async def rotate(self, *, now_utc: datetime | None = None) -> RotationResult:
        now_utc = now_utc or datetime.now(timezone.utc)
        today = civil_date(now_utc, self._timezone_name)
        logger.info(
            "challenge_rotation_triggered",
            civil_date=today.isoformat(),
            timezone=self._timezone_name,
        )

        promotion = await self._promote_with_retry(today=today, now_utc=now_utc)
        active_challenge_id = promotion.active_challenge_id

        fallback_generated = False
        fallback_failed = False
        if promotion.outcome in {PromotionOutcome.NO_NEXT, PromotionOutcome.STORE_UNAVAILABLE}:
            fallback_id = await self._generate_fallback(today=today, now_utc=now_utc)
            fallback_generated = fallback_id is not None
            fallback_failed = fallback_id is None
            active_challenge_id = fallback_id

        next_challenge_id, next_generated, next_failed = await self._ensure_next(
            today=today,
            now_utc=now_utc,
        )

        result = RotationResult(
            civil_date=today,
            promotion=promotion.outcome,
            promotion_attempts=promotion.attempts,
            fallback_generated=fallback_generated,
            fallback_failed=fallback_failed,
            next_generated=next_generated,
            next_failed=next_failed,
            active_challenge_id=active_challenge_id,
            next_challenge_id=next_challenge_id,
        )
        logger.info("challenge_rotation_finished", **result.as_dict())
        return result

    async def _promote_with_retry(self, *, today: date, now_utc: datetime) -> PromotionResult:
        for attempt in range(1, self._max_attempts + 1):
            try:
                result = await self._promote_once(today=today, now_utc=now_utc, attempt=attempt)
            except TransientStoreError as exc:
                if attempt >= self._max_attempts:
                    logger.error(
                        "challenge_rotation_store_exhausted",
                        attempts=attempt,
                        error=str(exc),
                    )
                    return PromotionResult(outcome=PromotionOutcome.STORE_UNAVAILABLE, attempts=attempt)

                delay = self.backoff_delay(attempt)
                logger.warning(
                    "challenge_rotation_store_retry",
                    attempt=attempt,
                    max_attempts=self._max_attempts,
                    delay_seconds=delay,
                    error=str(exc),
                )
                await self._sleep(delay)
                continue

            if result.outcome == PromotionOutcome.PROMOTED:
                if result.archived_challenge_id is not None:
                    logger.info(
                        "challenge_archived",
                        challenge_id=str(result.archived_challenge_id),
                        civil_date=today.isoformat(),
                    )
                logger.info(
                    "challenge_promoted",
                    challenge_id=str(result.active_challenge_id),
                    civil_date=today.isoformat(),
                    attempts=attempt,
                )
            elif result.outcome == PromotionOutcome.NO_NEXT:
                logger.warning("challenge_rotation_no_next", civil_date=today.isoformat())
            else:
                logger.info(
                    "challenge_rotation_already_done",
                    challenge_id=str(result.active_challenge_id),
                    civil_date=today.isoformat(),
                )
            return result

        return PromotionResult(outcome=PromotionOutcome.STORE_UNAVAILABLE, attempts=self._max_attempts)

    async def _promote_once(self, *, today: date, now_utc: datetime, attempt: int) -> PromotionResult:
        try:
            async with self._session_factory.begin() as session:
                await ChallengesRepo.acquire_rotation_lock(session)
                active = await ChallengesRepo.get_by_status_for_update(session, ChallengeStatus.ACTIVE.value)
                if active is not None and active.challenge_date >= today:
                    return PromotionResult(
                        outcome=PromotionOutcome.ALREADY_ROTATED,
                        attempts=attempt,
                        active_challenge_id=active.id,
                    )

                pending = await ChallengesRepo.get_by_status_for_update(session, ChallengeStatus.NEXT.value)
                if pending is None:
                    return PromotionResult(outcome=PromotionOutcome.NO_NEXT, attempts=attempt)

                archived_id: UUID | None = None
                if active is not None:
                    await ChallengesRepo.archive(session, active, now_utc=now_utc)
                    archived_id = active.id
                await ChallengesRepo.promote(session, pending, challenge_date=today, now_utc=now_utc)
                return PromotionResult(
                    outcome=PromotionOutcome.PROMOTED,
                    attempts=attempt,
                    active_challenge_id=pending.id,
                    archived_challenge_id=archived_id,
                )
        except TRANSIENT_STORE_ERRORS as exc:
            raise TransientStoreError(str(exc)) from exc

    async def _generate_fallback(self, *, today: date, now_utc: datetime) -> UUID | None:
        try:
            async with self._session_factory.begin() as session:
                stale = await ChallengesRepo.get_by_status(session, ChallengeStatus.ACTIVE.value)
                exclude_actor_ids = _actor_ids(stale)

            pair = await self._generate_pair(exclude_actor_ids=exclude_actor_ids)

            async with self._session_factory.begin() as session:
                await ChallengesRepo.acquire_rotation_lock(session)
                active = await ChallengesRepo.get_by_status_for_update(session, ChallengeStatus.ACTIVE.value)
                if active is not None and active.challenge_date >= today:
                    # Another trigger produced today's challenge meanwhile.
                    return active.id
                if active is not None:
                    await ChallengesRepo.archive(session, active, now_utc=now_utc)
                created = await self._create(
                    session,
                    pair=pair,
                    status=ChallengeStatus.ACTIVE,
                    challenge_date=today,
                    now_utc=now_utc,
                )
                archived_id = active.id if active is not None else None
        except GeneratorError as exc:
            _log_failure("challenge_fallback_failed", reason="generator", day=today, exc=exc)
            return None
        except STORE_ERRORS as exc:
            _log_failure("challenge_fallback_failed", reason="store", day=today, exc=exc)
            return None

        if archived_id is not None:
            logger.info("challenge_archived", challenge_id=str(archived_id), civil_date=today.isoformat())
        logger.info(
            "challenge_fallback_generated",
            challenge_id=str(created),
            civil_date=today.isoformat(),
            start_actor_id=pair.start.id,
            end_actor_id=pair.end.id,
        )
        return created

    async def _ensure_next(self, *, today: date, now_utc: datetime) -> tuple[UUID | None, bool, bool]:
        next_date = next_civil_date(today)
        try:
            async with self._session_factory.begin() as session:
                existing = await ChallengesRepo.get_by_status(session, ChallengeStatus.NEXT.value)
                if existing is not None:
                    logger.info("challenge_next_exists", challenge_id=str(existing.id))
                    return existing.id, False, False
                active = await ChallengesRepo.get_by_status(session, ChallengeStatus.ACTIVE.value)
                exclude_actor_ids = _actor_ids(active)

            pair = await self._generate_pair(exclude_actor_ids=exclude_actor_ids)

            async with self._session_factory.begin() as session:
                await ChallengesRepo.acquire_rotation_lock(session)
                existing = await ChallengesRepo.get_by_status(session, ChallengeStatus.NEXT.value)
                if existing is not None:
                    return existing.id, False, False
                created = await self._create(
                    session,
                    pair=pair,
                    status=ChallengeStatus.NEXT,
                    challenge_date=next_date,
                    now_utc=now_utc,
                )
        except GeneratorError as exc:
            _log_failure("challenge_next_failed", reason="generator", day=next_date, exc=exc)
            return None, False, True
        except IntegrityError:
            logger.info("challenge_next_exists", civil_date=next_date.isoformat(), reason="unique_race")
            return None, False, False
        except STORE_ERRORS as exc:
            _log_failure("challenge_next_failed", reason="store", day=next_date, exc=exc)
            return None, False, True

        logger.info(
            "challenge_next_generated",
            challenge_id=str(created),
            civil_date=next_date.isoformat(),
            start_actor_id=pair.start.id,
            end_actor_id=pair.end.id,
            excluded_actor_ids=sorted(exclude_actor_ids),
        )
        return created, True, False

    async def ensure_next(self, *, now_utc: datetime | None = None) -> NextChallengeResult:
        """Returns the pending challenge for tomorrow, generating one when none exists."""
        now_utc = now_utc or datetime.now(timezone.utc)
        today = civil_date(now_utc, self._timezone_name)
        challenge_id, generated, failed = await self._ensure_next(today=today, now_utc=now_utc)
        return NextChallengeResult(
            civil_date=next_civil_date(today),
            challenge_id=challenge_id,
            generated=generated,
            failed=failed,
        )

    async def replace_next(self, pair: ActorPair, *, now_utc: datetime | None = None) -> NextChallengeResult:
        """Swaps the pending challenge for a hand-picked pair. Store errors propagate."""
        if pair.start.id == pair.end.id:
            raise ValueError("start and end actor must differ")

        now_utc = now_utc or datetime.now(timezone.utc)
        next_date = next_civil_date(civil_date(now_utc, self._timezone_name))
        async with self._session_factory.begin() as session:
            await ChallengesRepo.acquire_rotation_lock(session)
            replaced = await ChallengesRepo.get_by_status_for_update(session, ChallengeStatus.NEXT.value)
            if replaced is not None:
                await ChallengesRepo.archive(session, replaced, now_utc=now_utc)
            created = await self._create(
                session,
                pair=pair,
                status=ChallengeStatus.NEXT,
                challenge_date=next_date,
                now_utc=now_utc,
            )

        replaced_id = replaced.id if replaced is not None else None
        logger.info(
            "challenge_next_replaced",
            challenge_id=str(created),
            replaced_challenge_id=str(replaced_id) if replaced_id else None,
            civil_date=next_date.isoformat(),
            start_actor_id=pair.start.id,
            end_actor_id=pair.end.id,
        )
        return NextChallengeResult(
            civil_date=next_date,
            challenge_id=created,
            generated=False,
            failed=False,
            replaced_challenge_id=replaced_id,
        )

    async def reset_next(self, *, now_utc: datetime | None = None) -> NextChallengeResult:
        """Discards the pending challenge and generates a fresh one. Store errors propagate."""
        now_utc = now_utc or datetime.now(timezone.utc)
        today = civil_date(now_utc, self._timezone_name)
        async with self._session_factory.begin() as session:
            await ChallengesRepo.acquire_rotation_lock(session)
            discarded = await ChallengesRepo.get_by_status_for_update(session, ChallengeStatus.NEXT.value)
            if discarded is not None:
                await ChallengesRepo.archive(session, discarded, now_utc=now_utc)
        discarded_id = discarded.id if discarded is not None else None
        if discarded_id is not None:
            logger.info("challenge_next_discarded", challenge_id=str(discarded_id))

        challenge_id, generated, failed = await self._ensure_next(today=today, now_utc=now_utc)
        return NextChallengeResult(
            civil_date=next_civil_date(today),
            challenge_id=challenge_id,
            generated=generated,
            failed=failed,
            replaced_challenge_id=discarded_id,
        )

    async def _create(
        self,
        session: AsyncSession,
        *,
        pair: ActorPair,
        status: ChallengeStatus,
        challenge_date: date,
        now_utc: datetime,
    ) -> UUID:
        challenge = await ChallengesRepo.create(
            session,
            status=status.value,
            challenge_date=challenge_date,
            start_actor_id=pair.start.id,
            start_actor_name=pair.start.name,
            start_actor_profile_path=pair.start.profile_path,
            end_actor_id=pair.end.id,
            end_actor_name=pair.end.name,
            end_actor_profile_path=pair.end.profile_path,
            difficulty=self._difficulty,
            estimated_moves=None,
            now_utc=now_utc,
        )
        return challenge.id


@lru_cache(maxsize=1)
def get_rotation_scheduler() -> ChallengeRotationScheduler:
    settings = get_settings()
    generator = TmdbActorPairGenerator(
        api_key=settings.tmdb_api_key,
        base_url=settings.tmdb_base_url,
        timeout_seconds=settings.tmdb_timeout_seconds,
        pool_pages=settings.tmdb_actor_pool_pages,
    )
    return ChallengeRotationScheduler(
        SessionLocal,
        generator,
        timezone_name=settings.challenge_timezone,
        max_attempts=settings.challenge_rotation_max_attempts,
        backoff_base_seconds=settings.challenge_rotation_backoff_base_seconds,
        difficulty=settings.challenge_default_difficulty,
    )


def reset_rotation_scheduler() -> None:
    get_rotation_scheduler.cache_clear()
