from __future__ import annotations

import json
from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Header, HTTPException, Response, status

from app.api.routes.challenges_models import (
    ActorHintView,
    ActorView,
    CompletionRequest,
    CompletionResponse,
    CompletionStatsView,
    CompletionView,
    DailyChallengeResponse,
    HintMovieView,
    HintRequest,
    HintResponse,
    HintsResponse,
    UserStatsResponse,
)
from app.db.models.daily_challenges import DailyChallenge
from app.db.repo.challenges_repo import ChallengesRepo
from app.db.session import SessionLocal
from app.game.challenges.errors import HintUnavailableError
from app.game.challenges.hints import ChallengeHintService, get_hint_source
from app.game.challenges.types import ActorHint, ChallengeStatus
from app.game.completions.errors import CompletionValidationError
from app.game.completions.service import CompletionLedgerService
from app.game.completions.types import CompletionResult, StatsSnapshot
from app.game.trophies.rules import resolve_par

router = APIRouter(prefix="/api", tags=["challenges"])
logger = structlog.get_logger(__name__)


def _require_user_id(x_user_id: str | None) -> str:
    user_id = (x_user_id or "").strip()
    if not user_id or len(user_id) > 64:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail={"code": "E_UNAUTHORIZED"})
    return user_id


def _serialize_connections(value: object) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), sort_keys=True)


def _challenge_par(challenge: DailyChallenge) -> int | None:
    try:
        return resolve_par(estimated_moves=challenge.estimated_moves, difficulty=challenge.difficulty)
    except ValueError:
        return None


def challenge_as_response(challenge: DailyChallenge) -> DailyChallengeResponse:
    return DailyChallengeResponse(
        id=challenge.id,
        challenge_date=challenge.challenge_date,
        status=challenge.status,
        start_actor=ActorView(
            id=challenge.start_actor_id,
            name=challenge.start_actor_name,
            profile_path=challenge.start_actor_profile_path,
        ),
        end_actor=ActorView(
            id=challenge.end_actor_id,
            name=challenge.end_actor_name,
            profile_path=challenge.end_actor_profile_path,
        ),
        difficulty=challenge.difficulty,
        estimated_moves=challenge.estimated_moves,
        par=_challenge_par(challenge),
        hints_used=challenge.hints_used,
    )


def _completion_as_response(result: CompletionResult) -> CompletionResponse:
    record = result.record
    return CompletionResponse(
        created=result.created,
        completion=CompletionView(
            id=record.id,
            challenge_id=record.challenge_id,
            moves=record.moves,
            connections=record.connections,
            trophy_tier=record.trophy_tier.value,
            completed_at=record.completed_at,
        ),
        stats=CompletionStatsView(
            total_completions=result.stats.total_completions,
            total_moves=result.stats.total_moves,
        ),
    )


def _stats_as_response(stats: StatsSnapshot) -> UserStatsResponse:
    return UserStatsResponse(
        user_id=stats.user_id,
        total_completions=stats.total_completions,
        total_moves=stats.total_moves,
        average_moves=stats.average_moves,
        trophies={tier.value: count for tier, count in stats.trophies.items()},
        completions_by_moves={str(moves): count for moves, count in stats.completions_by_moves.items()},
        current_streak=stats.current_streak,
        max_streak=stats.max_streak,
        last_played_date=stats.last_played_date,
    )


@router.get("/daily-challenge", response_model=DailyChallengeResponse)
async def get_daily_challenge() -> DailyChallengeResponse:
    async with SessionLocal() as session:
        challenge = await ChallengesRepo.get_by_status(session, ChallengeStatus.ACTIVE.value)
    if challenge is None:
        raise HTTPException(status_code=404, detail={"code": "E_CHALLENGE_NOT_FOUND"})
    return challenge_as_response(challenge)


def _hint_as_view(hint: ActorHint) -> ActorHintView:
    return ActorHintView(
        actor_type=hint.side,
        actor_id=hint.actor_id,
        actor_name=hint.actor_name,
        movies=[
            HintMovieView(id=movie.id, title=movie.title, release_date=movie.release_date) for movie in hint.movies
        ],
    )


@router.get("/daily-challenge/hints", response_model=HintsResponse)
async def get_daily_challenge_hints() -> HintsResponse:
    async with SessionLocal() as session:
        snapshot = await ChallengeHintService.get_hints(session)
    if snapshot is None:
        raise HTTPException(status_code=404, detail={"code": "E_CHALLENGE_NOT_FOUND"})
    return HintsResponse(
        hints_used=snapshot.hints_used,
        hints_remaining=snapshot.hints_remaining,
        start_actor_hint=_hint_as_view(snapshot.start) if snapshot.start is not None else None,
        end_actor_hint=_hint_as_view(snapshot.end) if snapshot.end is not None else None,
    )


@router.post("/daily-challenge/hint", response_model=HintResponse)
async def reveal_daily_challenge_hint(payload: HintRequest) -> HintResponse:
    try:
        async with SessionLocal.begin() as session:
            reveal = await ChallengeHintService.reveal_hint(
                session,
                side=payload.actor_type,
                hint_source=get_hint_source(),
            )
    except HintUnavailableError as exc:
        logger.warning("challenge_hint_unavailable", side=payload.actor_type.value, error=str(exc))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": "E_HINT_UNAVAILABLE"},
        ) from exc

    if reveal is None:
        raise HTTPException(status_code=404, detail={"code": "E_CHALLENGE_NOT_FOUND"})
    return HintResponse(
        hint=_hint_as_view(reveal.hint),
        hints_used=reveal.hints_used,
        hints_remaining=reveal.hints_remaining,
        newly_revealed=reveal.newly_revealed,
    )


@router.post("/user-challenge-completion", response_model=CompletionResponse)
async def record_challenge_completion(
    payload: CompletionRequest,
    response: Response,
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
) -> CompletionResponse:
    user_id = _require_user_id(x_user_id)
    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await CompletionLedgerService.record_completion(
                session,
                user_id=user_id,
                challenge_id=payload.challenge_id,
                moves=payload.moves,
                connections=_serialize_connections(payload.connections),
                now_utc=now_utc,
            )
    except CompletionValidationError as exc:
        logger.info(
            "challenge_completion_rejected",
            user_id=user_id,
            challenge_id=str(payload.challenge_id),
            code=exc.code,
        )
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"code": "E_VALIDATION", "reason": exc.code, "message": exc.message},
        ) from exc

    response.status_code = status.HTTP_201_CREATED if result.created else status.HTTP_200_OK
    return _completion_as_response(result)


@router.get("/user/stats", response_model=UserStatsResponse)
async def get_user_stats(
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
) -> UserStatsResponse:
    user_id = _require_user_id(x_user_id)
    async with SessionLocal.begin() as session:
        stats = await CompletionLedgerService.get_stats(
            session,
            user_id=user_id,
            now_utc=datetime.now(timezone.utc),
        )
    return _stats_as_response(stats)
