from __future__ import annotations

from uuid import UUID

import structlog
from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from app.api.routes.challenges import challenge_as_response
from app.api.routes.challenges_models import ActorView, DailyChallengeResponse
from app.api.routes.internal_access import assert_internal_access
from app.core.config import get_settings
from app.db.repo.challenges_repo import ChallengesRepo
from app.db.session import SessionLocal
from app.game.challenges.rotation import get_rotation_scheduler
from app.game.challenges.types import Actor, ActorPair, ChallengeStatus, NextChallengeResult

router = APIRouter(prefix="/internal/challenges", tags=["internal", "challenges"])
logger = structlog.get_logger(__name__)


class SetNextChallengeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start_actor: ActorView = Field(alias="startActor")
    end_actor: ActorView = Field(alias="endActor")


class NextChallengeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    challenge: DailyChallengeResponse
    generated: bool
    replaced_challenge_id: UUID | None = Field(default=None, alias="replacedChallengeId")


def _assert_access(request: Request) -> None:
    assert_internal_access(
        request,
        settings=get_settings(),
        logger=logger,
        event="internal_challenges_auth_failed",
    )


async def _next_challenge_response(result: NextChallengeResult) -> NextChallengeResponse:
    async with SessionLocal() as session:
        challenge = await ChallengesRepo.get_by_status(session, ChallengeStatus.NEXT.value)
    if challenge is None:
        raise HTTPException(status_code=503, detail={"code": "E_NEXT_CHALLENGE_UNAVAILABLE"})
    return NextChallengeResponse(
        challenge=challenge_as_response(challenge),
        generated=result.generated,
        replaced_challenge_id=result.replaced_challenge_id,
    )


@router.post("/rotate")
async def trigger_rotation(request: Request) -> dict[str, object]:
    _assert_access(request)
    logger.info("challenge_rotation_manual_trigger")
    result = await get_rotation_scheduler().rotate()
    return result.as_dict()


@router.get("/next", response_model=NextChallengeResponse)
async def get_next_challenge(request: Request) -> NextChallengeResponse:
    _assert_access(request)
    result = await get_rotation_scheduler().ensure_next()
    return await _next_challenge_response(result)


@router.post("/next", response_model=NextChallengeResponse)
async def set_next_challenge(payload: SetNextChallengeRequest, request: Request) -> NextChallengeResponse:
    _assert_access(request)
    pair = ActorPair(
        start=Actor(
            id=payload.start_actor.id,
            name=payload.start_actor.name,
            profile_path=payload.start_actor.profile_path,
        ),
        end=Actor(
            id=payload.end_actor.id,
            name=payload.end_actor.name,
            profile_path=payload.end_actor.profile_path,
        ),
    )
    try:
        result = await get_rotation_scheduler().replace_next(pair)
    except ValueError as exc:
        raise HTTPException(
            status_code=422,
            detail={"code": "E_VALIDATION", "message": str(exc)},
        ) from exc
    logger.info("challenge_next_manual_set", start_actor_id=pair.start.id, end_actor_id=pair.end.id)
    return await _next_challenge_response(result)


@router.post("/next/reset", response_model=NextChallengeResponse)
async def reset_next_challenge(request: Request) -> NextChallengeResponse:
    _assert_access(request)
    logger.info("challenge_next_manual_reset")
    result = await get_rotation_scheduler().reset_next()
    return await _next_challenge_response(result)
