from __future__ import annotations

import json
from functools import lru_cache
from typing import Any, Protocol

import httpx
import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.db.models.daily_challenges import DailyChallenge
from app.db.repo.challenges_repo import ChallengesRepo
from app.game.challenges.errors import HintUnavailableError
from app.game.challenges.types import ActorHint, ChallengeStatus, HintMovie, HintReveal, HintSide, HintsSnapshot

logger = structlog.get_logger(__name__)

HINTS_PER_CHALLENGE = 2
HINT_MOVIE_LIMIT = 5


class HintSource(Protocol):
    async def fetch_hint_movies(self, actor_id: int, *, limit: int) -> tuple[HintMovie, ...]: ...


def _movies_from_credits(payload: Any, *, limit: int) -> tuple[HintMovie, ...]:
    if not isinstance(payload, dict) or not isinstance(payload.get("cast") or [], list):
        raise HintUnavailableError("unexpected TMDB credits shape")

    seen: set[int] = set()
    ranked: list[tuple[float, HintMovie]] = []
    for item in payload.get("cast") or []:
        if not isinstance(item, dict) or item.get("id") is None or not item.get("title"):
            continue
        movie_id = int(item["id"])
        if movie_id in seen:
            continue
        seen.add(movie_id)
        movie = HintMovie(id=movie_id, title=str(item["title"]), release_date=item.get("release_date") or None)
        ranked.append((float(item.get("popularity") or 0.0), movie))

    ranked.sort(key=lambda entry: (-entry[0], entry[1].id))
    return tuple(movie for _, movie in ranked[:limit])


class TmdbHintSource:
    """Looks up an actor's most popular films as a hint."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    async def fetch_hint_movies(self, actor_id: int, *, limit: int) -> tuple[HintMovie, ...]:
        if not self._api_key:
            raise HintUnavailableError("TMDB api key is not configured")

        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.get(f"/person/{actor_id}/movie_credits", params={"api_key": self._api_key})
                response.raise_for_status()
                return _movies_from_credits(response.json(), limit=limit)
        except httpx.HTTPError as exc:
            raise HintUnavailableError(f"TMDB request failed: {exc}") from exc
        except (KeyError, TypeError, ValueError) as exc:
            raise HintUnavailableError(f"TMDB returned an unreadable body: {exc}") from exc


@lru_cache(maxsize=1)
def get_hint_source() -> HintSource:
    settings = get_settings()
    return TmdbHintSource(
        api_key=settings.tmdb_api_key,
        base_url=settings.tmdb_base_url,
        timeout_seconds=settings.tmdb_timeout_seconds,
    )


def _encode_movies(movies: tuple[HintMovie, ...]) -> str:
    return json.dumps(
        [{"id": movie.id, "title": movie.title, "release_date": movie.release_date} for movie in movies],
        separators=(",", ":"),
    )


def _decode_movies(content: str) -> tuple[HintMovie, ...]:
    return tuple(
        HintMovie(id=int(item["id"]), title=str(item["title"]), release_date=item.get("release_date"))
        for item in json.loads(content)
    )


def _actor_for(challenge: DailyChallenge, side: HintSide) -> tuple[int, str]:
    if side == HintSide.START:
        return challenge.start_actor_id, challenge.start_actor_name
    return challenge.end_actor_id, challenge.end_actor_name


def _stored_hint(challenge: DailyChallenge, side: HintSide, content: str | None) -> ActorHint | None:
    if not content:
        return None
    actor_id, actor_name = _actor_for(challenge, side)
    return ActorHint(side=side, actor_id=actor_id, actor_name=actor_name, movies=_decode_movies(content))


def _remaining(hints_used: int) -> int:
    return max(0, HINTS_PER_CHALLENGE - hints_used)


class ChallengeHintService:
    @staticmethod
    async def reveal_hint(
        session: AsyncSession,
        *,
        side: HintSide,
        hint_source: HintSource,
    ) -> HintReveal | None:
        """Reveals one actor's hint for the active challenge.

        Each actor's hint is fetched and counted once; repeat requests read the
        stored movies back. Returns None when no challenge is active.
        """
        challenge = await ChallengesRepo.get_by_status(session, ChallengeStatus.ACTIVE.value)
        if challenge is None:
            return None

        stored = challenge.start_actor_hint if side == HintSide.START else challenge.end_actor_hint
        existing = _stored_hint(challenge, side, stored)
        if existing is not None:
            return HintReveal(
                hint=existing,
                hints_used=challenge.hints_used,
                hints_remaining=_remaining(challenge.hints_used),
                newly_revealed=False,
            )

        actor_id, actor_name = _actor_for(challenge, side)
        movies = await hint_source.fetch_hint_movies(actor_id, limit=HINT_MOVIE_LIMIT)
        hints_used = await ChallengesRepo.record_hint(
            session,
            challenge.id,
            side=side.value,
            content=_encode_movies(movies),
        )
        if hints_used is not None:
            logger.info(
                "challenge_hint_revealed",
                challenge_id=str(challenge.id),
                side=side.value,
                actor_id=actor_id,
                hints_used=hints_used,
            )
            return HintReveal(
                hint=ActorHint(side=side, actor_id=actor_id, actor_name=actor_name, movies=movies),
                hints_used=hints_used,
                hints_remaining=_remaining(hints_used),
                newly_revealed=True,
            )

        # A concurrent request stored this hint first; serve its copy.
        state = await ChallengesRepo.get_hint_state(session, challenge.id)
        if state is None:
            return None
        hints_used, start_content, end_content = state
        content = start_content if side == HintSide.START else end_content
        winner = _stored_hint(challenge, side, content)
        return HintReveal(
            hint=winner or ActorHint(side=side, actor_id=actor_id, actor_name=actor_name, movies=movies),
            hints_used=hints_used,
            hints_remaining=_remaining(hints_used),
            newly_revealed=False,
        )

    @staticmethod
    async def get_hints(session: AsyncSession) -> HintsSnapshot | None:
        challenge = await ChallengesRepo.get_by_status(session, ChallengeStatus.ACTIVE.value)
        if challenge is None:
            return None
        return HintsSnapshot(
            challenge_id=challenge.id,
            hints_used=challenge.hints_used,
            hints_remaining=_remaining(challenge.hints_used),
            start=_stored_hint(challenge, HintSide.START, challenge.start_actor_hint),
            end=_stored_hint(challenge, HintSide.END, challenge.end_actor_hint),
        )
