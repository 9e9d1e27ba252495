from __future__ import annotations

import random
from collections.abc import Iterable
from typing import Any, Protocol

import httpx
import structlog

from app.game.challenges.errors import GeneratorError
from app.game.challenges.types import Actor, ActorPair

logger = structlog.get_logger(__name__)

ACTING_DEPARTMENT = "Acting"


class ActorPairGenerator(Protocol):
    async def generate(self, *, exclude_actor_ids: frozenset[int]) -> ActorPair: ...


def pick_actor_pair(
    candidates: Iterable[Actor],
    *,
    exclude_actor_ids: frozenset[int],
    rng: random.Random,
) -> ActorPair:
    pool: dict[int, Actor] = {}
    for actor in candidates:
        if actor.id in exclude_actor_ids or actor.id in pool:
            continue
        pool[actor.id] = actor

    if len(pool) < 2:
        raise GeneratorError(f"actor pool too small after exclusions: {len(pool)}")

    start, end = rng.sample(sorted(pool.values(), key=lambda actor: actor.id), 2)
    return ActorPair(start=start, end=end)


def _actors_from_page(payload: Any) -> list[Actor]:
    if not isinstance(payload, dict):
        raise GeneratorError(f"unexpected TMDB page type: {type(payload).__name__}")
    results = payload.get("results") or []
    if not isinstance(results, list):
        raise GeneratorError("TMDB page results is not a list")

    actors: list[Actor] = []
    for item in results:
        if not isinstance(item, dict):
            continue
        if item.get("known_for_department") != ACTING_DEPARTMENT:
            continue
        if not item.get("profile_path") or item.get("id") is None:
            continue
        actors.append(
            Actor(
                id=int(item["id"]),
                name=str(item.get("name") or ""),
                profile_path=str(item["profile_path"]),
            )
        )
    return actors


class TmdbActorPairGenerator:
    """Picks two popular TMDB actors that did not feature in the previous challenge."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        timeout_seconds: float = 10.0,
        pool_pages: int = 5,
        rng: random.Random | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._pool_pages = max(1, int(pool_pages))
        self._rng = rng or random.Random()
        self._transport = transport

    async def _fetch_popular(self, client: httpx.AsyncClient) -> list[Actor]:
        actors: list[Actor] = []
        for page in range(1, self._pool_pages + 1):
            response = await client.get(
                "/person/popular",
                params={"api_key": self._api_key, "page": page},
            )
            response.raise_for_status()
            actors.extend(_actors_from_page(response.json()))
        return actors

    async def generate(self, *, exclude_actor_ids: frozenset[int]) -> ActorPair:
        if not self._api_key:
            raise GeneratorError("TMDB api key is not configured")

        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout_seconds,
                transport=self._transport,
            ) as client:
                candidates = await self._fetch_popular(client)
        except httpx.HTTPError as exc:
            raise GeneratorError(f"TMDB request failed: {exc}") from exc
        except (KeyError, TypeError, ValueError) as exc:
            raise GeneratorError(f"TMDB returned an unreadable body: {exc}") from exc

        pair = pick_actor_pair(candidates, exclude_actor_ids=exclude_actor_ids, rng=self._rng)
        logger.info(
            "actor_pair_generated",
            start_actor_id=pair.start.id,
            end_actor_id=pair.end.id,
            pool_size=len(candidates),
            excluded=sorted(exclude_actor_ids),
        )
        return pair
