from __future__ import annotations

import random

import httpx
import pytest

from app.game.challenges.errors import GeneratorError
from app.game.challenges.generator import TmdbActorPairGenerator, pick_actor_pair
from app.game.challenges.types import Actor


def _person(person_id: int, *, department: str = "Acting", profile_path: str | None = "/p.jpg") -> dict[str, object]:
    return {
        "id": person_id,
        "name": f"Person {person_id}",
        "known_for_department": department,
        "profile_path": profile_path,
    }


def _popular_page(*people: dict[str, object]) -> dict[str, object]:
    return {"page": 1, "results": list(people)}


def test_pick_actor_pair_skips_excluded_actors() -> None:
    candidates = [Actor(id=1, name="A"), Actor(id=2, name="B"), Actor(id=3, name="C")]

    for seed in range(10):
        pair = pick_actor_pair(candidates, exclude_actor_ids=frozenset({1}), rng=random.Random(seed))
        assert pair.actor_ids == frozenset({2, 3})


def test_pick_actor_pair_requires_two_distinct_actors() -> None:
    candidates = [Actor(id=1, name="A"), Actor(id=1, name="A"), Actor(id=2, name="B")]

    with pytest.raises(GeneratorError):
        pick_actor_pair(candidates, exclude_actor_ids=frozenset({2}), rng=random.Random(0))


@pytest.mark.asyncio
async def test_tmdb_generator_filters_pool_and_sends_api_key() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200,
            json=_popular_page(
                _person(10),
                _person(11),
                _person(12, department="Directing"),
                _person(13, profile_path=None),
                _person(14),
            ),
        )

    generator = TmdbActorPairGenerator(
        api_key="tmdb-key",
        base_url="https://tmdb.test/3",
        pool_pages=2,
        rng=random.Random(3),
        transport=httpx.MockTransport(handler),
    )

    pair = await generator.generate(exclude_actor_ids=frozenset({14}))

    assert pair.actor_ids == frozenset({10, 11})
    assert len(requests) == 2
    assert requests[0].url.path == "/3/person/popular"
    assert requests[0].url.params["api_key"] == "tmdb-key"
    assert [request.url.params["page"] for request in requests] == ["1", "2"]


@pytest.mark.asyncio
async def test_tmdb_generator_wraps_http_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"status_message": "unavailable"})

    generator = TmdbActorPairGenerator(
        api_key="tmdb-key",
        base_url="https://tmdb.test/3",
        pool_pages=1,
        transport=httpx.MockTransport(handler),
    )

    with pytest.raises(GeneratorError):
        await generator.generate(exclude_actor_ids=frozenset())


@pytest.mark.asyncio
async def test_tmdb_generator_requires_api_key() -> None:
    generator = TmdbActorPairGenerator(api_key="", base_url="https://tmdb.test/3")

    with pytest.raises(GeneratorError):
        await generator.generate(exclude_actor_ids=frozenset())


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        [{"unexpected": True}],
        {"results": "not-a-list"},
        {"results": [{"id": "abc", "known_for_department": "Acting", "profile_path": "/x.jpg"}]},
    ],
)
async def test_tmdb_generator_wraps_malformed_bodies(body: object) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=body)

    generator = TmdbActorPairGenerator(
        api_key="tmdb-key",
        base_url="https://tmdb.test/3",
        pool_pages=1,
        transport=httpx.MockTransport(handler),
    )

    with pytest.raises(GeneratorError):
        await generator.generate(exclude_actor_ids=frozenset())


@pytest.mark.asyncio
async def test_tmdb_generator_skips_non_object_results() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"results": ["junk", None, _person(1), _person(2)]})

    generator = TmdbActorPairGenerator(
        api_key="tmdb-key",
        base_url="https://tmdb.test/3",
        pool_pages=1,
        rng=random.Random(1),
        transport=httpx.MockTransport(handler),
    )

    pair = await generator.generate(exclude_actor_ids=frozenset())

    assert pair.actor_ids == frozenset({1, 2})
