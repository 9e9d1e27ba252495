from __future__ import annotations

from datetime import date, datetime, timezone
from types import SimpleNamespace
from uuid import UUID, uuid4

from fastapi.testclient import TestClient

from app.api.routes import challenges as challenges_routes
from app.db.repo.challenges_repo import ChallengesRepo
from app.game.challenges.errors import HintUnavailableError
from app.game.challenges.hints import ChallengeHintService
from app.game.challenges.types import ActorHint, HintMovie, HintReveal, HintSide, HintsSnapshot
from app.game.completions.errors import CompletionValidationError
from app.game.completions.service import CompletionLedgerService, empty_snapshot
from app.game.completions.types import CompletionRecord, CompletionResult
from app.game.trophies.types import TrophyTier
from app.main import app
from tests.helpers import DummySessionLocal

UTC = timezone.utc
CHALLENGE_ID = UUID("6f9d1c2e-1111-4a6b-9c3d-2f7e8a9b0c1d")


def _active_challenge(**overrides: object) -> SimpleNamespace:
    values: dict[str, object] = {
        "id": CHALLENGE_ID,
        "challenge_date": date(2026, 4, 2),
        "status": "active",
        "start_actor_id": 31,
        "start_actor_name": "Tom Hanks",
        "start_actor_profile_path": "/hanks.jpg",
        "end_actor_id": 1245,
        "end_actor_name": "Scarlett Johansson",
        "end_actor_profile_path": "/johansson.jpg",
        "difficulty": "normal",
        "estimated_moves": None,
        "hints_used": 0,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def _completion_result(*, created: bool, moves: int = 3) -> CompletionResult:
    stats = empty_snapshot("user-9")
    return CompletionResult(
        created=created,
        record=CompletionRecord(
            id=uuid4(),
            user_id="user-9",
            challenge_id=CHALLENGE_ID,
            moves=moves,
            connections='["a"]',
            trophy_tier=TrophyTier.GOLDEN_GLOBE,
            completed_at=datetime(2026, 4, 2, 15, 0, tzinfo=UTC),
        ),
        stats=stats,
    )


def test_daily_challenge_returns_active_with_par(monkeypatch) -> None:
    async def _get_by_status(session, status):
        assert status == "active"
        return _active_challenge()

    monkeypatch.setattr(challenges_routes, "SessionLocal", DummySessionLocal())
    monkeypatch.setattr(ChallengesRepo, "get_by_status", _get_by_status)

    client = TestClient(app)
    response = client.get("/api/daily-challenge")

    assert response.status_code == 200
    payload = response.json()
    assert payload["id"] == str(CHALLENGE_ID)
    assert payload["date"] == "2026-04-02"
    assert payload["startActor"] == {"id": 31, "name": "Tom Hanks", "profilePath": "/hanks.jpg"}
    assert payload["endActor"]["name"] == "Scarlett Johansson"
    assert payload["par"] == 4


def test_daily_challenge_returns_404_when_missing(monkeypatch) -> None:
    async def _get_by_status(session, status):
        return None

    monkeypatch.setattr(challenges_routes, "SessionLocal", DummySessionLocal())
    monkeypatch.setattr(ChallengesRepo, "get_by_status", _get_by_status)

    client = TestClient(app)
    response = client.get("/api/daily-challenge")

    assert response.status_code == 404
    assert response.json() == {"detail": {"code": "E_CHALLENGE_NOT_FOUND"}}


def test_completion_requires_user_header() -> None:
    client = TestClient(app)
    response = client.post(
        "/api/user-challenge-completion",
        json={"challengeId": str(CHALLENGE_ID), "moves": 3, "connections": []},
    )

    assert response.status_code == 401
    assert response.json() == {"detail": {"code": "E_UNAUTHORIZED"}}


def test_completion_returns_201_then_200_for_resubmission(monkeypatch) -> None:
    calls: list[dict[str, object]] = []
    outcomes = iter([True, False])

    async def _record_completion(session, **kwargs):
        calls.append(kwargs)
        return _completion_result(created=next(outcomes))

    monkeypatch.setattr(challenges_routes, "SessionLocal", DummySessionLocal())
    monkeypatch.setattr(CompletionLedgerService, "record_completion", _record_completion)

    client = TestClient(app)
    body = {"challengeId": str(CHALLENGE_ID), "moves": 3, "connections": [{"actorId": 31}, {"movieId": 13}]}
    first = client.post("/api/user-challenge-completion", json=body, headers={"X-User-Id": "user-9"})
    second = client.post("/api/user-challenge-completion", json=body, headers={"X-User-Id": "user-9"})

    assert first.status_code == 201
    assert first.json()["created"] is True
    assert first.json()["completion"]["trophyTier"] == "goldenGlobe"
    assert second.status_code == 200
    assert second.json()["created"] is False
    assert calls[0]["user_id"] == "user-9"
    assert calls[0]["challenge_id"] == CHALLENGE_ID
    assert calls[0]["connections"] == '[{"actorId":31},{"movieId":13}]'


def test_completion_validation_error_maps_to_422(monkeypatch) -> None:
    async def _record_completion(session, **kwargs):
        raise CompletionValidationError("E_MOVES_OUT_OF_RANGE", "moves must be between 1 and 6")

    monkeypatch.setattr(challenges_routes, "SessionLocal", DummySessionLocal())
    monkeypatch.setattr(CompletionLedgerService, "record_completion", _record_completion)

    client = TestClient(app)
    response = client.post(
        "/api/user-challenge-completion",
        json={"challengeId": str(CHALLENGE_ID), "moves": 9, "connections": "[]"},
        headers={"X-User-Id": "user-9"},
    )

    assert response.status_code == 422
    assert response.json() == {
        "detail": {
            "code": "E_VALIDATION",
            "reason": "E_MOVES_OUT_OF_RANGE",
            "message": "moves must be between 1 and 6",
        }
    }


def test_user_stats_returns_counters(monkeypatch) -> None:
    async def _get_stats(session, *, user_id, now_utc):
        return empty_snapshot(user_id)

    monkeypatch.setattr(challenges_routes, "SessionLocal", DummySessionLocal())
    monkeypatch.setattr(CompletionLedgerService, "get_stats", _get_stats)

    client = TestClient(app)
    response = client.get("/api/user/stats", headers={"X-User-Id": "user-9"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["userId"] == "user-9"
    assert payload["totalCompletions"] == 0
    assert payload["averageMoves"] is None
    assert payload["trophies"]["walkOfFame"] == 0
    assert payload["completionsByMoves"]["6"] == 0


def _hanks_hint() -> ActorHint:
    return ActorHint(
        side=HintSide.START,
        actor_id=31,
        actor_name="Tom Hanks",
        movies=(HintMovie(id=13, title="Forrest Gump", release_date="1994-07-06"),),
    )


def test_hint_reveal_returns_movies_and_remaining(monkeypatch) -> None:
    seen: dict[str, object] = {}

    async def _reveal_hint(session, *, side, hint_source):
        seen["side"] = side
        return HintReveal(hint=_hanks_hint(), hints_used=1, hints_remaining=1, newly_revealed=True)

    monkeypatch.setattr(challenges_routes, "SessionLocal", DummySessionLocal())
    monkeypatch.setattr(challenges_routes, "get_hint_source", lambda: object())
    monkeypatch.setattr(ChallengeHintService, "reveal_hint", _reveal_hint)

    client = TestClient(app)
    response = client.post("/api/daily-challenge/hint", json={"actorType": "start"})

    assert response.status_code == 200
    assert seen["side"] == HintSide.START
    payload = response.json()
    assert payload["hintsUsed"] == 1
    assert payload["hintsRemaining"] == 1
    assert payload["newlyRevealed"] is True
    assert payload["hint"]["actorName"] == "Tom Hanks"
    assert payload["hint"]["movies"] == [{"id": 13, "title": "Forrest Gump", "releaseDate": "1994-07-06"}]


def test_hint_reveal_rejects_unknown_actor_type() -> None:
    client = TestClient(app)
    response = client.post("/api/daily-challenge/hint", json={"actorType": "middle"})

    assert response.status_code == 422


def test_hint_reveal_maps_missing_challenge_and_source_failure(monkeypatch) -> None:
    outcomes: list[object] = [None, HintUnavailableError("tmdb down")]

    async def _reveal_hint(session, *, side, hint_source):
        outcome = outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(challenges_routes, "SessionLocal", DummySessionLocal())
    monkeypatch.setattr(challenges_routes, "get_hint_source", lambda: object())
    monkeypatch.setattr(ChallengeHintService, "reveal_hint", _reveal_hint)

    client = TestClient(app)
    missing = client.post("/api/daily-challenge/hint", json={"actorType": "end"})
    unavailable = client.post("/api/daily-challenge/hint", json={"actorType": "end"})

    assert missing.status_code == 404
    assert missing.json() == {"detail": {"code": "E_CHALLENGE_NOT_FOUND"}}
    assert unavailable.status_code == 503
    assert unavailable.json() == {"detail": {"code": "E_HINT_UNAVAILABLE"}}


def test_stored_hints_lists_revealed_sides(monkeypatch) -> None:
    async def _get_hints(session):
        return HintsSnapshot(
            challenge_id=CHALLENGE_ID,
            hints_used=1,
            hints_remaining=1,
            start=_hanks_hint(),
            end=None,
        )

    monkeypatch.setattr(challenges_routes, "SessionLocal", DummySessionLocal())
    monkeypatch.setattr(ChallengeHintService, "get_hints", _get_hints)

    client = TestClient(app)
    response = client.get("/api/daily-challenge/hints")

    assert response.status_code == 200
    payload = response.json()
    assert payload["hintsUsed"] == 1
    assert payload["startActorHint"]["actorType"] == "start"
    assert payload["endActorHint"] is None
