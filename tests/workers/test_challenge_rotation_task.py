from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from app.core.config import get_settings
from app.workers import asyncio_runner
from app.workers.celery_app import celery_app
from app.workers.tasks import challenge_rotation, challenge_rotation_async
from app.workers.tasks.challenge_rotation_config import CHALLENGE_ROTATION_HOUR, CHALLENGE_ROTATION_MINUTE


def test_run_challenge_rotation_task_wrapper(monkeypatch) -> None:
    async def fake_async() -> dict[str, object]:
        return {"civil_date": "2026-04-02", "promotion": "promoted", "next_generated": True}

    async def fake_dispose() -> None:
        return None

    monkeypatch.setattr(challenge_rotation, "run_challenge_rotation_async", fake_async)
    monkeypatch.setattr(asyncio_runner, "dispose_engine", fake_dispose)

    result = challenge_rotation.run_challenge_rotation()
    assert result == {"civil_date": "2026-04-02", "promotion": "promoted", "next_generated": True}


@pytest.mark.asyncio
async def test_rotation_async_passes_explicit_time(monkeypatch) -> None:
    seen: list[datetime] = []

    class _FakeScheduler:
        async def rotate(self, *, now_utc: datetime) -> SimpleNamespace:
            seen.append(now_utc)
            return SimpleNamespace(as_dict=lambda: {"promotion": "already_rotated"})

    monkeypatch.setattr(challenge_rotation_async, "get_rotation_scheduler", lambda: _FakeScheduler())
    now_utc = datetime(2026, 4, 2, 4, 0, tzinfo=timezone.utc)

    result = await challenge_rotation_async.run_challenge_rotation_async(now_utc=now_utc)

    assert result == {"promotion": "already_rotated"}
    assert seen == [now_utc]


def test_rotation_is_scheduled_daily_in_challenge_timezone() -> None:
    entry = celery_app.conf.beat_schedule["daily-challenge-rotation"]

    assert entry["task"] == "app.workers.tasks.challenge_rotation.run_challenge_rotation"
    assert celery_app.conf.timezone == get_settings().challenge_timezone
    assert entry["schedule"].hour == {CHALLENGE_ROTATION_HOUR}
    assert entry["schedule"].minute == {CHALLENGE_ROTATION_MINUTE}
