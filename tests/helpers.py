from __future__ import annotations

from types import SimpleNamespace
from typing import Any

from app.game.completions.maintenance import COUNTER_COLUMNS


class DummySessionBegin:
    def __init__(self, session: object) -> None:
        self._session = session

    async def __aenter__(self) -> object:
        return self._session

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


class DummySessionLocal:
    """Stands in for ``SessionLocal`` in both ``SessionLocal()`` and ``.begin()`` forms."""

    def __init__(self, session: object | None = None) -> None:
        self.session = session if session is not None else object()
        self.begin_calls = 0

    def __call__(self) -> DummySessionBegin:
        return DummySessionBegin(self.session)

    def begin(self) -> DummySessionBegin:
        self.begin_calls += 1
        return DummySessionBegin(self.session)


def stats_row(user_id: str, **overrides: Any) -> SimpleNamespace:
    values: dict[str, Any] = {column: 0 for column in COUNTER_COLUMNS}
    values.update(current_streak=0, max_streak=0, last_played_date=None)
    values.update(overrides)
    return SimpleNamespace(user_id=user_id, **values)
