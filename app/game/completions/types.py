from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from app.game.trophies.types import TrophyTier


@dataclass(frozen=True, slots=True)
class CompletionRecord:
    id: UUID
    user_id: str
    challenge_id: UUID
    moves: int
    connections: str
    trophy_tier: TrophyTier
    completed_at: datetime


@dataclass(frozen=True, slots=True)
class StatsSnapshot:
    user_id: str
    total_completions: int
    total_moves: int
    trophies: dict[TrophyTier, int]
    completions_by_moves: dict[int, int]
    current_streak: int
    max_streak: int
    last_played_date: date | None

    @property
    def average_moves(self) -> float | None:
        if self.total_completions == 0:
            return None
        return round(self.total_moves / self.total_completions, 1)


@dataclass(frozen=True, slots=True)
class CompletionResult:
    created: bool
    record: CompletionRecord
    stats: StatsSnapshot


@dataclass(frozen=True, slots=True)
class StreakUpdate:
    current_streak: int
    max_streak: int
    last_played_date: date


@dataclass(frozen=True, slots=True)
class DedupeReport:
    groups_repaired: int
    records_deleted: int


@dataclass(frozen=True, slots=True)
class StatsRebuildReport:
    users_rebuilt: int
