from __future__ import annotations

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.game.challenges.types import HintSide


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ActorView(_CamelModel):
    id: int
    name: str
    profile_path: str | None = Field(default=None, alias="profilePath")


class DailyChallengeResponse(_CamelModel):
    id: UUID
    challenge_date: date = Field(alias="date")
    status: str
    start_actor: ActorView = Field(alias="startActor")
    end_actor: ActorView = Field(alias="endActor")
    difficulty: str
    estimated_moves: int | None = Field(default=None, alias="estimatedMoves")
    par: int | None = None
    hints_used: int = Field(alias="hintsUsed")


class CompletionRequest(_CamelModel):
    challenge_id: UUID = Field(alias="challengeId")
    moves: int
    connections: str | list[Any] | dict[str, Any] = ""


class CompletionView(_CamelModel):
    id: UUID
    challenge_id: UUID = Field(alias="challengeId")
    moves: int
    connections: str
    trophy_tier: str = Field(alias="trophyTier")
    completed_at: datetime = Field(alias="completedAt")


class CompletionStatsView(_CamelModel):
    total_completions: int = Field(alias="totalCompletions")
    total_moves: int = Field(alias="totalMoves")


class CompletionResponse(_CamelModel):
    created: bool
    completion: CompletionView
    stats: CompletionStatsView


class UserStatsResponse(_CamelModel):
    user_id: str = Field(alias="userId")
    total_completions: int = Field(alias="totalCompletions")
    total_moves: int = Field(alias="totalMoves")
    average_moves: float | None = Field(default=None, alias="averageMoves")
    trophies: dict[str, int]
    completions_by_moves: dict[str, int] = Field(alias="completionsByMoves")
    current_streak: int = Field(alias="currentStreak")
    max_streak: int = Field(alias="maxStreak")
    last_played_date: date | None = Field(default=None, alias="lastPlayedDate")


class HintRequest(_CamelModel):
    actor_type: HintSide = Field(alias="actorType")


class HintMovieView(_CamelModel):
    id: int
    title: str
    release_date: str | None = Field(default=None, alias="releaseDate")


class ActorHintView(_CamelModel):
    actor_type: HintSide = Field(alias="actorType")
    actor_id: int = Field(alias="actorId")
    actor_name: str = Field(alias="actorName")
    movies: list[HintMovieView]


class HintResponse(_CamelModel):
    hint: ActorHintView
    hints_used: int = Field(alias="hintsUsed")
    hints_remaining: int = Field(alias="hintsRemaining")
    newly_revealed: bool = Field(alias="newlyRevealed")


class HintsResponse(_CamelModel):
    hints_used: int = Field(alias="hintsUsed")
    hints_remaining: int = Field(alias="hintsRemaining")
    start_actor_hint: ActorHintView | None = Field(default=None, alias="startActorHint")
    end_actor_hint: ActorHintView | None = Field(default=None, alias="endActorHint")
