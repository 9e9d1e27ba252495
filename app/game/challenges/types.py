from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from uuid import UUID


class ChallengeStatus(str, Enum):
    NEXT = "next"
    ACTIVE = "active"
    ARCHIVED = "archived"


class PromotionOutcome(str, Enum):
    PROMOTED = "promoted"
    ALREADY_ROTATED = "already_rotated"
    NO_NEXT = "no_next"
    STORE_UNAVAILABLE = "store_unavailable"


@dataclass(frozen=True, slots=True)
class Actor:
    id: int
    name: str
    profile_path: str | None = None


@dataclass(frozen=True, slots=True)
class ActorPair:
    start: Actor
    end: Actor

    @property
    def actor_ids(self) -> frozenset[int]:
        return frozenset({self.start.id, self.end.id})


@dataclass(frozen=True, slots=True)
class PromotionResult:
    outcome: PromotionOutcome
    attempts: int
    active_challenge_id: UUID | None = None
    archived_challenge_id: UUID | None = None


@dataclass(frozen=True, slots=True)
class RotationResult:
    civil_date: date
    promotion: PromotionOutcome
    promotion_attempts: int
    fallback_generated: bool
    fallback_failed: bool
    next_generated: bool
    next_failed: bool
    active_challenge_id: UUID | None
    next_challenge_id: UUID | None

    def as_dict(self) -> dict[str, object]:
        return {
            "civil_date": self.civil_date.isoformat(),
            "promotion": self.promotion.value,
            "promotion_attempts": self.promotion_attempts,
            "fallback_generated": self.fallback_generated,
            "fallback_failed": self.fallback_failed,
            "next_generated": self.next_generated,
            "next_failed": self.next_failed,
            "active_challenge_id": str(self.active_challenge_id) if self.active_challenge_id else None,
            "next_challenge_id": str(self.next_challenge_id) if self.next_challenge_id else None,
        }


@dataclass(frozen=True, slots=True)
class NextChallengeResult:
    civil_date: date
    challenge_id: UUID | None
    generated: bool
    failed: bool
    replaced_challenge_id: UUID | None = None

    def as_dict(self) -> dict[str, object]:
        return {
            "civil_date": self.civil_date.isoformat(),
            "challenge_id": str(self.challenge_id) if self.challenge_id else None,
            "generated": self.generated,
            "failed": self.failed,
            "replaced_challenge_id": str(self.replaced_challenge_id) if self.replaced_challenge_id else None,
        }


class HintSide(str, Enum):
    START = "start"
    END = "end"


@dataclass(frozen=True, slots=True)
class HintMovie:
    id: int
    title: str
    release_date: str | None = None


@dataclass(frozen=True, slots=True)
class ActorHint:
    side: HintSide
    actor_id: int
    actor_name: str
    movies: tuple[HintMovie, ...]


@dataclass(frozen=True, slots=True)
class HintReveal:
    hint: ActorHint
    hints_used: int
    hints_remaining: int
    newly_revealed: bool


@dataclass(frozen=True, slots=True)
class HintsSnapshot:
    challenge_id: UUID
    hints_used: int
    hints_remaining: int
    start: ActorHint | None
    end: ActorHint | None
