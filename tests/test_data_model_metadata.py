from __future__ import annotations

from sqlalchemy import CheckConstraint, Index, UniqueConstraint

from app.db.models import (  # noqa: F401
    ChallengeCompletion,
    DailyChallenge,
    SubscriptionEntitlement,
    SubscriptionNotification,
    UserStats,
)
from app.db.models.base import Base


def test_all_tables_registered() -> None:
    assert set(Base.metadata.tables) == {
        "daily_challenges",
        "user_challenge_completions",
        "user_stats",
        "subscription_entitlements",
        "subscription_notifications",
    }


def test_completion_is_unique_per_user_and_challenge() -> None:
    table = Base.metadata.tables["user_challenge_completions"]
    unique_constraints = {
        constraint.name: tuple(column.name for column in constraint.columns)
        for constraint in table.constraints
        if isinstance(constraint, UniqueConstraint)
    }

    assert unique_constraints["uq_user_challenge_completions_user_challenge"] == ("user_id", "challenge_id")


def test_single_active_and_single_next_are_partial_unique_indexes() -> None:
    table = Base.metadata.tables["daily_challenges"]
    partial_indexes = {
        index.name: str(index.dialect_options["postgresql"]["where"])
        for index in table.indexes
        if isinstance(index, Index) and index.unique
    }

    assert "status = 'active'" in partial_indexes["uq_daily_challenges_single_active"]
    assert "status = 'next'" in partial_indexes["uq_daily_challenges_single_next"]


def test_completion_moves_are_bounded() -> None:
    table = Base.metadata.tables["user_challenge_completions"]
    checks = {
        constraint.name: str(constraint.sqltext)
        for constraint in table.constraints
        if isinstance(constraint, CheckConstraint)
    }

    assert "BETWEEN 1 AND 6" in checks["ck_user_challenge_completions_moves_range"]


def test_daily_challenge_stores_one_hint_per_actor() -> None:
    columns = DailyChallenge.__table__.columns

    assert columns["start_actor_hint"].nullable is True
    assert columns["end_actor_hint"].nullable is True
    assert columns["hints_used"].nullable is False
