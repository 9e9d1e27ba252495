from __future__ import annotations

from datetime import date, timedelta

from app.game.completions.types import StreakUpdate


def advance_streak(
    *,
    current_streak: int,
    max_streak: int,
    last_played_date: date | None,
    played_on: date,
) -> StreakUpdate:
    if last_played_date is not None and last_played_date >= played_on:
        # Same day (or a late write for an older day) keeps the streak.
        return StreakUpdate(
            current_streak=current_streak,
            max_streak=max(max_streak, current_streak),
            last_played_date=last_played_date,
        )

    if last_played_date is not None and last_played_date == played_on - timedelta(days=1):
        next_streak = current_streak + 1
    else:
        next_streak = 1

    return StreakUpdate(
        current_streak=next_streak,
        max_streak=max(max_streak, next_streak),
        last_played_date=played_on,
    )
