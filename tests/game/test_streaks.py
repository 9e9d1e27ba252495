from __future__ import annotations

from datetime import date

from app.game.completions.streaks import advance_streak


def test_first_play_starts_streak_at_one() -> None:
    update = advance_streak(current_streak=0, max_streak=0, last_played_date=None, played_on=date(2026, 4, 2))

    assert update.current_streak == 1
    assert update.max_streak == 1
    assert update.last_played_date == date(2026, 4, 2)


def test_consecutive_day_extends_streak_and_max() -> None:
    update = advance_streak(
        current_streak=3,
        max_streak=3,
        last_played_date=date(2026, 4, 1),
        played_on=date(2026, 4, 2),
    )

    assert update.current_streak == 4
    assert update.max_streak == 4


def test_gap_resets_streak_but_keeps_max() -> None:
    update = advance_streak(
        current_streak=5,
        max_streak=7,
        last_played_date=date(2026, 3, 28),
        played_on=date(2026, 4, 2),
    )

    assert update.current_streak == 1
    assert update.max_streak == 7
    assert update.last_played_date == date(2026, 4, 2)


def test_same_day_keeps_streak_unchanged() -> None:
    update = advance_streak(
        current_streak=2,
        max_streak=6,
        last_played_date=date(2026, 4, 2),
        played_on=date(2026, 4, 2),
    )

    assert update.current_streak == 2
    assert update.max_streak == 6
    assert update.last_played_date == date(2026, 4, 2)


def test_older_day_never_moves_last_played_backwards() -> None:
    update = advance_streak(
        current_streak=2,
        max_streak=2,
        last_played_date=date(2026, 4, 2),
        played_on=date(2026, 4, 1),
    )

    assert update.current_streak == 2
    assert update.last_played_date == date(2026, 4, 2)
