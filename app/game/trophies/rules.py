from __future__ import annotations

from app.game.trophies.types import ChallengeDifficulty, TrophyTier

MIN_MOVES = 1
MAX_MOVES = 6

DEFAULT_PAR_BY_DIFFICULTY: dict[ChallengeDifficulty, int] = {
    ChallengeDifficulty.EASY: 2,
    ChallengeDifficulty.NORMAL: 4,
    ChallengeDifficulty.HARD: 6,
}

TROPHY_STAT_COLUMNS: dict[TrophyTier, str] = {
    TrophyTier.WALK_OF_FAME: "trophy_walk_of_fame",
    TrophyTier.OSCAR: "trophy_oscar",
    TrophyTier.GOLDEN_GLOBE: "trophy_golden_globe",
    TrophyTier.EMMY: "trophy_emmy",
    TrophyTier.SAG: "trophy_sag",
    TrophyTier.POPCORN: "trophy_popcorn",
}

MOVES_STAT_COLUMNS: dict[int, str] = {
    moves: f"completions_at_{moves}_move" + ("" if moves == 1 else "s")
    for moves in range(MIN_MOVES, MAX_MOVES + 1)
}


def evaluate_trophy(moves: int, par: int) -> TrophyTier:
    """Maps a finished run to its trophy tier.

    One move always earns the Walk of Fame, whatever the par. Every other
    result is graded by its distance from par.
    """
    if moves == 1:
        return TrophyTier.WALK_OF_FAME

    relative = moves - par
    if relative <= -2:
        return TrophyTier.OSCAR
    if relative == -1:
        return TrophyTier.GOLDEN_GLOBE
    if relative == 0:
        return TrophyTier.EMMY
    if relative == 1:
        return TrophyTier.SAG
    return TrophyTier.POPCORN


def parse_difficulty(value: str | None) -> ChallengeDifficulty:
    if value is None:
        raise ValueError("challenge difficulty is missing")
    try:
        return ChallengeDifficulty(value)
    except ValueError as exc:
        raise ValueError(f"unknown challenge difficulty: {value!r}") from exc


def default_par(difficulty: str | None) -> int:
    return DEFAULT_PAR_BY_DIFFICULTY[parse_difficulty(difficulty)]


def resolve_par(*, estimated_moves: int | None, difficulty: str | None) -> int:
    if estimated_moves is not None:
        return int(estimated_moves)
    return default_par(difficulty)


def is_valid_moves(moves: int) -> bool:
    return MIN_MOVES <= moves <= MAX_MOVES
