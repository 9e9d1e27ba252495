from __future__ import annotations

from enum import Enum


class TrophyTier(str, Enum):
    WALK_OF_FAME = "walkOfFame"
    OSCAR = "oscar"
    GOLDEN_GLOBE = "goldenGlobe"
    EMMY = "emmy"
    SAG = "sag"
    POPCORN = "popcorn"


class ChallengeDifficulty(str, Enum):
    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"
