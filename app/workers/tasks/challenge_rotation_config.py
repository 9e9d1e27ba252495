from __future__ import annotations

from app.core.config import get_settings

settings = get_settings()


def _clamp_hour(value: int) -> int:
    return max(0, min(23, int(value)))


def _clamp_minute(value: int) -> int:
    return max(0, min(59, int(value)))


CHALLENGE_ROTATION_HOUR = _clamp_hour(settings.challenge_rotation_hour)
CHALLENGE_ROTATION_MINUTE = _clamp_minute(settings.challenge_rotation_minute)

__all__ = [
    "CHALLENGE_ROTATION_HOUR",
    "CHALLENGE_ROTATION_MINUTE",
]
