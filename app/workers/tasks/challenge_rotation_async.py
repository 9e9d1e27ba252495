from __future__ import annotations

from datetime import datetime, timezone

from app.game.challenges.rotation import get_rotation_scheduler


async def run_challenge_rotation_async(*, now_utc: datetime | None = None) -> dict[str, object]:
    result = await get_rotation_scheduler().rotate(now_utc=now_utc or datetime.now(timezone.utc))
    return result.as_dict()
