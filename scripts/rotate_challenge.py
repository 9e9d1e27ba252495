from __future__ import annotations

import argparse
import asyncio
import json
from datetime import datetime, timezone

from app.core.config import get_settings
from app.core.logging import configure_logging
from app.db.session import dispose_engine
from app.game.challenges.rotation import get_rotation_scheduler


def _parse_utc(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run one challenge rotation outside the beat schedule")
    parser.add_argument("--now-utc", type=_parse_utc, help="ISO datetime to rotate as (default: now)")
    return parser.parse_args()


async def _run() -> int:
    args = _parse_args()
    configure_logging(get_settings().log_level, service="scripts")
    try:
        result = await get_rotation_scheduler().rotate(now_utc=args.now_utc)
    finally:
        await dispose_engine()

    print(json.dumps(result.as_dict(), indent=2))  # noqa: T201
    return 0 if not result.fallback_failed else 1


def main() -> int:
    return asyncio.run(_run())


if __name__ == "__main__":
    raise SystemExit(main())
