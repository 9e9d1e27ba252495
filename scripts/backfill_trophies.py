from __future__ import annotations

import argparse
import asyncio
from datetime import datetime, timezone

from app.core.config import get_settings
from app.core.logging import configure_logging
from app.db.session import SessionLocal, dispose_engine
from app.game.completions.maintenance import rebuild_user_stats


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Recompute user_stats completion, trophy and move counters from stored completions",
    )
    parser.add_argument(
        "--user-id",
        action="append",
        dest="user_ids",
        help="limit the rebuild to this user (repeatable)",
    )
    return parser.parse_args()


async def _run() -> int:
    args = _parse_args()
    configure_logging(get_settings().log_level, service="scripts")
    try:
        async with SessionLocal.begin() as session:
            report = await rebuild_user_stats(
                session,
                now_utc=datetime.now(timezone.utc),
                user_ids=args.user_ids,
            )
    finally:
        await dispose_engine()

    print(f"users_rebuilt={report.users_rebuilt}")  # noqa: T201
    return 0


def main() -> int:
    return asyncio.run(_run())


if __name__ == "__main__":
    raise SystemExit(main())
