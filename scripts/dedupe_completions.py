from __future__ import annotations

import argparse
import asyncio

from app.core.config import get_settings
from app.core.logging import configure_logging
from app.db.session import SessionLocal, dispose_engine
from app.game.completions.maintenance import dedupe_completions


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Delete duplicate challenge completions, keeping the earliest per user and challenge",
    )
    parser.add_argument("--dry-run", action="store_true", help="report duplicates without deleting")
    return parser.parse_args()


async def _run() -> int:
    args = _parse_args()
    configure_logging(get_settings().log_level, service="scripts")
    try:
        async with SessionLocal.begin() as session:
            report = await dedupe_completions(session, dry_run=args.dry_run)
    finally:
        await dispose_engine()

    print(  # noqa: T201
        f"groups_repaired={report.groups_repaired} records_deleted={report.records_deleted} "
        f"dry_run={args.dry_run}"
    )
    return 0


def main() -> int:
    return asyncio.run(_run())


if __name__ == "__main__":
    raise SystemExit(main())
