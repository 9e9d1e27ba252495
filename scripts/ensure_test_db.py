from __future__ import annotations

import argparse
import asyncio
import re
from pathlib import Path

import asyncpg
from alembic import command
from alembic.config import Config
from sqlalchemy.engine import make_url

from app.core.config import get_settings
from app.core.integration_db_safety import assert_safe_integration_db

IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
ALEMBIC_INI = Path(__file__).resolve().parent.parent / "alembic.ini"


async def _ensure_database_exists(database_url: str) -> None:
    parsed = make_url(database_url)
    db_name = (parsed.database or "").strip()
    if IDENTIFIER_RE.fullmatch(db_name) is None:
        raise RuntimeError(f"Unsupported database name '{db_name}'. Only [A-Za-z0-9_] identifiers are supported.")
    if parsed.username is None:
        raise RuntimeError("DATABASE_URL username is required.")

    host = parsed.host or "localhost"
    port = int(parsed.port or 5432)
    conn = await asyncpg.connect(
        host=host,
        port=port,
        user=parsed.username,
        password=parsed.password,
        database="postgres",
    )
    try:
        exists = await conn.fetchval("SELECT 1 FROM pg_database WHERE datname = $1", db_name)
        if exists:
            print(f"ensure_test_db: exists db={db_name} host={host}:{port}")  # noqa: T201
            return
        await conn.execute(f'CREATE DATABASE "{db_name}"')
        print(f"ensure_test_db: created db={db_name} host={host}:{port}")  # noqa: T201
    finally:
        await conn.close()


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create the local integration-test database and migrate it")
    parser.add_argument("--skip-migrations", action="store_true")
    return parser.parse_args()


def main() -> int:
    args = _parse_args()
    database_url = get_settings().database_url
    assert_safe_integration_db(database_url)
    asyncio.run(_ensure_database_exists(database_url))

    if not args.skip_migrations:
        command.upgrade(Config(str(ALEMBIC_INI)), "head")
        print("ensure_test_db: migrated to head")  # noqa: T201
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
