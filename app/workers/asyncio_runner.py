from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable
from typing import TypeVar

import structlog

from app.db.session import dispose_engine

T = TypeVar("T")

logger = structlog.get_logger(__name__)


async def _run_with_fresh_db_pool(awaitable: Awaitable[T], *, job_name: str) -> T:
    # asyncpg connections are bound to the loop that opened them; each job gets its own.
    await dispose_engine()
    started = time.monotonic()
    try:
        with structlog.contextvars.bound_contextvars(job=job_name):
            result = await awaitable
            logger.info("async_job_finished", duration_ms=int((time.monotonic() - started) * 1000))
            return result
    finally:
        await dispose_engine()


def run_async_job(awaitable: Awaitable[T], *, job_name: str = "async_job") -> T:
    return asyncio.run(_run_with_fresh_db_pool(awaitable, job_name=job_name))
