from __future__ import annotations

from app.workers.asyncio_runner import run_async_job
from app.workers.celery_app import celery_app
from app.workers.tasks.challenge_rotation_async import (
    run_challenge_rotation_async as _run_challenge_rotation_async,
)
from app.workers.tasks.challenge_rotation_schedule import configure_challenge_rotation_schedule

run_challenge_rotation_async = _run_challenge_rotation_async

__all__ = [
    "run_challenge_rotation",
    "run_challenge_rotation_async",
]


@celery_app.task(name="app.workers.tasks.challenge_rotation.run_challenge_rotation")
def run_challenge_rotation() -> dict[str, object]:
    return run_async_job(run_challenge_rotation_async(), job_name="challenge_rotation")


configure_challenge_rotation_schedule(celery_app)
