from __future__ import annotations

from celery.schedules import crontab

from app.workers.tasks.challenge_rotation_config import (
    CHALLENGE_ROTATION_HOUR,
    CHALLENGE_ROTATION_MINUTE,
)


def configure_challenge_rotation_schedule(celery_app) -> None:
    # crontab fields are read in celery_app.conf.timezone, the challenge zone.
    celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
    celery_app.conf.beat_schedule.update(
        {
            "daily-challenge-rotation": {
                "task": "app.workers.tasks.challenge_rotation.run_challenge_rotation",
                "schedule": crontab(
                    hour=CHALLENGE_ROTATION_HOUR,
                    minute=CHALLENGE_ROTATION_MINUTE,
                ),
                "options": {"queue": "q_normal"},
            },
        }
    )
