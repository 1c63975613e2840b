"""Celery application bootstrap."""

from __future__ import annotations

from celery import Celery

from rfpdesk.core.config import get_config

config = get_config()

celery_app = Celery(
    "rfpdesk",
    broker=config.CELERY_BROKER_URL,
    backend=config.CELERY_RESULT_BACKEND,
    include=["rfpdesk.tasks.ingestion_tasks"],
)
celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    beat_schedule={
        "poll-inbox": {
            "task": "rfpdesk.tasks.poll_inbox",
            "schedule": config.INBOX_POLL_INTERVAL_SECONDS,
        },
    },
)
