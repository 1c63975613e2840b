"""Celery tasks for deployments that poll the inbox from a worker."""

from __future__ import annotations

import logging
from typing import Any

from rfpdesk.services.inbox_poller import InboxPoller
from rfpdesk.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


def poll_inbox_once(poller: InboxPoller | None = None) -> dict[str, Any]:
    """Run a single inbox pass and summarise it."""
    outcomes = (poller or InboxPoller()).run_once()
    return {
        "fetched": len(outcomes),
        "ingested": sum(1 for outcome in outcomes if outcome.proposal_id),
        "proposal_ids": [outcome.proposal_id for outcome in outcomes if outcome.proposal_id],
    }


@celery_app.task(bind=True, name="rfpdesk.tasks.poll_inbox")
def poll_inbox(self) -> dict[str, Any]:
    summary = poll_inbox_once()
    logger.info(
        "task.poll_inbox.completed",
        extra={
            "event": "task.poll_inbox.completed",
            "task_id": self.request.id,
            "fetched": summary["fetched"],
            "ingested": summary["ingested"],
        },
    )
    return summary
