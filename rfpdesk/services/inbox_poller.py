"""Recurring inbox poll feeding the proposal ingestion path."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from contextlib import AbstractContextManager
from dataclasses import dataclass

from sqlalchemy.orm import Session

from rfpdesk.core.config import PollingConfig, get_config
from rfpdesk.database import db as db_module
from rfpdesk.llm.gateway import AiGateway
from rfpdesk.services.email_transport import EmailTransport, InboundMessage
from rfpdesk.services.proposal_service import ProposalService

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractContextManager[Session]]


@dataclass(frozen=True)
class IngestOutcome:
    message: InboundMessage
    proposal_id: str | None


def ingest_messages(
    messages: Iterable[InboundMessage],
    transport: EmailTransport,
    gateway: AiGateway | None = None,
    session_factory: SessionFactory | None = None,
) -> list[IngestOutcome]:
    """Ingest messages one at a time, each in its own session.

    Matched IMAP messages are flagged ``\\Seen``; dropped ones stay unread.
    """
    factory = session_factory or db_module.get_db_session
    outcomes: list[IngestOutcome] = []
    for message in messages:
        try:
            with factory() as db:
                try:
                    proposal = ProposalService(db, gateway=gateway).process_inbound_message(message)
                except Exception:
                    # The session may be reused for the next message.
                    db.rollback()
                    raise
                proposal_id = proposal.id if proposal is not None else None
        except Exception:
            logger.exception(
                "inbox.ingest.failed",
                extra={"event": "inbox.ingest.failed", "message_id": message.message_id},
            )
            proposal_id = None
        if proposal_id is not None and message.uid:
            transport.mark_seen(message.uid)
        outcomes.append(IngestOutcome(message=message, proposal_id=proposal_id))
    return outcomes


class InboxPoller:
    """Daemon thread that polls once at start and then every interval.

    A failing pass is logged and the next one is scheduled regardless.
    """

    def __init__(
        self,
        transport: EmailTransport | None = None,
        config: PollingConfig | None = None,
        gateway: AiGateway | None = None,
        session_factory: SessionFactory | None = None,
    ) -> None:
        self.transport = transport or EmailTransport()
        self.config = config or get_config().polling()
        self.gateway = gateway
        self.session_factory = session_factory
        self._stop_event = threading.Event()
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> list[IngestOutcome]:
        messages = self.transport.poll_inbox()
        if not messages:
            return []
        outcomes = ingest_messages(
            messages,
            self.transport,
            gateway=self.gateway,
            session_factory=self.session_factory,
        )
        logger.info(
            "inbox.poll.completed",
            extra={
                "event": "inbox.poll.completed",
                "message_count": len(outcomes),
                "ingested": sum(1 for outcome in outcomes if outcome.proposal_id),
            },
        )
        return outcomes

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.run_once()
            except Exception:
                logger.exception("inbox.poll.failed", extra={"event": "inbox.poll.failed"})
            self._stop_event.wait(self.config.interval_seconds)

    def start(self) -> bool:
        """Start polling. Returns False when already running."""
        with self._lock:
            if self.is_running:
                return False
            self._stop_event.clear()
            self._thread = threading.Thread(target=self._run_loop, name="InboxPoller", daemon=True)
            self._thread.start()
        logger.info(
            "inbox.poller.started",
            extra={"event": "inbox.poller.started", "interval_seconds": self.config.interval_seconds},
        )
        return True

    def stop(self, timeout: float = 5.0) -> bool:
        """Stop polling. Returns False when it was not running."""
        with self._lock:
            thread = self._thread
            if thread is None:
                return False
            self._stop_event.set()
            if thread.is_alive():
                thread.join(timeout=timeout)
            self._thread = None
        logger.info("inbox.poller.stopped", extra={"event": "inbox.poller.stopped"})
        return True
