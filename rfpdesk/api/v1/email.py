"""Email surface: transport status, manual fetch, poller control and inbound webhook."""

from __future__ import annotations

import base64
import binascii
import hmac
import html
import re
from contextlib import nullcontext
from email.utils import make_msgid

from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from rfpdesk.core.config import Config
from rfpdesk.core.dependencies import (
    get_db_session,
    get_gateway,
    get_poller,
    get_proposal_service,
    get_settings,
    get_transport,
)
from rfpdesk.core.exceptions import ValidationError
from rfpdesk.llm.gateway import AiGateway
from rfpdesk.schemas.email import (
    FetchedMessage,
    FetchResponse,
    InboundEmailPayload,
    IngestResponse,
    PollingResponse,
    TransportStatusResponse,
)
from rfpdesk.services.attachment_extractor import Attachment
from rfpdesk.services.email_transport import EmailTransport, InboundMessage
from rfpdesk.services.inbox_poller import InboxPoller, ingest_messages
from rfpdesk.services.proposal_service import ProposalService

router = APIRouter(prefix="/email", tags=["email"])

_HTML_TAG = re.compile(r"<[^>]+>")


def _to_inbound(payload: InboundEmailPayload) -> InboundMessage:
    attachments = []
    for item in payload.attachments:
        try:
            content = base64.b64decode(item.content, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValidationError(f"Attachment {item.filename} is not valid base64.") from exc
        attachments.append(
            Attachment(filename=item.filename, content_type=item.content_type, size=len(content), content=content)
        )
    body = payload.text or html.unescape(_HTML_TAG.sub(" ", payload.html or "")).strip()
    return InboundMessage(
        message_id=payload.message_id or make_msgid(domain="webhook.local"),
        sender=payload.sender,
        subject=payload.subject,
        body=body,
        attachments=attachments,
    )


@router.get("/status", response_model=TransportStatusResponse)
def transport_status(
    transport: EmailTransport = Depends(get_transport),
    poller: InboxPoller = Depends(get_poller),
) -> TransportStatusResponse:
    return TransportStatusResponse(**transport.status(), polling=poller.is_running)


@router.post("/fetch", response_model=FetchResponse)
def fetch_and_ingest(
    db: Session = Depends(get_db_session),
    transport: EmailTransport = Depends(get_transport),
    gateway: AiGateway = Depends(get_gateway),
) -> FetchResponse:
    messages = transport.poll_inbox()
    outcomes = ingest_messages(messages, transport, gateway=gateway, session_factory=lambda: nullcontext(db))
    return FetchResponse(
        count=len(outcomes),
        ingested=sum(1 for outcome in outcomes if outcome.proposal_id),
        messages=[
            FetchedMessage(
                message_id=outcome.message.message_id,
                sender=outcome.message.sender,
                subject=outcome.message.subject,
                date=outcome.message.date,
                has_attachments=bool(outcome.message.attachments),
                proposal_id=outcome.proposal_id,
            )
            for outcome in outcomes
        ],
    )


@router.post("/polling/start", response_model=PollingResponse)
def start_polling(poller: InboxPoller = Depends(get_poller)) -> PollingResponse:
    started = poller.start()
    return PollingResponse(polling=True, message="Polling started." if started else "Polling already running.")


@router.post("/polling/stop", response_model=PollingResponse)
def stop_polling(poller: InboxPoller = Depends(get_poller)) -> PollingResponse:
    stopped = poller.stop()
    return PollingResponse(polling=False, message="Polling stopped." if stopped else "Polling was not running.")


@router.post("/webhook", response_model=IngestResponse)
def inbound_webhook(
    payload: InboundEmailPayload,
    webhook_secret: str | None = Header(default=None, alias="X-Webhook-Secret"),
    settings: Config = Depends(get_settings),
    service: ProposalService = Depends(get_proposal_service),
) -> IngestResponse:
    expected = settings.EMAIL_WEBHOOK_SECRET
    if expected and not hmac.compare_digest(webhook_secret or "", expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid webhook secret")

    proposal = service.process_inbound_message(_to_inbound(payload))
    return IngestResponse(accepted=proposal is not None, proposal_id=proposal.id if proposal else None)
