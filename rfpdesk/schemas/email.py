"""Email surface schemas: transport status, manual fetch, inbound webhook."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class TransportStatusResponse(BaseModel):
    smtp_configured: bool
    imap_configured: bool
    sandbox_mode: bool
    polling: bool


class InboundAttachmentPayload(BaseModel):
    filename: str = Field(min_length=1, max_length=255)
    content_type: str = Field(default="application/octet-stream", alias="type")
    content: str = Field(description="Base64 encoded file content.")

    model_config = ConfigDict(populate_by_name=True)


class InboundEmailPayload(BaseModel):
    sender: str = Field(alias="from", min_length=3)
    to: str | None = None
    subject: str = ""
    text: str = ""
    html: str | None = None
    message_id: str | None = None
    attachments: list[InboundAttachmentPayload] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class FetchedMessage(BaseModel):
    message_id: str
    sender: str
    subject: str
    date: datetime | None = None
    has_attachments: bool
    proposal_id: str | None = None


class FetchResponse(BaseModel):
    count: int
    ingested: int
    messages: list[FetchedMessage] = Field(default_factory=list)


class IngestResponse(BaseModel):
    accepted: bool
    proposal_id: str | None = None


class PollingResponse(BaseModel):
    polling: bool
    message: str
