"""Proposal request/response schemas for API contracts."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from rfpdesk.core.enums import ProposalStatus
from rfpdesk.schemas.common import JsonBag
from rfpdesk.schemas.vendors import VendorSummary


class ManualProposalItem(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    quantity: float = Field(default=1, gt=0)
    unit_price: float | None = Field(default=None, ge=0)
    specifications: JsonBag | None = None


class ManualProposalRequest(BaseModel):
    rfp_id: str
    vendor_id: str
    total_price: float | None = Field(default=None, ge=0)
    currency: str | None = Field(default=None, min_length=3, max_length=10)
    delivery_days: int | None = Field(default=None, ge=0)
    payment_terms: str | None = Field(default=None, max_length=255)
    warranty_terms: str | None = Field(default=None, max_length=255)
    validity_period: str | None = Field(default=None, max_length=255)
    raw_content: str | None = None
    items: list[ManualProposalItem] = Field(default_factory=list)


class AttachmentInfo(BaseModel):
    filename: str
    content_type: str
    size: int
    parsed_content: str | None = None


class ProposalItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None = None
    quantity: float | None = None
    unit_price: float | None = None
    total_price: float | None = None
    currency: str | None = None
    specifications: JsonBag | None = None


class ProposalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    rfp_id: str
    vendor_id: str
    status: ProposalStatus
    email_subject: str | None = None
    email_body: str | None = None
    email_message_id: str | None = None
    received_at: datetime | None = None
    attachments: list[AttachmentInfo] | None = None
    total_price: float | None = None
    currency: str | None = None
    delivery_days: int | None = None
    payment_terms: str | None = None
    warranty_terms: str | None = None
    validity_period: str | None = None
    additional_terms: JsonBag | None = None
    parse_confidence: float | None = None
    ai_summary: str | None = None
    ai_score: float | None = None
    score_breakdown: dict[str, float] | None = None
    strengths: list[str] | None = None
    weaknesses: list[str] | None = None
    recommendation: str | None = None
    vendor: VendorSummary | None = None
    items: list[ProposalItemResponse] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
