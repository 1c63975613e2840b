"""RFP request/response schemas for API contracts."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rfpdesk.core.enums import AssignmentStatus, RfpStatus
from rfpdesk.schemas.common import JsonBag
from rfpdesk.schemas.vendors import VendorSummary


class RfpItemPayload(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    quantity: int = Field(default=1, ge=1)
    unit: str | None = Field(default=None, max_length=50)
    specifications: JsonBag | None = None


class RfpFromTextRequest(BaseModel):
    text: str = Field(min_length=1, max_length=20000)


class _RfpFields(BaseModel):
    description: str | None = None
    budget: float | None = Field(default=None, ge=0)
    deadline: datetime | None = None
    delivery_days: int | None = Field(default=None, ge=0)
    payment_terms: str | None = Field(default=None, max_length=255)
    warranty_terms: str | None = Field(default=None, max_length=255)
    additional_requirements: JsonBag | None = None

    @field_validator("currency", mode="before", check_fields=False)
    @classmethod
    def upper_currency(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value


class RfpCreateRequest(_RfpFields):
    title: str = Field(min_length=1, max_length=255)
    original_input: str | None = None
    currency: str = Field(default="USD", min_length=3, max_length=10)
    items: list[RfpItemPayload] = Field(default_factory=list)


class RfpUpdateRequest(_RfpFields):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    currency: str | None = Field(default=None, min_length=3, max_length=10)
    items: list[RfpItemPayload] | None = None


class RfpStatusUpdateRequest(BaseModel):
    status: RfpStatus


class SendToVendorsRequest(BaseModel):
    vendor_ids: list[str] = Field(min_length=1)
    custom_subject: str | None = Field(default=None, max_length=998)
    custom_body: str | None = None


class SendToVendorsResponse(BaseModel):
    sent: int
    failed: int


class RfpItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None = None
    quantity: int
    unit: str | None = None
    specifications: JsonBag | None = None


class AssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    rfp_id: str
    vendor_id: str
    status: AssignmentStatus
    sent_at: datetime | None = None
    responded_at: datetime | None = None
    message_id: str | None = None
    vendor: VendorSummary | None = None


class RfpResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str | None = None
    original_input: str | None = None
    budget: float | None = None
    currency: str
    deadline: datetime | None = None
    delivery_days: int | None = None
    payment_terms: str | None = None
    warranty_terms: str | None = None
    additional_requirements: JsonBag | None = None
    ai_summary: str | None = None
    status: RfpStatus
    items: list[RfpItemResponse] = Field(default_factory=list)
    assignments: list[AssignmentResponse] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RfpListResponse(BaseModel):
    items: list[RfpResponse]
    total: int
    page: int
    limit: int
