"""Vendor request/response schemas for API contracts."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class VendorCreateRequest(BaseModel):
    company_name: str = Field(min_length=1, max_length=255)
    contact_person: str = Field(min_length=1, max_length=255)
    email: EmailStr
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = Field(default=None, max_length=2000)
    category: str | None = Field(default=None, max_length=120)
    notes: str | None = Field(default=None, max_length=5000)


class VendorUpdateRequest(BaseModel):
    company_name: str | None = Field(default=None, min_length=1, max_length=255)
    contact_person: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = Field(default=None, max_length=2000)
    category: str | None = Field(default=None, max_length=120)
    notes: str | None = Field(default=None, max_length=5000)
    is_active: bool | None = None


class VendorSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    company_name: str
    contact_person: str
    email: str


class VendorResponse(VendorSummary):
    phone: str | None = None
    address: str | None = None
    category: str | None = None
    notes: str | None = None
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class VendorListResponse(BaseModel):
    items: list[VendorResponse]
    total: int
    page: int
    limit: int
