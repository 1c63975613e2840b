"""JSON-shape contracts the AI gateway enforces on model output.

Models answer in camelCase; every contract accepts both the camelCase alias
and the snake_case field name and ignores keys it does not know.
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, JsonValue, field_validator
from pydantic.alias_generators import to_camel

JsonBag = dict[str, JsonValue]


class _Contract(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


def _normalize_currency(value: object) -> object:
    if isinstance(value, str):
        cleaned = value.strip().upper()
        if not cleaned or len(cleaned) > 10:
            return None
        return cleaned
    return value


def _blank_to_none(value: object) -> object:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class ParsedRfpItem(_Contract):
    name: str = Field(min_length=1)
    description: str | None = None
    quantity: int = Field(default=1, ge=1)
    unit: str | None = None
    specifications: JsonBag | None = None


class ParsedRfp(_Contract):
    title: str = Field(min_length=1)
    description: str | None = None
    budget: float | None = Field(default=None, ge=0)
    currency: str | None = None
    deadline: date | None = None
    delivery_days: int | None = Field(default=None, ge=0)
    payment_terms: str | None = None
    warranty_terms: str | None = None
    items: list[ParsedRfpItem] = Field(default_factory=list)
    additional_requirements: JsonBag | None = None
    summary: str = ""

    @field_validator("currency", mode="before")
    @classmethod
    def normalize_currency(cls, value: object) -> object:
        return _normalize_currency(value)

    @field_validator("deadline", mode="before")
    @classmethod
    def blank_deadline(cls, value: object) -> object:
        return _blank_to_none(value)


class ParsedProposalItem(_Contract):
    name: str = Field(min_length=1)
    description: str | None = None
    quantity: float | None = Field(default=1, ge=0)
    unit_price: float | None = None
    total_price: float | None = None
    specifications: JsonBag | None = None


class ParsedProposal(_Contract):
    total_price: float | None = None
    currency: str | None = None
    delivery_days: int | None = Field(default=None, ge=0)
    payment_terms: str | None = None
    warranty_terms: str | None = None
    validity_period: str | None = None
    items: list[ParsedProposalItem] = Field(default_factory=list)
    additional_terms: JsonBag | None = None
    summary: str = ""
    confidence: float | None = Field(default=None, ge=0, le=100)

    @field_validator("currency", mode="before")
    @classmethod
    def normalize_currency(cls, value: object) -> object:
        return _normalize_currency(value)


class ScoreBreakdown(_Contract):
    price_score: float = Field(ge=0, le=100)
    delivery_score: float = Field(ge=0, le=100)
    terms_score: float = Field(ge=0, le=100)
    completeness_score: float = Field(ge=0, le=100)
    compliance_score: float = Field(ge=0, le=100)


class ProposalEvaluation(_Contract):
    overall_score: float = Field(ge=0, le=100)
    score_breakdown: ScoreBreakdown
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    recommendation: str = ""
    comparison_notes: str | None = None


class VendorRanking(_Contract):
    vendor_name: str
    rank: int = Field(ge=1)
    summary: str = ""


class Recommendation(_Contract):
    recommended_vendor: str
    reasoning: str = ""
    comparison_summary: str = ""
    rankings: list[VendorRanking] = Field(default_factory=list)


class OutreachEmail(_Contract):
    subject: str = Field(min_length=1)
    body: str = Field(min_length=1)
