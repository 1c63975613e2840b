"""Comparison and recommendation response schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field

from rfpdesk.core.enums import ProposalStatus


class RecommendRequest(BaseModel):
    priorities: list[str] | None = None


class ComparisonRfp(BaseModel):
    id: str
    title: str
    budget: float | None = None
    currency: str | None = None
    delivery_days: int | None = None


class ProposalOverview(BaseModel):
    id: str
    vendor_id: str
    vendor_name: str
    total_price: float | None = None
    currency: str | None = None
    delivery_days: int | None = None
    score: float | None = None
    score_breakdown: dict[str, float] | None = None
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    status: ProposalStatus


class PriceRanking(BaseModel):
    proposal_id: str
    vendor_name: str
    price: float
    percent_of_budget: float | None = None
    ranking: int


class DeliveryRanking(BaseModel):
    proposal_id: str
    vendor_name: str
    days: int
    meets_requirement: bool
    ranking: int


class ScoreRanking(BaseModel):
    proposal_id: str
    vendor_name: str
    score: float
    ranking: int


class ComparisonTables(BaseModel):
    price: list[PriceRanking] = Field(default_factory=list)
    delivery: list[DeliveryRanking] = Field(default_factory=list)
    score: list[ScoreRanking] = Field(default_factory=list)


class VendorRankingResponse(BaseModel):
    vendor_name: str
    rank: int
    summary: str = ""


class RecommendationResponse(BaseModel):
    recommended_vendor: str
    reasoning: str = ""
    comparison_summary: str = ""
    rankings: list[VendorRankingResponse] = Field(default_factory=list)


class ComparisonResponse(BaseModel):
    rfp: ComparisonRfp
    proposals: list[ProposalOverview] = Field(default_factory=list)
    comparison: ComparisonTables = Field(default_factory=ComparisonTables)
    recommendation: RecommendationResponse | None = None
