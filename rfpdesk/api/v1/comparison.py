"""Comparison and recommendation endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends

from rfpdesk.core.dependencies import get_comparison_service
from rfpdesk.schemas.comparison import ComparisonResponse, RecommendationResponse, RecommendRequest
from rfpdesk.services.comparison_service import ComparisonService

router = APIRouter(prefix="/comparison", tags=["comparison"])


@router.get("/{rfp_id}", response_model=ComparisonResponse)
def compare(rfp_id: str, service: ComparisonService = Depends(get_comparison_service)) -> ComparisonResponse:
    return service.compare(rfp_id)


@router.post("/{rfp_id}/recommend", response_model=RecommendationResponse)
def recommend(
    rfp_id: str,
    payload: RecommendRequest | None = Body(default=None),
    service: ComparisonService = Depends(get_comparison_service),
) -> RecommendationResponse:
    return service.recommend(rfp_id, priorities=payload.priorities if payload else None)


@router.post("/{rfp_id}/full", response_model=ComparisonResponse)
def full_comparison(
    rfp_id: str,
    payload: RecommendRequest | None = Body(default=None),
    service: ComparisonService = Depends(get_comparison_service),
) -> ComparisonResponse:
    return service.full_comparison(rfp_id, priorities=payload.priorities if payload else None)
