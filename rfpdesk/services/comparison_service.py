"""Read-only comparison of an RFP's proposals with an optional AI recommendation."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session, selectinload

from rfpdesk.core.exceptions import AiError, NotFoundError
from rfpdesk.llm.gateway import AiGateway
from rfpdesk.models import Proposal, Rfp
from rfpdesk.schemas.comparison import (
    ComparisonResponse,
    ComparisonRfp,
    ComparisonTables,
    DeliveryRanking,
    PriceRanking,
    ProposalOverview,
    RecommendationResponse,
    ScoreRanking,
    VendorRankingResponse,
)
from rfpdesk.services.base_service import BaseService
from rfpdesk.services.context import recommendation_entry, rfp_context

logger = logging.getLogger(__name__)


def _percent_of_budget(price: float, budget: float | None) -> float | None:
    if not budget:
        return None
    return round(price / budget * 100, 2)


def rank_by_price(proposals: list[Proposal], budget: float | None) -> list[PriceRanking]:
    priced = sorted((p for p in proposals if p.total_price is not None), key=lambda p: p.total_price)
    return [
        PriceRanking(
            proposal_id=p.id,
            vendor_name=p.vendor.company_name,
            price=p.total_price,
            percent_of_budget=_percent_of_budget(p.total_price, budget),
            ranking=index + 1,
        )
        for index, p in enumerate(priced)
    ]


def rank_by_delivery(proposals: list[Proposal], required_days: int | None) -> list[DeliveryRanking]:
    timed = sorted((p for p in proposals if p.delivery_days is not None), key=lambda p: p.delivery_days)
    return [
        DeliveryRanking(
            proposal_id=p.id,
            vendor_name=p.vendor.company_name,
            days=p.delivery_days,
            meets_requirement=required_days is None or p.delivery_days <= required_days,
            ranking=index + 1,
        )
        for index, p in enumerate(timed)
    ]


def rank_by_score(proposals: list[Proposal]) -> list[ScoreRanking]:
    scored = sorted((p for p in proposals if p.ai_score is not None), key=lambda p: p.ai_score, reverse=True)
    return [
        ScoreRanking(proposal_id=p.id, vendor_name=p.vendor.company_name, score=p.ai_score, ranking=index + 1)
        for index, p in enumerate(scored)
    ]


class ComparisonService(BaseService):
    def __init__(self, db: Session | None = None, gateway: AiGateway | None = None) -> None:
        super().__init__(db)
        self._gateway = gateway

    @property
    def gateway(self) -> AiGateway:
        if self._gateway is None:
            self._gateway = AiGateway()
        return self._gateway

    def _load(self, rfp_id: str) -> tuple[Rfp, list[Proposal]]:
        rfp = self.db.get(Rfp, rfp_id)
        if rfp is None:
            raise NotFoundError(f"RFP {rfp_id} not found.")
        proposals = (
            self.db.query(Proposal)
            .options(selectinload(Proposal.vendor), selectinload(Proposal.items))
            .filter(Proposal.rfp_id == rfp_id)
            .order_by(Proposal.created_at.asc())
            .all()
        )
        return rfp, proposals

    def compare(self, rfp_id: str) -> ComparisonResponse:
        rfp, proposals = self._load(rfp_id)
        return ComparisonResponse(
            rfp=ComparisonRfp(
                id=rfp.id,
                title=rfp.title,
                budget=rfp.budget,
                currency=rfp.currency,
                delivery_days=rfp.delivery_days,
            ),
            proposals=[
                ProposalOverview(
                    id=p.id,
                    vendor_id=p.vendor_id,
                    vendor_name=p.vendor.company_name,
                    total_price=p.total_price,
                    currency=p.currency,
                    delivery_days=p.delivery_days,
                    score=p.ai_score,
                    score_breakdown=p.score_breakdown,
                    strengths=p.strengths or [],
                    weaknesses=p.weaknesses or [],
                    status=p.status,
                )
                for p in proposals
            ],
            comparison=ComparisonTables(
                price=rank_by_price(proposals, rfp.budget),
                delivery=rank_by_delivery(proposals, rfp.delivery_days),
                score=rank_by_score(proposals),
            ),
        )

    def recommend(self, rfp_id: str, priorities: list[str] | None = None) -> RecommendationResponse:
        """Ask the AI to pick a vendor. Gateway failures propagate as ``AiError``."""
        rfp, proposals = self._load(rfp_id)
        if not proposals:
            return RecommendationResponse(
                recommended_vendor="",
                reasoning="No proposals received yet.",
                comparison_summary="No proposals to compare.",
            )

        result = self.gateway.recommend(
            [recommendation_entry(p) for p in proposals],
            rfp_context(rfp),
            priorities=priorities,
        )
        return RecommendationResponse(
            recommended_vendor=result.recommended_vendor,
            reasoning=result.reasoning,
            comparison_summary=result.comparison_summary,
            rankings=[
                VendorRankingResponse(vendor_name=r.vendor_name, rank=r.rank, summary=r.summary)
                for r in result.rankings
            ],
        )

    def full_comparison(self, rfp_id: str, priorities: list[str] | None = None) -> ComparisonResponse:
        comparison = self.compare(rfp_id)
        if not comparison.proposals:
            return comparison
        try:
            comparison.recommendation = self.recommend(rfp_id, priorities=priorities)
        except AiError as exc:
            logger.warning(
                "comparison.recommendation.skipped",
                extra={"event": "comparison.recommendation.skipped", "rfp_id": rfp_id, "error": exc.__class__.__name__},
            )
        return comparison
