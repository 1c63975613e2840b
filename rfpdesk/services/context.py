"""Plain-dict views of persisted rows handed to the AI gateway."""

from __future__ import annotations

from typing import Any

from rfpdesk.llm.contracts import ParsedProposal, ParsedProposalItem
from rfpdesk.models import Proposal, Rfp

SCORE_KEYS = ("price_score", "delivery_score", "terms_score", "completeness_score", "compliance_score")


def rfp_context(rfp: Rfp) -> dict[str, Any]:
    return {
        "id": rfp.id,
        "title": rfp.title,
        "description": rfp.description,
        "budget": rfp.budget,
        "currency": rfp.currency,
        "deadline": rfp.deadline.date().isoformat() if rfp.deadline else None,
        "delivery_days": rfp.delivery_days,
        "payment_terms": rfp.payment_terms,
        "warranty_terms": rfp.warranty_terms,
        "additional_requirements": rfp.additional_requirements,
        "items": [
            {
                "name": item.name,
                "description": item.description,
                "quantity": item.quantity,
                "unit": item.unit,
                "specifications": item.specifications,
            }
            for item in rfp.items
        ],
    }


def parsed_view(proposal: Proposal) -> ParsedProposal:
    """Rebuild the structured proposal from its stored columns."""
    return ParsedProposal(
        total_price=proposal.total_price,
        currency=proposal.currency,
        delivery_days=proposal.delivery_days,
        payment_terms=proposal.payment_terms,
        warranty_terms=proposal.warranty_terms,
        validity_period=proposal.validity_period,
        additional_terms=proposal.additional_terms,
        summary=proposal.ai_summary or "",
        items=[
            ParsedProposalItem(
                name=item.name,
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total_price=item.total_price,
                specifications=item.specifications,
            )
            for item in proposal.items
        ],
    )


def recommendation_entry(proposal: Proposal) -> dict[str, Any]:
    breakdown = proposal.score_breakdown or {}
    return {
        "vendor_name": proposal.vendor.company_name,
        "proposal": {
            "total_price": proposal.total_price,
            "currency": proposal.currency,
            "delivery_days": proposal.delivery_days,
            "payment_terms": proposal.payment_terms,
            "warranty_terms": proposal.warranty_terms,
            "items": [
                {"name": item.name, "quantity": item.quantity, "unit_price": item.unit_price}
                for item in proposal.items
            ],
        },
        "evaluation": {
            "overall_score": proposal.ai_score or 0,
            "score_breakdown": {key: breakdown.get(key, 0) for key in SCORE_KEYS},
            "strengths": proposal.strengths or [],
            "weaknesses": proposal.weaknesses or [],
            "recommendation": proposal.recommendation or "",
        },
    }
