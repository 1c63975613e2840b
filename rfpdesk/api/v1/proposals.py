"""Proposal endpoints: listing, manual entry, re-parse and winner selection."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from rfpdesk.core.dependencies import get_proposal_service
from rfpdesk.schemas.proposals import ManualProposalRequest, ProposalResponse
from rfpdesk.services.proposal_service import ProposalService

router = APIRouter(prefix="/proposals", tags=["proposals"])


@router.get("/rfp/{rfp_id}", response_model=list[ProposalResponse])
def list_for_rfp(rfp_id: str, service: ProposalService = Depends(get_proposal_service)) -> list[ProposalResponse]:
    return [ProposalResponse.model_validate(row) for row in service.list_by_rfp(rfp_id)]


@router.post("/manual", status_code=status.HTTP_201_CREATED, response_model=ProposalResponse)
def create_manual(
    payload: ManualProposalRequest,
    service: ProposalService = Depends(get_proposal_service),
) -> ProposalResponse:
    return ProposalResponse.model_validate(service.create_manual_proposal(payload))


@router.get("/{proposal_id}", response_model=ProposalResponse)
def get_proposal(proposal_id: str, service: ProposalService = Depends(get_proposal_service)) -> ProposalResponse:
    return ProposalResponse.model_validate(service.get_proposal(proposal_id))


@router.post("/{proposal_id}/reparse", response_model=ProposalResponse)
def reparse(proposal_id: str, service: ProposalService = Depends(get_proposal_service)) -> ProposalResponse:
    return ProposalResponse.model_validate(service.reparse(proposal_id))


@router.post("/{proposal_id}/select", response_model=ProposalResponse)
def select_winner(proposal_id: str, service: ProposalService = Depends(get_proposal_service)) -> ProposalResponse:
    return ProposalResponse.model_validate(service.select_winner(proposal_id))


@router.delete("/{proposal_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_proposal(proposal_id: str, service: ProposalService = Depends(get_proposal_service)) -> Response:
    service.delete_proposal(proposal_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
