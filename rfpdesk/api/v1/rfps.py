"""RFP lifecycle endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status

from rfpdesk.core.dependencies import get_rfp_service
from rfpdesk.core.enums import RfpStatus
from rfpdesk.schemas.rfps import (
    AssignmentResponse,
    RfpCreateRequest,
    RfpFromTextRequest,
    RfpListResponse,
    RfpResponse,
    RfpStatusUpdateRequest,
    RfpUpdateRequest,
    SendToVendorsRequest,
    SendToVendorsResponse,
)
from rfpdesk.services.rfp_service import RfpService

router = APIRouter(prefix="/rfps", tags=["rfps"])


@router.post("/parse", status_code=status.HTTP_201_CREATED, response_model=RfpResponse)
def create_from_text(payload: RfpFromTextRequest, service: RfpService = Depends(get_rfp_service)) -> RfpResponse:
    return RfpResponse.model_validate(service.create_from_natural_language(payload.text))


@router.post("", status_code=status.HTTP_201_CREATED, response_model=RfpResponse)
def create_rfp(payload: RfpCreateRequest, service: RfpService = Depends(get_rfp_service)) -> RfpResponse:
    return RfpResponse.model_validate(service.create_structured(payload))


@router.get("", response_model=RfpListResponse)
def list_rfps(
    status_filter: RfpStatus | None = Query(default=None, alias="status"),
    search: str | None = Query(default=None, max_length=255),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    service: RfpService = Depends(get_rfp_service),
) -> RfpListResponse:
    items, total = service.list_rfps(status=status_filter, search=search, page=page, limit=limit)
    return RfpListResponse(
        items=[RfpResponse.model_validate(rfp) for rfp in items],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/{rfp_id}", response_model=RfpResponse)
def get_rfp(rfp_id: str, service: RfpService = Depends(get_rfp_service)) -> RfpResponse:
    return RfpResponse.model_validate(service.get_rfp(rfp_id))


@router.patch("/{rfp_id}", response_model=RfpResponse)
def update_rfp(rfp_id: str, payload: RfpUpdateRequest, service: RfpService = Depends(get_rfp_service)) -> RfpResponse:
    return RfpResponse.model_validate(service.update_rfp(rfp_id, payload))


@router.delete("/{rfp_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_rfp(rfp_id: str, service: RfpService = Depends(get_rfp_service)) -> Response:
    service.delete_rfp(rfp_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{rfp_id}/status", response_model=RfpResponse)
def update_status(
    rfp_id: str,
    payload: RfpStatusUpdateRequest,
    service: RfpService = Depends(get_rfp_service),
) -> RfpResponse:
    return RfpResponse.model_validate(service.update_status(rfp_id, payload.status))


@router.post("/{rfp_id}/send", response_model=SendToVendorsResponse)
def send_to_vendors(
    rfp_id: str,
    payload: SendToVendorsRequest,
    service: RfpService = Depends(get_rfp_service),
) -> SendToVendorsResponse:
    result = service.send_to_vendors(
        rfp_id,
        payload.vendor_ids,
        custom_subject=payload.custom_subject,
        custom_body=payload.custom_body,
    )
    return SendToVendorsResponse(**result)


@router.get("/{rfp_id}/vendors", response_model=list[AssignmentResponse])
def list_assignments(rfp_id: str, service: RfpService = Depends(get_rfp_service)) -> list[AssignmentResponse]:
    return [AssignmentResponse.model_validate(row) for row in service.list_assignments(rfp_id)]


@router.post("/{rfp_id}/vendors/{vendor_id}", status_code=status.HTTP_201_CREATED, response_model=AssignmentResponse)
def add_vendor(rfp_id: str, vendor_id: str, service: RfpService = Depends(get_rfp_service)) -> AssignmentResponse:
    return AssignmentResponse.model_validate(service.add_vendor(rfp_id, vendor_id))


@router.delete("/{rfp_id}/vendors/{vendor_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_vendor(rfp_id: str, vendor_id: str, service: RfpService = Depends(get_rfp_service)) -> Response:
    service.remove_vendor(rfp_id, vendor_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{rfp_id}/vendors/{vendor_id}/decline", response_model=AssignmentResponse)
def decline_vendor(rfp_id: str, vendor_id: str, service: RfpService = Depends(get_rfp_service)) -> AssignmentResponse:
    return AssignmentResponse.model_validate(service.decline_assignment(rfp_id, vendor_id))
