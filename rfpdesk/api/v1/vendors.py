"""Vendor directory endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status

from rfpdesk.core.dependencies import get_vendor_service
from rfpdesk.schemas.vendors import (
    VendorCreateRequest,
    VendorListResponse,
    VendorResponse,
    VendorUpdateRequest,
)
from rfpdesk.services.vendor_service import VendorService

router = APIRouter(prefix="/vendors", tags=["vendors"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=VendorResponse)
def create_vendor(payload: VendorCreateRequest, service: VendorService = Depends(get_vendor_service)) -> VendorResponse:
    return VendorResponse.model_validate(service.create_vendor(payload))


@router.get("", response_model=VendorListResponse)
def list_vendors(
    search: str | None = Query(default=None, max_length=255),
    category: str | None = Query(default=None, max_length=120),
    is_active: bool | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    service: VendorService = Depends(get_vendor_service),
) -> VendorListResponse:
    items, total = service.list_vendors(search=search, category=category, is_active=is_active, page=page, limit=limit)
    return VendorListResponse(
        items=[VendorResponse.model_validate(vendor) for vendor in items],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/categories", response_model=list[str])
def list_categories(service: VendorService = Depends(get_vendor_service)) -> list[str]:
    return service.list_categories()


@router.get("/{vendor_id}", response_model=VendorResponse)
def get_vendor(vendor_id: str, service: VendorService = Depends(get_vendor_service)) -> VendorResponse:
    return VendorResponse.model_validate(service.get_vendor(vendor_id))


@router.patch("/{vendor_id}", response_model=VendorResponse)
def update_vendor(
    vendor_id: str,
    payload: VendorUpdateRequest,
    service: VendorService = Depends(get_vendor_service),
) -> VendorResponse:
    return VendorResponse.model_validate(service.update_vendor(vendor_id, payload))


@router.delete("/{vendor_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_vendor(vendor_id: str, service: VendorService = Depends(get_vendor_service)) -> Response:
    service.delete_vendor(vendor_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
