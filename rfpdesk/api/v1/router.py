"""Root API router for v1 endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from rfpdesk.api.v1 import comparison, email, health, proposals, rfps, vendors

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(rfps.router)
api_router.include_router(vendors.router)
api_router.include_router(proposals.router)
api_router.include_router(comparison.router)
api_router.include_router(email.router)


def get_api_router() -> APIRouter:
    return api_router
