"""Health endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from rfpdesk.core.config import get_config
from rfpdesk.core.dependencies import get_transport
from rfpdesk.database.db import verify_database_connection
from rfpdesk.services.email_transport import EmailTransport

router = APIRouter(tags=["health"])


@router.get("/health")
def health(transport: EmailTransport = Depends(get_transport)) -> dict:
    cfg = get_config()
    return {
        "status": "ok",
        "service": cfg.APP_NAME,
        "version": cfg.APP_VERSION,
        "database": verify_database_connection(),
        "email": transport.status(),
    }
