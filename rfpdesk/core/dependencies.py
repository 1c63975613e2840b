"""Dependency providers for API handlers and background workers."""

from __future__ import annotations

from collections.abc import Generator
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from rfpdesk.core.config import Config, get_config
from rfpdesk.database.db import get_db
from rfpdesk.llm.gateway import AiGateway
from rfpdesk.services.comparison_service import ComparisonService
from rfpdesk.services.email_transport import EmailTransport
from rfpdesk.services.inbox_poller import InboxPoller
from rfpdesk.services.proposal_service import ProposalService
from rfpdesk.services.rfp_service import RfpService
from rfpdesk.services.vendor_service import VendorService


def get_settings() -> Config:
    """Return validated application configuration."""
    return get_config()


def get_db_session() -> Generator[Session, None, None]:
    """Yield SQLAlchemy session for dependency injection."""
    yield from get_db()


@lru_cache(maxsize=1)
def get_gateway() -> AiGateway:
    return AiGateway()


@lru_cache(maxsize=1)
def get_transport() -> EmailTransport:
    return EmailTransport()


@lru_cache(maxsize=1)
def get_poller() -> InboxPoller:
    return InboxPoller(transport=get_transport(), gateway=get_gateway())


def get_vendor_service(db: Session = Depends(get_db_session)) -> VendorService:
    return VendorService(db)


def get_rfp_service(
    db: Session = Depends(get_db_session),
    gateway: AiGateway = Depends(get_gateway),
    transport: EmailTransport = Depends(get_transport),
) -> RfpService:
    return RfpService(db, gateway=gateway, transport=transport)


def get_proposal_service(
    db: Session = Depends(get_db_session),
    gateway: AiGateway = Depends(get_gateway),
) -> ProposalService:
    return ProposalService(db, gateway=gateway)


def get_comparison_service(
    db: Session = Depends(get_db_session),
    gateway: AiGateway = Depends(get_gateway),
) -> ComparisonService:
    return ComparisonService(db, gateway=gateway)
