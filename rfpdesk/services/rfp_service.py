"""RFP lifecycle: creation, editing, vendor assignment and outbound send."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, time, timezone
from typing import Any

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rfpdesk.core.enums import AssignmentStatus, RfpStatus
from rfpdesk.core.exceptions import (
    AiError,
    AiParseError,
    AiUnavailableError,
    InvalidTransitionError,
    NoValidVendorsError,
    NotFoundError,
    TransportError,
)
from rfpdesk.llm.gateway import AiGateway
from rfpdesk.models import Rfp, RfpItem, RfpVendor, Vendor
from rfpdesk.models.base import utcnow
from rfpdesk.orchestration.state_machine import ASSIGNMENT_STATE_MACHINE, RFP_STATE_MACHINE
from rfpdesk.schemas.rfps import RfpCreateRequest, RfpItemPayload, RfpUpdateRequest
from rfpdesk.services.base_service import BaseService
from rfpdesk.services.context import rfp_context
from rfpdesk.services.email_transport import EmailTransport
from rfpdesk.services.vendor_service import VendorService
from rfpdesk.utils.validators import optional_text, sanitize_text

logger = logging.getLogger(__name__)

_UNSENDABLE = {RfpStatus.CLOSED, RfpStatus.DEAL_SOLD}


def _build_items(items: Iterable[Any]) -> list[RfpItem]:
    built = []
    for position, item in enumerate(items):
        built.append(
            RfpItem(
                position=position,
                name=sanitize_text(item.name, max_len=255),
                description=optional_text(item.description),
                quantity=item.quantity or 1,
                unit=optional_text(item.unit, max_len=50),
                specifications=item.specifications,
            )
        )
    return built


def _deadline_from_date(value) -> datetime | None:
    if value is None:
        return None
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


class RfpService(BaseService):
    """Creates and mutates RFPs, their line items and vendor assignments."""

    def __init__(
        self,
        db: Session | None = None,
        gateway: AiGateway | None = None,
        transport: EmailTransport | None = None,
    ) -> None:
        super().__init__(db)
        self._gateway = gateway
        self._transport = transport

    @property
    def gateway(self) -> AiGateway:
        if self._gateway is None:
            self._gateway = AiGateway()
        return self._gateway

    @property
    def transport(self) -> EmailTransport:
        if self._transport is None:
            self._transport = EmailTransport()
        return self._transport

    def create_from_natural_language(self, text: str) -> Rfp:
        """Ask the AI to structure ``text`` and persist the result as a draft.

        Nothing is written when the AI call fails.
        """
        cleaned = sanitize_text(text)
        try:
            parsed = self.gateway.parse_request(cleaned)
        except AiParseError as exc:
            raise AiUnavailableError("AI could not turn the request into a structured RFP.") from exc

        rfp = Rfp(
            title=sanitize_text(parsed.title, max_len=255),
            description=parsed.description,
            original_input=cleaned,
            budget=parsed.budget,
            currency=parsed.currency or "USD",
            deadline=_deadline_from_date(parsed.deadline),
            delivery_days=parsed.delivery_days,
            payment_terms=optional_text(parsed.payment_terms, max_len=255),
            warranty_terms=optional_text(parsed.warranty_terms, max_len=255),
            additional_requirements=parsed.additional_requirements,
            ai_summary=parsed.summary or None,
            status=RfpStatus.DRAFT,
        )
        rfp.items = _build_items(parsed.items)
        self.db.add(rfp)
        self.commit()
        logger.info(
            "rfp.created_from_text",
            extra={"event": "rfp.created_from_text", "rfp_id": rfp.id, "item_count": len(rfp.items)},
        )
        return rfp

    def create_structured(self, payload: RfpCreateRequest) -> Rfp:
        rfp = Rfp(
            title=sanitize_text(payload.title, max_len=255),
            description=payload.description,
            original_input=payload.original_input,
            budget=payload.budget,
            currency=payload.currency,
            deadline=payload.deadline,
            delivery_days=payload.delivery_days,
            payment_terms=optional_text(payload.payment_terms, max_len=255),
            warranty_terms=optional_text(payload.warranty_terms, max_len=255),
            additional_requirements=payload.additional_requirements,
            status=RfpStatus.DRAFT,
        )
        rfp.items = _build_items(payload.items)
        self.db.add(rfp)
        self.commit()
        logger.info("rfp.created", extra={"event": "rfp.created", "rfp_id": rfp.id})
        return rfp

    def list_rfps(
        self,
        status: RfpStatus | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Rfp], int]:
        query = self.db.query(Rfp)
        if status is not None:
            query = query.filter(Rfp.status == status)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(Rfp.title.ilike(pattern), Rfp.description.ilike(pattern)))
        total = query.count()
        items = query.order_by(Rfp.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
        return items, total

    def get_rfp(self, rfp_id: str) -> Rfp:
        rfp = self.db.get(Rfp, rfp_id)
        if rfp is None:
            raise NotFoundError(f"RFP {rfp_id} not found.")
        return rfp

    def update_rfp(self, rfp_id: str, payload: RfpUpdateRequest) -> Rfp:
        rfp = self.get_rfp(rfp_id)
        changes = payload.model_dump(exclude_unset=True, exclude={"items"})

        if payload.items is not None and rfp.status != RfpStatus.DRAFT:
            raise InvalidTransitionError(
                f"RFP items can only be changed while the RFP is in draft (status is {rfp.status.value})."
            )

        for field, value in changes.items():
            if field in ("title", "currency") and value is None:
                continue
            setattr(rfp, field, value)

        if payload.items is not None:
            rfp.items.clear()
            self.db.flush()
            rfp.items.extend(_build_items(payload.items))

        self.commit()
        return rfp

    def delete_rfp(self, rfp_id: str) -> None:
        rfp = self.get_rfp(rfp_id)
        if rfp.status != RfpStatus.DRAFT:
            raise InvalidTransitionError("Only draft RFPs can be deleted.")
        self.db.delete(rfp)
        self.commit()
        logger.info("rfp.deleted", extra={"event": "rfp.deleted", "rfp_id": rfp_id})

    def update_status(self, rfp_id: str, status: RfpStatus) -> Rfp:
        rfp = self.get_rfp(rfp_id)
        RFP_STATE_MACHINE.assert_transition(rfp.status, status)
        previous = rfp.status
        rfp.status = status
        self.commit()
        logger.info(
            "rfp.status.changed",
            extra={"event": "rfp.status.changed", "rfp_id": rfp_id, "from_status": previous.value, "to_status": status.value},
        )
        return rfp

    def _find_assignment(self, rfp_id: str, vendor_id: str) -> RfpVendor | None:
        return (
            self.db.query(RfpVendor)
            .filter(RfpVendor.rfp_id == rfp_id, RfpVendor.vendor_id == vendor_id)
            .first()
        )

    def _get_or_create_assignment(self, rfp: Rfp, vendor: Vendor) -> RfpVendor:
        assignment = self._find_assignment(rfp.id, vendor.id)
        if assignment is not None:
            return assignment
        try:
            with self.db.begin_nested():
                assignment = RfpVendor(rfp_id=rfp.id, vendor_id=vendor.id, status=AssignmentStatus.PENDING)
                self.db.add(assignment)
        except IntegrityError:
            assignment = self._find_assignment(rfp.id, vendor.id)
            if assignment is None:
                raise
        self.commit()
        return assignment

    def _compose(
        self,
        context: dict[str, Any],
        vendor: Vendor,
        custom_subject: str | None,
        custom_body: str | None,
    ) -> tuple[str, str]:
        if custom_subject and custom_body:
            return custom_subject, custom_body
        generated = self.gateway.generate_outreach_email(context, vendor.contact_person or vendor.company_name)
        return custom_subject or generated.subject, custom_body or generated.body

    def send_to_vendors(
        self,
        rfp_id: str,
        vendor_ids: list[str],
        custom_subject: str | None = None,
        custom_body: str | None = None,
    ) -> dict[str, int]:
        """Email the RFP to each vendor and report ``{"sent": n, "failed": n}``.

        A failure for one vendor (AI drafting or delivery) is counted and the
        loop moves on; that vendor's assignment keeps its previous state.
        """
        rfp = self.get_rfp(rfp_id)
        if rfp.status in _UNSENDABLE:
            raise InvalidTransitionError(f"Cannot send an RFP that is {rfp.status.value}.")

        vendors = VendorService(self.db).find_valid_by_ids(vendor_ids)
        if not vendors:
            raise NoValidVendorsError("None of the requested vendors exist or are active.")

        context = rfp_context(rfp)
        custom_subject = optional_text(custom_subject, max_len=998)
        custom_body = optional_text(custom_body)
        sent = failed = 0

        for vendor in vendors:
            assignment = self._get_or_create_assignment(rfp, vendor)
            try:
                subject, body = self._compose(context, vendor, custom_subject, custom_body)
            except AiError:
                failed += 1
                logger.warning(
                    "rfp.send.compose_failed",
                    exc_info=True,
                    extra={"event": "rfp.send.compose_failed", "rfp_id": rfp.id, "vendor_id": vendor.id},
                )
                continue

            try:
                result = self.transport.send(vendor.email, subject, body)
            except TransportError as exc:
                failed += 1
                logger.warning(
                    "rfp.send.delivery_failed",
                    extra={"event": "rfp.send.delivery_failed", "rfp_id": rfp.id, "vendor_id": vendor.id, "error": str(exc)},
                )
                continue

            ASSIGNMENT_STATE_MACHINE.assert_transition(assignment.status, AssignmentStatus.SENT)
            assignment.status = AssignmentStatus.SENT
            assignment.sent_at = utcnow()
            assignment.message_id = result.message_id
            self.commit()
            sent += 1

        if sent and rfp.status == RfpStatus.DRAFT:
            RFP_STATE_MACHINE.assert_transition(rfp.status, RfpStatus.SENT)
            rfp.status = RfpStatus.SENT
            self.commit()

        logger.info(
            "rfp.send.completed",
            extra={"event": "rfp.send.completed", "rfp_id": rfp.id, "sent": sent, "failed": failed},
        )
        return {"sent": sent, "failed": failed}

    def list_assignments(self, rfp_id: str) -> list[RfpVendor]:
        self.get_rfp(rfp_id)
        return (
            self.db.query(RfpVendor)
            .filter(RfpVendor.rfp_id == rfp_id)
            .order_by(RfpVendor.created_at.asc())
            .all()
        )

    def add_vendor(self, rfp_id: str, vendor_id: str) -> RfpVendor:
        rfp = self.get_rfp(rfp_id)
        vendor = VendorService(self.db).get_vendor(vendor_id)
        return self._get_or_create_assignment(rfp, vendor)

    def remove_vendor(self, rfp_id: str, vendor_id: str) -> None:
        self.get_rfp(rfp_id)
        assignment = self._find_assignment(rfp_id, vendor_id)
        if assignment is None:
            return
        self.db.delete(assignment)
        self.commit()

    def decline_assignment(self, rfp_id: str, vendor_id: str) -> RfpVendor:
        assignment = self._find_assignment(rfp_id, vendor_id)
        if assignment is None:
            raise NotFoundError(f"Vendor {vendor_id} is not assigned to RFP {rfp_id}.")
        ASSIGNMENT_STATE_MACHINE.assert_transition(assignment.status, AssignmentStatus.DECLINED)
        assignment.status = AssignmentStatus.DECLINED
        self.commit()
        return assignment
