"""Proposal ingestion and reconciliation.

An inbound vendor email is matched to exactly one (RFP, vendor) pair, upserted
onto that pair's single proposal row, and driven through AI parsing and
evaluation. Side effects on the assignment and the RFP are committed before
any AI call, so a failing provider can only leave a proposal less complete,
never mismatched.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rfpdesk.core.enums import AssignmentStatus, ProposalStatus, RfpStatus
from rfpdesk.core.exceptions import AiError, InvalidTransitionError, NotFoundError, ValidationError
from rfpdesk.llm.contracts import ParsedProposal
from rfpdesk.llm.gateway import AiGateway
from rfpdesk.models import Proposal, ProposalItem, Rfp, RfpVendor, Vendor
from rfpdesk.models.base import utcnow
from rfpdesk.orchestration.state_machine import (
    ASSIGNMENT_STATE_MACHINE,
    PROPOSAL_STATE_MACHINE,
    RFP_STATE_MACHINE,
    is_proposal_resettable,
    is_proposal_selectable,
)
from rfpdesk.schemas.proposals import ManualProposalRequest
from rfpdesk.services.attachment_extractor import attachment_texts, extract_attachments
from rfpdesk.services.base_service import BaseService
from rfpdesk.services.context import parsed_view, rfp_context
from rfpdesk.services.email_transport import InboundMessage
from rfpdesk.services.vendor_service import VendorService
from rfpdesk.utils.validators import extract_email_address, optional_text

logger = logging.getLogger(__name__)

_SELECTION_OPEN = (RfpStatus.SENT, RfpStatus.EVALUATING)
_RFP_CLOSED = (RfpStatus.DEAL_SOLD, RfpStatus.CLOSED)


class ProposalService(BaseService):
    """Owns proposals, their line items and the assignment's responded state."""

    def __init__(self, db: Session | None = None, gateway: AiGateway | None = None) -> None:
        super().__init__(db)
        self._gateway = gateway

    @property
    def gateway(self) -> AiGateway:
        if self._gateway is None:
            self._gateway = AiGateway()
        return self._gateway

    def _set_status(self, proposal: Proposal, target: ProposalStatus) -> None:
        PROPOSAL_STATE_MACHINE.assert_transition(proposal.status, target)
        proposal.status = target

    def _latest_assignment(self, vendor_id: str, status: AssignmentStatus) -> RfpVendor | None:
        return (
            self.db.query(RfpVendor)
            .filter(RfpVendor.vendor_id == vendor_id, RfpVendor.status == status)
            .order_by(RfpVendor.sent_at.desc().nulls_last())
            .first()
        )

    def _correlate(self, vendor_id: str) -> RfpVendor | None:
        """Pick the most recently sent outstanding assignment.

        A vendor with nothing outstanding may still be re-sending its last reply,
        so the most recent responded assignment is the fallback.
        """
        assignment = self._latest_assignment(vendor_id, AssignmentStatus.SENT)
        if assignment is None:
            assignment = self._latest_assignment(vendor_id, AssignmentStatus.RESPONDED)
        return assignment

    def _find(self, rfp_id: str, vendor_id: str) -> Proposal | None:
        return (
            self.db.query(Proposal)
            .filter(Proposal.rfp_id == rfp_id, Proposal.vendor_id == vendor_id)
            .first()
        )

    def _find_or_create(self, rfp: Rfp, vendor: Vendor) -> Proposal:
        """Return the pair's proposal, inserting it under a savepoint when absent."""
        proposal = self._find(rfp.id, vendor.id)
        if proposal is not None:
            return proposal
        try:
            with self.db.begin_nested():
                proposal = Proposal(rfp_id=rfp.id, vendor_id=vendor.id, status=ProposalStatus.RECEIVED)
                self.db.add(proposal)
        except IntegrityError:
            proposal = self._find(rfp.id, vendor.id)
            if proposal is None:
                raise
            logger.info(
                "proposal.upsert.concurrent_insert",
                extra={"event": "proposal.upsert.concurrent_insert", "proposal_id": proposal.id},
            )
        return proposal

    def _mark_responded(self, rfp: Rfp, vendor_id: str) -> None:
        assignment = (
            self.db.query(RfpVendor)
            .filter(RfpVendor.rfp_id == rfp.id, RfpVendor.vendor_id == vendor_id)
            .first()
        )
        if assignment is not None and ASSIGNMENT_STATE_MACHINE.can_transition(
            assignment.status, AssignmentStatus.RESPONDED
        ):
            assignment.status = AssignmentStatus.RESPONDED
            assignment.responded_at = utcnow()
        if rfp.status == RfpStatus.SENT:
            RFP_STATE_MACHINE.assert_transition(rfp.status, RfpStatus.EVALUATING)
            rfp.status = RfpStatus.EVALUATING

    def process_inbound_message(self, message: InboundMessage) -> Proposal | None:
        """Ingest one vendor email. Returns ``None`` when the message was dropped."""
        sender = extract_email_address(message.sender)
        vendor = VendorService(self.db).find_by_email(sender) if sender else None
        if vendor is None:
            logger.info(
                "proposal.ingest.dropped_unknown_sender",
                extra={"event": "proposal.ingest.dropped_unknown_sender", "message_id": message.message_id},
            )
            return None

        assignment = self._correlate(vendor.id)
        if assignment is None:
            logger.info(
                "proposal.ingest.dropped_no_assignment",
                extra={"event": "proposal.ingest.dropped_no_assignment", "vendor_id": vendor.id},
            )
            return None
        rfp = assignment.rfp
        if rfp.status in _RFP_CLOSED:
            logger.info(
                "proposal.ingest.ignored_closed_rfp",
                extra={
                    "event": "proposal.ingest.ignored_closed_rfp",
                    "rfp_id": rfp.id,
                    "vendor_id": vendor.id,
                    "status": rfp.status.value,
                },
            )
            return None

        records = extract_attachments(message.attachments)

        proposal = self._find_or_create(rfp, vendor)
        if not is_proposal_resettable(proposal.status):
            logger.info(
                "proposal.ingest.ignored_closed_proposal",
                extra={
                    "event": "proposal.ingest.ignored_closed_proposal",
                    "proposal_id": proposal.id,
                    "status": proposal.status.value,
                },
            )
            self.commit()
            return proposal

        proposal.email_body = message.body
        proposal.email_subject = optional_text(message.subject, max_len=998)
        proposal.email_message_id = message.message_id
        proposal.received_at = message.date or utcnow()
        proposal.attachments = records
        self._set_status(proposal, ProposalStatus.PARSING)

        self._mark_responded(rfp, vendor.id)
        self.commit()
        logger.info(
            "proposal.ingest.received",
            extra={
                "event": "proposal.ingest.received",
                "proposal_id": proposal.id,
                "rfp_id": rfp.id,
                "vendor_id": vendor.id,
                "attachment_count": len(records),
            },
        )

        self._parse_and_evaluate(proposal, rfp)
        return proposal

    def _parse_and_evaluate(self, proposal: Proposal, rfp: Rfp) -> None:
        context = rfp_context(rfp)
        try:
            parsed = self.gateway.parse_response(
                proposal.email_body or "", attachment_texts(proposal.attachments), context
            )
        except AiError as exc:
            self._set_status(proposal, ProposalStatus.PARSE_FAILED)
            self.commit()
            logger.warning(
                "proposal.parse.failed",
                extra={"event": "proposal.parse.failed", "proposal_id": proposal.id, "error": exc.__class__.__name__},
            )
            return

        self._apply_parsed(proposal, parsed, rfp)
        self._set_status(proposal, ProposalStatus.PARSED)
        self.commit()
        logger.info("proposal.parse.succeeded", extra={"event": "proposal.parse.succeeded", "proposal_id": proposal.id})

        self._evaluate(proposal, parsed, context)

    def _apply_parsed(self, proposal: Proposal, parsed: ParsedProposal, rfp: Rfp) -> None:
        currency = parsed.currency or rfp.currency
        proposal.total_price = parsed.total_price
        proposal.currency = currency
        proposal.delivery_days = parsed.delivery_days
        proposal.payment_terms = optional_text(parsed.payment_terms, max_len=255)
        proposal.warranty_terms = optional_text(parsed.warranty_terms, max_len=255)
        proposal.validity_period = optional_text(parsed.validity_period, max_len=255)
        proposal.additional_terms = parsed.additional_terms
        proposal.parse_confidence = parsed.confidence
        proposal.ai_summary = parsed.summary or None
        proposal.raw_ai_data = parsed.model_dump(mode="json", by_alias=True)

        proposal.items.clear()
        self.db.flush()
        for position, item in enumerate(parsed.items):
            proposal.items.append(
                ProposalItem(
                    position=position,
                    name=item.name[:255],
                    description=item.description,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    total_price=item.total_price,
                    currency=currency,
                    specifications=item.specifications,
                )
            )

    def _evaluate(self, proposal: Proposal, parsed: ParsedProposal, context: dict) -> None:
        try:
            evaluation = self.gateway.evaluate_proposal(parsed, context)
        except AiError as exc:
            logger.warning(
                "proposal.evaluate.failed",
                extra={"event": "proposal.evaluate.failed", "proposal_id": proposal.id, "error": exc.__class__.__name__},
            )
            return

        proposal.ai_score = evaluation.overall_score
        proposal.score_breakdown = evaluation.score_breakdown.model_dump()
        proposal.strengths = list(evaluation.strengths)
        proposal.weaknesses = list(evaluation.weaknesses)
        proposal.recommendation = evaluation.recommendation or None
        self._set_status(proposal, ProposalStatus.EVALUATED)
        self.commit()
        logger.info(
            "proposal.evaluate.succeeded",
            extra={"event": "proposal.evaluate.succeeded", "proposal_id": proposal.id, "score": proposal.ai_score},
        )

    def create_manual_proposal(self, payload: ManualProposalRequest) -> Proposal:
        """Record a proposal received outside email and evaluate it best-effort."""
        rfp = self.db.get(Rfp, payload.rfp_id)
        if rfp is None:
            raise NotFoundError(f"RFP {payload.rfp_id} not found.")
        vendor = VendorService(self.db).get_vendor(payload.vendor_id)
        if rfp.status in _RFP_CLOSED:
            raise InvalidTransitionError(f"Cannot record a proposal while the RFP is {rfp.status.value}.")

        proposal = self._find_or_create(rfp, vendor)
        if not is_proposal_resettable(proposal.status):
            raise InvalidTransitionError(f"Proposal is already {proposal.status.value}.")

        currency = payload.currency or rfp.currency
        proposal.email_body = payload.raw_content
        proposal.received_at = utcnow()
        proposal.total_price = payload.total_price
        proposal.currency = currency
        proposal.delivery_days = payload.delivery_days
        proposal.payment_terms = payload.payment_terms
        proposal.warranty_terms = payload.warranty_terms
        proposal.validity_period = payload.validity_period

        proposal.items.clear()
        self.db.flush()
        for position, item in enumerate(payload.items):
            total = item.unit_price * item.quantity if item.unit_price is not None else None
            proposal.items.append(
                ProposalItem(
                    position=position,
                    name=item.name,
                    description=item.description,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    total_price=total,
                    currency=currency,
                    specifications=item.specifications,
                )
            )

        self._set_status(proposal, ProposalStatus.PARSED)
        self._mark_responded(rfp, vendor.id)
        self.commit()
        logger.info(
            "proposal.manual.created",
            extra={"event": "proposal.manual.created", "proposal_id": proposal.id, "rfp_id": rfp.id},
        )

        self._evaluate(proposal, parsed_view(proposal), rfp_context(rfp))
        return proposal

    def reparse(self, proposal_id: str) -> Proposal:
        """Run extraction and evaluation again from the stored email body and attachment text."""
        proposal = self.get_proposal(proposal_id)
        if not is_proposal_resettable(proposal.status):
            raise InvalidTransitionError(f"Cannot re-parse a proposal that is {proposal.status.value}.")
        if not proposal.email_body:
            raise ValidationError("Proposal has no stored email body to parse.")

        self._set_status(proposal, ProposalStatus.PARSING)
        self.commit()
        self._parse_and_evaluate(proposal, proposal.rfp)
        return proposal

    def list_by_rfp(self, rfp_id: str) -> list[Proposal]:
        if self.db.get(Rfp, rfp_id) is None:
            raise NotFoundError(f"RFP {rfp_id} not found.")
        return (
            self.db.query(Proposal)
            .filter(Proposal.rfp_id == rfp_id)
            .order_by(Proposal.ai_score.desc().nulls_last(), Proposal.received_at.desc())
            .all()
        )

    def get_proposal(self, proposal_id: str) -> Proposal:
        proposal = self.db.get(Proposal, proposal_id)
        if proposal is None:
            raise NotFoundError(f"Proposal {proposal_id} not found.")
        return proposal

    def delete_proposal(self, proposal_id: str) -> None:
        proposal = self.get_proposal(proposal_id)
        self.db.delete(proposal)
        self.commit()

    def select_winner(self, proposal_id: str) -> Proposal:
        """Select one proposal, reject its siblings and close the deal in a single commit."""
        proposal = self.get_proposal(proposal_id)
        rfp = proposal.rfp
        if rfp.status not in _SELECTION_OPEN:
            raise InvalidTransitionError(f"Cannot select a winner while the RFP is {rfp.status.value}.")
        if not is_proposal_selectable(proposal.status):
            raise InvalidTransitionError(f"Proposal in status {proposal.status.value} cannot be selected.")

        siblings = self.db.query(Proposal).filter(Proposal.rfp_id == rfp.id).all()
        for other in siblings:
            if other.id == proposal.id or other.status == ProposalStatus.REJECTED:
                continue
            self._set_status(other, ProposalStatus.REJECTED)
        self._set_status(proposal, ProposalStatus.SELECTED)

        if rfp.status == RfpStatus.SENT:
            RFP_STATE_MACHINE.assert_transition(rfp.status, RfpStatus.EVALUATING)
            rfp.status = RfpStatus.EVALUATING
        RFP_STATE_MACHINE.assert_transition(rfp.status, RfpStatus.DEAL_SOLD)
        rfp.status = RfpStatus.DEAL_SOLD
        self.commit()

        logger.info(
            "proposal.selected",
            extra={"event": "proposal.selected", "proposal_id": proposal.id, "rfp_id": rfp.id},
        )
        return proposal
