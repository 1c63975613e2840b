from __future__ import annotations

from datetime import timedelta

import pytest

from rfpdesk.core.enums import AssignmentStatus, ProposalStatus, RfpStatus
from rfpdesk.core.exceptions import AiError, InvalidTransitionError, ValidationError
from rfpdesk.models import Proposal, RfpVendor
from rfpdesk.models.base import utcnow
from rfpdesk.schemas.proposals import ManualProposalItem, ManualProposalRequest
from rfpdesk.services.attachment_extractor import Attachment
from rfpdesk.services.proposal_service import ProposalService
from tests.factories import EVALUATION, PARSED_PROPOSAL, assign, inbound, make_rfp, make_vendor


@pytest.fixture
def sent_rfp(session):
    rfp = make_rfp(session, status=RfpStatus.SENT)
    vendor = make_vendor(session)
    assign(session, rfp, vendor)
    return rfp, vendor


def test_reply_is_parsed_evaluated_and_marks_assignment(session, gateway, llm, sent_rfp):
    rfp, vendor = sent_rfp
    llm.script("proposal.parse_response", PARSED_PROPOSAL)
    llm.script("proposal.evaluate", EVALUATION)

    proposal = ProposalService(db=session, gateway=gateway).process_inbound_message(inbound())

    assert proposal.status == ProposalStatus.EVALUATED
    assert proposal.total_price == 9000
    assert proposal.currency == "USD"
    assert proposal.delivery_days == 21
    assert proposal.ai_score == 84
    assert proposal.score_breakdown["price_score"] == 90
    assert [item.name for item in proposal.items] == ["Laptop"]
    assert proposal.raw_ai_data["totalPrice"] == 9000
    assignment = session.query(RfpVendor).one()
    assert assignment.status == AssignmentStatus.RESPONDED
    assert assignment.responded_at is not None
    session.refresh(rfp)
    assert rfp.status == RfpStatus.EVALUATING


def test_second_reply_updates_the_same_proposal(session, gateway, llm, sent_rfp):
    llm.script("proposal.parse_response", PARSED_PROPOSAL, dict(PARSED_PROPOSAL, totalPrice=8500, items=[]))
    llm.script("proposal.evaluate", EVALUATION, EVALUATION)
    service = ProposalService(db=session, gateway=gateway)

    first = service.process_inbound_message(inbound())
    second = service.process_inbound_message(
        inbound(body="Revised: 8500 USD", message_id="<reply-2@acme.example.com>")
    )

    assert first.id == second.id
    assert session.query(Proposal).count() == 1
    assert second.total_price == 8500
    assert second.email_body == "Revised: 8500 USD"
    assert second.email_message_id == "<reply-2@acme.example.com>"
    assert second.items == []


def test_unknown_sender_is_dropped(session, gateway, llm, sent_rfp):
    result = ProposalService(db=session, gateway=gateway).process_inbound_message(
        inbound(sender="Mallory <mallory@elsewhere.example.com>")
    )

    assert result is None
    assert session.query(Proposal).count() == 0
    assert llm.calls == []


def test_known_vendor_without_outstanding_assignment_is_dropped(session, gateway, llm):
    rfp = make_rfp(session)
    vendor = make_vendor(session)
    assign(session, rfp, vendor, status=AssignmentStatus.PENDING)

    result = ProposalService(db=session, gateway=gateway).process_inbound_message(inbound())

    assert result is None
    assert session.query(Proposal).count() == 0


def test_reply_is_matched_to_most_recently_sent_rfp(session, gateway, llm):
    vendor = make_vendor(session)
    older = make_rfp(session, status=RfpStatus.SENT, title="Older")
    newer = make_rfp(session, status=RfpStatus.SENT, title="Newer")
    assign(session, older, vendor, sent_at=utcnow() - timedelta(days=3))
    assign(session, newer, vendor, sent_at=utcnow())
    llm.script("proposal.parse_response", PARSED_PROPOSAL)
    llm.script("proposal.evaluate", EVALUATION)

    proposal = ProposalService(db=session, gateway=gateway).process_inbound_message(inbound())

    assert proposal.rfp_id == newer.id


def test_parse_failure_keeps_side_effects(session, gateway, llm, sent_rfp):
    rfp, _ = sent_rfp
    llm.script("proposal.parse_response", AiError("provider down"))

    proposal = ProposalService(db=session, gateway=gateway).process_inbound_message(inbound())

    assert proposal.status == ProposalStatus.PARSE_FAILED
    assert proposal.email_body == "We can deliver for 9000 USD."
    assert session.query(RfpVendor).one().status == AssignmentStatus.RESPONDED
    session.refresh(rfp)
    assert rfp.status == RfpStatus.EVALUATING


def test_evaluation_failure_leaves_proposal_parsed(session, gateway, llm, sent_rfp):
    llm.script("proposal.parse_response", PARSED_PROPOSAL)
    llm.script("proposal.evaluate", "not json at all")

    proposal = ProposalService(db=session, gateway=gateway).process_inbound_message(inbound())

    assert proposal.status == ProposalStatus.PARSED
    assert proposal.total_price == 9000
    assert proposal.ai_score is None


def test_currency_falls_back_to_rfp_currency(session, gateway, llm):
    rfp = make_rfp(session, status=RfpStatus.SENT, currency="EUR")
    vendor = make_vendor(session)
    assign(session, rfp, vendor)
    llm.script("proposal.parse_response", {"totalPrice": 1200, "items": []})
    llm.script("proposal.evaluate", EVALUATION)

    proposal = ProposalService(db=session, gateway=gateway).process_inbound_message(inbound())

    assert proposal.currency == "EUR"


def test_attachments_are_stored_and_sent_to_the_ai(session, gateway, llm, sent_rfp):
    llm.script("proposal.parse_response", PARSED_PROPOSAL)
    llm.script("proposal.evaluate", EVALUATION)
    csv = b"item,price\nLaptop,450\n"
    message = inbound(attachments=[Attachment(filename="quote.csv", content_type="text/csv", size=len(csv), content=csv)])

    proposal = ProposalService(db=session, gateway=gateway).process_inbound_message(message)

    assert proposal.attachments == [
        {
            "filename": "quote.csv",
            "content_type": "text/csv",
            "size": len(csv),
            "parsed_content": "item,price\nLaptop,450\n",
        }
    ]


def test_reply_after_selection_is_dropped(session, gateway, llm, sent_rfp):
    llm.script("proposal.parse_response", PARSED_PROPOSAL)
    llm.script("proposal.evaluate", EVALUATION)
    service = ProposalService(db=session, gateway=gateway)
    proposal = service.process_inbound_message(inbound())
    service.select_winner(proposal.id)
    calls_before = len(llm.calls)

    again = service.process_inbound_message(inbound(body="One more thing", message_id="<late@acme.example.com>"))

    assert again is None
    assert len(llm.calls) == calls_before
    session.refresh(proposal)
    assert proposal.status == ProposalStatus.SELECTED
    assert proposal.email_body == "We can deliver for 9000 USD."


def test_late_reply_from_unanswered_vendor_keeps_selection_exclusive(session, gateway, llm):
    rfp = make_rfp(session, status=RfpStatus.SENT)
    vendors = [
        make_vendor(session, email=f"sales@{name}.example.com", company_name=name.title())
        for name in ("alpha", "beta", "gamma")
    ]
    for vendor in vendors:
        assign(session, rfp, vendor)
    llm.script("proposal.parse_response", PARSED_PROPOSAL, PARSED_PROPOSAL)
    llm.script("proposal.evaluate", EVALUATION, EVALUATION)
    service = ProposalService(db=session, gateway=gateway)
    winner = service.process_inbound_message(inbound(sender="sales@alpha.example.com"))
    service.process_inbound_message(inbound(sender="sales@gamma.example.com"))
    service.select_winner(winner.id)

    late = service.process_inbound_message(inbound(sender="sales@beta.example.com"))

    assert late is None
    statuses = sorted(p.status.value for p in session.query(Proposal).filter(Proposal.rfp_id == rfp.id))
    assert statuses == ["rejected", "selected"]
    session.refresh(rfp)
    assert rfp.status == RfpStatus.DEAL_SOLD


def test_reply_prefers_outstanding_rfp_over_answered_one(session, gateway, llm):
    vendor = make_vendor(session)
    outstanding = make_rfp(session, status=RfpStatus.SENT, title="Outstanding")
    answered = make_rfp(session, status=RfpStatus.EVALUATING, title="Answered")
    assign(session, outstanding, vendor, sent_at=utcnow() - timedelta(days=3))
    assign(session, answered, vendor, status=AssignmentStatus.RESPONDED, sent_at=utcnow())
    llm.script("proposal.parse_response", PARSED_PROPOSAL)
    llm.script("proposal.evaluate", EVALUATION)

    proposal = ProposalService(db=session, gateway=gateway).process_inbound_message(inbound())

    assert proposal.rfp_id == outstanding.id


def test_reply_to_outstanding_rfp_is_not_absorbed_by_won_rfp(session, gateway, llm):
    vendor = make_vendor(session)
    outstanding = make_rfp(session, status=RfpStatus.SENT, title="Outstanding")
    won = make_rfp(session, status=RfpStatus.DEAL_SOLD, title="Won")
    assign(session, outstanding, vendor, sent_at=utcnow() - timedelta(days=3))
    assign(session, won, vendor, status=AssignmentStatus.RESPONDED, sent_at=utcnow())
    session.add(Proposal(rfp_id=won.id, vendor_id=vendor.id, status=ProposalStatus.SELECTED, received_at=utcnow()))
    session.commit()
    llm.script("proposal.parse_response", PARSED_PROPOSAL)
    llm.script("proposal.evaluate", EVALUATION)

    proposal = ProposalService(db=session, gateway=gateway).process_inbound_message(inbound())

    assert proposal.rfp_id == outstanding.id
    assert proposal.status == ProposalStatus.EVALUATED
    assert session.query(Proposal).filter(Proposal.rfp_id == outstanding.id).count() == 1


def test_second_reply_falls_back_to_responded_assignment(session, gateway, llm, sent_rfp):
    rfp, _ = sent_rfp
    llm.script("proposal.parse_response", PARSED_PROPOSAL, PARSED_PROPOSAL)
    llm.script("proposal.evaluate", EVALUATION, EVALUATION)
    service = ProposalService(db=session, gateway=gateway)
    service.process_inbound_message(inbound())

    again = service.process_inbound_message(inbound(message_id="<reply-2@acme.example.com>"))

    assert again.rfp_id == rfp.id
    assert session.query(RfpVendor).one().status == AssignmentStatus.RESPONDED


def test_select_winner_rejects_siblings_and_closes_deal(session, gateway, llm):
    rfp = make_rfp(session, status=RfpStatus.SENT)
    alpha = make_vendor(session, email="a@alpha.example.com", company_name="Alpha")
    beta = make_vendor(session, email="b@beta.example.com", company_name="Beta")
    assign(session, rfp, alpha)
    assign(session, rfp, beta)
    llm.script("proposal.parse_response", PARSED_PROPOSAL, AiError("provider down"))
    llm.script("proposal.evaluate", EVALUATION)
    service = ProposalService(db=session, gateway=gateway)
    winner = service.process_inbound_message(inbound(sender="a@alpha.example.com"))
    loser = service.process_inbound_message(inbound(sender="b@beta.example.com"))
    assert loser.status == ProposalStatus.PARSE_FAILED

    service.select_winner(winner.id)

    statuses = {p.vendor_id: p.status for p in session.query(Proposal).all()}
    assert statuses == {alpha.id: ProposalStatus.SELECTED, beta.id: ProposalStatus.REJECTED}
    session.refresh(rfp)
    assert rfp.status == RfpStatus.DEAL_SOLD

    with pytest.raises(InvalidTransitionError):
        service.select_winner(loser.id)


def test_unparsed_proposal_cannot_be_selected(session, gateway, llm, sent_rfp):
    llm.script("proposal.parse_response", AiError("provider down"))
    service = ProposalService(db=session, gateway=gateway)
    proposal = service.process_inbound_message(inbound())

    with pytest.raises(InvalidTransitionError):
        service.select_winner(proposal.id)


def test_reparse_recovers_a_failed_parse(session, gateway, llm, sent_rfp):
    llm.script("proposal.parse_response", AiError("provider down"), PARSED_PROPOSAL)
    llm.script("proposal.evaluate", EVALUATION)
    service = ProposalService(db=session, gateway=gateway)
    proposal = service.process_inbound_message(inbound())

    reparsed = service.reparse(proposal.id)

    assert reparsed.status == ProposalStatus.EVALUATED
    assert reparsed.total_price == 9000


def test_reparse_rejects_final_or_empty_proposals(session, gateway, llm, sent_rfp):
    rfp, vendor = sent_rfp
    service = ProposalService(db=session, gateway=gateway)
    proposal = Proposal(rfp_id=rfp.id, vendor_id=vendor.id, status=ProposalStatus.PARSE_FAILED)
    session.add(proposal)
    session.commit()

    with pytest.raises(ValidationError):
        service.reparse(proposal.id)

    proposal.status = ProposalStatus.REJECTED
    proposal.email_body = "text"
    session.commit()
    with pytest.raises(InvalidTransitionError):
        service.reparse(proposal.id)


def test_manual_proposal_computes_line_totals_and_evaluates(session, gateway, llm, sent_rfp):
    rfp, vendor = sent_rfp
    llm.script("proposal.evaluate", EVALUATION)

    proposal = ProposalService(db=session, gateway=gateway).create_manual_proposal(
        ManualProposalRequest(
            rfp_id=rfp.id,
            vendor_id=vendor.id,
            total_price=9100,
            delivery_days=25,
            items=[ManualProposalItem(name="Laptop", quantity=20, unit_price=455)],
        )
    )

    assert proposal.status == ProposalStatus.EVALUATED
    assert proposal.currency == "USD"
    assert proposal.items[0].total_price == 9100
    assert session.query(RfpVendor).one().status == AssignmentStatus.RESPONDED


def test_manual_proposal_stays_parsed_when_evaluation_fails(session, gateway, llm, sent_rfp):
    rfp, vendor = sent_rfp
    llm.script("proposal.evaluate", AiError("provider down"))

    proposal = ProposalService(db=session, gateway=gateway).create_manual_proposal(
        ManualProposalRequest(rfp_id=rfp.id, vendor_id=vendor.id, total_price=9100)
    )

    assert proposal.status == ProposalStatus.PARSED


def test_list_by_rfp_orders_by_score(session, gateway, llm):
    rfp = make_rfp(session, status=RfpStatus.EVALUATING)
    vendors = [
        make_vendor(session, email=f"v{index}@vendor{index}.example.com", company_name=f"Vendor {index}")
        for index in range(3)
    ]
    for vendor, score in zip(vendors, (40.0, None, 75.0)):
        session.add(
            Proposal(
                rfp_id=rfp.id,
                vendor_id=vendor.id,
                status=ProposalStatus.EVALUATED if score else ProposalStatus.PARSED,
                ai_score=score,
                received_at=utcnow(),
            )
        )
    session.commit()

    ordered = ProposalService(db=session, gateway=gateway).list_by_rfp(rfp.id)

    assert [p.ai_score for p in ordered] == [75.0, 40.0, None]


def test_manual_proposal_is_refused_once_the_deal_is_sold(session, gateway, llm, sent_rfp):
    rfp, vendor = sent_rfp
    rfp.status = RfpStatus.DEAL_SOLD
    session.commit()

    with pytest.raises(InvalidTransitionError):
        ProposalService(db=session, gateway=gateway).create_manual_proposal(
            ManualProposalRequest(rfp_id=rfp.id, vendor_id=vendor.id, total_price=9100)
        )

    assert session.query(Proposal).count() == 0
    assert llm.calls == []
