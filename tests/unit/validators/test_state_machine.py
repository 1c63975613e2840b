from __future__ import annotations

import pytest

from rfpdesk.core.enums import AssignmentStatus, ProposalStatus, RfpStatus
from rfpdesk.core.exceptions import InvalidTransitionError
from rfpdesk.orchestration.state_machine import (
    ASSIGNMENT_STATE_MACHINE,
    PROPOSAL_STATE_MACHINE,
    RFP_STATE_MACHINE,
    is_proposal_resettable,
    is_proposal_selectable,
)


@pytest.mark.parametrize(
    "current,target",
    [
        (RfpStatus.DRAFT, RfpStatus.SENT),
        (RfpStatus.SENT, RfpStatus.EVALUATING),
        (RfpStatus.SENT, RfpStatus.CLOSED),
        (RfpStatus.EVALUATING, RfpStatus.DEAL_SOLD),
        (RfpStatus.EVALUATING, RfpStatus.CLOSED),
    ],
)
def test_rfp_forward_transitions_are_allowed(current, target):
    RFP_STATE_MACHINE.assert_transition(current, target)


@pytest.mark.parametrize(
    "current,target",
    [
        (RfpStatus.DRAFT, RfpStatus.EVALUATING),
        (RfpStatus.SENT, RfpStatus.DRAFT),
        (RfpStatus.SENT, RfpStatus.DEAL_SOLD),
        (RfpStatus.DEAL_SOLD, RfpStatus.CLOSED),
        (RfpStatus.CLOSED, RfpStatus.SENT),
    ],
)
def test_rfp_backward_or_skipping_transitions_are_rejected(current, target):
    with pytest.raises(InvalidTransitionError, match="rfp transition not allowed"):
        RFP_STATE_MACHINE.assert_transition(current, target)


def test_string_statuses_are_accepted():
    assert RFP_STATE_MACHINE.can_transition("draft", "sent")
    assert not RFP_STATE_MACHINE.can_transition("deal_sold", "closed")


def test_assignment_can_be_resent_but_not_reset_to_pending():
    assert ASSIGNMENT_STATE_MACHINE.can_transition(AssignmentStatus.SENT, AssignmentStatus.SENT)
    assert ASSIGNMENT_STATE_MACHINE.can_transition(AssignmentStatus.DECLINED, AssignmentStatus.SENT)
    assert not ASSIGNMENT_STATE_MACHINE.can_transition(AssignmentStatus.SENT, AssignmentStatus.PENDING)
    assert not ASSIGNMENT_STATE_MACHINE.can_transition(AssignmentStatus.PENDING, AssignmentStatus.RESPONDED)


def test_selected_and_rejected_proposals_are_final():
    for final in (ProposalStatus.SELECTED, ProposalStatus.REJECTED):
        assert not is_proposal_resettable(final)
        for target in ProposalStatus:
            assert not PROPOSAL_STATE_MACHINE.can_transition(final, target)


def test_only_parsed_or_evaluated_proposals_are_selectable():
    selectable = {status for status in ProposalStatus if is_proposal_selectable(status)}
    assert selectable == {ProposalStatus.PARSED, ProposalStatus.EVALUATED}


def test_open_proposals_can_be_reset_to_parsing():
    for status in (ProposalStatus.PARSED, ProposalStatus.PARSE_FAILED, ProposalStatus.EVALUATED):
        assert is_proposal_resettable(status)
        assert PROPOSAL_STATE_MACHINE.can_transition(status, ProposalStatus.PARSING)
