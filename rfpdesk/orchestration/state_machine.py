"""Canonical state transition helpers for RFPs, assignments and proposals."""

from __future__ import annotations

from rfpdesk.core.enums import AssignmentStatus, ProposalStatus, RfpStatus
from rfpdesk.core.exceptions import InvalidTransitionError


class StateMachine:
    """Table-driven transition guard for one status enum."""

    def __init__(self, name: str, transitions: dict[str, set[str]]) -> None:
        self.name = name
        self._transitions = {
            _value(source): {_value(target) for target in targets} for source, targets in transitions.items()
        }

    def can_transition(self, current: str, target: str) -> bool:
        return _value(target) in self._transitions.get(_value(current), set())

    def assert_transition(self, current: str, target: str) -> None:
        if not self.can_transition(current=current, target=target):
            raise InvalidTransitionError(
                f"{self.name} transition not allowed: {_value(current)} -> {_value(target)}"
            )


def _value(status: str) -> str:
    return getattr(status, "value", status)


RFP_STATE_MACHINE = StateMachine(
    "rfp",
    {
        RfpStatus.DRAFT: {RfpStatus.SENT},
        RfpStatus.SENT: {RfpStatus.EVALUATING, RfpStatus.CLOSED},
        RfpStatus.EVALUATING: {RfpStatus.DEAL_SOLD, RfpStatus.CLOSED},
        RfpStatus.DEAL_SOLD: set(),
        RfpStatus.CLOSED: set(),
    },
)

ASSIGNMENT_STATE_MACHINE = StateMachine(
    "assignment",
    {
        AssignmentStatus.PENDING: {AssignmentStatus.SENT, AssignmentStatus.DECLINED},
        # Re-sending an RFP refreshes the sent timestamp and message id.
        AssignmentStatus.SENT: {AssignmentStatus.SENT, AssignmentStatus.RESPONDED, AssignmentStatus.DECLINED},
        AssignmentStatus.RESPONDED: {AssignmentStatus.SENT, AssignmentStatus.RESPONDED},
        AssignmentStatus.DECLINED: {AssignmentStatus.SENT},
    },
)

# Every non-final proposal may be reset to parsing by a newer message or a re-parse.
_RESETTABLE = {
    ProposalStatus.RECEIVED,
    ProposalStatus.PARSING,
    ProposalStatus.PARSED,
    ProposalStatus.PARSE_FAILED,
    ProposalStatus.EVALUATED,
}

# Manual proposals skip parsing and land on parsed directly; losers of a
# selection are rejected whatever stage they reached.
_FROM_ANY_OPEN = {ProposalStatus.PARSING, ProposalStatus.PARSED, ProposalStatus.REJECTED}

PROPOSAL_STATE_MACHINE = StateMachine(
    "proposal",
    {
        ProposalStatus.RECEIVED: set(_FROM_ANY_OPEN),
        ProposalStatus.PARSING: _FROM_ANY_OPEN | {ProposalStatus.PARSE_FAILED},
        ProposalStatus.PARSED: _FROM_ANY_OPEN | {ProposalStatus.EVALUATED, ProposalStatus.SELECTED},
        ProposalStatus.PARSE_FAILED: set(_FROM_ANY_OPEN),
        ProposalStatus.EVALUATED: _FROM_ANY_OPEN | {ProposalStatus.SELECTED},
        ProposalStatus.SELECTED: set(),
        ProposalStatus.REJECTED: set(),
    },
)


def is_proposal_resettable(status: ProposalStatus) -> bool:
    return status in _RESETTABLE


def is_proposal_selectable(status: ProposalStatus) -> bool:
    return PROPOSAL_STATE_MACHINE.can_transition(status, ProposalStatus.SELECTED)
