"""Status enums for RFPs, vendor assignments and proposals."""

from __future__ import annotations

import enum


class RfpStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    EVALUATING = "evaluating"
    DEAL_SOLD = "deal_sold"
    CLOSED = "closed"


class AssignmentStatus(str, enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    RESPONDED = "responded"
    DECLINED = "declined"


class ProposalStatus(str, enum.Enum):
    RECEIVED = "received"
    PARSING = "parsing"
    PARSED = "parsed"
    PARSE_FAILED = "parse_failed"
    EVALUATED = "evaluated"
    SELECTED = "selected"
    REJECTED = "rejected"
