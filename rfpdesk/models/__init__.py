"""SQLAlchemy model package for the procurement schema."""

from rfpdesk.models.base import Base
from rfpdesk.models.proposal import Proposal, ProposalItem
from rfpdesk.models.rfp import Rfp, RfpItem
from rfpdesk.models.rfp_vendor import RfpVendor
from rfpdesk.models.vendor import Vendor

__all__ = [
    "Base",
    "Proposal",
    "ProposalItem",
    "Rfp",
    "RfpItem",
    "RfpVendor",
    "Vendor",
]
