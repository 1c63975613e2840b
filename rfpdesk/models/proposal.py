"""Vendor proposal and proposal line item models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Index, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rfpdesk.core.enums import ProposalStatus
from rfpdesk.models.base import AuditMixin, Base, IdMixin, status_column


class Proposal(Base, IdMixin, AuditMixin):
    """One vendor's reply to one RFP.

    ``attachments`` holds metadata dicts (filename, content_type, size and the
    extracted ``parsed_content`` when available); binary content is not kept.
    """

    __tablename__ = "proposals"
    __table_args__ = (
        UniqueConstraint("rfp_id", "vendor_id", name="uq_proposals_rfp_vendor"),
        Index("idx_proposals_rfp_status", "rfp_id", "status"),
    )

    rfp_id: Mapped[str] = mapped_column(ForeignKey("rfps.id", ondelete="CASCADE"), nullable=False, index=True)
    vendor_id: Mapped[str] = mapped_column(ForeignKey("vendors.id", ondelete="RESTRICT"), nullable=False)
    status: Mapped[ProposalStatus] = mapped_column(
        status_column(ProposalStatus), default=ProposalStatus.RECEIVED, nullable=False
    )

    email_subject: Mapped[str | None] = mapped_column(String(998))
    email_body: Mapped[str | None] = mapped_column(Text)
    email_message_id: Mapped[str | None] = mapped_column(String(500))
    received_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    attachments: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON)

    total_price: Mapped[float | None] = mapped_column(Numeric(15, 2, asdecimal=False))
    currency: Mapped[str | None] = mapped_column(String(10))
    delivery_days: Mapped[int | None] = mapped_column(Integer)
    payment_terms: Mapped[str | None] = mapped_column(String(255))
    warranty_terms: Mapped[str | None] = mapped_column(String(255))
    validity_period: Mapped[str | None] = mapped_column(String(255))
    additional_terms: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    parse_confidence: Mapped[float | None] = mapped_column(Float)
    raw_ai_data: Mapped[dict[str, Any] | None] = mapped_column(JSON)

    ai_summary: Mapped[str | None] = mapped_column(Text)
    ai_score: Mapped[float | None] = mapped_column(Float)
    score_breakdown: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    strengths: Mapped[list[str] | None] = mapped_column(JSON)
    weaknesses: Mapped[list[str] | None] = mapped_column(JSON)
    recommendation: Mapped[str | None] = mapped_column(Text)

    rfp = relationship("Rfp", back_populates="proposals")
    vendor = relationship("Vendor", back_populates="proposals")
    items = relationship(
        "ProposalItem",
        back_populates="proposal",
        cascade="all, delete-orphan",
        order_by="ProposalItem.position",
    )


class ProposalItem(Base, IdMixin, AuditMixin):
    __tablename__ = "proposal_items"

    proposal_id: Mapped[str] = mapped_column(
        ForeignKey("proposals.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    quantity: Mapped[float | None] = mapped_column(Numeric(15, 2, asdecimal=False))
    unit_price: Mapped[float | None] = mapped_column(Numeric(15, 2, asdecimal=False))
    total_price: Mapped[float | None] = mapped_column(Numeric(15, 2, asdecimal=False))
    currency: Mapped[str | None] = mapped_column(String(10))
    specifications: Mapped[dict[str, Any] | None] = mapped_column(JSON)

    proposal = relationship("Proposal", back_populates="items")
