"""RFP and line item models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rfpdesk.core.enums import RfpStatus
from rfpdesk.models.base import AuditMixin, Base, IdMixin, status_column


class Rfp(Base, IdMixin, AuditMixin):
    __tablename__ = "rfps"
    __table_args__ = (Index("idx_rfps_status", "status"),)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    original_input: Mapped[str | None] = mapped_column(Text)
    budget: Mapped[float | None] = mapped_column(Numeric(15, 2, asdecimal=False))
    currency: Mapped[str] = mapped_column(String(10), default="USD", nullable=False)
    deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    delivery_days: Mapped[int | None] = mapped_column(Integer)
    payment_terms: Mapped[str | None] = mapped_column(String(255))
    warranty_terms: Mapped[str | None] = mapped_column(String(255))
    additional_requirements: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    ai_summary: Mapped[str | None] = mapped_column(Text)
    status: Mapped[RfpStatus] = mapped_column(status_column(RfpStatus), default=RfpStatus.DRAFT, nullable=False)

    items = relationship(
        "RfpItem",
        back_populates="rfp",
        cascade="all, delete-orphan",
        order_by="RfpItem.position",
    )
    assignments = relationship("RfpVendor", back_populates="rfp", cascade="all, delete-orphan")
    proposals = relationship("Proposal", back_populates="rfp", cascade="all, delete-orphan")


class RfpItem(Base, IdMixin, AuditMixin):
    __tablename__ = "rfp_items"

    rfp_id: Mapped[str] = mapped_column(ForeignKey("rfps.id", ondelete="CASCADE"), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    unit: Mapped[str | None] = mapped_column(String(50))
    specifications: Mapped[dict[str, Any] | None] = mapped_column(JSON)

    rfp = relationship("Rfp", back_populates="items")
