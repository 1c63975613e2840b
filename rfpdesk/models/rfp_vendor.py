"""Assignment of an RFP to a vendor."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rfpdesk.core.enums import AssignmentStatus
from rfpdesk.models.base import AuditMixin, Base, IdMixin, status_column


class RfpVendor(Base, IdMixin, AuditMixin):
    __tablename__ = "rfp_vendors"
    __table_args__ = (
        UniqueConstraint("rfp_id", "vendor_id", name="uq_rfp_vendors_rfp_vendor"),
        Index("idx_rfp_vendors_vendor_status", "vendor_id", "status"),
    )

    rfp_id: Mapped[str] = mapped_column(ForeignKey("rfps.id", ondelete="CASCADE"), nullable=False, index=True)
    vendor_id: Mapped[str] = mapped_column(ForeignKey("vendors.id", ondelete="RESTRICT"), nullable=False)
    status: Mapped[AssignmentStatus] = mapped_column(
        status_column(AssignmentStatus), default=AssignmentStatus.PENDING, nullable=False
    )
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    message_id: Mapped[str | None] = mapped_column(String(500))

    rfp = relationship("Rfp", back_populates="assignments")
    vendor = relationship("Vendor", back_populates="assignments")
