"""Vendor model module."""

from __future__ import annotations

from sqlalchemy import Boolean, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rfpdesk.models.base import AuditMixin, Base, IdMixin


class Vendor(Base, IdMixin, AuditMixin):
    """A supplier that can receive RFPs.

    Deleting a vendor only flips ``is_deleted`` so assignments and proposals
    keep pointing at a real row.
    """

    __tablename__ = "vendors"
    __table_args__ = (
        UniqueConstraint("email", name="uq_vendors_email"),
        Index("idx_vendors_category", "category"),
    )

    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_person: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50))
    address: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str | None] = mapped_column(String(120))
    notes: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    assignments = relationship("RfpVendor", back_populates="vendor")
    proposals = relationship("Proposal", back_populates="vendor")
