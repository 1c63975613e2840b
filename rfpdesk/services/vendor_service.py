"""Vendor directory service with soft delete and email uniqueness."""

from __future__ import annotations

import logging

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from rfpdesk.core.exceptions import ConflictError, NotFoundError
from rfpdesk.models import Vendor
from rfpdesk.schemas.vendors import VendorCreateRequest, VendorUpdateRequest
from rfpdesk.services.base_service import BaseService
from rfpdesk.utils.validators import normalize_email, optional_text, sanitize_text

logger = logging.getLogger(__name__)

_OPTIONAL_FIELDS = ("phone", "address", "category", "notes")


class VendorService(BaseService):
    """CRUD for vendors.

    ``vendors.email`` is unique across all rows, deleted or not. Creating a
    vendor with the email of a soft-deleted row brings that row back instead
    of inserting a second one.
    """

    def _find_any_by_email(self, email: str) -> Vendor | None:
        return self.db.query(Vendor).filter(Vendor.email == email).first()

    def create_vendor(self, payload: VendorCreateRequest) -> Vendor:
        email = normalize_email(payload.email)
        existing = self._find_any_by_email(email)
        if existing is not None and not existing.is_deleted:
            raise ConflictError(f"Vendor with email {email} already exists.")

        vendor = existing or Vendor(email=email)
        for field in _OPTIONAL_FIELDS:
            setattr(vendor, field, optional_text(getattr(payload, field), max_len=5000))
        vendor.company_name = sanitize_text(payload.company_name, max_len=255)
        vendor.contact_person = sanitize_text(payload.contact_person, max_len=255)
        vendor.is_active = True
        vendor.is_deleted = False

        if existing is None:
            self.db.add(vendor)
        try:
            self.commit()
        except IntegrityError as exc:
            raise ConflictError(f"Vendor with email {email} already exists.") from exc

        event = "vendor.reactivated" if existing is not None else "vendor.created"
        logger.info(event, extra={"event": event, "vendor_id": vendor.id})
        return vendor

    def list_vendors(
        self,
        search: str | None = None,
        category: str | None = None,
        is_active: bool | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Vendor], int]:
        query = self.db.query(Vendor).filter(Vendor.is_deleted.is_(False))
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Vendor.company_name.ilike(pattern),
                    Vendor.contact_person.ilike(pattern),
                    Vendor.email.ilike(pattern),
                )
            )
        if category:
            query = query.filter(Vendor.category == category)
        if is_active is not None:
            query = query.filter(Vendor.is_active.is_(is_active))

        total = query.count()
        items = (
            query.order_by(Vendor.company_name.asc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return items, total

    def get_vendor(self, vendor_id: str) -> Vendor:
        vendor = self.db.get(Vendor, vendor_id)
        if vendor is None or vendor.is_deleted:
            raise NotFoundError(f"Vendor {vendor_id} not found.")
        return vendor

    def update_vendor(self, vendor_id: str, payload: VendorUpdateRequest) -> Vendor:
        vendor = self.get_vendor(vendor_id)
        changes = payload.model_dump(exclude_unset=True)

        if changes.get("email") is not None:
            email = normalize_email(changes.pop("email"))
            if email != vendor.email:
                other = self._find_any_by_email(email)
                if other is not None and other.id != vendor.id:
                    raise ConflictError(f"Vendor with email {email} already exists.")
                vendor.email = email
        else:
            changes.pop("email", None)

        if changes.get("is_active") is not None:
            vendor.is_active = bool(changes.pop("is_active"))
        else:
            changes.pop("is_active", None)

        for field, value in changes.items():
            if field in ("company_name", "contact_person"):
                if value is not None:
                    setattr(vendor, field, sanitize_text(value, max_len=255))
                continue
            setattr(vendor, field, optional_text(value, max_len=5000))

        try:
            self.commit()
        except IntegrityError as exc:
            raise ConflictError("Vendor email already in use.") from exc
        return vendor

    def delete_vendor(self, vendor_id: str) -> None:
        vendor = self.get_vendor(vendor_id)
        vendor.is_deleted = True
        vendor.is_active = False
        self.commit()
        logger.info("vendor.soft_deleted", extra={"event": "vendor.soft_deleted", "vendor_id": vendor_id})

    def list_categories(self) -> list[str]:
        rows = (
            self.db.query(func.distinct(Vendor.category))
            .filter(Vendor.is_deleted.is_(False), Vendor.category.is_not(None))
            .order_by(Vendor.category.asc())
            .all()
        )
        return [row[0] for row in rows if row[0]]

    def find_by_email(self, email: str) -> Vendor | None:
        """Non-deleted vendor with exactly this (normalised) email."""
        return (
            self.db.query(Vendor)
            .filter(Vendor.email == normalize_email(email), Vendor.is_deleted.is_(False))
            .first()
        )

    def find_valid_by_ids(self, vendor_ids: list[str]) -> list[Vendor]:
        """Existing, non-deleted, active vendors among ``vendor_ids``, in request order."""
        if not vendor_ids:
            return []
        rows = (
            self.db.query(Vendor)
            .filter(
                Vendor.id.in_(set(vendor_ids)),
                Vendor.is_deleted.is_(False),
                Vendor.is_active.is_(True),
            )
            .all()
        )
        by_id = {vendor.id: vendor for vendor in rows}
        ordered: list[Vendor] = []
        for vendor_id in dict.fromkeys(vendor_ids):
            if vendor_id in by_id:
                ordered.append(by_id[vendor_id])
        return ordered
