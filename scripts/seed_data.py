"""Seed demo vendors for local runs: ``python scripts/seed_data.py [count]``."""

from __future__ import annotations

import random
import sys

from faker import Faker

from rfpdesk.core.logging_config import configure_logging
from rfpdesk.database.db import get_db_session
from rfpdesk.database.init_db import init_db
from rfpdesk.schemas.vendors import VendorCreateRequest
from rfpdesk.services.vendor_service import VendorService

CATEGORIES = ["IT Hardware", "Office Supplies", "Furniture", "Networking", "Software Licenses", "Facilities"]

fake = Faker()


def build_vendor(index: int) -> VendorCreateRequest:
    company = fake.company()
    domain = "".join(ch for ch in company.lower() if ch.isalnum())[:20] or f"vendor{index}"
    return VendorCreateRequest(
        company_name=company,
        contact_person=fake.name(),
        email=f"sales{index}@{domain}.example.com",
        phone=fake.phone_number()[:50],
        address=fake.address(),
        category=random.choice(CATEGORIES),
        notes=fake.catch_phrase(),
    )


def seed_vendors(count: int = 10) -> int:
    created = 0
    with get_db_session() as session:
        service = VendorService(session)
        for index in range(count):
            payload = build_vendor(index)
            if service.find_by_email(payload.email) is not None:
                continue
            service.create_vendor(payload)
            created += 1
    return created


if __name__ == "__main__":
    configure_logging()
    init_db()
    total = int(sys.argv[1]) if len(sys.argv) > 1 else 10
    print(f"Seeded {seed_vendors(total)} vendors.")
