from __future__ import annotations

import base64
from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from rfpdesk.core.config import PollingConfig, get_config
from rfpdesk.core.dependencies import get_db_session, get_gateway, get_poller, get_settings, get_transport
from rfpdesk.core.enums import RfpStatus
from rfpdesk.core.exceptions import AiRateLimitError
from rfpdesk.main import create_app
from rfpdesk.services.inbox_poller import InboxPoller
from tests.factories import EVALUATION, PARSED_PROPOSAL, assign, inbound, make_rfp, make_vendor

API = "/api/v1"


@pytest.fixture
def settings():
    return replace(get_config(), EMAIL_WEBHOOK_SECRET=None)


@pytest.fixture
def client(session_factory, gateway, transport, settings):
    app = create_app()
    poller = InboxPoller(
        transport=transport,
        config=PollingConfig(interval_seconds=30),
        gateway=gateway,
        session_factory=session_factory,
    )

    def _db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db_session] = _db
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_transport] = lambda: transport
    app.dependency_overrides[get_poller] = lambda: poller
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    poller.stop()


def _vendor_payload(email="sales@acme.example.com", **fields):
    payload = {"company_name": "Acme Supplies", "contact_person": "Jane Doe", "email": email}
    payload.update(fields)
    return payload


def test_vendor_crud_round_trip(client):
    created = client.post(f"{API}/vendors", json=_vendor_payload(category="IT"))
    assert created.status_code == 201
    vendor_id = created.json()["id"]

    listed = client.get(f"{API}/vendors", params={"category": "IT"}).json()
    assert listed["total"] == 1
    assert client.get(f"{API}/vendors/categories").json() == ["IT"]

    patched = client.patch(f"{API}/vendors/{vendor_id}", json={"phone": "+1 555 0100"})
    assert patched.json()["phone"] == "+1 555 0100"

    assert client.delete(f"{API}/vendors/{vendor_id}").status_code == 204
    assert client.get(f"{API}/vendors/{vendor_id}").status_code == 404


def test_not_found_uses_error_envelope(client):
    response = client.get(f"{API}/rfps/missing")

    assert response.status_code == 404
    body = response.json()
    assert body["statusCode"] == 404
    assert body["error"] == "Not Found"
    assert body["path"] == f"{API}/rfps/missing"
    assert "missing" in body["message"]
    assert body["timestamp"]


def test_duplicate_vendor_email_is_conflict(client):
    client.post(f"{API}/vendors", json=_vendor_payload())

    response = client.post(f"{API}/vendors", json=_vendor_payload(email="SALES@acme.example.com"))

    assert response.status_code == 409
    assert response.json()["error"] == "Conflict"


def test_request_validation_lists_field_messages(client):
    response = client.post(f"{API}/vendors", json={"company_name": "", "email": "not-an-email"})

    assert response.status_code == 422
    body = response.json()
    assert isinstance(body["message"], list)
    assert any(message.startswith("email") for message in body["message"])


def test_invalid_transition_is_bad_request(client, session_factory):
    with session_factory() as db:
        rfp_id = make_rfp(db, status=RfpStatus.SENT).id

    response = client.patch(f"{API}/rfps/{rfp_id}/status", json={"status": "draft"})

    assert response.status_code == 400
    assert "transition not allowed" in response.json()["message"]


def test_rate_limited_ai_maps_to_service_unavailable(client, llm):
    llm.script("rfp.parse_request", *[AiRateLimitError("429") for _ in range(5)])

    response = client.post(f"{API}/rfps/parse", json={"text": "We need 10 chairs"})

    assert response.status_code == 503
    assert "too many requests" in response.json()["message"]


def test_rfp_send_and_proposal_flow(client, llm, transport):
    llm.script(
        "rfp.parse_request",
        {"title": "Laptops", "budget": 10000, "deliveryDays": 30, "items": [{"name": "Laptop", "quantity": 20}]},
    )
    llm.script("rfp.outreach_email", {"subject": "RFP: Laptops", "body": "Please quote."})
    llm.script("proposal.parse_response", PARSED_PROPOSAL)
    llm.script("proposal.evaluate", EVALUATION)

    rfp = client.post(f"{API}/rfps/parse", json={"text": "20 laptops, budget 10k, within 30 days"}).json()
    vendor = client.post(f"{API}/vendors", json=_vendor_payload()).json()

    sent = client.post(f"{API}/rfps/{rfp['id']}/send", json={"vendor_ids": [vendor["id"]]})
    assert sent.json() == {"sent": 1, "failed": 0}
    assert transport.sent[0]["to"] == "sales@acme.example.com"

    transport.inbox = [inbound(uid="42")]
    fetched = client.post(f"{API}/email/fetch").json()
    assert fetched["count"] == 1
    assert fetched["ingested"] == 1
    assert transport.seen == ["42"]

    proposals = client.get(f"{API}/proposals/rfp/{rfp['id']}").json()
    assert proposals[0]["status"] == "evaluated"
    assert proposals[0]["vendor"]["company_name"] == "Acme Supplies"

    comparison = client.get(f"{API}/comparison/{rfp['id']}").json()
    assert comparison["comparison"]["price"][0]["percent_of_budget"] == 90.0

    selected = client.post(f"{API}/proposals/{proposals[0]['id']}/select")
    assert selected.json()["status"] == "selected"
    assert client.get(f"{API}/rfps/{rfp['id']}").json()["status"] == "deal_sold"


def test_send_with_no_valid_vendors_is_bad_request(client, session_factory):
    with session_factory() as db:
        rfp_id = make_rfp(db).id

    response = client.post(f"{API}/rfps/{rfp_id}/send", json={"vendor_ids": ["missing"]})

    assert response.status_code == 400


def test_webhook_ingests_reply_with_attachment(client, session_factory, llm):
    with session_factory() as db:
        rfp = make_rfp(db, status=RfpStatus.SENT)
        assign(db, rfp, make_vendor(db))
    llm.script("proposal.parse_response", PARSED_PROPOSAL)
    llm.script("proposal.evaluate", EVALUATION)

    response = client.post(
        f"{API}/email/webhook",
        json={
            "from": "Jane Doe <sales@acme.example.com>",
            "subject": "RE: RFP Laptops",
            "text": "Quote attached.",
            "attachments": [
                {"filename": "quote.txt", "type": "text/plain", "content": base64.b64encode(b"9000 USD").decode()}
            ],
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["accepted"] is True
    proposal = client.get(f"{API}/proposals/{body['proposal_id']}").json()
    assert proposal["attachments"][0]["parsed_content"] == "9000 USD"


def test_webhook_from_unknown_sender_is_not_accepted(client):
    response = client.post(f"{API}/email/webhook", json={"from": "stranger@elsewhere.example.com", "text": "hi"})

    assert response.json() == {"accepted": False, "proposal_id": None}


def test_webhook_rejects_bad_secret(client, settings):
    client.app.dependency_overrides[get_settings] = lambda: replace(settings, EMAIL_WEBHOOK_SECRET="s3cret")

    response = client.post(
        f"{API}/email/webhook",
        json={"from": "sales@acme.example.com", "text": "hi"},
        headers={"X-Webhook-Secret": "wrong"},
    )

    assert response.status_code == 401
    assert response.json()["statusCode"] == 401


def test_webhook_rejects_invalid_base64(client):
    response = client.post(
        f"{API}/email/webhook",
        json={
            "from": "sales@acme.example.com",
            "attachments": [{"filename": "quote.pdf", "content": "***not base64***"}],
        },
    )

    assert response.status_code == 400


def test_polling_control_and_status(client):
    assert client.post(f"{API}/email/polling/start").json()["message"] == "Polling started."
    assert client.post(f"{API}/email/polling/start").json()["message"] == "Polling already running."
    assert client.get(f"{API}/email/status").json()["polling"] is True
    assert client.post(f"{API}/email/polling/stop").json()["polling"] is False
    assert client.get(f"{API}/email/status").json()["polling"] is False
