from __future__ import annotations

import imaplib
import smtplib
from email.message import EmailMessage

import pytest

from rfpdesk.core.config import TransportConfig
from rfpdesk.core.exceptions import TransportError, TransportNotConfiguredError
from rfpdesk.services.email_transport import EmailTransport, is_proposal_subject, parse_raw_message

SMTP_READY = TransportConfig(smtp_user="buyer@example.com", smtp_password="secret", from_email="buyer@example.com")
IMAP_READY = TransportConfig(imap_user="buyer@example.com", imap_password="secret")


class _FakeSmtp:
    def __init__(self, outbox: list) -> None:
        self.outbox = outbox

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def send_message(self, message):
        self.outbox.append(message)


def _smtp_factory(script: list, outbox: list):
    """Each call pops the next scripted outcome: an exception to raise or None to connect."""

    def factory(config):
        outcome = script.pop(0)
        if outcome is not None:
            raise outcome
        return _FakeSmtp(outbox)

    return factory


def _raw(subject: str, sender: str = "Jane <sales@acme.example.com>", attachment: bytes | None = None) -> bytes:
    message = EmailMessage()
    message["From"] = sender
    message["To"] = "buyer@example.com"
    message["Subject"] = subject
    message["Message-ID"] = "<reply-1@acme.example.com>"
    message["Date"] = "Mon, 19 Oct 2026 10:00:00 +0000"
    message.set_content("Total 9000 USD, delivery in 21 days.")
    if attachment is not None:
        message.add_attachment(attachment, maintype="text", subtype="csv", filename="quote.csv")
    return message.as_bytes()


class _FakeImap:
    def __init__(self, messages: dict[bytes, bytes]) -> None:
        self.messages = messages
        self.stored: list[tuple] = []
        self.logged_out = False

    def select(self, mailbox):
        return "OK", [b"1"]

    def uid(self, command, *args):
        if command == "search":
            return "OK", [b" ".join(self.messages)]
        if command == "fetch":
            raw = self.messages[args[0]]
            return "OK", [(b"1 (BODY[] {%d}" % len(raw), raw), b")"]
        if command == "store":
            self.stored.append(args)
            return "OK", [b""]
        raise AssertionError(command)

    def logout(self):
        self.logged_out = True


def test_sandbox_mode_skips_smtp():
    transport = EmailTransport(
        config=TransportConfig(sandbox_mode=True),
        smtp_factory=lambda config: pytest.fail("sandbox must not connect"),
    )

    result = transport.send("sales@acme.example.com", "RFP: Laptops", "Hello")

    assert result.message_id.startswith("<")


def test_send_without_credentials_is_not_configured():
    transport = EmailTransport(config=TransportConfig())

    with pytest.raises(TransportNotConfiguredError):
        transport.send("sales@acme.example.com", "RFP", "Hello")


def test_transient_failures_are_retried_with_linear_backoff():
    sleeps: list[float] = []
    outbox: list = []
    script = [smtplib.SMTPServerDisconnected("dropped"), ConnectionRefusedError("refused"), None]
    transport = EmailTransport(config=SMTP_READY, sleep=sleeps.append, smtp_factory=_smtp_factory(script, outbox))

    result = transport.send("sales@acme.example.com", "RFP: Laptops", "Hello")

    assert sleeps == [2.0, 4.0]
    assert len(outbox) == 1
    assert outbox[0]["Message-ID"] == result.message_id


def test_retries_stop_after_configured_attempts():
    sleeps: list[float] = []
    script = [TimeoutError("slow")] * 3
    transport = EmailTransport(config=SMTP_READY, sleep=sleeps.append, smtp_factory=_smtp_factory(script, []))

    with pytest.raises(TransportError, match="after 3 attempts"):
        transport.send("sales@acme.example.com", "RFP", "Hello")

    assert sleeps == [2.0, 4.0]


def test_authentication_rejection_is_not_retried():
    sleeps: list[float] = []
    script = [smtplib.SMTPAuthenticationError(535, b"bad credentials"), None]
    transport = EmailTransport(config=SMTP_READY, sleep=sleeps.append, smtp_factory=_smtp_factory(script, []))

    with pytest.raises(TransportError):
        transport.send("sales@acme.example.com", "RFP", "Hello")

    assert sleeps == []
    assert script == [None]


def test_failed_smtp_login_closes_the_connection(monkeypatch):
    opened = []

    class _RejectingSmtp:
        def __init__(self, host, port, timeout):
            self.closed = False
            opened.append(self)

        def starttls(self):
            pass

        def login(self, user, password):
            raise smtplib.SMTPAuthenticationError(535, b"bad credentials")

        def close(self):
            self.closed = True

    monkeypatch.setattr(smtplib, "SMTP", _RejectingSmtp)

    with pytest.raises(TransportError):
        EmailTransport(config=SMTP_READY, sleep=lambda _: None).send("sales@acme.example.com", "RFP", "Hello")

    assert len(opened) == 1
    assert opened[0].closed


def test_failed_imap_login_shuts_the_connection_down(monkeypatch):
    opened = []

    class _RejectingImap:
        def __init__(self, host, port, timeout):
            self.shut_down = False
            opened.append(self)

        def login(self, user, password):
            raise imaplib.IMAP4.error("LOGIN failed")

        def shutdown(self):
            self.shut_down = True

    monkeypatch.setattr(imaplib, "IMAP4_SSL", _RejectingImap)

    assert EmailTransport(config=IMAP_READY).poll_inbox() == []
    assert len(opened) == 1
    assert opened[0].shut_down


def test_poll_inbox_without_credentials_returns_nothing():
    assert EmailTransport(config=TransportConfig()).poll_inbox() == []


def test_poll_inbox_fails_closed_on_connection_error():
    def refuse(config):
        raise OSError("network unreachable")

    assert EmailTransport(config=IMAP_READY, imap_factory=refuse).poll_inbox() == []


def test_poll_inbox_keeps_proposal_like_messages_only():
    client = _FakeImap(
        {
            b"7": _raw("RE: RFP Laptops for the sales team", attachment=b"item,price\nLaptop,450\n"),
            b"8": _raw("Lunch on Friday?"),
        }
    )
    transport = EmailTransport(config=IMAP_READY, imap_factory=lambda config: client)

    messages = transport.poll_inbox()

    assert [message.uid for message in messages] == ["7"]
    message = messages[0]
    assert message.sender == "Jane <sales@acme.example.com>"
    assert message.message_id == "<reply-1@acme.example.com>"
    assert "9000 USD" in message.body
    assert message.attachments[0].filename == "quote.csv"
    assert message.date is not None
    assert client.logged_out


def test_poll_inbox_protocol_error_returns_empty_batch():
    class _Broken(_FakeImap):
        def select(self, mailbox):
            raise imaplib.IMAP4.error("mailbox locked")

    client = _Broken({})
    transport = EmailTransport(config=IMAP_READY, imap_factory=lambda config: client)

    assert transport.poll_inbox() == []
    assert client.logged_out


def test_mark_seen_flags_the_uid():
    client = _FakeImap({})
    transport = EmailTransport(config=IMAP_READY, imap_factory=lambda config: client)

    assert transport.mark_seen("7") is True
    assert client.stored == [("7", "+FLAGS", "(\\Seen)")]


def test_proposal_subject_detection():
    assert is_proposal_subject("Quotation for laptops")
    assert is_proposal_subject("Re: your request")
    assert not is_proposal_subject("Lunch on Friday?")


def test_html_only_message_is_reduced_to_text():
    message = EmailMessage()
    message["From"] = "sales@acme.example.com"
    message["Subject"] = "RFP reply"
    message.set_content("<p>Total &amp; delivery: <b>9000</b></p>", subtype="html")

    parsed = parse_raw_message(message.as_bytes(), uid="3")

    assert "Total & delivery:" in parsed.body
    assert "<b>" not in parsed.body
    assert parsed.message_id.endswith("@imap.local>")
