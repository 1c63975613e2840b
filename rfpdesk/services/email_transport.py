"""SMTP send and IMAP poll primitives with their own retry and inbox policy."""

from __future__ import annotations

import html
import imaplib
import logging
import re
import smtplib
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser
from email.utils import formataddr, make_msgid
from typing import Any, Callable

from rfpdesk.core.config import TransportConfig, get_config
from rfpdesk.core.exceptions import TransportError, TransportNotConfiguredError
from rfpdesk.services.attachment_extractor import Attachment

logger = logging.getLogger(__name__)

PROPOSAL_SUBJECT_KEYWORDS = ("rfp", "request for proposal", "proposal", "quotation", "quote")
_REPLY_PREFIX = re.compile(r"\bre:", re.IGNORECASE)
_HTML_TAG = re.compile(r"<[^>]+>")


@dataclass(frozen=True)
class SendResult:
    message_id: str


@dataclass(frozen=True)
class InboundMessage:
    message_id: str
    sender: str
    subject: str
    body: str
    date: datetime | None = None
    attachments: list[Attachment] = field(default_factory=list)
    uid: str | None = None


def is_proposal_subject(subject: str) -> bool:
    lowered = (subject or "").lower()
    return any(keyword in lowered for keyword in PROPOSAL_SUBJECT_KEYWORDS) or bool(_REPLY_PREFIX.search(subject or ""))


def _message_text(message: EmailMessage) -> str:
    part = message.get_body(preferencelist=("plain", "html"))
    if part is None:
        return ""
    content = part.get_content()
    if part.get_content_subtype() == "html":
        content = html.unescape(_HTML_TAG.sub(" ", content))
    return content.strip()


def parse_raw_message(raw: bytes, uid: str | None = None) -> InboundMessage:
    """Parse RFC 822 bytes into an ``InboundMessage``."""
    message = BytesParser(policy=policy.default).parsebytes(raw)

    attachments = []
    for part in message.iter_attachments():
        content = part.get_payload(decode=True) or b""
        attachments.append(
            Attachment(
                filename=part.get_filename() or "attachment",
                content_type=part.get_content_type(),
                size=len(content),
                content=content,
            )
        )

    date_header = message["Date"]
    received = getattr(date_header, "datetime", None) if date_header is not None else None
    return InboundMessage(
        message_id=str(message["Message-ID"] or f"<{uid or uuid.uuid4().hex}@imap.local>").strip(),
        sender=str(message["From"] or ""),
        subject=str(message["Subject"] or ""),
        body=_message_text(message),
        date=received,
        attachments=attachments,
        uid=uid,
    )


class EmailTransport:
    """Outbound SMTP and inbound IMAP for vendor correspondence.

    ``send`` retries only network-class failures (connection drops, refusals,
    timeouts) with a linear backoff; authentication and protocol rejections
    fail at once. ``poll_inbox`` fails closed: any connection or protocol
    problem yields an empty batch.
    """

    def __init__(
        self,
        config: TransportConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
        smtp_factory: Callable[[TransportConfig], smtplib.SMTP] | None = None,
        imap_factory: Callable[[TransportConfig], imaplib.IMAP4] | None = None,
    ) -> None:
        self.config = config or get_config().transport()
        self.sleep = sleep
        self.smtp_factory = smtp_factory or _connect_smtp
        self.imap_factory = imap_factory or _connect_imap

    def status(self) -> dict[str, Any]:
        return {
            "smtp_configured": self.config.smtp_configured,
            "imap_configured": self.config.imap_configured,
            "sandbox_mode": self.config.sandbox_mode,
        }

    def _build_message(
        self, to: str, subject: str, body: str, attachments: list[Attachment] | None
    ) -> EmailMessage:
        sender = self.config.from_email or self.config.smtp_user or "rfpdesk@localhost"
        message = EmailMessage()
        message["From"] = formataddr((self.config.from_name, sender))
        message["To"] = to
        message["Subject"] = subject
        message["Message-ID"] = make_msgid(domain=sender.rpartition("@")[2] or None)
        message.set_content(body)
        message.add_alternative(f"<div>{html.escape(body).replace(chr(10), '<br>')}</div>", subtype="html")
        for attachment in attachments or []:
            maintype, _, subtype = attachment.content_type.partition("/")
            message.add_attachment(
                attachment.content,
                maintype=maintype or "application",
                subtype=subtype or "octet-stream",
                filename=attachment.filename,
            )
        return message

    def send(
        self,
        to: str,
        subject: str,
        body: str,
        attachments: list[Attachment] | None = None,
    ) -> SendResult:
        message = self._build_message(to, subject, body, attachments)
        message_id = str(message["Message-ID"])

        if self.config.sandbox_mode:
            logger.info("email.sandbox.sent", extra={"event": "email.sandbox.sent", "to_email": to})
            return SendResult(message_id=message_id)

        if not self.config.smtp_configured:
            raise TransportNotConfiguredError("SMTP credentials are not configured.")

        max_attempts = self.config.send_max_attempts
        for attempt in range(max_attempts):
            try:
                with self.smtp_factory(self.config) as server:
                    server.send_message(message)
                logger.info(
                    "email.send.succeeded",
                    extra={"event": "email.send.succeeded", "to_email": to, "attempt": attempt + 1},
                )
                return SendResult(message_id=message_id)
            except (smtplib.SMTPServerDisconnected, smtplib.SMTPConnectError) as exc:
                last_error: Exception = exc
            except smtplib.SMTPException as exc:
                logger.error(
                    "email.send.rejected",
                    extra={"event": "email.send.rejected", "to_email": to, "error": exc.__class__.__name__},
                )
                raise TransportError(f"SMTP rejected the message: {exc.__class__.__name__}") from exc
            except OSError as exc:
                last_error = exc

            logger.warning(
                "email.send.transient_failure",
                extra={
                    "event": "email.send.transient_failure",
                    "to_email": to,
                    "attempt": attempt + 1,
                    "attempts_total": max_attempts,
                    "error": last_error.__class__.__name__,
                },
            )
            if attempt + 1 < max_attempts:
                self.sleep((attempt + 1) * self.config.send_backoff_seconds)

        raise TransportError(f"Email delivery failed after {max_attempts} attempts.") from last_error

    def _search(self, client: imaplib.IMAP4) -> list[bytes]:
        since = (datetime.now(timezone.utc) - timedelta(hours=self.config.lookback_hours)).strftime("%d-%b-%Y")
        criteria = (
            f'(UNSEEN SINCE {since} OR SUBJECT "RFP" OR SUBJECT "Request for Proposal" SUBJECT "RE:")',
            f"(UNSEEN SINCE {since})",
        )
        for criterion in criteria:
            try:
                status, data = client.uid("search", None, criterion)
            except imaplib.IMAP4.error:
                logger.info("email.imap.search_fallback", extra={"event": "email.imap.search_fallback"})
                continue
            if status == "OK":
                return data[0].split() if data and data[0] else []
        return []

    def poll_inbox(self) -> list[InboundMessage]:
        """Fetch a bounded batch of recent, unseen, proposal-looking messages."""
        if not self.config.imap_configured:
            logger.info("email.imap.not_configured", extra={"event": "email.imap.not_configured"})
            return []

        try:
            client = self.imap_factory(self.config)
        except (imaplib.IMAP4.error, OSError) as exc:
            logger.warning("email.imap.connect_failed", extra={"event": "email.imap.connect_failed", "error": str(exc)})
            return []

        messages: list[InboundMessage] = []
        try:
            client.select(self.config.imap_mailbox)
            uids = self._search(client)[-self.config.max_messages_per_poll :]
            for uid in uids:
                status, data = client.uid("fetch", uid, "(BODY.PEEK[])")
                if status != "OK" or not data or not isinstance(data[0], tuple):
                    continue
                inbound = parse_raw_message(data[0][1], uid=uid.decode())
                if not is_proposal_subject(inbound.subject):
                    continue
                messages.append(inbound)
        except (imaplib.IMAP4.error, OSError) as exc:
            logger.warning("email.imap.poll_failed", extra={"event": "email.imap.poll_failed", "error": str(exc)})
            return []
        finally:
            _safe_logout(client)

        logger.info("email.imap.polled", extra={"event": "email.imap.polled", "message_count": len(messages)})
        return messages

    def mark_seen(self, uid: str) -> bool:
        """Flag a message as read once it has been ingested."""
        if not self.config.imap_configured:
            return False
        try:
            client = self.imap_factory(self.config)
        except (imaplib.IMAP4.error, OSError) as exc:
            logger.warning("email.imap.connect_failed", extra={"event": "email.imap.connect_failed", "error": str(exc)})
            return False
        try:
            client.select(self.config.imap_mailbox)
            status, _ = client.uid("store", uid, "+FLAGS", "(\\Seen)")
            return status == "OK"
        except (imaplib.IMAP4.error, OSError) as exc:
            logger.warning("email.imap.mark_seen_failed", extra={"event": "email.imap.mark_seen_failed", "uid": uid, "error": str(exc)})
            return False
        finally:
            _safe_logout(client)


def _connect_smtp(config: TransportConfig) -> smtplib.SMTP:
    if config.smtp_use_ssl:
        server: smtplib.SMTP = smtplib.SMTP_SSL(config.smtp_host, config.smtp_port, timeout=config.smtp_timeout_seconds)
    else:
        server = smtplib.SMTP(config.smtp_host, config.smtp_port, timeout=config.smtp_timeout_seconds)
    try:
        if not config.smtp_use_ssl:
            server.starttls()
        server.login(config.smtp_user or "", config.smtp_password or "")
    except Exception:
        server.close()
        raise
    return server


def _connect_imap(config: TransportConfig) -> imaplib.IMAP4:
    if config.imap_tls:
        client: imaplib.IMAP4 = imaplib.IMAP4_SSL(config.imap_host, config.imap_port, timeout=config.imap_timeout_seconds)
    else:
        client = imaplib.IMAP4(config.imap_host, config.imap_port, timeout=config.imap_timeout_seconds)
    try:
        client.login(config.imap_user or "", config.imap_password or "")
    except Exception:
        client.shutdown()
        raise
    return client


def _safe_logout(client: imaplib.IMAP4) -> None:
    try:
        client.logout()
    except (imaplib.IMAP4.error, OSError):
        logger.debug("email.imap.logout_failed", extra={"event": "email.imap.logout_failed"})
