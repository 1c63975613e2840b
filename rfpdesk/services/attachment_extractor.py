"""Plain-text extraction for proposal attachments."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Any

from pypdf import PdfReader

logger = logging.getLogger(__name__)

TEXT_SUFFIXES = (".txt", ".csv")
TEXT_TYPES = ("text/plain", "text/csv")


@dataclass(frozen=True)
class Attachment:
    filename: str
    content_type: str
    size: int
    content: bytes


def _is_pdf(attachment: Attachment) -> bool:
    return attachment.content_type == "application/pdf" or attachment.filename.lower().endswith(".pdf")


def _is_text(attachment: Attachment) -> bool:
    media_type = attachment.content_type.split(";", 1)[0].strip().lower()
    return media_type in TEXT_TYPES or attachment.filename.lower().endswith(TEXT_SUFFIXES)


def _extract_pdf(content: bytes) -> str:
    reader = PdfReader(io.BytesIO(content))
    pages = [page.extract_text() or "" for page in reader.pages]
    return "\n\n".join(pages)


def extract_text(attachment: Attachment) -> str | None:
    """Return the attachment's text, or None for unsupported types."""
    if _is_pdf(attachment):
        return _extract_pdf(attachment.content)
    if _is_text(attachment):
        return attachment.content.decode("utf-8", errors="replace")
    return None


def extract_attachments(attachments: list[Attachment]) -> list[dict[str, Any]]:
    """Build persisted attachment metadata, with ``parsed_content`` where extraction worked.

    A broken attachment is kept as metadata only and never aborts the batch.
    """
    records: list[dict[str, Any]] = []
    for attachment in attachments:
        record: dict[str, Any] = {
            "filename": attachment.filename,
            "content_type": attachment.content_type,
            "size": attachment.size,
        }
        try:
            text = extract_text(attachment)
        except Exception as exc:  # pypdf raises a wide range of errors on damaged files
            logger.warning(
                "attachment.extract.failed",
                extra={
                    "event": "attachment.extract.failed",
                    "attachment_filename": attachment.filename,
                    "content_type": attachment.content_type,
                    "error": str(exc),
                },
            )
            text = None
        if text:
            record["parsed_content"] = text
        records.append(record)
    return records


def attachment_texts(records: list[dict[str, Any]] | None) -> list[str]:
    """Texts handed to the AI, each prefixed with its file name."""
    texts = []
    for record in records or []:
        content = record.get("parsed_content")
        if content:
            texts.append(f"File: {record.get('filename', 'attachment')}\n{content}")
    return texts
