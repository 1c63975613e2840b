"""Deterministic sanitizers used by services and API handlers."""

from __future__ import annotations

import re

_ANGLE_ADDRESS = re.compile(r"<([^>]+)>")


def sanitize_text(value: str | None, max_len: int = 20000) -> str:
    """Sanitize free-form content before persistence."""
    if value is None:
        return ""
    cleaned = str(value).replace("\x00", "").strip()
    return cleaned[:max_len]


def optional_text(value: str | None, max_len: int = 20000) -> str | None:
    cleaned = sanitize_text(value, max_len=max_len)
    return cleaned or None


def normalize_email(value: str | None) -> str:
    return sanitize_text(value, max_len=320).lower()


def extract_email_address(header: str | None) -> str:
    """Bare address from a From header: text inside ``<...>`` if present, else the raw value."""
    raw = header or ""
    match = _ANGLE_ADDRESS.search(raw)
    return normalize_email(match.group(1) if match else raw)
