"""Deterministic output validators used by the AI gateway."""

from __future__ import annotations

import json
import re
from typing import Any

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_OBJECT = re.compile(r"\{[\s\S]*\}")


def validate_non_empty_output(text: str) -> tuple[bool, str | None]:
    if text and text.strip():
        return True, None
    return False, "Output is empty."


def _candidates(text: str) -> list[str]:
    candidates: list[str] = []
    fenced = _FENCED_BLOCK.search(text)
    if fenced:
        candidates.append(fenced.group(1).strip())
    obj = _OBJECT.search(text)
    if obj:
        candidates.append(obj.group(0))
    return candidates


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Return the first JSON object found in model output, or None.

    A fenced code block wins over a bare ``{...}`` span; the span is greedy so
    nested objects survive intact.
    """
    for candidate in _candidates(text or ""):
        try:
            parsed = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None
