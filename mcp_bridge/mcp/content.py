"""Pull displayable text out of MCP prompt/resource payloads."""

from __future__ import annotations

import json
from typing import Any


def _render_raw(payload: Any) -> str:
    if isinstance(payload, str):
        return payload
    try:
        return json.dumps(payload, indent=2, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(payload)


def _entry_text(entry: Any) -> str | None:
    """Text of a single message/content entry, or None if it has no text field."""
    if not isinstance(entry, dict):
        return None
    content = entry.get("content")
    if isinstance(content, dict) and isinstance(content.get("text"), str):
        return content["text"]
    if isinstance(content, str):
        return content
    if isinstance(entry.get("text"), str):
        return entry["text"]
    return None


def extract_text(payload: Any, entries_key: str) -> str | None:
    """Return the text of the first entry under *entries_key*.

    ``get_prompt`` payloads use ``entries_key="messages"`` and
    ``read_resource`` payloads use ``"contents"``.  When the payload does
    not have that structure the whole payload is rendered as text.
    Returns None when there is nothing usable.
    """
    if not payload:
        return None

    if isinstance(payload, dict):
        entries = payload.get(entries_key)
        if isinstance(entries, list):
            if not entries:
                return None
            text = _entry_text(entries[0])
            if text is None:
                text = _render_raw(entries[0])
            return text or None

    text = _render_raw(payload)
    return text or None
