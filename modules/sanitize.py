"""
Input sanitization for free-text customer fields.

Markup is stripped before storage. Plain text, including ``&``, ``<`` and
``>`` used as characters, is stored as typed; escaping for HTML happens
wherever the text is rendered.
"""

from __future__ import annotations

import html
from typing import Any, Dict, Optional

import bleach


MAX_TEXT_LENGTH = 255


def sanitize_text(text: str, max_length: Optional[int] = MAX_TEXT_LENGTH) -> str:
    """
    Remove HTML tags from user input text.

    Args:
        text: Raw input text
        max_length: Optional maximum length to enforce

    Returns:
        Tag-free text, trimmed and truncated
    """
    if not text:
        return ""

    # Strip whitespace
    text = text.strip()

    # Bleach HTML tags, then undo the entity escaping bleach applies to text
    text = html.unescape(bleach.clean(text, tags=[], strip=True))

    # Truncate if needed
    if max_length and len(text) > max_length:
        text = text[:max_length]

    return text


def sanitize_fields(data: Dict[str, Any], max_length: Optional[int] = MAX_TEXT_LENGTH) -> Dict[str, Any]:
    """Return a copy of ``data`` with every string value sanitized."""
    return {
        key: sanitize_text(value, max_length) if isinstance(value, str) else value
        for key, value in data.items()
    }
