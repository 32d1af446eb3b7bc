# chuk_ai_conversation_memory/content/reference_ids.py
"""
Content-addressed reference identifiers.

A reference id is the SHA-256 hex digest of the stored bytes, so storing the
same content twice yields the same id. In text the id travels as
``ref://<64 hex chars>``.
"""

from __future__ import annotations

import hashlib
import re

from chuk_ai_conversation_memory.models.enums import REFERENCE_URI_PREFIX

REFERENCE_ID_LENGTH = 64

_REFERENCE_ID_RE = re.compile(r"^[a-f0-9]{64}$")
_REFERENCE_URI_RE = re.compile(r"^ref://([a-f0-9]{64})$")

# Used to find references embedded in free text
REFERENCE_URI_PATTERN = re.compile(r"ref://([a-f0-9]{64})")


def generate_reference_id(content: bytes) -> str:
    """Deterministic reference id for a byte payload."""
    return hashlib.sha256(content).hexdigest()


def is_valid_reference_id(reference_id: object) -> bool:
    return isinstance(reference_id, str) and bool(_REFERENCE_ID_RE.match(reference_id))


def extract_reference_id(value: object) -> str | None:
    """Accept either a bare id or ``ref://<id>``; anything else gives None."""
    if not isinstance(value, str) or not value:
        return None
    match = _REFERENCE_URI_RE.match(value)
    if match:
        return match.group(1)
    return value if is_valid_reference_id(value) else None


def format_reference(reference_id: str) -> str:
    return f"{REFERENCE_URI_PREFIX}{reference_id}"
