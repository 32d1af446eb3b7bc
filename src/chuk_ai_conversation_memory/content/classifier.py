# chuk_ai_conversation_memory/content/classifier.py
"""
Content classification for tool-response payloads.

Two pure steps:
- ``node_kind`` tags an untyped response value (scalar, content node,
  array, generic object) before any field access happens.
- ``classify`` decides a payload's declared kind, detected format, media
  type and byte size.

Text format detection order: parseable JSON object/array -> HTML document
-> markdown headings -> plain text.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any

from chuk_ai_conversation_memory.models.content import ContentClassification, dump_resource
from chuk_ai_conversation_memory.models.enums import (
    MIME_DEFAULT_IMAGE,
    MIME_HTML,
    MIME_JSON,
    MIME_MARKDOWN,
    MIME_OCTET_STREAM,
    MIME_PLAIN,
    ContentKind,
    ContentType,
    NodeKind,
)

_HTML_ROOT_RE = re.compile(r"^\s*(<!doctype\s+html|<html[\s>])", re.IGNORECASE)
_MARKDOWN_HEADING_RE = re.compile(r"^\s{0,3}#{1,6}\s+\S", re.MULTILINE)

_TEXT_TYPE_FOR_MIME: dict[str, ContentType] = {
    MIME_JSON: ContentType.JSON,
    MIME_HTML: ContentType.HTML,
    MIME_MARKDOWN: ContentType.MARKDOWN,
    MIME_PLAIN: ContentType.TEXT,
}


# =============================================================================
# Node tagging
# =============================================================================


def is_content_node(value: Any) -> bool:
    """True for MCP-style content entries: text, image or embedded resource."""
    if not isinstance(value, Mapping):
        return False
    node_type = value.get("type")
    if node_type == ContentKind.TEXT.value:
        return isinstance(value.get("text"), str)
    if node_type == ContentKind.IMAGE.value:
        return isinstance(value.get("data"), str)
    if node_type == ContentKind.RESOURCE.value:
        return value.get("resource") is not None
    return False


def node_kind(value: Any) -> NodeKind:
    """Tag an untyped response value."""
    if is_content_node(value):
        return NodeKind.CONTENT_NODE
    if isinstance(value, Mapping):
        return NodeKind.OBJECT
    if isinstance(value, list | tuple):
        return NodeKind.ARRAY
    return NodeKind.SCALAR


# =============================================================================
# Format detection
# =============================================================================


def _is_structured(text: str) -> bool:
    stripped = text.strip()
    if not stripped or stripped[0] not in "{[":
        return False
    try:
        return isinstance(json.loads(stripped), dict | list)
    except ValueError:
        return False


def detect_content_type(text: str) -> ContentType:
    """Structured -> markup -> markdown -> plain."""
    if _is_structured(text):
        return ContentType.JSON
    if _HTML_ROOT_RE.match(text):
        return ContentType.HTML
    if _MARKDOWN_HEADING_RE.search(text):
        return ContentType.MARKDOWN
    return ContentType.TEXT


def detect_mime_type(text: str) -> str:
    return {
        ContentType.JSON: MIME_JSON,
        ContentType.HTML: MIME_HTML,
        ContentType.MARKDOWN: MIME_MARKDOWN,
    }.get(detect_content_type(text), MIME_PLAIN)


def content_type_for_mime(mime_type: str | None) -> ContentType:
    """Map a media type onto the stored content format."""
    if not mime_type:
        return ContentType.TEXT
    base = mime_type.split(";", 1)[0].strip().lower()
    if base in _TEXT_TYPE_FOR_MIME:
        return _TEXT_TYPE_FOR_MIME[base]
    if base.endswith("+json"):
        return ContentType.JSON
    if base.startswith("text/"):
        return ContentType.TEXT
    return ContentType.BINARY


def base64_decoded_size(data: str) -> int:
    """Byte length of base64 data once decoded, without decoding it."""
    compact = "".join(data.split())
    if not compact:
        return 0
    padding = len(compact) - len(compact.rstrip("="))
    return max(0, len(compact) * 3 // 4 - padding)


# =============================================================================
# Classification
# =============================================================================


def classify_text(text: str) -> ContentClassification:
    content_type = detect_content_type(text)
    return ContentClassification(
        kind=ContentKind.TEXT,
        content_type=content_type,
        media_type=detect_mime_type(text),
        size_bytes=len(text.encode("utf-8")),
    )


def classify_bytes(data: bytes, mime_type: str | None = None) -> ContentClassification:
    media_type = mime_type or MIME_OCTET_STREAM
    kind = ContentKind.IMAGE if media_type.startswith("image/") else ContentKind.BINARY
    return ContentClassification(
        kind=kind,
        content_type=content_type_for_mime(mime_type) if mime_type else ContentType.BINARY,
        media_type=media_type,
        size_bytes=len(data),
    )


def classify_node(node: Mapping[str, Any]) -> ContentClassification:
    """Classify a content node (see ``is_content_node``)."""
    node_type = node.get("type")

    if node_type == ContentKind.TEXT.value:
        return classify_text(node["text"])

    if node_type == ContentKind.IMAGE.value:
        mime_type = node.get("mimeType") or MIME_DEFAULT_IMAGE
        return ContentClassification(
            kind=ContentKind.IMAGE,
            content_type=ContentType.BINARY,
            media_type=mime_type,
            size_bytes=base64_decoded_size(node["data"]),
        )

    if node_type == ContentKind.RESOURCE.value:
        # The whole resource object is what gets stored, as JSON
        return ContentClassification(
            kind=ContentKind.RESOURCE,
            content_type=ContentType.JSON,
            media_type=MIME_JSON,
            size_bytes=len(dump_resource(node["resource"]).encode("utf-8")),
        )

    raise ValueError(f"Not a content node: type={node_type!r}")


def classify(item: Any, mime_type: str | None = None) -> ContentClassification:
    """
    Classify a string, bytes payload, or content node.

    Args:
        item: The payload to classify
        mime_type: Declared media type for byte payloads

    Raises:
        ValueError: item is none of the supported shapes
    """
    if isinstance(item, str):
        return classify_text(item)
    if isinstance(item, bytes | bytearray):
        return classify_bytes(bytes(item), mime_type)
    if is_content_node(item):
        return classify_node(item)
    raise ValueError(f"Cannot classify value of type {type(item).__name__}")
