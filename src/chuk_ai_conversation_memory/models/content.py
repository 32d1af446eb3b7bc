"""Content analysis models for tool-response processing."""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any

from pydantic import BaseModel, Field

from chuk_ai_conversation_memory.base_models import DictCompatModel
from chuk_ai_conversation_memory.exceptions import StructuralParseError
from chuk_ai_conversation_memory.models.enums import ContentKind, ContentType
from chuk_ai_conversation_memory.models.reference import ContentReference

# A position inside an untyped response tree: dict keys and list indices.
ResponsePath = tuple[str | int, ...]


def dump_resource(resource: Any) -> str:
    """Canonical compact JSON text of an embedded resource."""
    return json.dumps(resource, separators=(",", ":"), ensure_ascii=False, default=str)


class ContentClassification(BaseModel):
    """Result of classifying one content payload."""

    kind: ContentKind
    content_type: ContentType
    media_type: str
    size_bytes: int = Field(default=0, ge=0)


class ContentItem(BaseModel):
    """
    One recognized piece of content inside a tool response.

    Transient: rebuilt on every analysis. ``path`` points at the node that
    will be replaced if the item is externalized.
    """

    kind: ContentKind
    content_type: ContentType = Field(default=ContentType.TEXT)
    media_type: str = Field(default="text/plain")
    size_bytes: int = Field(default=0, ge=0)
    payload: Any = Field(default=None, repr=False)
    path: ResponsePath = Field(default=())

    def encode(self) -> bytes:
        """Canonical byte encoding of the payload (what gets externalized)."""
        if self.kind == ContentKind.IMAGE:
            try:
                return base64.b64decode(self.payload, validate=True)
            except (binascii.Error, ValueError, TypeError) as e:
                raise StructuralParseError(f"Invalid base64 image data at {list(self.path)}: {e}") from e
        if self.kind == ContentKind.RESOURCE:
            return dump_resource(self.payload).encode("utf-8")
        if isinstance(self.payload, bytes | bytearray):
            return bytes(self.payload)
        if isinstance(self.payload, str):
            return self.payload.encode("utf-8")
        raise StructuralParseError(f"Unsupported payload type {type(self.payload).__name__} at {list(self.path)}")


class ContentAnalysis(DictCompatModel):
    """Summary of all content items found in a response."""

    should_process: bool = Field(default=False)
    items: list[ContentItem] = Field(default_factory=list)
    total_size: int = Field(default=0)
    largest_item_size: int = Field(default=0)


class ProcessedResponse(DictCompatModel):
    """Outcome of externalizing oversized content in a tool response."""

    content: Any = Field(default=None, description="Processed (or original) response")
    was_processed: bool = Field(default=False)
    reference_created: bool = Field(default=False)
    references: list[ContentReference] = Field(default_factory=list)
    original_size: int = Field(default=0, description="Bytes moved into the store")
    errors: list[str] = Field(default_factory=list)

    @property
    def reference_ids(self) -> list[str]:
        return [ref.reference_id for ref in self.references]
