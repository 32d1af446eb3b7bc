# chuk_ai_conversation_memory/content/processor.py
"""
Response Content Processor.

Walks an untyped tool response, finds content that is too large to keep in
the conversation, moves it into the content store and puts a small
``content_reference`` node in its place.

Failure handling:
- a store failure (error or timeout) affects only that item: it stays
  inline and the reason is added to ``errors``
- a structural failure (malformed node, unexpected shape) abandons the
  whole pass: the original response is returned unprocessed
- the caller's response object is never mutated; substitution happens on
  a deep copy
"""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Mapping
from datetime import date, datetime, time
from typing import Any

from chuk_ai_conversation_memory.config import DEFAULT_STORE_TIMEOUT_SECONDS
from chuk_ai_conversation_memory.content.classifier import classify_node, classify_text, node_kind
from chuk_ai_conversation_memory.content.store import ContentStore
from chuk_ai_conversation_memory.exceptions import StructuralParseError
from chuk_ai_conversation_memory.models.content import (
    ContentAnalysis,
    ContentItem,
    ProcessedResponse,
    ResponsePath,
)
from chuk_ai_conversation_memory.models.enums import (
    CONTENT_REFERENCE_NODE_TYPE,
    REFERENCE_FORMAT,
    ContentKind,
    ContentSource,
    NodeKind,
)
from chuk_ai_conversation_memory.models.reference import ContentReference, StoreMetadata

logger = logging.getLogger(__name__)

TOOL_RESPONSE_TAG = "tool_response"

# Field holding the payload for each content node type
_PAYLOAD_FIELD: dict[str, str] = {
    ContentKind.TEXT.value: "text",
    ContentKind.IMAGE.value: "data",
    ContentKind.RESOURCE.value: "resource",
}


# =============================================================================
# Tree helpers
# =============================================================================


def deep_copy_response(value: Any) -> Any:
    """
    Copy an untyped response tree.

    Mappings become dicts and tuples become lists (JSON shapes); date-like
    leaves are copied explicitly; immutable scalars are shared.
    """
    if isinstance(value, Mapping):
        return {key: deep_copy_response(child) for key, child in value.items()}
    if isinstance(value, list | tuple):
        return [deep_copy_response(child) for child in value]
    if isinstance(value, datetime | date | time):
        return value.replace()
    if isinstance(value, bytearray):
        return bytearray(value)
    if value is None or isinstance(value, str | bytes | int | float):
        return value
    return copy.deepcopy(value)


def build_reference_node(reference: ContentReference) -> dict[str, Any]:
    """The lightweight node that replaces externalized content."""
    return {
        "type": CONTENT_REFERENCE_NODE_TYPE,
        "referenceId": reference.reference_id,
        "preview": reference.preview,
        "size": reference.metadata.size_bytes,
        "contentType": reference.metadata.content_type.value,
        "format": REFERENCE_FORMAT,
        "_isReference": True,
    }


def is_reference_node(value: Any) -> bool:
    return isinstance(value, Mapping) and value.get("type") == CONTENT_REFERENCE_NODE_TYPE


def find_reference_nodes(value: Any) -> list[dict[str, Any]]:
    """All content_reference nodes in a (processed) response, in document order."""
    found: list[dict[str, Any]] = []
    if is_reference_node(value):
        found.append(value)
    elif isinstance(value, Mapping):
        for child in value.values():
            found.extend(find_reference_nodes(child))
    elif isinstance(value, list | tuple):
        for child in value:
            found.extend(find_reference_nodes(child))
    return found


def replace_at_path(root: Any, path: ResponsePath, replacement: Any) -> Any:
    """Put ``replacement`` at ``path`` inside ``root`` (a copied tree). Returns the new root."""
    if not path:
        return replacement

    parent = root
    for step in path[:-1]:
        parent = parent[step]

    last = path[-1]
    if isinstance(parent, dict) or (isinstance(parent, list) and isinstance(last, int)):
        parent[last] = replacement
        return root
    raise StructuralParseError(f"Cannot substitute at {list(path)}: parent is {type(parent).__name__}")


# =============================================================================
# Processor
# =============================================================================


class ResponseContentProcessor:
    """
    Externalizes oversized content in tool responses.

    Usage:
        processor = ResponseContentProcessor(store)
        result = await processor.process_response(raw_result, "filesystem", "read_file")
        if result.reference_created:
            for ref in result.references:
                tracker.add_reference(ref)
    """

    def __init__(
        self,
        store: ContentStore,
        store_timeout: float | None = DEFAULT_STORE_TIMEOUT_SECONDS,
    ):
        """
        Args:
            store: Content store used for the size policy and for storing
            store_timeout: Seconds to wait for one store call (None = no limit)
        """
        self._store = store
        self._store_timeout = store_timeout

    @property
    def store(self) -> ContentStore:
        return self._store

    # -------------------------------------------------------------------------
    # Analysis
    # -------------------------------------------------------------------------

    def analyze_response(self, response: Any) -> ContentAnalysis:
        """Find content items in a response. None/unrecognized input yields no items."""
        items: list[ContentItem] = []
        self._collect(response, (), items)

        return ContentAnalysis(
            should_process=any(self._store.should_externalize(item.size_bytes) for item in items),
            items=items,
            total_size=sum(item.size_bytes for item in items),
            largest_item_size=max((item.size_bytes for item in items), default=0),
        )

    def _collect(self, value: Any, path: ResponsePath, items: list[ContentItem]) -> None:
        kind = node_kind(value)

        if kind == NodeKind.CONTENT_NODE:
            classification = classify_node(value)
            items.append(
                ContentItem(
                    kind=classification.kind,
                    content_type=classification.content_type,
                    media_type=classification.media_type,
                    size_bytes=classification.size_bytes,
                    payload=value[_PAYLOAD_FIELD[value["type"]]],
                    path=path,
                )
            )
        elif kind == NodeKind.ARRAY:
            for index, child in enumerate(value):
                self._collect(child, (*path, index), items)
        elif kind == NodeKind.OBJECT:
            for key, child in value.items():
                self._collect(child, (*path, key), items)
        elif isinstance(value, str):
            # Bare strings only count once they are big enough to externalize
            classification = classify_text(value)
            if self._store.should_externalize(classification.size_bytes):
                items.append(
                    ContentItem(
                        kind=ContentKind.TEXT,
                        content_type=classification.content_type,
                        media_type=classification.media_type,
                        size_bytes=classification.size_bytes,
                        payload=value,
                        path=path,
                    )
                )

    # -------------------------------------------------------------------------
    # Processing
    # -------------------------------------------------------------------------

    async def process_response(
        self,
        response: Any,
        source_name: str,
        tool_name: str,
    ) -> ProcessedResponse:
        """
        Externalize oversized content in a tool response.

        Args:
            response: Raw tool result (any JSON-like value)
            source_name: Tool server / provider name
            tool_name: Tool name on that server

        Returns:
            ProcessedResponse; never raises for store or shape problems
        """
        try:
            analysis = self.analyze_response(response)
            if not analysis.should_process:
                return ProcessedResponse(content=response, was_processed=False)

            return await self._create_referenced_response(response, analysis, source_name, tool_name)
        except Exception as e:
            logger.error("Error processing response from %s::%s", source_name, tool_name, exc_info=True)
            return ProcessedResponse(
                content=response,
                was_processed=False,
                errors=[str(e) or type(e).__name__],
            )

    async def _create_referenced_response(
        self,
        response: Any,
        analysis: ContentAnalysis,
        source_name: str,
        tool_name: str,
    ) -> ProcessedResponse:
        processed = deep_copy_response(response)
        references: list[ContentReference] = []
        errors: list[str] = []
        externalized_bytes = 0
        qualified_name = f"{source_name}::{tool_name}"

        for item in analysis.items:
            if not self._store.should_externalize(item.size_bytes):
                continue

            data = item.encode()
            metadata = StoreMetadata(
                content_type=item.content_type,
                content_kind=item.kind,
                mime_type=item.media_type,
                source=ContentSource.TOOL,
                tool_qualified_name=qualified_name,
                tags=[TOOL_RESPONSE_TAG, source_name, tool_name],
            )

            try:
                reference = await self._store_with_timeout(data, metadata)
            except TimeoutError:
                logger.warning("Store timed out for %d bytes from %s", len(data), qualified_name)
                errors.append(f"Failed to create reference: store timed out after {self._store_timeout}s")
                continue
            except Exception as e:
                logger.warning("Store failed for %d bytes from %s: %s", len(data), qualified_name, e)
                errors.append(f"Failed to create reference: {str(e) or type(e).__name__}")
                continue

            if reference is None:
                logger.debug("Store declined %d bytes from %s, leaving inline", len(data), qualified_name)
                continue

            processed = replace_at_path(processed, item.path, build_reference_node(reference))
            references.append(reference)
            externalized_bytes += len(data)

        return ProcessedResponse(
            content=processed,
            was_processed=True,
            reference_created=bool(references),
            references=references,
            original_size=externalized_bytes,
            errors=errors,
        )

    async def _store_with_timeout(self, data: bytes, metadata: StoreMetadata) -> ContentReference | None:
        if self._store_timeout is None:
            return await self._store.store(data, metadata)
        return await asyncio.wait_for(self._store.store(data, metadata), timeout=self._store_timeout)
