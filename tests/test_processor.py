# tests/test_processor.py
"""
Tests for ResponseContentProcessor.

Covers:
- Analysis of content nodes and bare strings at any depth
- Externalization with reference-node substitution
- Per-item store failures and timeouts
- Whole-pass fallback on malformed content
- The caller's response is never mutated
"""

import asyncio
import base64
import copy
from unittest.mock import AsyncMock, MagicMock

import pytest

from chuk_ai_conversation_memory.content.processor import (
    ResponseContentProcessor,
    deep_copy_response,
    find_reference_nodes,
    is_reference_node,
    replace_at_path,
)
from chuk_ai_conversation_memory.exceptions import StorageError, StructuralParseError
from chuk_ai_conversation_memory.models.enums import ContentKind, ContentSource, ContentType


def text_response(*texts):
    return {"content": [{"type": "text", "text": text} for text in texts]}


def mock_store(store_side_effect=None):
    """Store double with the 1 KiB policy whose store() is an AsyncMock."""
    store = MagicMock()
    store.should_externalize = lambda size: size > 1024
    store.store = AsyncMock(side_effect=store_side_effect)
    return store


class TestAnalyze:
    def test_none_and_scalars(self, processor):
        for value in (None, 42, True, "short"):
            analysis = processor.analyze_response(value)
            assert analysis.should_process is False
            assert analysis.items == []

    def test_small_content_nodes_are_items(self, processor):
        analysis = processor.analyze_response(text_response("a", "bb"))
        assert len(analysis.items) == 2
        assert analysis.total_size == 3
        assert analysis.largest_item_size == 2
        assert analysis.should_process is False

    def test_large_text_node(self, processor, large_text):
        analysis = processor.analyze_response(text_response(large_text))
        assert analysis.should_process is True
        assert analysis.items[0].path == ("content", 0)
        assert analysis.items[0].size_bytes == 2000

    def test_bare_large_string_at_depth(self, processor, large_text):
        analysis = processor.analyze_response({"result": {"pages": ["small", large_text]}})
        assert [item.path for item in analysis.items] == [("result", "pages", 1)]

    def test_bare_small_strings_ignored(self, processor):
        assert processor.analyze_response({"a": "b", "c": ["d"]}).items == []

    def test_image_node(self, processor):
        data = base64.b64encode(b"\x89" * 3000).decode()
        analysis = processor.analyze_response({"content": [{"type": "image", "data": data, "mimeType": "image/png"}]})
        item = analysis.items[0]
        assert item.kind == ContentKind.IMAGE
        assert item.size_bytes == 3000
        assert item.media_type == "image/png"

    def test_idempotent(self, processor, large_text):
        response = text_response(large_text, "tiny")
        assert processor.analyze_response(response) == processor.analyze_response(response)

    def test_does_not_mutate(self, processor, large_text):
        response = text_response(large_text)
        snapshot = copy.deepcopy(response)
        processor.analyze_response(response)
        assert response == snapshot


class TestProcess:
    async def test_small_response_untouched(self, processor):
        response = text_response("hello")
        result = await processor.process_response(response, "fs", "read")
        assert result.was_processed is False
        assert result.content is response
        assert result.errors == []

    async def test_none_response(self, processor):
        result = await processor.process_response(None, "fs", "read")
        assert result.was_processed is False
        assert result.content is None

    async def test_large_text_externalized(self, processor, store, large_text):
        response = text_response(large_text)
        snapshot = copy.deepcopy(response)

        result = await processor.process_response(response, "filesystem", "read_file")

        assert result.was_processed is True
        assert result.reference_created is True
        assert len(result.reference_ids) == 1
        assert result.original_size == 2000
        assert response == snapshot

        node = result.content["content"][0]
        assert is_reference_node(node)
        assert node["referenceId"] == result.reference_ids[0]
        assert node["size"] == 2000
        assert node["contentType"] == ContentType.TEXT.value
        assert node["format"] == "ref://{id}"
        assert node["_isReference"] is True

        assert await store.fetch(node["referenceId"]) == large_text.encode()

    async def test_processed_response_has_nothing_left_to_externalize(self, processor, large_text):
        result = await processor.process_response(text_response(large_text, large_text + "y"), "fs", "read")
        assert processor.analyze_response(result.content).should_process is False
        assert len(find_reference_nodes(result.content)) == 2

    async def test_tool_metadata_recorded(self, processor, store, large_text):
        result = await processor.process_response(text_response(large_text), "filesystem", "read_file")
        resolution = await store.resolve_reference(result.reference_ids[0])
        assert resolution.metadata.source == ContentSource.TOOL
        assert resolution.metadata.tool_qualified_name == "filesystem::read_file"
        assert resolution.metadata.tags == ["tool_response", "filesystem", "read_file"]

    async def test_bare_string_top_level(self, processor, store, large_text):
        result = await processor.process_response(large_text, "web", "fetch")
        assert is_reference_node(result.content)
        assert await store.fetch(result.content["referenceId"]) == large_text.encode()

    async def test_image_stores_decoded_bytes(self, processor, store):
        raw = bytes(range(256)) * 8
        response = {"content": [{"type": "image", "data": base64.b64encode(raw).decode(), "mimeType": "image/png"}]}

        result = await processor.process_response(response, "camera", "capture")

        node = result.content["content"][0]
        assert node["contentType"] == ContentType.BINARY.value
        assert await store.fetch(node["referenceId"]) == raw

    async def test_resource_stored_as_json(self, processor, store):
        resource = {"uri": "file:///data.csv", "text": "a,b\n" * 500}
        result = await processor.process_response(
            {"content": [{"type": "resource", "resource": resource}]}, "fs", "read"
        )
        node = result.content["content"][0]
        assert node["contentType"] == ContentType.JSON.value
        assert b'"uri":"file:///data.csv"' in await store.fetch(node["referenceId"])

    async def test_tuples_become_lists(self, processor, large_text):
        result = await processor.process_response({"parts": ("small", large_text)}, "fs", "read")
        assert isinstance(result.content["parts"], list)
        assert result.content["parts"][0] == "small"
        assert is_reference_node(result.content["parts"][1])


class TestFailures:
    async def test_store_error_keeps_content_inline(self, large_text):
        processor = ResponseContentProcessor(mock_store(StorageError("disk full")))
        response = text_response(large_text)

        result = await processor.process_response(response, "fs", "read")

        assert result.was_processed is True
        assert result.reference_created is False
        assert result.errors == ["Failed to create reference: disk full"]
        assert result.content == response
        assert result.content is not response

    async def test_partial_failure(self, store, large_text):
        calls = {"n": 0}

        async def flaky_store(data, metadata):
            calls["n"] += 1
            if calls["n"] == 1:
                raise StorageError("first one fails")
            return await store.store(data, metadata)

        processor = ResponseContentProcessor(mock_store(flaky_store))
        response = text_response(large_text, large_text + "z")

        result = await processor.process_response(response, "fs", "read")

        assert result.reference_created is True
        assert len(result.references) == 1
        assert len(result.errors) == 1
        assert result.content["content"][0] == response["content"][0]
        assert is_reference_node(result.content["content"][1])

    async def test_store_timeout(self, large_text):
        async def slow_store(data, metadata):
            await asyncio.sleep(5)

        processor = ResponseContentProcessor(mock_store(slow_store), store_timeout=0.01)

        result = await processor.process_response(text_response(large_text), "fs", "read")

        assert result.reference_created is False
        assert "timed out" in result.errors[0]

    async def test_store_declines(self, large_text):
        processor = ResponseContentProcessor(mock_store(lambda data, metadata: None))

        result = await processor.process_response(text_response(large_text), "fs", "read")

        assert result.was_processed is True
        assert result.reference_created is False
        assert result.errors == []

    async def test_malformed_image_falls_back_to_original(self, processor, store):
        response = {"content": [{"type": "image", "data": "not base64!" * 300}]}

        result = await processor.process_response(response, "camera", "capture")

        assert result.was_processed is False
        assert result.content is response
        assert result.errors
        assert len(store) == 0


class TestTreeHelpers:
    def test_deep_copy_is_independent(self):
        original = {"a": [1, {"b": "c"}], "d": bytearray(b"x")}
        copied = deep_copy_response(original)
        copied["a"][1]["b"] = "changed"
        copied["d"][0] = ord("y")
        assert original == {"a": [1, {"b": "c"}], "d": bytearray(b"x")}

    def test_replace_at_root(self):
        assert replace_at_path({"a": 1}, (), "new") == "new"

    def test_replace_in_unsupported_parent(self):
        with pytest.raises(StructuralParseError):
            replace_at_path({"a": "string"}, ("a", 0), "x")
