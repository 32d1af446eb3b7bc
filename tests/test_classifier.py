# tests/test_classifier.py
"""Tests for content node tagging and classification."""

import base64

import pytest

from chuk_ai_conversation_memory.content.classifier import (
    base64_decoded_size,
    classify,
    content_type_for_mime,
    detect_content_type,
    detect_mime_type,
    is_content_node,
    node_kind,
)
from chuk_ai_conversation_memory.models.enums import ContentKind, ContentType, NodeKind


class TestNodeKind:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ({"type": "text", "text": "hi"}, NodeKind.CONTENT_NODE),
            ({"type": "image", "data": "aGk=", "mimeType": "image/png"}, NodeKind.CONTENT_NODE),
            ({"type": "resource", "resource": {"uri": "file:///a"}}, NodeKind.CONTENT_NODE),
            ({"type": "text", "text": 42}, NodeKind.OBJECT),
            ({"type": "resource"}, NodeKind.OBJECT),
            ({"type": "video", "data": "x"}, NodeKind.OBJECT),
            ({"content": []}, NodeKind.OBJECT),
            ([1, 2], NodeKind.ARRAY),
            ((1, 2), NodeKind.ARRAY),
            ("text", NodeKind.SCALAR),
            (3.5, NodeKind.SCALAR),
            (None, NodeKind.SCALAR),
        ],
    )
    def test_tagging(self, value, expected):
        assert node_kind(value) == expected

    def test_is_content_node_rejects_non_mapping(self):
        assert is_content_node(["text"]) is False


class TestDetectContentType:
    def test_json_object_and_array(self):
        assert detect_content_type('{"a": 1}') == ContentType.JSON
        assert detect_content_type("  [1, 2, 3]") == ContentType.JSON

    def test_json_scalar_is_text(self):
        assert detect_content_type("42") == ContentType.TEXT

    def test_broken_json_is_text(self):
        assert detect_content_type("{not json") == ContentType.TEXT

    def test_html(self):
        assert detect_content_type("<!DOCTYPE html><html><body>x</body></html>") == ContentType.HTML
        assert detect_content_type("  <html lang='en'>") == ContentType.HTML

    def test_markdown(self):
        assert detect_content_type("Intro\n\n## Section\nBody") == ContentType.MARKDOWN

    def test_plain(self):
        assert detect_content_type("just words #not a heading") == ContentType.TEXT

    def test_mime_for_text(self):
        assert detect_mime_type('{"a": 1}') == "application/json"
        assert detect_mime_type("# Title") == "text/markdown"
        assert detect_mime_type("hello") == "text/plain"


class TestMimeMapping:
    @pytest.mark.parametrize(
        "mime,expected",
        [
            (None, ContentType.TEXT),
            ("application/json", ContentType.JSON),
            ("application/ld+json", ContentType.JSON),
            ("text/html; charset=utf-8", ContentType.HTML),
            ("text/markdown", ContentType.MARKDOWN),
            ("text/csv", ContentType.TEXT),
            ("image/png", ContentType.BINARY),
            ("application/pdf", ContentType.BINARY),
        ],
    )
    def test_content_type_for_mime(self, mime, expected):
        assert content_type_for_mime(mime) == expected


class TestBase64Size:
    @pytest.mark.parametrize("size", [0, 1, 2, 3, 4, 5, 100, 2000])
    def test_matches_decoded_length(self, size):
        encoded = base64.b64encode(b"\x01" * size).decode()
        assert base64_decoded_size(encoded) == size

    def test_ignores_whitespace(self):
        encoded = base64.encodebytes(b"a" * 300).decode()
        assert "\n" in encoded
        assert base64_decoded_size(encoded) == 300


class TestClassify:
    def test_text_size_is_utf8_bytes(self):
        result = classify("héllo")
        assert result.kind == ContentKind.TEXT
        assert result.size_bytes == 6

    def test_bytes(self):
        result = classify(b"\x00\x01\x02")
        assert result.kind == ContentKind.BINARY
        assert result.content_type == ContentType.BINARY
        assert result.media_type == "application/octet-stream"
        assert result.size_bytes == 3

    def test_image_bytes(self):
        result = classify(b"\x89PNG", mime_type="image/png")
        assert result.kind == ContentKind.IMAGE

    def test_image_node_defaults_to_jpeg(self):
        data = base64.b64encode(b"\xff" * 10).decode()
        result = classify({"type": "image", "data": data})
        assert result.kind == ContentKind.IMAGE
        assert result.media_type == "image/jpeg"
        assert result.size_bytes == 10

    def test_resource_node_is_json(self):
        result = classify({"type": "resource", "resource": {"uri": "file:///a", "text": "abc"}})
        assert result.kind == ContentKind.RESOURCE
        assert result.content_type == ContentType.JSON
        assert result.size_bytes == len('{"uri":"file:///a","text":"abc"}')

    def test_text_node(self):
        result = classify({"type": "text", "text": "# Report"})
        assert result.content_type == ContentType.MARKDOWN

    def test_unsupported_shape(self):
        with pytest.raises(ValueError):
            classify(12345)
