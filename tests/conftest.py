# tests/conftest.py
"""
Shared pytest fixtures for chuk_ai_conversation_memory tests.

Token budgets are tested with a word-count token counter so window
arithmetic stays exact regardless of which tiktoken encoding is available.
"""

import logging

import pytest

from chuk_ai_conversation_memory.content.processor import ResponseContentProcessor
from chuk_ai_conversation_memory.content.store import ContentStoreConfig, InMemoryContentStore
from chuk_ai_conversation_memory.memory.memory_window import MemoryWindow
from chuk_ai_conversation_memory.models.message import ConversationMessage
from chuk_ai_conversation_memory.references.context_tracker import ReferenceContextTracker

# Configure logging for tests
logging.basicConfig(level=logging.WARNING)
logging.getLogger("chuk_ai_conversation_memory").setLevel(logging.DEBUG)

TEST_THRESHOLD_BYTES = 1024


class WordTokenCounter:
    """One token per whitespace-separated word; no framing overhead."""

    def count_tokens(self, text: str) -> int:
        return len(text.split())

    def count_message_tokens(self, message: ConversationMessage) -> int:
        return self.count_tokens(message.content)

    def estimate_system_prompt_tokens(self, system_prompt: str) -> int:
        return self.count_tokens(system_prompt)


@pytest.fixture
def token_counter():
    return WordTokenCounter()


@pytest.fixture
def window(token_counter):
    """Window with 100 tokens max and 10 reserved."""
    return MemoryWindow(max_tokens=100, reserve_tokens=10, token_counter=token_counter)


@pytest.fixture
def store():
    """In-memory store externalizing anything over 1 KiB."""
    return InMemoryContentStore(config=ContentStoreConfig(size_threshold_bytes=TEST_THRESHOLD_BYTES))


@pytest.fixture
def processor(store):
    return ResponseContentProcessor(store)


@pytest.fixture
def tracker(store):
    return ReferenceContextTracker(store)


@pytest.fixture
def large_text():
    """2000 bytes of plain text."""
    return "x" * 2000
