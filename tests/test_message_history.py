# tests/test_message_history.py
"""Tests for the pruned-message archive."""

from datetime import UTC, datetime, timedelta

import pytest

from chuk_ai_conversation_memory.exceptions import ConfigurationError
from chuk_ai_conversation_memory.memory.message_history import MessageHistory
from chuk_ai_conversation_memory.models.enums import MessageRole
from chuk_ai_conversation_memory.models.message import ConversationMessage


@pytest.fixture
def history():
    history = MessageHistory(max_messages=5)
    history.store_messages(
        [
            ConversationMessage.user("What is the invoice total?"),
            ConversationMessage.assistant("The INVOICE total is 42."),
            ConversationMessage.user("Thanks"),
        ]
    )
    return history


class TestStore:
    def test_invalid_limit(self):
        with pytest.raises(ConfigurationError):
            MessageHistory(max_messages=0)

    def test_store_counts(self, history):
        assert len(history) == 3

    def test_store_nothing(self, history):
        result = history.store_messages([])
        assert result.stored == 0
        assert len(history) == 3

    def test_fifo_drop_over_limit(self, history):
        result = history.store_messages([ConversationMessage.user(f"m{i}") for i in range(4)])
        assert result.stored == 4
        assert result.dropped == 2
        assert len(history) == 5
        assert history.get_recent_messages(5)[0].content == "Thanks"

    def test_update_storage_limit(self, history):
        assert history.update_storage_limit(1) == 2
        assert [m.content for m in history.get_recent_messages(10)] == ["Thanks"]

    def test_update_storage_limit_invalid(self, history):
        with pytest.raises(ConfigurationError):
            history.update_storage_limit(0)


class TestSearch:
    def test_case_insensitive_by_default(self, history):
        assert len(history.search_messages("invoice")) == 2

    def test_case_sensitive(self, history):
        results = history.search_messages("INVOICE", case_sensitive=True)
        assert [m.role for m in results] == [MessageRole.ASSISTANT]

    def test_limit(self, history):
        assert len(history.search_messages("invoice", limit=1)) == 1

    def test_regex(self, history):
        assert len(history.search_messages(r"total is \d+", use_regex=True)) == 1

    def test_invalid_regex_returns_empty(self, history):
        assert history.search_messages("([", use_regex=True) == []

    def test_regex_metacharacters_are_literal_without_flag(self, history):
        assert history.search_messages("invoice.total") == []
        assert len(history.search_messages("invoice.total", use_regex=True)) == 2

    def test_empty_query(self, history):
        assert history.search_messages("") == []


class TestQueries:
    def test_recent(self, history):
        assert [m.content for m in history.get_recent_messages(1)] == ["Thanks"]
        assert history.get_recent_messages(0) == []

    def test_by_role(self, history):
        assert len(history.get_messages_by_role(MessageRole.USER)) == 2
        assert len(history.get_messages_by_role("user", limit=1)) == 1

    def test_by_role_non_positive_limit(self, history):
        assert history.get_messages_by_role(MessageRole.USER, limit=0) == []
        assert history.get_messages_by_role(MessageRole.USER, limit=-1) == []

    def test_by_unknown_role(self, history):
        assert history.get_messages_by_role("narrator") == []

    def test_time_range(self, history):
        now = datetime.now(UTC)
        assert len(history.get_messages_from_time_range(now - timedelta(minutes=1), now + timedelta(minutes=1))) == 3
        assert history.get_messages_from_time_range(now, now - timedelta(minutes=1)) == []

    def test_recent_by_time(self, history):
        assert len(history.get_recent_messages_by_time(5)) == 3
        assert history.get_recent_messages_by_time(0) == []

    def test_stats_and_export(self, history):
        stats = history.get_storage_stats()
        assert stats.total_messages == 3
        assert stats.usage_percentage == 60.0
        assert stats.oldest_message_time is not None

        exported = history.export_messages()
        assert exported[0]["id"] == "msg_1"
        assert exported[0]["role"] == "user"

    def test_clear(self, history):
        history.clear()
        assert len(history) == 0
        assert history.get_storage_stats().oldest_message_time is None
