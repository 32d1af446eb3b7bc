# tests/test_smart_memory.py
"""Tests for SmartMemoryManager: window plus archive of pruned messages."""

import pytest

from chuk_ai_conversation_memory.exceptions import ConfigurationError
from chuk_ai_conversation_memory.memory.smart_memory import SmartMemoryConfig, SmartMemoryManager
from chuk_ai_conversation_memory.models.message import ConversationMessage


def words(n: int, word: str = "w") -> str:
    return " ".join([word] * n)


@pytest.fixture
def memory(token_counter):
    config = SmartMemoryConfig(max_tokens=20, reserve_tokens=0, storage_limit=50)
    return SmartMemoryManager(config, token_counter=token_counter)


class TestArchiving:
    def test_pruned_messages_are_archived(self, memory):
        memory.add_message(ConversationMessage.user(words(6, "alpha")))
        memory.add_message(ConversationMessage.assistant(words(6, "beta")))
        memory.add_message(ConversationMessage.user(words(10, "gamma")))

        assert len(memory.history) == 2
        assert len(memory.search_history("alpha")) == 1
        assert [m.content for m in memory.get_messages()] == [words(10, "gamma")]

    def test_preamble_pruning_is_archived(self, memory):
        memory.add_message(ConversationMessage.user(words(15)))
        memory.set_system_prompt(words(10))
        assert len(memory.history) == 1
        assert memory.get_system_prompt() == words(10)

    def test_update_config_archives_pruned(self, memory):
        for _ in range(3):
            memory.add_message(ConversationMessage.user(words(5)))

        memory.update_config(max_tokens=8)

        assert memory.get_config().max_tokens == 8
        assert memory.window.max_tokens == 8
        assert len(memory.history) == 2

    def test_invalid_update_leaves_manager_unchanged(self, memory):
        for _ in range(3):
            memory.add_message(ConversationMessage.user(words(5)))

        with pytest.raises(ConfigurationError):
            memory.update_config(max_tokens=8, storage_limit=0)

        assert memory.get_config().max_tokens == 20
        assert memory.window.max_tokens == 20
        assert len(memory.get_messages()) == 3
        assert len(memory.history) == 0

    def test_invalid_window_limits_rejected(self, memory):
        with pytest.raises(ConfigurationError):
            memory.update_config(reserve_tokens=20)
        assert memory.get_config().reserve_tokens == 0

    def test_update_storage_limit(self, memory):
        memory.history.store_messages([ConversationMessage.user("x")] * 5)
        memory.update_config(storage_limit=2)
        assert len(memory.history) == 2

    def test_clear(self, memory):
        memory.add_message(ConversationMessage.user(words(15)))
        memory.add_message(ConversationMessage.user(words(15)))
        memory.clear()
        assert memory.get_messages() == []
        assert len(memory.history) == 1

        memory.clear(clear_storage=True)
        assert len(memory.history) == 0


class TestStats:
    def test_overall_stats(self, memory):
        memory.add_message(ConversationMessage.user(words(15)))
        memory.add_message(ConversationMessage.user(words(10)))

        stats = memory.get_overall_stats()
        assert stats.total_messages_managed == 2
        assert stats.active_memory.total_messages == 1
        assert stats.storage.total_messages == 1

    def test_export_state(self, memory):
        memory.set_system_prompt("be brief")
        memory.add_message(ConversationMessage.user("hello"))
        state = memory.export_state()
        assert state["system_prompt"] == "be brief"
        assert state["active_messages"] == [{"role": "user", "content": "hello"}]
        assert state["config"]["max_tokens"] == 20

    def test_context_summary(self, memory):
        memory.add_message(ConversationMessage.user("hello"))
        summary = memory.get_context_summary(include_stored_context=True)
        assert summary["active_message_count"] == 1
        assert summary["has_stored_history"] is False
        assert "storage_stats" in summary

    def test_can_add_message(self, memory):
        assert memory.can_add_message(ConversationMessage.user(words(20))) is True
        assert memory.can_add_message(ConversationMessage.user(words(21))) is False
