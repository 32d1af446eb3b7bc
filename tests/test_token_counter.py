# tests/test_token_counter.py
"""
Tests for token counting.

Exact counts depend on the tiktoken encoding that can be loaded, so these
tests check the properties the memory window relies on rather than
specific numbers, except for the character-estimate fallback.
"""

import pytest

from chuk_ai_conversation_memory.memory import token_counter as token_counter_module
from chuk_ai_conversation_memory.memory.token_counter import (
    COMPLETION_OVERHEAD,
    FALLBACK_MODEL,
    TokenCounter,
    TokenCounterProtocol,
    count_tokens,
    get_token_counter,
)
from chuk_ai_conversation_memory.models.message import ConversationMessage


@pytest.fixture(scope="module")
def counter():
    return TokenCounter("gpt-4o")


class TestCountTokens:
    def test_empty_and_whitespace_are_zero(self, counter):
        assert counter.count_tokens("") == 0
        assert counter.count_tokens("   \n\t ") == 0

    def test_nonempty_text_counts(self, counter):
        assert counter.count_tokens("Hello, world") > 0

    def test_deterministic(self, counter):
        text = "The quick brown fox jumps over the lazy dog."
        assert counter.count_tokens(text) == counter.count_tokens(text)
        assert TokenCounter("gpt-4o").count_tokens(text) == counter.count_tokens(text)

    def test_prefix_never_costs_more(self, counter):
        base = "The quick brown fox"
        assert counter.count_tokens(base) <= counter.count_tokens(base + " jumps over the lazy dog")

    def test_special_token_text_is_counted_as_plain_text(self, counter):
        assert counter.count_tokens("<|endoftext|>") > 0


class TestMessageTokens:
    def test_message_costs_more_than_its_content(self, counter):
        message = ConversationMessage.user("Hello there")
        assert counter.count_message_tokens(message) > counter.count_tokens("Hello there")

    def test_empty_message_still_has_overhead(self, counter):
        assert counter.count_message_tokens(ConversationMessage.assistant("")) > 0

    def test_messages_total_is_sum(self, counter):
        messages = [ConversationMessage.user("one"), ConversationMessage.assistant("two three")]
        assert counter.count_messages_tokens(messages) == sum(counter.count_message_tokens(m) for m in messages)

    def test_empty_system_prompt_costs_nothing(self, counter):
        assert counter.estimate_system_prompt_tokens("") == 0
        assert counter.estimate_system_prompt_tokens("  ") == 0
        assert counter.estimate_system_prompt_tokens("You are helpful.") > 0

    def test_context_size_includes_completion_overhead(self, counter):
        assert counter.estimate_context_size("", []) == COMPLETION_OVERHEAD

    def test_satisfies_protocol(self, counter):
        assert isinstance(counter, TokenCounterProtocol)


class TestFallbacks:
    def test_unknown_model_falls_back(self):
        counter = TokenCounter("definitely-not-a-model")
        assert counter.model_name == FALLBACK_MODEL
        assert counter.count_tokens("hello world") > 0

    def test_character_estimate_when_no_encoding(self, monkeypatch):
        def unavailable(*args, **kwargs):
            raise OSError("no network")

        monkeypatch.setattr(token_counter_module.tiktoken, "encoding_for_model", unavailable)
        monkeypatch.setattr(token_counter_module.tiktoken, "get_encoding", unavailable)

        counter = TokenCounter("gpt-4o")
        assert counter.is_estimating
        assert counter.count_tokens("abcdefgh") == 2
        assert counter.count_tokens("abcdefghi") == 3
        assert counter.count_tokens("") == 0


class TestModuleHelpers:
    def test_get_token_counter_is_cached(self):
        assert get_token_counter("gpt-4o") is get_token_counter("gpt-4o")

    def test_count_tokens_matches_counter(self):
        text = "Count me, please."
        assert count_tokens(text, "gpt-4o") == get_token_counter("gpt-4o").count_tokens(text)
