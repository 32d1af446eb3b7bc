# chuk_ai_conversation_memory/memory/token_counter.py
"""
Token counting for the conversation window.

Uses tiktoken encodings so counts match what chat-completion models see.
Unknown model names fall back to the default model's encoding; if no
encoding can be loaded at all (e.g. the BPE files cannot be fetched) the
counter degrades to a ~4 characters per token estimate.

Counts are pure and deterministic: the same text and model always give the
same number, and longer text never gives fewer tokens.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from typing import Any, Protocol, runtime_checkable

import tiktoken

from chuk_ai_conversation_memory.config import DEFAULT_TOKEN_MODEL
from chuk_ai_conversation_memory.models.enums import MessageRole
from chuk_ai_conversation_memory.models.message import ConversationMessage

logger = logging.getLogger(__name__)

# Chat-completion framing: <|start|>role<|sep|>content<|end|>
MESSAGE_OVERHEAD = 3
ROLE_OVERHEAD = 1
COMPLETION_OVERHEAD = 10

FALLBACK_MODEL = "gpt-4o"
FALLBACK_ENCODING = "o200k_base"
CHARS_PER_TOKEN = 4


@runtime_checkable
class TokenCounterProtocol(Protocol):
    """Anything the MemoryWindow can use to measure messages."""

    def count_tokens(self, text: str) -> int: ...

    def count_message_tokens(self, message: ConversationMessage) -> int: ...

    def estimate_system_prompt_tokens(self, system_prompt: str) -> int: ...


def _load_encoding(model_name: str) -> tuple[Any | None, str]:
    """Resolve an encoding for a model, falling back to the default model."""
    try:
        return tiktoken.encoding_for_model(model_name), model_name
    except KeyError:
        logger.warning("Model %s not known to tiktoken, falling back to %s encoding", model_name, FALLBACK_MODEL)
    except Exception:
        logger.warning("Failed to load encoding for %s", model_name, exc_info=True)

    try:
        return tiktoken.get_encoding(FALLBACK_ENCODING), FALLBACK_MODEL
    except Exception:
        logger.warning(
            "No tiktoken encoding available, using %d chars/token estimate",
            CHARS_PER_TOKEN,
            exc_info=True,
        )
        return None, FALLBACK_MODEL


class TokenCounter:
    """
    Token counter for text and conversation messages.

    Usage:
        counter = TokenCounter("gpt-4o")
        counter.count_tokens("hello world")
        counter.count_message_tokens(ConversationMessage.user("hi"))
    """

    def __init__(self, model_name: str = DEFAULT_TOKEN_MODEL):
        self._encoding, self._model_name = _load_encoding(model_name)

    @property
    def model_name(self) -> str:
        """Model whose encoding is actually used (after any fallback)."""
        return self._model_name

    @property
    def is_estimating(self) -> bool:
        """True when no tiktoken encoding could be loaded."""
        return self._encoding is None

    def count_tokens(self, text: str) -> int:
        """Count tokens in raw text. Empty or whitespace-only text is 0."""
        if not text or not text.strip():
            return 0

        if self._encoding is None:
            return math.ceil(len(text) / CHARS_PER_TOKEN)

        return len(self._encoding.encode(text, disallowed_special=()))

    def count_message_tokens(self, message: ConversationMessage) -> int:
        """Count tokens for one message including role and framing overhead."""
        content_tokens = self.count_tokens(message.content)
        role_tokens = self.count_tokens(message.role.value)
        return content_tokens + role_tokens + MESSAGE_OVERHEAD + ROLE_OVERHEAD

    def count_messages_tokens(self, messages: Iterable[ConversationMessage]) -> int:
        """Total tokens for a sequence of messages."""
        return sum(self.count_message_tokens(m) for m in messages)

    def estimate_system_prompt_tokens(self, system_prompt: str) -> int:
        """Tokens a system preamble occupies. Empty preamble costs nothing."""
        if not system_prompt or not system_prompt.strip():
            return 0

        content_tokens = self.count_tokens(system_prompt)
        role_tokens = self.count_tokens(MessageRole.SYSTEM.value)
        return content_tokens + role_tokens + MESSAGE_OVERHEAD + ROLE_OVERHEAD

    def estimate_context_size(self, system_prompt: str, messages: Iterable[ConversationMessage]) -> int:
        """System prompt + messages + completion priming overhead."""
        return (
            self.estimate_system_prompt_tokens(system_prompt)
            + self.count_messages_tokens(messages)
            + COMPLETION_OVERHEAD
        )


_counters: dict[str, TokenCounter] = {}


def get_token_counter(model: str = DEFAULT_TOKEN_MODEL) -> TokenCounter:
    """Cached counter per model name."""
    counter = _counters.get(model)
    if counter is None:
        counter = TokenCounter(model)
        _counters[model] = counter
    return counter


def count_tokens(text: str, model: str = DEFAULT_TOKEN_MODEL) -> int:
    """Count tokens in text for a model family."""
    return get_token_counter(model).count_tokens(text)
