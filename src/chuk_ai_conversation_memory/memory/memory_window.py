# chuk_ai_conversation_memory/memory/memory_window.py
"""
Token-budgeted sliding window over conversation messages.

The MemoryWindow owns an ordered list of messages (oldest first) plus an
optional system preamble. After every mutating call the window satisfies:

    tokens(messages) + tokens(preamble) <= max_tokens

and pruning always targets ``max_tokens - reserve_tokens`` so there is room
left for the model's reply.

Pruning removes the oldest messages first. When the two oldest messages
form a user/assistant turn they are removed together so the window never
starts with half a turn.

A message that could only fit by pruning the preamble is rejected
(`added=False`, nothing pruned). Two exceptions to the invariant are
accepted:
- a single message larger than the whole budget is admitted alone
  (everything else is pruned);
- a preamble larger than the budget cannot be pruned.
"""

from __future__ import annotations

import logging

from chuk_ai_conversation_memory.config import DEFAULT_MAX_TOKENS, DEFAULT_RESERVE_TOKENS
from chuk_ai_conversation_memory.exceptions import ConfigurationError
from chuk_ai_conversation_memory.memory.token_counter import TokenCounter, TokenCounterProtocol
from chuk_ai_conversation_memory.models.enums import MessageRole
from chuk_ai_conversation_memory.models.message import ConversationMessage
from chuk_ai_conversation_memory.models.stats import AddMessageResult, WindowConfig, WindowStats

logger = logging.getLogger(__name__)


def validate_window_limits(max_tokens: int, reserve_tokens: int) -> None:
    if max_tokens <= 0:
        raise ConfigurationError(f"max_tokens must be positive, got {max_tokens}")
    if reserve_tokens < 0:
        raise ConfigurationError(f"reserve_tokens must not be negative, got {reserve_tokens}")
    if reserve_tokens >= max_tokens:
        raise ConfigurationError(
            f"Reserve tokens must be less than max tokens (reserve={reserve_tokens}, max={max_tokens})"
        )


class MemoryWindow:
    """
    Conversation window bounded by a token budget.

    Usage:
        window = MemoryWindow(max_tokens=4000, reserve_tokens=500)
        window.set_system_prompt("You are a helpful assistant.")
        result = window.add_message(ConversationMessage.user("Hello"))
        prompt = [m.to_dict() for m in window.get_messages()]
    """

    def __init__(
        self,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        reserve_tokens: int = DEFAULT_RESERVE_TOKENS,
        token_counter: TokenCounterProtocol | None = None,
    ):
        validate_window_limits(max_tokens, reserve_tokens)

        self._max_tokens = max_tokens
        self._reserve_tokens = reserve_tokens
        self._token_counter: TokenCounterProtocol = token_counter or TokenCounter()
        self._messages: list[ConversationMessage] = []
        self._message_tokens: list[int] = []
        self._system_prompt = ""
        self._system_prompt_tokens = 0

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def max_tokens(self) -> int:
        return self._max_tokens

    @property
    def reserve_tokens(self) -> int:
        return self._reserve_tokens

    @property
    def target_tokens(self) -> int:
        """Budget that pruning restores: max_tokens - reserve_tokens."""
        return self._max_tokens - self._reserve_tokens

    @property
    def token_counter(self) -> TokenCounterProtocol:
        return self._token_counter

    def __len__(self) -> int:
        return len(self._messages)

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    def get_messages(self) -> list[ConversationMessage]:
        """Deep copies of the current messages; mutating them never affects the window."""
        return [message.model_copy(deep=True) for message in self._messages]

    def get_system_prompt(self) -> str:
        return self._system_prompt

    def get_current_token_count(self) -> int:
        """Tokens used by the preamble plus every message."""
        return self._system_prompt_tokens + sum(self._message_tokens)

    def get_remaining_token_capacity(self) -> int:
        """Tokens left before hitting max_tokens (reserve not subtracted)."""
        return max(0, self._max_tokens - self.get_current_token_count())

    def can_add_message(self, message: ConversationMessage) -> bool:
        """True if the message fits without pruning and still leaves the reserve free."""
        message_tokens = self._token_counter.count_message_tokens(message)
        if message_tokens > self._max_tokens:
            return False
        return message_tokens <= self.get_remaining_token_capacity() - self._reserve_tokens

    # -------------------------------------------------------------------------
    # Mutators
    # -------------------------------------------------------------------------

    def add_message(self, message: ConversationMessage) -> AddMessageResult:
        """
        Append a message, pruning the oldest messages to make room.

        The new message is never the one evicted. If it is larger than the
        whole budget it is still admitted, alone. A message that would not
        fit next to the preamble even in an empty window is rejected without
        pruning anything.
        """
        message_tokens = self._token_counter.count_message_tokens(message)
        pruned: list[ConversationMessage] = []

        if message_tokens <= self._max_tokens and self._system_prompt_tokens + message_tokens > self._max_tokens:
            logger.warning(
                "Message of %d tokens does not fit next to a %d-token system prompt (max_tokens=%d)",
                message_tokens,
                self._system_prompt_tokens,
                self._max_tokens,
            )
            return AddMessageResult(
                added=False,
                current_token_count=self.get_current_token_count(),
                remaining_capacity=self.get_remaining_token_capacity(),
            )

        if self.get_current_token_count() + message_tokens > self.target_tokens:
            pruned = self._prune(self.target_tokens - message_tokens)

        if message_tokens > self._max_tokens:
            logger.warning(
                "Message of %d tokens exceeds max_tokens=%d; admitting it alone",
                message_tokens,
                self._max_tokens,
            )

        self._messages.append(message)
        self._message_tokens.append(message_tokens)

        if pruned:
            logger.debug("Pruned %d messages to admit a %d-token message", len(pruned), message_tokens)

        return AddMessageResult(
            added=True,
            pruned_messages=pruned,
            current_token_count=self.get_current_token_count(),
            remaining_capacity=self.get_remaining_token_capacity(),
        )

    def prune_to_fit(self) -> list[ConversationMessage]:
        """Remove oldest messages until usage <= max_tokens - reserve_tokens. Idempotent."""
        return self._prune(self.target_tokens)

    def set_system_prompt(self, system_prompt: str) -> list[ConversationMessage]:
        """Replace the preamble and re-prune if it pushed usage over budget."""
        self._system_prompt = system_prompt or ""
        self._system_prompt_tokens = self._token_counter.estimate_system_prompt_tokens(self._system_prompt)

        if self.get_current_token_count() > self.target_tokens:
            return self.prune_to_fit()
        return []

    def update_limits(self, max_tokens: int, reserve_tokens: int | None = None) -> list[ConversationMessage]:
        """Apply new limits (reserve unchanged when omitted) and re-prune."""
        new_reserve = self._reserve_tokens if reserve_tokens is None else reserve_tokens
        validate_window_limits(max_tokens, new_reserve)

        self._max_tokens = max_tokens
        self._reserve_tokens = new_reserve
        logger.info("Memory window limits updated: max=%d reserve=%d", max_tokens, new_reserve)

        return self.prune_to_fit()

    def clear(self) -> None:
        """Drop every message; the preamble is kept."""
        self._messages.clear()
        self._message_tokens.clear()

    # -------------------------------------------------------------------------
    # Stats
    # -------------------------------------------------------------------------

    def get_config(self) -> WindowConfig:
        return WindowConfig(
            max_tokens=self._max_tokens,
            reserve_tokens=self._reserve_tokens,
            current_tokens=self.get_current_token_count(),
            message_count=len(self._messages),
            system_prompt_tokens=self._system_prompt_tokens,
        )

    def get_stats(self) -> WindowStats:
        current = self.get_current_token_count()
        remaining = self.get_remaining_token_capacity()
        return WindowStats(
            total_messages=len(self._messages),
            current_tokens=current,
            max_tokens=self._max_tokens,
            reserve_tokens=self._reserve_tokens,
            system_prompt_tokens=self._system_prompt_tokens,
            usage_percentage=round(current / self._max_tokens * 100, 2),
            remaining_capacity=remaining,
            can_accept_more=remaining > self._reserve_tokens,
        )

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _starts_with_turn_pair(self) -> bool:
        return (
            len(self._messages) >= 2
            and self._messages[0].role == MessageRole.USER
            and self._messages[1].role == MessageRole.ASSISTANT
        )

    def _pop_oldest(self, pruned: list[ConversationMessage]) -> None:
        pruned.append(self._messages.pop(0))
        self._message_tokens.pop(0)

    def _prune(self, limit: int) -> list[ConversationMessage]:
        """Evict oldest-first until usage <= limit or no messages remain."""
        pruned: list[ConversationMessage] = []

        while self._messages and self.get_current_token_count() > limit:
            if self._starts_with_turn_pair():
                self._pop_oldest(pruned)
            self._pop_oldest(pruned)

        return pruned
