# chuk_ai_conversation_memory/memory/smart_memory.py
"""
SmartMemoryManager - the memory window plus a searchable archive.

Messages pruned from the window are moved into MessageHistory instead of
being discarded, so the active prompt stays within budget while older turns
remain available for lookup.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from chuk_ai_conversation_memory.config import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_RESERVE_TOKENS,
    DEFAULT_TOKEN_MODEL,
)
from chuk_ai_conversation_memory.memory.memory_window import MemoryWindow, validate_window_limits
from chuk_ai_conversation_memory.memory.message_history import (
    DEFAULT_MAX_HISTORY,
    MessageHistory,
    validate_storage_limit,
)
from chuk_ai_conversation_memory.memory.token_counter import TokenCounter, TokenCounterProtocol
from chuk_ai_conversation_memory.models.enums import MessageRole
from chuk_ai_conversation_memory.models.message import ConversationMessage
from chuk_ai_conversation_memory.models.stats import AddMessageResult, HistoryStats, WindowStats

logger = logging.getLogger(__name__)


class SmartMemoryConfig(BaseModel):
    """Configuration for SmartMemoryManager."""

    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, description="Token budget of the active window")
    reserve_tokens: int = Field(default=DEFAULT_RESERVE_TOKENS, description="Kept free for the reply")
    model_name: str = Field(default=DEFAULT_TOKEN_MODEL, description="Model used for token counting")
    storage_limit: int = Field(default=DEFAULT_MAX_HISTORY, description="Max archived messages")


class OverallStats(BaseModel):
    """Combined window and archive statistics."""

    active_memory: WindowStats
    storage: HistoryStats
    total_messages_managed: int
    active_memory_utilization: float
    storage_utilization: float


class SmartMemoryManager:
    """
    Active memory window backed by a pruned-message archive.

    Usage:
        memory = SmartMemoryManager(SmartMemoryConfig(max_tokens=4000))
        memory.set_system_prompt("You are helpful.")
        memory.add_message(ConversationMessage.user("Hi"))
        hits = memory.search_history("invoice")
    """

    def __init__(
        self,
        config: SmartMemoryConfig | None = None,
        token_counter: TokenCounterProtocol | None = None,
    ):
        self._config = config or SmartMemoryConfig()
        self._token_counter = token_counter or TokenCounter(self._config.model_name)
        self._window = MemoryWindow(
            max_tokens=self._config.max_tokens,
            reserve_tokens=self._config.reserve_tokens,
            token_counter=self._token_counter,
        )
        self._history = MessageHistory(self._config.storage_limit)

    @property
    def window(self) -> MemoryWindow:
        return self._window

    @property
    def history(self) -> MessageHistory:
        return self._history

    # --- Active window ---

    def add_message(self, message: ConversationMessage) -> AddMessageResult:
        """Add to the window; anything pruned goes to the archive."""
        result = self._window.add_message(message)
        self._archive(result.pruned_messages)
        return result

    def get_messages(self) -> list[ConversationMessage]:
        return self._window.get_messages()

    def can_add_message(self, message: ConversationMessage) -> bool:
        return self._window.can_add_message(message)

    def set_system_prompt(self, system_prompt: str) -> None:
        self._archive(self._window.set_system_prompt(system_prompt))

    def get_system_prompt(self) -> str:
        return self._window.get_system_prompt()

    def clear(self, clear_storage: bool = False) -> None:
        self._window.clear()
        if clear_storage:
            self._history.clear()

    # --- Archive ---

    def search_history(
        self,
        query: str,
        case_sensitive: bool = False,
        limit: int | None = None,
        use_regex: bool = False,
    ) -> list[ConversationMessage]:
        return self._history.search_messages(query, case_sensitive=case_sensitive, limit=limit, use_regex=use_regex)

    def get_recent_history(self, count: int) -> list[ConversationMessage]:
        return self._history.get_recent_messages(count)

    def get_history_from_time_range(self, start: datetime, end: datetime) -> list[ConversationMessage]:
        return self._history.get_messages_from_time_range(start, end)

    def get_history_by_role(self, role: MessageRole | str, limit: int | None = None) -> list[ConversationMessage]:
        return self._history.get_messages_by_role(role, limit)

    def get_recent_history_by_time(self, minutes: float) -> list[ConversationMessage]:
        return self._history.get_recent_messages_by_time(minutes)

    # --- Stats / config ---

    def get_memory_stats(self) -> WindowStats:
        return self._window.get_stats()

    def get_storage_stats(self) -> HistoryStats:
        return self._history.get_storage_stats()

    def get_overall_stats(self) -> OverallStats:
        memory_stats = self.get_memory_stats()
        storage_stats = self.get_storage_stats()
        return OverallStats(
            active_memory=memory_stats,
            storage=storage_stats,
            total_messages_managed=memory_stats.total_messages + storage_stats.total_messages,
            active_memory_utilization=memory_stats.usage_percentage,
            storage_utilization=storage_stats.usage_percentage,
        )

    def get_config(self) -> SmartMemoryConfig:
        return self._config.model_copy()

    def update_config(self, **changes: Any) -> None:
        """
        Apply configuration changes.

        Token limits are re-applied to the window (pruned messages are
        archived); the storage limit is re-applied to the archive. A model
        change is recorded but the existing counter keeps counting.

        All limits are validated before anything is applied, so a
        ConfigurationError leaves the manager unchanged.
        """
        new_config = self._config.model_copy(update=changes)
        validate_window_limits(new_config.max_tokens, new_config.reserve_tokens)
        validate_storage_limit(new_config.storage_limit)

        if "max_tokens" in changes or "reserve_tokens" in changes:
            pruned = self._window.update_limits(new_config.max_tokens, new_config.reserve_tokens)
            self._archive(pruned)

        if "storage_limit" in changes:
            self._history.update_storage_limit(new_config.storage_limit)

        self._config = new_config

    def export_state(self) -> dict[str, Any]:
        return {
            "config": self._config.model_dump(),
            "active_messages": [m.to_dict() for m in self._window.get_messages()],
            "system_prompt": self._window.get_system_prompt(),
            "memory_stats": self.get_memory_stats().model_dump(),
            "storage_stats": self.get_storage_stats().model_dump(),
            "stored_messages": self._history.export_messages(),
        }

    def get_context_summary(self, include_stored_context: bool = False) -> dict[str, Any]:
        active = self.get_messages()
        summary: dict[str, Any] = {
            "active_message_count": len(active),
            "system_prompt": self.get_system_prompt(),
            "recent_messages": active[-5:],
            "memory_utilization": self.get_memory_stats().usage_percentage,
            "has_stored_history": len(self._history) > 0,
        }
        if include_stored_context:
            summary["recent_stored_messages"] = self.get_recent_history(10)
            summary["storage_stats"] = self.get_storage_stats()
        return summary

    def _archive(self, pruned: list[ConversationMessage]) -> None:
        if pruned:
            self._history.store_messages(pruned)
            logger.debug("Archived %d pruned messages", len(pruned))
