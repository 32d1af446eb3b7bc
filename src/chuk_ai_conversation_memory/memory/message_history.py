# chuk_ai_conversation_memory/memory/message_history.py
"""
Bounded archive for messages pruned out of the memory window.

Pruning keeps the live window small; the history keeps what was pruned
searchable so a driver can still answer "what did we say about X?".
"""

from __future__ import annotations

import itertools
import logging
import re
from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import BaseModel, Field

from chuk_ai_conversation_memory.exceptions import ConfigurationError
from chuk_ai_conversation_memory.models.enums import MessageRole
from chuk_ai_conversation_memory.models.message import ConversationMessage
from chuk_ai_conversation_memory.models.stats import HistoryStats, StoreMessagesResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_HISTORY = 1000


def validate_storage_limit(max_messages: int) -> None:
    if max_messages <= 0:
        raise ConfigurationError(f"max_messages must be positive, got {max_messages}")


class StoredMessage(BaseModel):
    """A pruned message plus archive bookkeeping."""

    id: str
    message: ConversationMessage
    stored_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class MessageHistory:
    """FIFO archive of pruned messages, capped at ``max_messages``."""

    def __init__(self, max_messages: int = DEFAULT_MAX_HISTORY):
        validate_storage_limit(max_messages)
        self._max_messages = max_messages
        self._stored: list[StoredMessage] = []
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._stored)

    @property
    def max_messages(self) -> int:
        return self._max_messages

    def store_messages(self, messages: list[ConversationMessage]) -> StoreMessagesResult:
        """Archive messages; the oldest are dropped when over the limit."""
        if not messages:
            return StoreMessagesResult()

        now = datetime.now(UTC)
        for message in messages:
            self._stored.append(StoredMessage(id=f"msg_{next(self._ids)}", message=message, stored_at=now))

        dropped = self._enforce_limit()
        return StoreMessagesResult(stored=len(messages), dropped=dropped)

    def get_recent_messages(self, count: int) -> list[ConversationMessage]:
        if count <= 0:
            return []
        return [s.message for s in self._stored[-count:]]

    def search_messages(
        self,
        query: str,
        case_sensitive: bool = False,
        limit: int | None = None,
        use_regex: bool = False,
    ) -> list[ConversationMessage]:
        """Substring (or regex) search over archived message content, oldest first."""
        if not query:
            return []

        flags = 0 if case_sensitive else re.IGNORECASE
        pattern = query if use_regex else re.escape(query)
        try:
            matcher = re.compile(pattern, flags)
        except re.error as e:
            logger.warning("Invalid history search pattern %r: %s", query, e)
            return []

        matches = [s.message for s in self._stored if matcher.search(s.message.content)]
        return matches[:limit] if limit is not None else matches

    def get_messages_from_time_range(self, start: datetime, end: datetime) -> list[ConversationMessage]:
        """Messages archived between start and end (inclusive)."""
        if start > end:
            return []
        return [s.message for s in self._stored if start <= s.stored_at <= end]

    def get_messages_by_role(self, role: MessageRole | str, limit: int | None = None) -> list[ConversationMessage]:
        """Archived messages with this role, oldest first. Unknown roles match nothing."""
        try:
            role = MessageRole(role)
        except ValueError:
            logger.debug("Unknown message role %r in history query", role)
            return []

        if limit is not None and limit <= 0:
            return []
        matches = [s.message for s in self._stored if s.message.role == role]
        return matches[-limit:] if limit is not None else matches

    def get_recent_messages_by_time(self, minutes: float) -> list[ConversationMessage]:
        if minutes <= 0:
            return []
        cutoff = datetime.now(UTC) - timedelta(minutes=minutes)
        return [s.message for s in self._stored if s.stored_at >= cutoff]

    def update_storage_limit(self, new_limit: int) -> int:
        """Change the cap; returns how many messages were dropped."""
        validate_storage_limit(new_limit)
        self._max_messages = new_limit
        return self._enforce_limit()

    def get_storage_stats(self) -> HistoryStats:
        total = len(self._stored)
        return HistoryStats(
            total_messages=total,
            max_storage_limit=self._max_messages,
            usage_percentage=round(total / self._max_messages * 100, 2),
            oldest_message_time=self._stored[0].stored_at.isoformat() if total else None,
            newest_message_time=self._stored[-1].stored_at.isoformat() if total else None,
        )

    def export_messages(self) -> list[dict[str, Any]]:
        return [
            {
                "id": s.id,
                "role": s.message.role.value,
                "content": s.message.content,
                "stored_at": s.stored_at.isoformat(),
            }
            for s in self._stored
        ]

    def clear(self) -> None:
        self._stored.clear()
        self._ids = itertools.count(1)

    def _enforce_limit(self) -> int:
        excess = len(self._stored) - self._max_messages
        if excess <= 0:
            return 0
        del self._stored[:excess]
        logger.debug("Message history over limit, dropped %d oldest messages", excess)
        return excess
