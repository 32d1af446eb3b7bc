"""Statistics and result models for the memory window, history, store and tracker."""

from __future__ import annotations

from pydantic import BaseModel, Field

from chuk_ai_conversation_memory.base_models import DictCompatModel
from chuk_ai_conversation_memory.models.message import ConversationMessage


class AddMessageResult(DictCompatModel):
    """Outcome of adding a message to the memory window."""

    added: bool = Field(default=True)
    pruned_messages: list[ConversationMessage] = Field(default_factory=list)
    current_token_count: int = Field(default=0)
    remaining_capacity: int = Field(default=0)


class WindowConfig(BaseModel):
    """Snapshot of memory window configuration."""

    max_tokens: int
    reserve_tokens: int
    current_tokens: int
    message_count: int
    system_prompt_tokens: int


class WindowStats(BaseModel):
    """Memory window usage statistics."""

    total_messages: int = Field(default=0)
    current_tokens: int = Field(default=0)
    max_tokens: int = Field(default=0)
    reserve_tokens: int = Field(default=0)
    system_prompt_tokens: int = Field(default=0)
    usage_percentage: float = Field(default=0.0, description="0-100, two decimals")
    remaining_capacity: int = Field(default=0)
    can_accept_more: bool = Field(default=True)


class StoreMessagesResult(BaseModel):
    """Outcome of archiving pruned messages."""

    stored: int = Field(default=0)
    dropped: int = Field(default=0)


class HistoryStats(BaseModel):
    """Message history archive statistics."""

    total_messages: int = Field(default=0)
    max_storage_limit: int = Field(default=0)
    usage_percentage: float = Field(default=0.0)
    oldest_message_time: str | None = Field(default=None)
    newest_message_time: str | None = Field(default=None)


class ContentStoreStats(BaseModel):
    """Content store usage statistics."""

    active_references: int = Field(default=0)
    total_storage_bytes: int = Field(default=0)
    recently_cleaned_up: int = Field(default=0)
    total_resolutions: int = Field(default=0)
    failed_resolutions: int = Field(default=0)
    average_content_size: float = Field(default=0.0)
    most_accessed_reference_id: str | None = Field(default=None)
    storage_utilization: float = Field(default=0.0, description="Percent of max_total_storage_bytes")


class ContextStats(BaseModel):
    """Reference tracker statistics."""

    active_references: int = Field(default=0)
    conversation_turn: int = Field(default=0)
    oldest_reference_age_ms: int | None = Field(default=None)
    most_recent_reference_age_ms: int | None = Field(default=None)


class CleanupResult(BaseModel):
    """Outcome of a store cleanup pass."""

    cleaned_up: int = Field(default=0)
