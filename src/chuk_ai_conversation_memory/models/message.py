"""Conversation message model."""

from __future__ import annotations

import copy
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from chuk_ai_conversation_memory.models.enums import MessageRole


class ConversationMessage(BaseModel):
    """
    A single turn in the conversation window.

    Immutable once created: replacing a message means removing it and
    adding a new one. Metadata is deep-copied on creation so later changes
    to the caller's dict or lists never reach the message.
    """

    model_config = ConfigDict(frozen=True)

    role: MessageRole = Field(..., description="Who produced the message")
    content: str = Field(default="", description="Text content")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("metadata", mode="after")
    @classmethod
    def _copy_metadata(cls, value: dict[str, Any]) -> dict[str, Any]:
        return copy.deepcopy(value)

    @classmethod
    def user(cls, content: str, **metadata: Any) -> ConversationMessage:
        return cls(role=MessageRole.USER, content=content, metadata=metadata)

    @classmethod
    def assistant(cls, content: str, **metadata: Any) -> ConversationMessage:
        return cls(role=MessageRole.ASSISTANT, content=content, metadata=metadata)

    @classmethod
    def system(cls, content: str, **metadata: Any) -> ConversationMessage:
        return cls(role=MessageRole.SYSTEM, content=content, metadata=metadata)

    def to_dict(self) -> dict[str, str]:
        """Chat-completion shaped dict for prompt building."""
        return {"role": self.role.value, "content": self.content}
