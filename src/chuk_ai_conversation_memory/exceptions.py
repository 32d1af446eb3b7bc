# chuk_ai_conversation_memory/exceptions.py
"""
Exception hierarchy for the conversation memory engine.

Only ConfigurationError is expected to escape public operations. The other
errors are raised by collaborators (stores, content nodes) and converted into
result fields by the processor and the reference tracker.
"""

from __future__ import annotations


class ConversationMemoryError(Exception):
    """Base class for all conversation memory errors."""


class ConfigurationError(ConversationMemoryError):
    """Raised when a component is constructed or reconfigured with invalid limits."""


class StorageError(ConversationMemoryError):
    """Raised when the content store cannot store or fetch content."""


class StructuralParseError(ConversationMemoryError):
    """Raised when a tool response node has an unexpected or malformed shape."""


class StaleReferenceError(ConversationMemoryError):
    """Raised when a content reference is no longer retrievable from the store."""

    def __init__(
        self,
        reference_id: str,
        message: str | None = None,
        suggested_actions: list[str] | None = None,
    ):
        self.reference_id = reference_id
        self.suggested_actions = suggested_actions or []
        super().__init__(message or f"Reference {reference_id} is no longer available")
