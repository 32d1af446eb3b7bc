"""Pydantic models for the conversation memory engine."""

from chuk_ai_conversation_memory.models.enums import (
    CONTENT_REFERENCE_NODE_TYPE,
    REFERENCE_FORMAT,
    ContentKind,
    ContentSource,
    ContentType,
    DisplayFormat,
    MessageRole,
    NodeKind,
    ReferenceState,
    ResolutionErrorType,
)
from chuk_ai_conversation_memory.models.message import ConversationMessage
from chuk_ai_conversation_memory.models.reference import (
    ContentMetadata,
    ContentReference,
    DisplayOptions,
    DisplayResult,
    ReferenceContext,
    ReferenceMetadata,
    ReferenceResolution,
    StoreMetadata,
    ValidationResult,
)
from chuk_ai_conversation_memory.models.content import (
    ContentAnalysis,
    ContentClassification,
    ContentItem,
    ProcessedResponse,
    ResponsePath,
)
from chuk_ai_conversation_memory.models.stats import (
    AddMessageResult,
    CleanupResult,
    ContentStoreStats,
    ContextStats,
    HistoryStats,
    StoreMessagesResult,
    WindowConfig,
    WindowStats,
)

__all__ = [
    # Enums
    "ContentKind",
    "ContentSource",
    "ContentType",
    "DisplayFormat",
    "MessageRole",
    "NodeKind",
    "ReferenceState",
    "ResolutionErrorType",
    # Constants
    "CONTENT_REFERENCE_NODE_TYPE",
    "REFERENCE_FORMAT",
    # Messages
    "ConversationMessage",
    # References
    "ContentMetadata",
    "ContentReference",
    "DisplayOptions",
    "DisplayResult",
    "ReferenceContext",
    "ReferenceMetadata",
    "ReferenceResolution",
    "StoreMetadata",
    "ValidationResult",
    # Content
    "ContentAnalysis",
    "ContentClassification",
    "ContentItem",
    "ProcessedResponse",
    "ResponsePath",
    # Stats
    "AddMessageResult",
    "CleanupResult",
    "ContentStoreStats",
    "ContextStats",
    "HistoryStats",
    "StoreMessagesResult",
    "WindowConfig",
    "WindowStats",
]
