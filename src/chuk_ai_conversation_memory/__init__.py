# chuk_ai_conversation_memory/__init__.py
"""
CHUK AI Conversation Memory

Keeps long agent conversations inside a model's context window:

- A token-budgeted memory window that prunes the oldest user/assistant pairs
- An archive of pruned messages that can still be searched
- Externalization of oversized tool output into a content store, replaced
  in the conversation by compact ``ref://<sha256>`` references
- A per-conversation tracker that answers "send that" with the most recent
  live reference

Quick start:
    from chuk_ai_conversation_memory import ConversationSession, InMemoryContentStore

    session = ConversationSession(InMemoryContentStore())
    session.add_user_message("Read the quarterly report")
    record = await session.record_tool_result(result, "filesystem", "read_file")
    reference = await session.resolve_recent_reference()
"""

import logging

from chuk_ai_conversation_memory.content import (
    ContentStore,
    ContentStoreConfig,
    InMemoryContentStore,
    ResponseContentProcessor,
    classify,
    generate_reference_id,
)
from chuk_ai_conversation_memory.exceptions import (
    ConfigurationError,
    ConversationMemoryError,
    StaleReferenceError,
    StorageError,
    StructuralParseError,
)
from chuk_ai_conversation_memory.memory import (
    MemoryWindow,
    MessageHistory,
    SmartMemoryConfig,
    SmartMemoryManager,
    TokenCounter,
)
from chuk_ai_conversation_memory.models import (
    ContentReference,
    ConversationMessage,
    DisplayFormat,
    DisplayOptions,
    MessageRole,
    ProcessedResponse,
)
from chuk_ai_conversation_memory.references import (
    ReferenceContextTracker,
    ReferenceResponseRenderer,
    RenderedResponse,
)
from chuk_ai_conversation_memory.session import ConversationSession, ToolResultRecord

__version__ = "0.1.0"

# Library default: let the application configure handlers
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "__version__",
    # Session
    "ConversationSession",
    "ToolResultRecord",
    # Memory
    "MemoryWindow",
    "MessageHistory",
    "SmartMemoryConfig",
    "SmartMemoryManager",
    "TokenCounter",
    # Content
    "ContentStore",
    "ContentStoreConfig",
    "InMemoryContentStore",
    "ResponseContentProcessor",
    "classify",
    "generate_reference_id",
    # References
    "ReferenceContextTracker",
    "ReferenceResponseRenderer",
    "RenderedResponse",
    # Models
    "ContentReference",
    "ConversationMessage",
    "DisplayFormat",
    "DisplayOptions",
    "MessageRole",
    "ProcessedResponse",
    # Errors
    "ConfigurationError",
    "ConversationMemoryError",
    "StaleReferenceError",
    "StorageError",
    "StructuralParseError",
]
