"""
Conversation memory: token counting, the budgeted window, and the pruned-message archive.
"""

from .memory_window import MemoryWindow
from .message_history import MessageHistory, StoredMessage
from .smart_memory import OverallStats, SmartMemoryConfig, SmartMemoryManager
from .token_counter import (
    TokenCounter,
    TokenCounterProtocol,
    count_tokens,
    get_token_counter,
)

__all__ = [
    # Token counting
    "TokenCounter",
    "TokenCounterProtocol",
    "count_tokens",
    "get_token_counter",
    # Window
    "MemoryWindow",
    # History
    "MessageHistory",
    "StoredMessage",
    # Manager
    "OverallStats",
    "SmartMemoryConfig",
    "SmartMemoryManager",
]
