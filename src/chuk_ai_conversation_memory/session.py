# chuk_ai_conversation_memory/session.py
"""
ConversationSession - wires the engine together for one conversation.

Data flow for a tool call:
    raw tool result -> ResponseContentProcessor (large content externalized)
                    -> ReferenceContextTracker (references registered)
                    -> MemoryWindow (one assistant message appended)

References are registered before the message enters the window, so a
"send that" on the very next turn always sees them.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import Field

from chuk_ai_conversation_memory.base_models import DictCompatModel
from chuk_ai_conversation_memory.content.processor import ResponseContentProcessor
from chuk_ai_conversation_memory.content.store import ContentStore
from chuk_ai_conversation_memory.exceptions import StaleReferenceError
from chuk_ai_conversation_memory.memory.memory_window import MemoryWindow
from chuk_ai_conversation_memory.models.content import ProcessedResponse, dump_resource
from chuk_ai_conversation_memory.models.message import ConversationMessage
from chuk_ai_conversation_memory.models.reference import ContentReference
from chuk_ai_conversation_memory.models.stats import AddMessageResult
from chuk_ai_conversation_memory.references.context_tracker import ReferenceContextTracker

logger = logging.getLogger(__name__)


class ToolResultRecord(DictCompatModel):
    """What recording one tool result did."""

    processed: ProcessedResponse
    message: ConversationMessage
    add_result: AddMessageResult
    context_ids: list[str] = Field(default_factory=list)


def _message_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    return dump_resource(content)


class ConversationSession:
    """
    One conversation: window, reference tracker and response processor
    sharing a single content store.

    Examples:
        ```python
        session = ConversationSession(InMemoryContentStore())
        session.add_user_message("read the report")
        record = await session.record_tool_result(result, "filesystem", "read_file")
        ref = await session.resolve_recent_reference()
        ```
    """

    def __init__(
        self,
        store: ContentStore,
        window: MemoryWindow | None = None,
        tracker: ReferenceContextTracker | None = None,
        processor: ResponseContentProcessor | None = None,
    ):
        self._store = store
        self._window = window if window is not None else MemoryWindow()
        self._tracker = tracker if tracker is not None else ReferenceContextTracker(store)
        self._processor = processor if processor is not None else ResponseContentProcessor(store)

    @property
    def store(self) -> ContentStore:
        return self._store

    @property
    def window(self) -> MemoryWindow:
        return self._window

    @property
    def tracker(self) -> ReferenceContextTracker:
        return self._tracker

    @property
    def processor(self) -> ResponseContentProcessor:
        return self._processor

    def add_user_message(self, content: str) -> AddMessageResult:
        return self._window.add_message(ConversationMessage.user(content))

    def add_assistant_message(self, content: str) -> AddMessageResult:
        return self._window.add_message(ConversationMessage.assistant(content))

    async def record_tool_result(self, result: Any, source_name: str, tool_name: str) -> ToolResultRecord:
        """Process a tool result, register its references, then append it to the window."""
        processed = await self._processor.process_response(result, source_name, tool_name)

        context_ids = [self._tracker.add_reference(ref) for ref in processed.references]

        message = ConversationMessage.assistant(
            _message_text(processed.content),
            tool=f"{source_name}::{tool_name}",
            reference_ids=processed.reference_ids,
        )
        add_result = self._window.add_message(message)

        if processed.errors:
            logger.warning("Tool result from %s::%s recorded with errors: %s", source_name, tool_name, processed.errors)

        return ToolResultRecord(
            processed=processed,
            message=message,
            add_result=add_result,
            context_ids=context_ids,
        )

    async def resolve_recent_reference(self) -> ContentReference:
        """Most recent live reference. Raises StaleReferenceError when there is none."""
        return await self._tracker.require_most_recent_reference()

    async def fetch_recent_content(self) -> bytes:
        """Bytes behind the most recent live reference."""
        reference = await self.resolve_recent_reference()
        data = await self._store.fetch(reference.reference_id)
        if data is None:
            raise StaleReferenceError(reference.reference_id)
        return data

    def get_messages(self) -> list[ConversationMessage]:
        return self._window.get_messages()
