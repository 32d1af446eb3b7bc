# chuk_ai_conversation_memory/references/response_renderer.py
"""
Rendering of agent output that mentions content references.

Agents echo ``ref://<id>`` tokens back in their replies. Before the reply
reaches the user each token is swapped for a readable rendering of the
referenced content, or an "unavailable" marker when the store no longer
has it.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from chuk_ai_conversation_memory.base_models import DictCompatModel
from chuk_ai_conversation_memory.content.reference_ids import REFERENCE_URI_PATTERN
from chuk_ai_conversation_memory.content.store import ContentStore, create_preview, detect_stored_content_type
from chuk_ai_conversation_memory.models.enums import ContentSource, DisplayFormat
from chuk_ai_conversation_memory.models.reference import (
    ContentReference,
    DisplayOptions,
    ReferenceMetadata,
)
from chuk_ai_conversation_memory.references.context_tracker import EXPIRED_ACTIONS, ReferenceContextTracker

logger = logging.getLogger(__name__)

UNAVAILABLE_MARKER = "[Content no longer available]"
INSTRUCTION_HINT = '\n\nYou can say "inscribe it" or "send that" to use the referenced content.'


class RendererOptions(BaseModel):
    """Options for ReferenceResponseRenderer."""

    display: DisplayOptions = Field(default_factory=lambda: DisplayOptions(format=DisplayFormat.INLINE))
    include_instructions: bool = Field(default=True)


class RenderedResponse(DictCompatModel):
    """Agent output with reference tokens replaced."""

    content: str
    has_references: bool = False
    reference_count: int = 0
    context_ids: list[str] = Field(default_factory=list)
    suggested_actions: list[str] = Field(default_factory=list)


class ReferenceResponseRenderer:
    """Replaces ``ref://`` tokens in agent output with tracked displays."""

    def __init__(
        self,
        tracker: ReferenceContextTracker,
        store: ContentStore,
        options: RendererOptions | None = None,
    ):
        self._tracker = tracker
        self._store = store
        self._options = options or RendererOptions()

    async def render(self, text: str) -> RenderedResponse:
        reference_ids = list(dict.fromkeys(REFERENCE_URI_PATTERN.findall(text)))
        if not reference_ids:
            return RenderedResponse(content=text)

        replacements: dict[str, str] = {}
        context_ids: list[str] = []
        suggested_actions: list[str] = []

        for reference_id in reference_ids:
            reference = await self._lookup(reference_id)
            if reference is None:
                replacements[reference_id] = UNAVAILABLE_MARKER
                for action in EXPIRED_ACTIONS:
                    if action not in suggested_actions:
                        suggested_actions.append(action)
                continue

            result = await self._tracker.display_reference(reference, self._options.display)
            replacements[reference_id] = result.display_text
            if result.context_id:
                context_ids.append(result.context_id)
            for action in result.suggested_actions or []:
                if action not in suggested_actions:
                    suggested_actions.append(action)

        content = REFERENCE_URI_PATTERN.sub(lambda m: replacements[m.group(1)], text)
        if context_ids and self._options.include_instructions:
            content += INSTRUCTION_HINT

        logger.debug("Rendered %d references in agent output", len(reference_ids))
        return RenderedResponse(
            content=content,
            has_references=True,
            reference_count=len(reference_ids),
            context_ids=context_ids,
            suggested_actions=suggested_actions,
        )

    async def _lookup(self, reference_id: str) -> ContentReference | None:
        """Tracked reference if known, otherwise rebuilt from the stored bytes."""
        context = self._tracker.get_context(reference_id)
        if context is not None:
            return context.reference

        try:
            data = await self._store.fetch(reference_id)
        except Exception as e:
            logger.warning("Failed to fetch reference %s: %s", reference_id[:12], e)
            return None
        if data is None:
            return None

        content_type = detect_stored_content_type(data)
        return ContentReference(
            reference_id=reference_id,
            preview=create_preview(data, content_type),
            metadata=ReferenceMetadata(
                content_type=content_type,
                size_bytes=len(data),
                source=ContentSource.AGENT_GENERATED,
            ),
        )
